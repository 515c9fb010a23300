"""
Ledger 서비스

하나의 SQLiteAdapter 위에 계정 디렉토리, 잔액 원장, 전표 엔진, 조회 파사드를 구성.
같은 서비스의 컴포넌트는 계정 잠금 레지스트리를 공유.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.constants import Defaults
from core.ledger.balance import AccountLocks, BalanceLedger
from core.ledger.directory import AccountDirectory
from core.ledger.engine import JournalEntryEngine
from core.ledger.reports import LedgerQueries
from core.ledger.schema import init_ledger_schema
from core.ledger.sequence import EntrySequence

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.config.loader import LedgerSettings

logger = logging.getLogger(__name__)


class LedgerService:
    """Ledger 컴포넌트 묶음

    Args:
        db: 연결된 SQLiteAdapter
        scale: 금액 소수 자릿수
        default_prefix: 매핑되지 않은 전표 유형의 번호 접두사

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        ledger = LedgerService(db)
        await ledger.init_schema()

        await ledger.directory.register("acme", "A-CASH", "Cash", "ASSET")
        entry = await ledger.journal.create_draft(...)
        await ledger.journal.post("acme", entry.entry_number, posted_by="u-1")

        tb = await ledger.queries.trial_balance("acme")
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        scale: int = Defaults.AMOUNT_SCALE,
        default_prefix: str = Defaults.VOUCHER_PREFIX,
    ):
        self.db = db
        self.scale = scale
        self.locks = AccountLocks()
        self.directory = AccountDirectory(db, scale=scale)
        self.balances = BalanceLedger(db, locks=self.locks, scale=scale)
        self.sequence = EntrySequence(db, default_prefix=default_prefix)
        self.journal = JournalEntryEngine(
            db,
            directory=self.directory,
            balances=self.balances,
            sequence=self.sequence,
            scale=scale,
        )
        self.queries = LedgerQueries(db, directory=self.directory, scale=scale)

    @classmethod
    def from_settings(cls, db: SQLiteAdapter, settings: LedgerSettings) -> LedgerService:
        """설정 기반 생성"""
        return cls(
            db,
            scale=settings.amount_scale,
            default_prefix=settings.default_voucher_prefix,
        )

    async def init_schema(self) -> None:
        """Ledger 테이블/View 생성"""
        await init_ledger_schema(self.db)
