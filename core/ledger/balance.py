"""
잔액 원장 (Balance Ledger)

계정별 현재 잔액을 관리하며, 잔액을 변경하는 유일한 경로.

정상 잔액 방향에 따른 부호:
- DEBIT 정상 (자산, 비용): delta = 차변 - 대변
- CREDIT 정상 (부채, 자본, 수익): delta = 대변 - 차변

동시성:
- (tenant_id, account_code)별 asyncio.Lock으로 read-modify-write 직렬화
- 여러 계정을 잠글 때는 항상 코드 오름차순으로 획득 (교착 방지)
- 잠금 순서: 계정 잠금 → DB 트랜잭션 잠금
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, AsyncIterator, Iterable

from core.constants import Defaults
from core.ledger.amounts import amount_from_db, amount_to_db, to_amount
from core.ledger.errors import AccountInactive, AccountNotFound
from core.ledger.types import NormalSide
from core.utils.timezone import now_utc, to_db_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


def signed_delta(normal_side: NormalSide | str, debit_amount: Decimal, credit_amount: Decimal) -> Decimal:
    """정상 잔액 방향 기준 잔액 변화량

    Args:
        normal_side: DEBIT 또는 CREDIT (그 외 값은 ValueError)
        debit_amount: 차변 금액
        credit_amount: 대변 금액

    Example:
        >>> signed_delta("DEBIT", Decimal("150.00"), Decimal("0"))
        Decimal('150.00')
        >>> signed_delta("CREDIT", Decimal("150.00"), Decimal("0"))
        Decimal('-150.00')
    """
    side = NormalSide(normal_side)
    if side == NormalSide.DEBIT:
        return debit_amount - credit_amount
    return credit_amount - debit_amount


class AccountLocks:
    """계정별 잠금 레지스트리

    하나의 LedgerService 안의 모든 컴포넌트가 공유.
    """

    def __init__(self) -> None:
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    def get(self, tenant_id: str, code: str) -> asyncio.Lock:
        key = (tenant_id, code)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, tenant_id: str, codes: Iterable[str]) -> AsyncIterator[list[str]]:
        """여러 계정 잠금을 코드 오름차순으로 획득

        Yields:
            잠근 계정 코드 목록 (오름차순)
        """
        ordered = sorted(set(codes))
        acquired: list[asyncio.Lock] = []
        try:
            for code in ordered:
                lock = self.get(tenant_id, code)
                await lock.acquire()
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()


class BalanceLedger:
    """잔액 원장

    Args:
        db: SQLiteAdapter
        locks: 계정 잠금 레지스트리 (None이면 새로 생성)
        scale: 금액 소수 자릿수
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        locks: AccountLocks | None = None,
        scale: int = Defaults.AMOUNT_SCALE,
    ):
        self.db = db
        self.locks = locks or AccountLocks()
        self.scale = scale

    def locked(self, tenant_id: str, codes: Iterable[str]):
        """계정 잠금 컨텍스트 (코드 오름차순 획득)"""
        return self.locks.hold(tenant_id, codes)

    async def apply_posting(
        self,
        tenant_id: str,
        account_code: str,
        debit_amount: Decimal | int | str,
        credit_amount: Decimal | int | str,
        entry_number: str | None = None,
    ) -> Decimal:
        """단일 계정에 전기

        계정 잠금과 트랜잭션을 직접 획득.
        전표 단위 전기는 JournalEntryEngine.post를 사용.

        Returns:
            새 잔액

        Raises:
            AccountNotFound: 계정 없음
            AccountInactive: 비활성 계정
        """
        async with self.locked(tenant_id, [account_code]):
            async with self.db.transaction():
                return await self.apply_in_transaction(
                    tenant_id, account_code, debit_amount, credit_amount, entry_number
                )

    async def apply_in_transaction(
        self,
        tenant_id: str,
        account_code: str,
        debit_amount: Decimal | int | str,
        credit_amount: Decimal | int | str,
        entry_number: str | None = None,
    ) -> Decimal:
        """잔액 갱신 (호출자가 계정 잠금과 트랜잭션을 보유한 상태)

        Returns:
            새 잔액
        """
        if not self.db.in_transaction:
            raise RuntimeError("apply_in_transaction requires an open transaction")

        debit = to_amount(debit_amount, self.scale)
        credit = to_amount(credit_amount, self.scale)
        if debit < 0 or credit < 0:
            raise ValueError(f"Posting amounts must be non-negative: {debit}/{credit}")

        row = await self.db.fetchone(
            """
            SELECT a.normal_side, a.is_active, COALESCE(ab.balance, a.opening_balance)
            FROM account a
            LEFT JOIN account_balance ab
                ON ab.tenant_id = a.tenant_id AND ab.account_code = a.code
            WHERE a.tenant_id = ? AND a.code = ?
            """,
            (tenant_id, account_code),
        )
        if row is None:
            raise AccountNotFound(tenant_id, account_code)
        if not row[1]:
            raise AccountInactive(tenant_id, account_code)

        current_balance = amount_from_db(row[2], self.scale)
        new_balance = current_balance + signed_delta(row[0], debit, credit)

        # Upsert
        await self.db.execute(
            """
            INSERT INTO account_balance (tenant_id, account_code, balance, last_entry_number, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(tenant_id, account_code) DO UPDATE SET
                balance = excluded.balance,
                last_entry_number = excluded.last_entry_number,
                updated_at = excluded.updated_at
            """,
            (
                tenant_id,
                account_code,
                amount_to_db(new_balance),
                entry_number,
                to_db_timestamp(now_utc()),
            ),
        )

        logger.debug(
            f"잔액 갱신: {tenant_id}/{account_code} {current_balance} → {new_balance}",
        )
        return new_balance

    async def get_balance(self, tenant_id: str, account_code: str) -> Decimal:
        """현재 잔액 조회

        Raises:
            AccountNotFound: 계정 없음
        """
        row = await self.db.fetchone(
            """
            SELECT COALESCE(ab.balance, a.opening_balance)
            FROM account a
            LEFT JOIN account_balance ab
                ON ab.tenant_id = a.tenant_id AND ab.account_code = a.code
            WHERE a.tenant_id = ? AND a.code = ?
            """,
            (tenant_id, account_code),
        )
        if row is None:
            raise AccountNotFound(tenant_id, account_code)
        return amount_from_db(row[0], self.scale)
