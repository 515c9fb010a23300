"""
전표 번호 시퀀스

테넌트 + 시퀀스 이름(전표 접두사)별 단조 증가 번호 발급.
번호 할당은 호출자의 트랜잭션 안에서 수행되어,
전표 저장이 롤백되면 할당도 함께 롤백됨.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.constants import Defaults
from core.ledger.types import VOUCHER_PREFIXES
from core.utils.timezone import now_utc, to_db_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


def voucher_prefix(voucher_type: str, default: str = Defaults.VOUCHER_PREFIX) -> str:
    """전표 유형 → 번호 접두사

    Example:
        >>> voucher_prefix("JOURNAL")
        'JV'
        >>> voucher_prefix("payroll")
        'JE'
    """
    return VOUCHER_PREFIXES.get(voucher_type.upper(), default)


def format_entry_number(prefix: str, value: int, width: int = Defaults.SEQUENCE_WIDTH) -> str:
    """전표 번호 포맷

    Example:
        >>> format_entry_number("JV", 42)
        'JV-000042'
    """
    return f"{prefix}-{value:0{width}d}"


class EntrySequence:
    """테넌트별 전표 번호 발급기

    첫 사용 시 시퀀스 행을 생성하고, 이후 next_value를 원자적으로 증가.

    Args:
        db: SQLiteAdapter
        default_prefix: 매핑되지 않은 전표 유형의 접두사
        width: 일련번호 자릿수
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        default_prefix: str = Defaults.VOUCHER_PREFIX,
        width: int = Defaults.SEQUENCE_WIDTH,
    ):
        self.db = db
        self.default_prefix = default_prefix
        self.width = width

    async def allocate(self, tenant_id: str, name: str) -> int:
        """다음 시퀀스 값 할당

        Args:
            tenant_id: 테넌트 ID
            name: 시퀀스 이름

        Returns:
            할당된 값 (1부터 시작)
        """
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO entry_sequence (tenant_id, name, next_value, updated_at)
                VALUES (?, ?, 1, ?)
                ON CONFLICT(tenant_id, name) DO NOTHING
                """,
                (tenant_id, name, to_db_timestamp(now_utc())),
            )
            row = await self.db.fetchone(
                "SELECT next_value FROM entry_sequence WHERE tenant_id = ? AND name = ?",
                (tenant_id, name),
            )
            value = int(row[0])
            await self.db.execute(
                """
                UPDATE entry_sequence
                SET next_value = ?, updated_at = ?
                WHERE tenant_id = ? AND name = ?
                """,
                (value + 1, to_db_timestamp(now_utc()), tenant_id, name),
            )
        return value

    async def next_entry_number(self, tenant_id: str, voucher_type: str) -> str:
        """전표 유형에 맞는 다음 전표 번호 (예: JV-000001)"""
        prefix = voucher_prefix(voucher_type, self.default_prefix)
        value = await self.allocate(tenant_id, prefix)
        return format_entry_number(prefix, value, self.width)
