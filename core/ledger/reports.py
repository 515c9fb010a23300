"""
조회/보고 파사드

계정 디렉토리와 전기 내역을 조합한 읽기 전용 뷰.
어떤 메서드도 상태를 변경하지 않음.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.ledger.amounts import amount_from_db, to_amount
from core.ledger.balance import signed_delta
from core.ledger.directory import AccountDirectory
from core.ledger.models import Account, BalanceDrift, TrialBalance, TrialBalanceRow
from core.ledger.types import AccountType, NormalSide

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class LedgerQueries:
    """조회/보고 파사드

    Args:
        db: SQLiteAdapter
        directory: AccountDirectory
        scale: 금액 소수 자릿수
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        directory: AccountDirectory,
        scale: int = Defaults.AMOUNT_SCALE,
    ):
        self.db = db
        self.directory = directory
        self.scale = scale

    async def trial_balance(self, tenant_id: str) -> TrialBalance:
        """시산표

        활성 계정별 현재 잔액과
        차변 정상 계정 합계 / 대변 정상 계정 합계.
        """
        accounts = await self.directory.list_active(tenant_id)

        zero = to_amount(0, self.scale)
        total_debit_normal = zero
        total_credit_normal = zero
        rows: list[TrialBalanceRow] = []

        for account in accounts:
            rows.append(
                TrialBalanceRow(
                    code=account.code,
                    name=account.name,
                    account_type=account.account_type,
                    normal_side=account.normal_side,
                    balance=account.current_balance,
                )
            )
            if account.normal_side == NormalSide.DEBIT:
                total_debit_normal += account.current_balance
            else:
                total_credit_normal += account.current_balance

        return TrialBalance(
            tenant_id=tenant_id,
            rows=rows,
            total_debit_normal=total_debit_normal,
            total_credit_normal=total_credit_normal,
        )

    async def by_type(self, tenant_id: str, account_type: AccountType | str) -> list[Account]:
        return await self.directory.list_by_type(tenant_id, account_type)

    async def by_code(self, tenant_id: str, code: str) -> Account:
        return await self.directory.lookup(tenant_id, code)

    async def children_of(self, tenant_id: str, code: str) -> list[Account]:
        return await self.directory.children_of(tenant_id, code)

    async def account_activity(
        self,
        tenant_id: str,
        code: str,
        limit: int = Defaults.LIST_LIMIT,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """계정별 전기 내역 (최신 전표 먼저)

        Args:
            tenant_id: 테넌트 ID
            code: 계정 코드
            limit: 조회 개수 제한
            offset: 시작 위치

        Returns:
            전기된 분개 항목 목록

        Raises:
            AccountNotFound: 계정 없음
        """
        await self.directory.lookup(tenant_id, code)

        rows = await self.db.fetchall(
            """
            SELECT
                entry_number, entry_date, voucher_type, status,
                posted_at, line_order, debit_amount, credit_amount, description
            FROM v_account_ledger
            WHERE tenant_id = ? AND account_code = ?
            ORDER BY posted_at DESC, entry_number DESC, line_order
            LIMIT ? OFFSET ?
            """,
            (tenant_id, code, limit, offset),
        )

        return [
            {
                "entry_number": row[0],
                "entry_date": row[1],
                "voucher_type": row[2],
                "status": row[3],
                "posted_at": row[4],
                "line_order": row[5],
                "debit_amount": amount_from_db(row[6], self.scale),
                "credit_amount": amount_from_db(row[7], self.scale),
                "description": row[8],
            }
            for row in rows
        ]

    async def balance_drift(self, tenant_id: str) -> list[BalanceDrift]:
        """저장된 잔액 검증

        기초 잔액 + 전기된 모든 항목의 부호 있는 변화량을 다시 계산하여
        저장된 현재 잔액과 다른 계정을 반환. 빈 목록이면 정합.
        """
        # 계정과 전기 내역을 같은 시점에서 읽음
        async with self.db.transaction():
            accounts = await self.directory.list_all(tenant_id)
            rows = await self.db.fetchall(
                """
                SELECT account_code, debit_amount, credit_amount
                FROM v_account_ledger
                WHERE tenant_id = ?
                """,
                (tenant_id,),
            )

        deltas: dict[str, list[tuple[Decimal, Decimal]]] = defaultdict(list)
        for code, debit, credit in rows:
            deltas[code].append(
                (amount_from_db(debit, self.scale), amount_from_db(credit, self.scale))
            )

        drifts: list[BalanceDrift] = []
        for account in accounts:
            expected = account.opening_balance
            for debit, credit in deltas.get(account.code, []):
                expected += signed_delta(account.normal_side, debit, credit)

            if expected != account.current_balance:
                drifts.append(
                    BalanceDrift(
                        code=account.code,
                        stored_balance=account.current_balance,
                        expected_balance=expected,
                    )
                )

        if drifts:
            logger.warning(
                f"잔액 불일치 감지: {tenant_id}",
                extra={"accounts": [drift.code for drift in drifts]},
            )
        return drifts
