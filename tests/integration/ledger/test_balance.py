"""BalanceLedger 통합 테스트"""

import asyncio
import random
from decimal import Decimal

import pytest

from core.ledger.errors import AccountInactive, AccountNotFound
from core.ledger.service import LedgerService

TENANT = "acme"


class TestApplyPosting:
    """단일 계정 전기 테스트"""

    @pytest.mark.asyncio
    async def test_debit_normal(self, seeded: LedgerService) -> None:
        """차변 정상 계정: 차변 증가, 대변 감소"""
        balances = seeded.balances

        assert await balances.apply_posting(TENANT, "A-CASH", "150.00", "0") == Decimal("1150.00")
        assert await balances.apply_posting(TENANT, "A-CASH", "0", "50.00") == Decimal("1100.00")
        assert await balances.get_balance(TENANT, "A-CASH") == Decimal("1100.00")

    @pytest.mark.asyncio
    async def test_credit_normal(self, seeded: LedgerService) -> None:
        """대변 정상 계정: 대변 증가, 차변 감소"""
        balances = seeded.balances

        assert await balances.apply_posting(TENANT, "A-SALES", "0", "150.00") == Decimal("150.00")
        assert await balances.apply_posting(TENANT, "A-SALES", "20.00", "0") == Decimal("130.00")

    @pytest.mark.asyncio
    async def test_balance_visible_through_directory(self, seeded: LedgerService) -> None:
        """디렉토리 조회에 현재 잔액 반영"""
        await seeded.balances.apply_posting(TENANT, "A-CASH", "1.00", "0", entry_number="JV-000009")

        cash = await seeded.directory.lookup(TENANT, "A-CASH")

        assert cash.current_balance == Decimal("1001.00")
        assert cash.opening_balance == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_account_not_found(self, seeded: LedgerService) -> None:
        """없는 계정"""
        with pytest.raises(AccountNotFound):
            await seeded.balances.apply_posting(TENANT, "NOPE", "1.00", "0")

    @pytest.mark.asyncio
    async def test_other_tenant_account_not_found(self, seeded: LedgerService) -> None:
        """다른 테넌트의 계정에는 전기 불가"""
        with pytest.raises(AccountNotFound):
            await seeded.balances.apply_posting("globex", "A-CASH", "1.00", "0")

    @pytest.mark.asyncio
    async def test_inactive_account(self, seeded: LedgerService) -> None:
        """비활성 계정 (잔액 변경 없음)"""
        await seeded.directory.deactivate(TENANT, "A-CASH")

        with pytest.raises(AccountInactive):
            await seeded.balances.apply_posting(TENANT, "A-CASH", "1.00", "0")

        assert await seeded.balances.get_balance(TENANT, "A-CASH") == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_negative_amount(self, seeded: LedgerService) -> None:
        """음수 금액 거부"""
        with pytest.raises(ValueError):
            await seeded.balances.apply_posting(TENANT, "A-CASH", "-1.00", "0")

    @pytest.mark.asyncio
    async def test_apply_in_transaction_requires_transaction(self, seeded: LedgerService) -> None:
        """트랜잭션 없이 호출 거부"""
        with pytest.raises(RuntimeError, match="transaction"):
            await seeded.balances.apply_in_transaction(TENANT, "A-CASH", "1.00", "0")

    @pytest.mark.asyncio
    async def test_get_balance_missing(self, seeded: LedgerService) -> None:
        """없는 계정 잔액 조회"""
        with pytest.raises(AccountNotFound):
            await seeded.balances.get_balance(TENANT, "NOPE")


class TestConcurrency:
    """동시 전기 테스트"""

    @pytest.mark.asyncio
    async def test_concurrent_postings_are_not_lost(self, seeded: LedgerService) -> None:
        """N개의 동시 +1 전기 → 잔액 정확히 +N"""
        n = 50
        tasks = [
            seeded.balances.apply_posting(TENANT, "A-CASH", "1.00", "0")
            for _ in range(n)
        ]
        random.shuffle(tasks)

        await asyncio.gather(*tasks)

        assert await seeded.balances.get_balance(TENANT, "A-CASH") == Decimal("1000.00") + n

    @pytest.mark.asyncio
    async def test_concurrent_mixed_accounts(self, seeded: LedgerService) -> None:
        """여러 계정에 무작위 순서로 동시 전기"""
        operations = [("A-CASH", "2.00", "0")] * 20 + [("A-SALES", "0", "3.00")] * 20
        random.shuffle(operations)

        await asyncio.gather(
            *(seeded.balances.apply_posting(TENANT, code, debit, credit) for code, debit, credit in operations)
        )

        assert await seeded.balances.get_balance(TENANT, "A-CASH") == Decimal("1040.00")
        assert await seeded.balances.get_balance(TENANT, "A-SALES") == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_locks_acquired_in_code_order(self, seeded: LedgerService) -> None:
        """겹치는 계정 집합을 반대 순서로 잠가도 교착 없음"""
        order: list[str] = []

        async def hold(codes: list[str], label: str) -> None:
            async with seeded.balances.locked(TENANT, codes) as locked_codes:
                assert locked_codes == sorted(codes)
                order.append(label)
                await asyncio.sleep(0.01)

        await asyncio.wait_for(
            asyncio.gather(
                hold(["A-SALES", "A-CASH"], "first"),
                hold(["A-CASH", "A-SALES"], "second"),
            ),
            timeout=5,
        )

        assert sorted(order) == ["first", "second"]
