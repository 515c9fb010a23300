"""Ledger 모델 테스트"""

from datetime import date
from decimal import Decimal

import pytest

from core.ledger.models import (
    Account,
    BalanceDrift,
    JournalEntry,
    JournalEntryLine,
    TrialBalance,
)
from core.ledger.types import AccountType, EntryStatus, NormalSide


class TestJournalEntryLine:
    """JournalEntryLine 테스트"""

    def test_debit_factory(self) -> None:
        """차변 항목 생성"""
        line = JournalEntryLine.debit("A-CASH", Decimal("150.00"))

        assert line.account_code == "A-CASH"
        assert line.debit_amount == Decimal("150.00")
        assert line.credit_amount == Decimal("0")

    def test_credit_factory_with_dimensions(self) -> None:
        """대변 항목 + 부가 정보"""
        line = JournalEntryLine.credit("A-SALES", "150.00", cost_center="CC-1")

        assert line.credit_amount == "150.00"
        assert line.cost_center == "CC-1"

    def test_swapped(self) -> None:
        """차변/대변 교환 (다른 필드 유지)"""
        line = JournalEntryLine.debit("A-CASH", Decimal("10.00"), description="memo", line_no=3)
        swapped = line.swapped()

        assert swapped.debit_amount == Decimal("0")
        assert swapped.credit_amount == Decimal("10.00")
        assert swapped.description == "memo"
        assert swapped.line_no == 3

    def test_frozen(self) -> None:
        """불변성 확인"""
        line = JournalEntryLine.debit("A-CASH", Decimal("1.00"))

        with pytest.raises(AttributeError):
            line.account_code = "X"  # type: ignore


class TestJournalEntry:
    """JournalEntry 테스트"""

    def _entry(self, *lines: JournalEntryLine, debit: str = "10.00", credit: str = "10.00") -> JournalEntry:
        return JournalEntry(
            entry_id="e1",
            tenant_id="acme",
            entry_number="JV-000001",
            entry_date=date(2026, 1, 1),
            voucher_type="JOURNAL",
            status=EntryStatus.DRAFT,
            total_debit=Decimal(debit),
            total_credit=Decimal(credit),
            lines=lines,
        )

    def test_is_balanced(self) -> None:
        """차변 = 대변"""
        assert self._entry().is_balanced()
        assert not self._entry(credit="9.99").is_balanced()

    def test_account_codes_sorted_unique(self) -> None:
        """참조 계정 코드: 중복 제거 + 오름차순"""
        entry = self._entry(
            JournalEntryLine.debit("B", Decimal("5.00")),
            JournalEntryLine.debit("A", Decimal("5.00")),
            JournalEntryLine.credit("B", Decimal("10.00")),
        )

        assert entry.account_codes == ["A", "B"]


class TestAccount:
    """Account 테스트"""

    def test_is_root(self) -> None:
        """parent_code 없으면 루트"""
        account = Account(
            account_id="a1",
            tenant_id="acme",
            code="1000",
            name="Assets",
            account_type=AccountType.ASSET,
            normal_side=NormalSide.DEBIT,
        )

        assert account.is_root
        assert account.level == 0


class TestReportModels:
    """시산표/잔액 검증 모델 테스트"""

    def test_trial_balance_difference(self) -> None:
        """차이 계산"""
        tb = TrialBalance(
            tenant_id="acme",
            rows=[],
            total_debit_normal=Decimal("100.00"),
            total_credit_normal=Decimal("90.00"),
        )

        assert not tb.is_balanced
        assert tb.difference == Decimal("10.00")

    def test_balance_drift_difference(self) -> None:
        """저장 잔액 - 기대 잔액"""
        drift = BalanceDrift(
            code="A-CASH",
            stored_balance=Decimal("1001.00"),
            expected_balance=Decimal("1000.00"),
        )

        assert drift.difference == Decimal("1.00")
