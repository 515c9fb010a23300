"""
Ledger 도메인 모델

계정, 전표, 분개 항목 데이터 구조.
계정 계층은 객체 참조가 아닌 parent_code(문자열)로만 연결.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal

from core.ledger.types import AccountType, EntryStatus, NormalSide


@dataclass(frozen=True)
class Account:
    """계정

    (tenant_id, code)로 식별. account_id는 전역 고유 대리 키.
    current_balance는 BalanceLedger의 전기를 통해서만 변경됨.
    """

    account_id: str
    tenant_id: str
    code: str
    name: str
    account_type: AccountType
    normal_side: NormalSide
    level: int = 0
    parent_code: str | None = None
    description: str | None = None
    is_active: bool = True
    is_cash_flow: bool = False
    opening_balance: Decimal = Decimal("0.00")
    current_balance: Decimal = Decimal("0.00")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_code is None


@dataclass(frozen=True)
class JournalEntryLine:
    """분개 항목

    debit_amount / credit_amount 중 정확히 하나만 0보다 커야 함.
    """

    account_code: str
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    description: str | None = None
    cost_center: str | None = None
    project_code: str | None = None
    related_reference_id: str | None = None
    line_no: int = 0

    @classmethod
    def debit(cls, account_code: str, amount: Decimal | int | str, **kwargs) -> JournalEntryLine:
        """차변 항목 생성"""
        return cls(account_code=account_code, debit_amount=amount, credit_amount=Decimal("0"), **kwargs)

    @classmethod
    def credit(cls, account_code: str, amount: Decimal | int | str, **kwargs) -> JournalEntryLine:
        """대변 항목 생성"""
        return cls(account_code=account_code, debit_amount=Decimal("0"), credit_amount=amount, **kwargs)

    def swapped(self) -> JournalEntryLine:
        """차변/대변을 뒤바꾼 항목 (역분개용)"""
        return replace(
            self,
            debit_amount=self.credit_amount,
            credit_amount=self.debit_amount,
        )


@dataclass(frozen=True)
class JournalEntry:
    """전표

    하나의 거래에 대한 복식부기 기록.
    POSTED 상태에서는 차변 합계 = 대변 합계 (정확히 일치).
    """

    entry_id: str
    tenant_id: str
    entry_number: str
    entry_date: date
    voucher_type: str
    status: EntryStatus
    total_debit: Decimal
    total_credit: Decimal
    lines: tuple[JournalEntryLine, ...] = field(default_factory=tuple)
    description: str | None = None
    reference_number: str | None = None
    posted_by: str | None = None
    posted_at: datetime | None = None
    reversal_of: str | None = None
    reversed_by: str | None = None
    created_at: datetime | None = None

    def is_balanced(self) -> bool:
        """차변 합계 == 대변 합계 (허용 오차 없음)"""
        return self.total_debit == self.total_credit

    @property
    def account_codes(self) -> list[str]:
        """전표가 참조하는 계정 코드 (중복 제거, 오름차순)"""
        return sorted({line.account_code for line in self.lines})


@dataclass(frozen=True)
class TrialBalanceRow:
    """시산표 행"""

    code: str
    name: str
    account_type: AccountType
    normal_side: NormalSide
    balance: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """시산표

    차변 정상 계정 잔액 합계와 대변 정상 계정 잔액 합계 비교.
    """

    tenant_id: str
    rows: list[TrialBalanceRow]
    total_debit_normal: Decimal
    total_credit_normal: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.total_debit_normal == self.total_credit_normal

    @property
    def difference(self) -> Decimal:
        return self.total_debit_normal - self.total_credit_normal


@dataclass(frozen=True)
class BalanceDrift:
    """저장된 잔액과 재계산 잔액의 불일치"""

    code: str
    stored_balance: Decimal
    expected_balance: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored_balance - self.expected_balance
