"""
복식부기 타입 정의

계정 유형, 정상 잔액 방향, 전표 상태 등 Ledger 시스템에서 사용하는 Enum 정의
"""

from enum import Enum


class AccountType(str, Enum):
    """계정 유형

    복식부기의 5대 계정 유형.
    str을 상속하여 JSON/DB 직렬화 가능.
    """

    ASSET = "ASSET"  # 자산
    LIABILITY = "LIABILITY"  # 부채
    EQUITY = "EQUITY"  # 자본
    REVENUE = "REVENUE"  # 수익
    EXPENSE = "EXPENSE"  # 비용


class NormalSide(str, Enum):
    """정상 잔액 방향 (증가가 기록되는 쪽)"""

    DEBIT = "DEBIT"  # 차변 (자산, 비용)
    CREDIT = "CREDIT"  # 대변 (부채, 자본, 수익)


class EntryStatus(str, Enum):
    """전표 상태

    전이 규칙:
    - DRAFT → POSTED: 전기
    - POSTED → REVERSED: 역분개 완료
    """

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    REVERSED = "REVERSED"


class VoucherType(str, Enum):
    """전표 유형"""

    JOURNAL = "JOURNAL"  # 일반 분개
    RECEIPT = "RECEIPT"  # 입금
    PAYMENT = "PAYMENT"  # 출금
    SALES = "SALES"  # 매출
    PURCHASE = "PURCHASE"  # 매입
    OPENING = "OPENING"  # 기초 잔액
    ADJUSTMENT = "ADJUSTMENT"  # 수정 분개


# 계정 유형별 기본 정상 잔액 방향
DEFAULT_NORMAL_SIDES: dict[AccountType, NormalSide] = {
    AccountType.ASSET: NormalSide.DEBIT,
    AccountType.EXPENSE: NormalSide.DEBIT,
    AccountType.LIABILITY: NormalSide.CREDIT,
    AccountType.EQUITY: NormalSide.CREDIT,
    AccountType.REVENUE: NormalSide.CREDIT,
}

# 전표 번호 접두사 (JV-000001)
VOUCHER_PREFIXES: dict[str, str] = {
    VoucherType.JOURNAL.value: "JV",
    VoucherType.RECEIPT.value: "RV",
    VoucherType.PAYMENT.value: "PV",
    VoucherType.SALES.value: "SV",
    VoucherType.PURCHASE.value: "PU",
    VoucherType.OPENING.value: "OB",
    VoucherType.ADJUSTMENT.value: "AJ",
}
