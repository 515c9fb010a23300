"""
Ledger 예외 정의

모든 예외는 호출자에게 즉시 전달됨 (코어에서 재시도하지 않음).
StorageUnavailable만 일시적 저장소 오류로, 호출 계층에서 재시도 가능.
"""


class LedgerError(Exception):
    """Ledger 예외 기본 클래스"""

    retryable: bool = False


# -------------------------------------------------------------------------
# 계정 (Account Directory)
# -------------------------------------------------------------------------


class DuplicateAccountCode(LedgerError):
    """이미 존재하는 계정 코드"""

    def __init__(self, tenant_id: str, code: str):
        self.tenant_id = tenant_id
        self.code = code
        super().__init__(f"Account code already exists: {tenant_id}/{code}")


class AccountNotFound(LedgerError):
    """계정 없음"""

    def __init__(self, tenant_id: str, code: str):
        self.tenant_id = tenant_id
        self.code = code
        super().__init__(f"Account not found: {tenant_id}/{code}")


class AccountInactive(LedgerError):
    """비활성 계정에 전기 시도"""

    def __init__(self, tenant_id: str, code: str):
        self.tenant_id = tenant_id
        self.code = code
        super().__init__(f"Account is inactive: {tenant_id}/{code}")


class ParentNotFound(LedgerError):
    """상위 계정 없음"""

    def __init__(self, tenant_id: str, parent_code: str):
        self.tenant_id = tenant_id
        self.parent_code = parent_code
        super().__init__(f"Parent account not found: {tenant_id}/{parent_code}")


class CyclicHierarchy(LedgerError):
    """계정 계층 순환"""

    def __init__(self, tenant_id: str, code: str, parent_code: str):
        self.tenant_id = tenant_id
        self.code = code
        self.parent_code = parent_code
        super().__init__(
            f"Moving {code} under {parent_code} would create a cycle ({tenant_id})"
        )


class CrossTenantAccess(LedgerError):
    """다른 테넌트의 데이터 접근"""

    def __init__(self, tenant_id: str, owner_tenant_id: str, resource: str):
        self.tenant_id = tenant_id
        self.owner_tenant_id = owner_tenant_id
        self.resource = resource
        super().__init__(f"Tenant {tenant_id} cannot access {resource}")


class InvalidAccountDefinition(LedgerError):
    """잘못된 계정 정의 (알 수 없는 유형, 방향, 필드)"""
    pass


# -------------------------------------------------------------------------
# 전표 (Journal Entry Engine)
# -------------------------------------------------------------------------


class EntryNotFound(LedgerError):
    """전표 없음"""

    def __init__(self, tenant_id: str, entry_number: str):
        self.tenant_id = tenant_id
        self.entry_number = entry_number
        super().__init__(f"Journal entry not found: {tenant_id}/{entry_number}")


class EmptyEntry(LedgerError):
    """분개 항목이 2개 미만"""
    pass


class InvalidJournalLine(LedgerError):
    """잘못된 분개 항목 (차변/대변 중 정확히 하나만 양수여야 함)"""

    def __init__(self, line_no: int, reason: str):
        self.line_no = line_no
        self.reason = reason
        super().__init__(f"Invalid journal line #{line_no}: {reason}")


class UnbalancedEntry(LedgerError):
    """차변 합계 ≠ 대변 합계"""

    def __init__(self, total_debit, total_credit):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Unbalanced entry: debit={total_debit} credit={total_credit}"
        )


class InvalidStateTransition(LedgerError):
    """허용되지 않은 전표 상태 전이"""

    def __init__(self, entry_number: str, from_state: str, to_state: str):
        self.entry_number = entry_number
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Entry {entry_number}: cannot transition from {from_state} to {to_state}"
        )


class NotPosted(LedgerError):
    """전기되지 않은 전표의 역분개 시도"""

    def __init__(self, entry_number: str, status: str):
        self.entry_number = entry_number
        self.status = status
        super().__init__(f"Entry {entry_number} is not posted (status={status})")


class AlreadyReversed(LedgerError):
    """이미 역분개된 전표"""

    def __init__(self, entry_number: str, reversed_by: str | None):
        self.entry_number = entry_number
        self.reversed_by = reversed_by
        super().__init__(f"Entry {entry_number} already reversed by {reversed_by}")


# -------------------------------------------------------------------------
# 저장소
# -------------------------------------------------------------------------


class StorageUnavailable(LedgerError):
    """일시적 저장소 오류 (DB 잠김 등) - 재시도 가능"""

    retryable = True
