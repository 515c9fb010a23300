"""
복식부기 (Double-Entry Bookkeeping) 원장 코어

테넌트별 계정과목표, 전표 생명주기(초안 → 전기 → 역분개),
계정 잔액 관리와 시산표/계정별 원장 조회를 제공.

사용 예시:
```python
from adapters.db import SQLiteAdapter
from core.ledger import JournalEntryLine, LedgerService, VoucherType

async with SQLiteAdapter(db_path) as db:
    ledger = LedgerService(db)
    await ledger.init_schema()

    await ledger.directory.register("acme", "A-CASH", "Cash", "ASSET", opening_balance="1000.00")
    await ledger.directory.register("acme", "A-SALES", "Sales", "REVENUE")

    entry = await ledger.journal.create_draft(
        "acme", date.today(), VoucherType.SALES, "Cash sale", "INV-1",
        [
            JournalEntryLine.debit("A-CASH", "150.00"),
            JournalEntryLine.credit("A-SALES", "150.00"),
        ],
    )
    await ledger.journal.post("acme", entry.entry_number, posted_by="u-1")

    # 잔액 조회
    cash = await ledger.queries.by_code("acme", "A-CASH")  # 1150.00

    # 시산표 조회
    trial_balance = await ledger.queries.trial_balance("acme")
```
"""

from core.ledger.balance import AccountLocks, BalanceLedger, signed_delta
from core.ledger.chart import ChartAccount, load_chart, seed_chart
from core.ledger.directory import AccountDirectory
from core.ledger.engine import JournalEntryEngine
from core.ledger.errors import (
    AccountInactive,
    AccountNotFound,
    AlreadyReversed,
    CrossTenantAccess,
    CyclicHierarchy,
    DuplicateAccountCode,
    EmptyEntry,
    EntryNotFound,
    InvalidAccountDefinition,
    InvalidJournalLine,
    InvalidStateTransition,
    LedgerError,
    NotPosted,
    ParentNotFound,
    StorageUnavailable,
    UnbalancedEntry,
)
from core.ledger.models import (
    Account,
    BalanceDrift,
    JournalEntry,
    JournalEntryLine,
    TrialBalance,
    TrialBalanceRow,
)
from core.ledger.reports import LedgerQueries
from core.ledger.sequence import EntrySequence
from core.ledger.service import LedgerService
from core.ledger.types import AccountType, EntryStatus, NormalSide, VoucherType

__all__ = [
    # 핵심 클래스
    "LedgerService",
    "AccountDirectory",
    "BalanceLedger",
    "AccountLocks",
    "JournalEntryEngine",
    "LedgerQueries",
    "EntrySequence",
    # 모델
    "Account",
    "JournalEntry",
    "JournalEntryLine",
    "TrialBalance",
    "TrialBalanceRow",
    "BalanceDrift",
    "ChartAccount",
    # Enum
    "AccountType",
    "NormalSide",
    "EntryStatus",
    "VoucherType",
    # 함수
    "signed_delta",
    "load_chart",
    "seed_chart",
    # 예외
    "LedgerError",
    "DuplicateAccountCode",
    "AccountNotFound",
    "AccountInactive",
    "ParentNotFound",
    "CyclicHierarchy",
    "CrossTenantAccess",
    "InvalidAccountDefinition",
    "EntryNotFound",
    "EmptyEntry",
    "InvalidJournalLine",
    "UnbalancedEntry",
    "InvalidStateTransition",
    "NotPosted",
    "AlreadyReversed",
    "StorageUnavailable",
]
