"""
복식부기 스키마 초기화

애플리케이션 시작 시 Ledger 테이블과 View 생성.
CREATE IF NOT EXISTS / DROP VIEW IF EXISTS 패턴으로 안전하게 동작.

금액 컬럼은 TEXT (Decimal 문자열) - REAL 사용 금지.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + View)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: 연결된 SQLiteAdapter 인스턴스
    """
    async with db.transaction():
        await _create_ledger_tables(db)
        await _create_ledger_indexes(db)
        await _create_ledger_views(db)
    logger.info("Ledger 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """Ledger 테이블 생성"""

    # account 테이블 (계정과목표)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS account (
            account_id       TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            code             TEXT NOT NULL,
            name             TEXT NOT NULL,
            description      TEXT,
            account_type     TEXT NOT NULL,
            normal_side      TEXT NOT NULL,
            parent_code      TEXT,
            level            INTEGER NOT NULL DEFAULT 0,
            is_active        INTEGER NOT NULL DEFAULT 1,
            is_cash_flow     INTEGER NOT NULL DEFAULT 0,
            opening_balance  TEXT NOT NULL DEFAULT '0.00',
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(tenant_id, code)
        )
    """)

    # account_balance 테이블 (BalanceLedger만 갱신)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS account_balance (
            id                INTEGER PRIMARY KEY AUTOINCREMENT,
            tenant_id         TEXT NOT NULL,
            account_code      TEXT NOT NULL,
            balance           TEXT NOT NULL DEFAULT '0.00',
            last_entry_number TEXT,
            updated_at        TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(tenant_id, account_code),
            FOREIGN KEY (tenant_id, account_code) REFERENCES account(tenant_id, code)
        )
    """)

    # journal_entry 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS journal_entry (
            entry_id         TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            entry_number     TEXT NOT NULL,
            entry_date       TEXT NOT NULL,
            voucher_type     TEXT NOT NULL,
            description      TEXT,
            reference_number TEXT,
            status           TEXT NOT NULL DEFAULT 'DRAFT',
            total_debit      TEXT NOT NULL,
            total_credit     TEXT NOT NULL,
            posted_by        TEXT,
            posted_at        TEXT,
            reversal_of      TEXT,
            reversed_by      TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(tenant_id, entry_number)
        )
    """)

    # journal_line 테이블 (전표에 종속, 전표 삭제 시 함께 삭제)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS journal_line (
            line_id              INTEGER PRIMARY KEY AUTOINCREMENT,
            entry_id             TEXT NOT NULL,
            line_order           INTEGER NOT NULL,
            account_code         TEXT NOT NULL,
            debit_amount         TEXT NOT NULL DEFAULT '0.00',
            credit_amount        TEXT NOT NULL DEFAULT '0.00',
            description          TEXT,
            cost_center          TEXT,
            project_code         TEXT,
            related_reference_id TEXT,
            UNIQUE(entry_id, line_order),
            FOREIGN KEY (entry_id) REFERENCES journal_entry(entry_id) ON DELETE CASCADE
        )
    """)

    # entry_sequence 테이블 (테넌트별 전표 번호 시퀀스)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS entry_sequence (
            tenant_id        TEXT NOT NULL,
            name             TEXT NOT NULL,
            next_value       INTEGER NOT NULL DEFAULT 1,
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            PRIMARY KEY (tenant_id, name)
        )
    """)


async def _create_ledger_indexes(db: "SQLiteAdapter") -> None:
    """인덱스 생성"""
    await db.execute("CREATE INDEX IF NOT EXISTS idx_account_type ON account(tenant_id, account_type)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_account_parent ON account(tenant_id, parent_code)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_journal_entry_status ON journal_entry(tenant_id, status)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_journal_entry_date ON journal_entry(tenant_id, entry_date)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_journal_line_entry ON journal_line(entry_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_journal_line_account ON journal_line(account_code)")


async def _create_ledger_views(db: "SQLiteAdapter") -> None:
    """Ledger View 생성

    View는 항상 DROP 후 CREATE하여 스키마 변경 시에도 안전.
    금액은 TEXT 그대로 노출 (REAL 캐스팅 금지).
    """

    # 계정별 전기 내역 View (v_account_ledger)
    # POSTED, REVERSED 전표 모두 잔액에 반영된 상태이므로 포함
    await db.execute("DROP VIEW IF EXISTS v_account_ledger")
    await db.execute("""
        CREATE VIEW v_account_ledger AS
        SELECT
            je.tenant_id,
            jl.account_code,
            je.entry_number,
            je.entry_date,
            je.voucher_type,
            je.status,
            je.posted_at,
            jl.line_order,
            jl.debit_amount,
            jl.credit_amount,
            COALESCE(jl.description, je.description) as description
        FROM journal_entry je
        JOIN journal_line jl ON je.entry_id = jl.entry_id
        WHERE je.status IN ('POSTED', 'REVERSED')
    """)
