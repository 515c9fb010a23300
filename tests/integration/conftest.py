"""
통합 테스트 fixture

임시 SQLite DB + Ledger 스키마
"""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.service import LedgerService

TENANT = "acme"


@pytest_asyncio.fixture
async def db() -> SQLiteAdapter:
    """테스트용 임시 DB (스키마 생성 완료)"""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test_ledger.db"
        adapter = SQLiteAdapter(db_path)
        await adapter.connect()

        ledger = LedgerService(adapter)
        await ledger.init_schema()

        yield adapter

        await adapter.close()


@pytest_asyncio.fixture
async def ledger(db: SQLiteAdapter) -> LedgerService:
    """LedgerService 인스턴스"""
    return LedgerService(db)


@pytest_asyncio.fixture
async def seeded(ledger: LedgerService) -> LedgerService:
    """A-CASH (기초 1000.00) / A-SALES 계정이 등록된 LedgerService"""
    await ledger.directory.register(
        TENANT, "A-CASH", "Cash", "ASSET", opening_balance=Decimal("1000.00")
    )
    await ledger.directory.register(TENANT, "A-SALES", "Sales", "REVENUE")
    return ledger
