"""Ledger 스키마 통합 테스트"""

from pathlib import Path

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.schema import init_ledger_schema

LEDGER_TABLES = ["account", "account_balance", "journal_entry", "journal_line", "entry_sequence"]


class TestInitLedgerSchema:
    """init_ledger_schema 테스트"""

    @pytest.mark.asyncio
    async def test_creates_tables(self, db: SQLiteAdapter) -> None:
        """테이블 생성"""
        for table in LEDGER_TABLES:
            assert await db.table_exists(table) is True

    @pytest.mark.asyncio
    async def test_creates_view(self, db: SQLiteAdapter) -> None:
        """계정별 원장 View 생성"""
        row = await db.fetchone(
            "SELECT name FROM sqlite_master WHERE type='view' AND name='v_account_ledger'"
        )
        assert row is not None

    @pytest.mark.asyncio
    async def test_idempotent(self, tmp_path: Path) -> None:
        """여러 번 실행 가능"""
        async with SQLiteAdapter(tmp_path / "schema.db") as adapter:
            await init_ledger_schema(adapter)
            await init_ledger_schema(adapter)

            for table in LEDGER_TABLES:
                assert await adapter.table_exists(table) is True

    @pytest.mark.asyncio
    async def test_amount_columns_are_text(self, db: SQLiteAdapter) -> None:
        """금액 컬럼은 TEXT (REAL 사용 금지)"""
        rows = await db.fetchall("PRAGMA table_info(journal_line)")
        types = {row[1]: row[2] for row in rows}

        assert types["debit_amount"] == "TEXT"
        assert types["credit_amount"] == "TEXT"
