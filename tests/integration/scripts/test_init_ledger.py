"""scripts/init_ledger.py 통합 테스트"""

from pathlib import Path

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import DatabaseConfig, LedgerSettings
from scripts.init_ledger import main, verify_schema


def make_settings(db_path: Path) -> LedgerSettings:
    return LedgerSettings(database=DatabaseConfig(path=db_path))


class TestInitLedger:
    """초기화 스크립트 테스트"""

    @pytest.mark.asyncio
    async def test_schema_and_chart(self, temp_dir: Path, temp_chart_file: Path) -> None:
        """스키마 생성 + 계정과목표 등록"""
        db_path = temp_dir / "data" / "ledger.db"

        await main(make_settings(db_path), "acme", temp_chart_file)

        async with SQLiteAdapter(db_path) as db:
            assert await verify_schema(db, "acme") is True
            row = await db.fetchone("SELECT COUNT(*) FROM account WHERE tenant_id = 'acme'")
            assert row[0] == 3

    @pytest.mark.asyncio
    async def test_rerun_is_safe(self, temp_dir: Path, temp_chart_file: Path) -> None:
        """재실행 시 중복 등록 없음"""
        db_path = temp_dir / "ledger.db"

        await main(make_settings(db_path), "acme", temp_chart_file)
        await main(make_settings(db_path), "acme", temp_chart_file)

        async with SQLiteAdapter(db_path) as db:
            row = await db.fetchone("SELECT COUNT(*) FROM account")
            assert row[0] == 3

    @pytest.mark.asyncio
    async def test_schema_only(self, temp_dir: Path) -> None:
        """계정과목표 생략"""
        db_path = temp_dir / "ledger.db"

        await main(make_settings(db_path), "acme", None)

        async with SQLiteAdapter(db_path) as db:
            assert await db.table_exists("journal_entry") is True
            row = await db.fetchone("SELECT COUNT(*) FROM account")
            assert row[0] == 0

    @pytest.mark.asyncio
    async def test_verify_detects_missing_table(self, temp_dir: Path) -> None:
        """스키마 없는 DB는 검증 실패"""
        async with SQLiteAdapter(temp_dir / "empty.db") as db:
            assert await verify_schema(db, "acme") is False
