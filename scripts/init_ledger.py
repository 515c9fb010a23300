"""
Ledger 초기화 스크립트

스키마 생성 후 계정과목표(YAML)를 테넌트에 등록.
여러 번 실행해도 안전 (이미 존재하는 테이블/계정은 건너뜀).

사용법:
    python -m scripts.init_ledger --tenant acme
    python -m scripts.init_ledger --tenant acme --chart config/chart_of_accounts.yaml
    python -m scripts.init_ledger --tenant acme --no-seed --db data/acme.db
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import DatabaseConfig, LedgerSettings, load_settings
from core.constants import Paths
from core.ledger.chart import load_chart, seed_chart
from core.ledger.service import LedgerService
from core.logging import setup_logging

logger = logging.getLogger(__name__)

REQUIRED_TABLES = [
    "account",
    "account_balance",
    "journal_entry",
    "journal_line",
    "entry_sequence",
]
REQUIRED_VIEWS = ["v_account_ledger"]


async def verify_schema(db: SQLiteAdapter, tenant_id: str) -> bool:
    """스키마 검증

    Returns:
        모든 테이블/View가 존재하면 True
    """
    for table in REQUIRED_TABLES:
        if not await db.table_exists(table):
            logger.error(f"테이블 누락: {table}")
            return False
        logger.info(f"테이블 확인: {table} ✓")

    for view in REQUIRED_VIEWS:
        row = await db.fetchone(
            "SELECT name FROM sqlite_master WHERE type='view' AND name=?",
            (view,),
        )
        if not row:
            logger.error(f"View 누락: {view}")
            return False
        logger.info(f"View 확인: {view} ✓")

    row = await db.fetchone("SELECT COUNT(*) FROM account WHERE tenant_id = ?", (tenant_id,))
    account_count = row[0] if row else 0
    logger.info(f"등록된 계정 수: {tenant_id} → {account_count}")

    return True


async def main(
    settings: LedgerSettings,
    tenant_id: str,
    chart_path: Path | None,
) -> None:
    """초기화 실행

    Args:
        settings: Ledger 설정
        tenant_id: 계정과목표를 등록할 테넌트
        chart_path: 계정과목표 YAML (None이면 등록 생략)
    """
    db_path = settings.database.path
    logger.info(f"Ledger 초기화 시작: {db_path}")

    async with SQLiteAdapter(db_path, busy_timeout_ms=settings.database.busy_timeout_ms) as db:
        ledger = LedgerService.from_settings(db, settings)
        await ledger.init_schema()

        if chart_path is not None:
            accounts = load_chart(chart_path)
            created = await seed_chart(ledger.directory, tenant_id, accounts)
            logger.info(f"계정과목표 등록: {chart_path} ({len(created)}개 신규)")

        if await verify_schema(db, tenant_id):
            logger.info("Ledger 초기화 완료 ✓")
        else:
            logger.error("Ledger 스키마 검증 실패!")
            raise RuntimeError("스키마 검증 실패")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Ledger 스키마 초기화 및 계정과목표 등록"
    )
    parser.add_argument(
        "--tenant",
        required=True,
        help="테넌트 ID",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Paths.CONFIG_FILE,
        help=f"설정 파일 (기본: {Paths.CONFIG_FILE})",
    )
    parser.add_argument(
        "--chart",
        type=Path,
        default=Paths.CHART_FILE,
        help=f"계정과목표 YAML (기본: {Paths.CHART_FILE})",
    )
    parser.add_argument(
        "--no-seed",
        action="store_true",
        help="계정과목표 등록 생략 (스키마만 생성)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="DB 파일 경로 (설정 파일 값보다 우선)",
    )
    args = parser.parse_args()

    settings = load_settings(args.config)
    if args.db is not None:
        settings = LedgerSettings(
            database=DatabaseConfig(
                path=args.db,
                busy_timeout_ms=settings.database.busy_timeout_ms,
            ),
            amount_scale=settings.amount_scale,
            default_voucher_prefix=settings.default_voucher_prefix,
            log_level=settings.log_level,
        )

    setup_logging("init_ledger", console_level=settings.log_level, file_level=settings.log_level)

    asyncio.run(main(settings, args.tenant, None if args.no_seed else args.chart))
