"""
pytest 공통 fixture 정의

설정 파일/임시 디렉토리 등 DB가 필요 없는 fixture
"""

import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """테스트용 ledger.yaml 파일 생성"""
    config_content = """# 테스트용 ledger.yaml
database:
  path: ledger_test.db
  busy_timeout_ms: 5000

ledger:
  amount_scale: 3
  default_voucher_prefix: GL

logging:
  level: debug
"""
    config_path = temp_dir / "ledger.yaml"
    config_path.write_text(config_content, encoding="utf-8")
    return config_path


@pytest.fixture
def temp_chart_file(temp_dir: Path) -> Path:
    """테스트용 계정과목표 파일 생성 (하위 계정이 먼저 나오는 순서)"""
    chart_content = """accounts:
  - code: "1100"
    name: Cash
    type: ASSET
    parent: "1000"
    opening_balance: "250.00"
    cash_flow: true
  - code: "1000"
    name: Assets
    type: ASSET
  - code: "3000"
    name: Equity
    type: EQUITY
    opening_balance: "250.00"
"""
    chart_path = temp_dir / "chart.yaml"
    chart_path.write_text(chart_content, encoding="utf-8")
    return chart_path
