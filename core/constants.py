"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → ledgercore/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    # 금액 소수 자릿수 (2 = 0.01 단위)
    AMOUNT_SCALE: int = 2

    # 전표 유형에 매핑되지 않는 경우 사용할 번호 접두사
    VOUCHER_PREFIX: str = "JE"

    # 전표 번호 일련번호 자릿수 (JV-000001)
    SEQUENCE_WIDTH: int = 6

    BUSY_TIMEOUT_MS: int = 30000

    LOG_LEVEL: str = "INFO"

    LIST_LIMIT: int = 100


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    CONFIG_FILE: Path = CONFIG_DIR / "ledger.yaml"
    CHART_FILE: Path = CONFIG_DIR / "chart_of_accounts.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "ledger.db"
