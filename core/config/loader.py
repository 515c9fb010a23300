"""
설정 로더

ledger.yaml 로드 및 Ledger 설정 생성.
파일이 없으면 core.constants.Defaults 기본값 사용.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, PROJECT_ROOT, Paths


@dataclass(frozen=True)
class DatabaseConfig:
    """DB 연결 설정"""

    path: Path
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS


@dataclass(frozen=True)
class LedgerSettings:
    """Ledger 설정 (ledger.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    database: DatabaseConfig
    amount_scale: int = Defaults.AMOUNT_SCALE
    default_voucher_prefix: str = Defaults.VOUCHER_PREFIX
    log_level: str = Defaults.LOG_LEVEL


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def default_settings() -> LedgerSettings:
    """기본 설정"""
    return LedgerSettings(database=DatabaseConfig(path=Paths.LEDGER_DB))


def load_settings(path: Path | None = None) -> LedgerSettings:
    """ledger.yaml 파일 로드

    예시:
    ```yaml
    database:
      path: data/ledger.db
      busy_timeout_ms: 30000
    ledger:
      amount_scale: 2
      default_voucher_prefix: JE
    logging:
      level: INFO
    ```

    Args:
        path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerSettings 인스턴스

    Raises:
        ConfigLoadError: 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.CONFIG_FILE

    if not path.exists():
        return default_settings()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"ledger.yaml 파싱 실패: {e}") from e

    if data is None:
        return default_settings()
    if not isinstance(data, dict):
        raise ConfigLoadError("ledger.yaml 최상위는 매핑이어야 합니다")

    database = _section(data, "database")
    ledger = _section(data, "ledger")
    logging_section = _section(data, "logging")

    db_path = Path(database.get("path", Paths.LEDGER_DB))
    if not db_path.is_absolute() and str(db_path) != ":memory:":
        db_path = PROJECT_ROOT / db_path

    busy_timeout_ms = _int(database, "busy_timeout_ms", Defaults.BUSY_TIMEOUT_MS)
    amount_scale = _int(ledger, "amount_scale", Defaults.AMOUNT_SCALE)
    if not 0 <= amount_scale <= 8:
        raise ConfigLoadError(f"amount_scale은 0~8 사이여야 합니다: {amount_scale}")

    prefix = str(ledger.get("default_voucher_prefix", Defaults.VOUCHER_PREFIX)).strip()
    if not prefix:
        raise ConfigLoadError("default_voucher_prefix가 비어 있습니다")

    log_level = str(logging_section.get("level", Defaults.LOG_LEVEL)).upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigLoadError(f"유효하지 않은 로그 레벨입니다: '{log_level}'")

    return LedgerSettings(
        database=DatabaseConfig(path=db_path, busy_timeout_ms=busy_timeout_ms),
        amount_scale=amount_scale,
        default_voucher_prefix=prefix,
        log_level=log_level,
    )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigLoadError(f"ledger.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return section


def _int(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool):
        raise ConfigLoadError(f"'{key}'는 정수여야 합니다: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(f"'{key}'는 정수여야 합니다: {value!r}") from e
