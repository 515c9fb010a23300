"""
core/config/loader.py 테스트

ledger.yaml 로드, 검증, 기본값 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    ConfigLoadError,
    DatabaseConfig,
    LedgerSettings,
    default_settings,
    load_settings,
)
from core.constants import PROJECT_ROOT, Defaults, Paths


class TestLedgerSettings:
    """LedgerSettings 데이터클래스 테스트"""

    def test_creation(self) -> None:
        """기본 생성"""
        settings = LedgerSettings(database=DatabaseConfig(path=Path("x.db")))

        assert settings.amount_scale == Defaults.AMOUNT_SCALE
        assert settings.default_voucher_prefix == Defaults.VOUCHER_PREFIX
        assert settings.database.busy_timeout_ms == Defaults.BUSY_TIMEOUT_MS

    def test_frozen(self) -> None:
        """불변성 확인"""
        settings = default_settings()

        with pytest.raises(AttributeError):
            settings.amount_scale = 4  # type: ignore


class TestLoadSettings:
    """load_settings 테스트"""

    def test_load_file(self, temp_config_file: Path) -> None:
        """모든 항목 로드"""
        settings = load_settings(temp_config_file)

        assert settings.database.path == PROJECT_ROOT / "ledger_test.db"
        assert settings.database.busy_timeout_ms == 5000
        assert settings.amount_scale == 3
        assert settings.default_voucher_prefix == "GL"
        assert settings.log_level == "DEBUG"

    def test_file_not_found_uses_defaults(self, temp_dir: Path) -> None:
        """파일이 없으면 기본값"""
        settings = load_settings(temp_dir / "nonexistent.yaml")

        assert settings == default_settings()
        assert settings.database.path == Paths.LEDGER_DB

    def test_empty_file_uses_defaults(self, temp_dir: Path) -> None:
        """빈 파일은 기본값"""
        empty_file = temp_dir / "empty.yaml"
        empty_file.write_text("", encoding="utf-8")

        assert load_settings(empty_file) == default_settings()

    def test_partial_file(self, temp_dir: Path) -> None:
        """일부 섹션만 있는 경우 나머지는 기본값"""
        file = temp_dir / "partial.yaml"
        file.write_text("ledger:\n  amount_scale: 0\n", encoding="utf-8")

        settings = load_settings(file)

        assert settings.amount_scale == 0
        assert settings.default_voucher_prefix == Defaults.VOUCHER_PREFIX
        assert settings.log_level == Defaults.LOG_LEVEL

    def test_absolute_db_path_kept(self, temp_dir: Path) -> None:
        """절대 경로는 그대로 사용"""
        db_path = temp_dir / "abs.db"
        file = temp_dir / "abs.yaml"
        file.write_text(f"database:\n  path: '{db_path.as_posix()}'\n", encoding="utf-8")

        assert load_settings(file).database.path == db_path

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """잘못된 YAML 형식"""
        file = temp_dir / "invalid.yaml"
        file.write_text("invalid: yaml: content:", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="파싱 실패"):
            load_settings(file)

    def test_top_level_not_mapping(self, temp_dir: Path) -> None:
        """최상위가 목록인 경우"""
        file = temp_dir / "list.yaml"
        file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="매핑"):
            load_settings(file)

    def test_section_not_mapping(self, temp_dir: Path) -> None:
        """섹션이 매핑이 아닌 경우"""
        file = temp_dir / "section.yaml"
        file.write_text("ledger: 3\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="'ledger'"):
            load_settings(file)

    @pytest.mark.parametrize("scale", [-1, 9])
    def test_amount_scale_out_of_range(self, temp_dir: Path, scale: int) -> None:
        """amount_scale 범위 검증"""
        file = temp_dir / "scale.yaml"
        file.write_text(f"ledger:\n  amount_scale: {scale}\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="amount_scale"):
            load_settings(file)

    def test_non_integer_timeout(self, temp_dir: Path) -> None:
        """정수가 아닌 busy_timeout_ms"""
        file = temp_dir / "timeout.yaml"
        file.write_text("database:\n  busy_timeout_ms: soon\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="busy_timeout_ms"):
            load_settings(file)

    def test_empty_prefix(self, temp_dir: Path) -> None:
        """빈 전표 접두사"""
        file = temp_dir / "prefix.yaml"
        file.write_text("ledger:\n  default_voucher_prefix: '  '\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="default_voucher_prefix"):
            load_settings(file)

    def test_invalid_log_level(self, temp_dir: Path) -> None:
        """유효하지 않은 로그 레벨"""
        file = temp_dir / "level.yaml"
        file.write_text("logging:\n  level: LOUD\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="로그 레벨"):
            load_settings(file)

    def test_shipped_config(self) -> None:
        """프로젝트 기본 ledger.yaml 로드"""
        settings = load_settings(Paths.CONFIG_FILE)

        assert settings.database.path == Paths.LEDGER_DB
        assert settings.amount_scale == 2
