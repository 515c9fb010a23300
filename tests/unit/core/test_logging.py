"""
core/logging.py 테스트

핸들러 구성, 로그 파일 생성, 노이즈 로거 레벨 확인
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.logging import (
    LEDGER_LOGGER,
    NOISY_LOGGERS,
    get_log_file_path,
    resolve_level,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """테스트 후 루트 로거 핸들러/레벨 복원"""
    root = logging.getLogger()
    saved_level = root.level
    ledger_logger = logging.getLogger(LEDGER_LOGGER)
    saved_ledger_level = ledger_logger.level

    yield root

    ledger_logger.setLevel(saved_ledger_level)

    # setup_logging이 추가한 핸들러만 정리 (pytest 캡처 핸들러는 유지)
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, TimedRotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)


class TestResolveLevel:
    """resolve_level 테스트"""

    @pytest.mark.parametrize(
        "level, expected",
        [("debug", logging.DEBUG), (" Info ", logging.INFO), ("WARNING", logging.WARNING), (40, 40)],
    )
    def test_known_levels(self, level: int | str, expected: int) -> None:
        """대소문자 무관 이름과 숫자 허용"""
        assert resolve_level(level) == expected

    def test_unknown_level(self) -> None:
        """알 수 없는 이름 거부"""
        with pytest.raises(ValueError, match="LOUD"):
            resolve_level("LOUD")


class TestGetLogFilePath:
    """get_log_file_path 테스트"""

    def test_file_name(self, temp_dir: Path) -> None:
        """프로세스 이름 기반 파일명"""
        assert get_log_file_path("ledger", temp_dir) == temp_dir / "ledger.log"


class TestSetupLogging:
    """setup_logging 테스트"""

    def test_handlers(self, temp_dir: Path, restore_root_logger: logging.Logger) -> None:
        """콘솔 + 일별 파일 핸들러"""
        root = setup_logging("ledger", log_dir=temp_dir)

        assert root is restore_root_logger
        assert len(root.handlers) == 2
        assert any(isinstance(h, TimedRotatingFileHandler) for h in root.handlers)

    def test_log_file_written(self, temp_dir: Path, restore_root_logger: logging.Logger) -> None:
        """로그 파일에 기록"""
        setup_logging("ledger", log_dir=temp_dir)
        logging.getLogger("core.ledger.test").info("계정 등록: acme/A-CASH")

        for handler in restore_root_logger.handlers:
            handler.flush()

        content = (temp_dir / "ledger.log").read_text(encoding="utf-8")
        assert "계정 등록: acme/A-CASH" in content
        assert "| INFO     | core.ledger.test |" in content

    def test_repeated_setup_does_not_duplicate(
        self, temp_dir: Path, restore_root_logger: logging.Logger
    ) -> None:
        """중복 호출 시 핸들러 누적 없음"""
        setup_logging("ledger", log_dir=temp_dir)
        setup_logging("ledger", log_dir=temp_dir)

        assert len(restore_root_logger.handlers) == 2

    def test_string_levels(self, temp_dir: Path, restore_root_logger: logging.Logger) -> None:
        """문자열 레벨 허용 (설정 파일 값)"""
        setup_logging("ledger", console_level="WARNING", file_level="DEBUG", log_dir=temp_dir)

        levels = sorted(h.level for h in restore_root_logger.handlers)
        assert levels == [logging.DEBUG, logging.WARNING]

    def test_noisy_loggers_quieted(self, temp_dir: Path, restore_root_logger: logging.Logger) -> None:
        """aiosqlite 등 노이즈 로거는 WARNING"""
        setup_logging("ledger", log_dir=temp_dir)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_lowercase_config_level(self, temp_dir: Path, restore_root_logger: logging.Logger) -> None:
        """설정 파일의 소문자 레벨 허용"""
        setup_logging("ledger", console_level="error", file_level="debug", log_dir=temp_dir)

        levels = sorted(h.level for h in restore_root_logger.handlers)
        assert levels == [logging.DEBUG, logging.ERROR]

    def test_ledger_level_filters_ledger_loggers(
        self, temp_dir: Path, restore_root_logger: logging.Logger
    ) -> None:
        """ledger_level은 core.ledger 하위 로거에만 적용"""
        setup_logging("ledger", file_level="DEBUG", log_dir=temp_dir, ledger_level="WARNING")
        logging.getLogger("core.ledger.engine").info("전표 전기: SV-000001")
        logging.getLogger("scripts.init_ledger").info("Ledger 초기화 완료")

        for handler in restore_root_logger.handlers:
            handler.flush()

        content = (temp_dir / "ledger.log").read_text(encoding="utf-8")
        assert "SV-000001" not in content
        assert "Ledger 초기화 완료" in content

    def test_ledger_level_defaults_to_root(
        self, temp_dir: Path, restore_root_logger: logging.Logger
    ) -> None:
        """ledger_level 미지정 시 core.ledger 로거는 루트를 따름"""
        setup_logging("ledger", log_dir=temp_dir)

        assert logging.getLogger(LEDGER_LOGGER).level == logging.NOTSET
