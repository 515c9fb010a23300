"""
Ledger 로깅 설정

core.ledger 모듈들은 모듈 로거(logging.getLogger(__name__))로 계정 등록,
전표 전기/역분개, 잔액 반영 내역을 남긴다. 이 모듈은 스크립트 진입점에서
루트 로거에 핸들러를 한 번 구성한다.

- 콘솔: stdout
- 파일: logs/<process_name>.log (자정마다 롤링, 7일 보관)
- core.ledger 로거 레벨은 별도 지정 가능 (DEBUG면 계정과목표 건너뜀 등 상세 로그)

사용법:
    from core.logging import setup_logging
    setup_logging("init_ledger", console_level="INFO", ledger_level="DEBUG")
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

LEDGER_LOGGER = "core.ledger"

# aiosqlite는 쿼리마다 DEBUG 로그를 남김
NOISY_LOGGERS = [
    "aiosqlite",
    "asyncio",
]


def resolve_level(level: int | str) -> int:
    """로그 레벨 변환 ("debug", "INFO", 10 모두 허용)

    Raises:
        ValueError: 알 수 없는 레벨 이름
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"알 수 없는 로그 레벨: {level!r}")
    return resolved


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(log_file: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"  # init_ledger.log.2026-03-01
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    process_name: str,
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.INFO,
    log_dir: Path | None = None,
    ledger_level: int | str | None = None,
) -> logging.Logger:
    """루트 로거에 콘솔/파일 핸들러 구성

    다시 호출하면 기존 핸들러를 닫고 새로 구성한다.

    Args:
        process_name: 로그 파일 이름 (확장자 제외)
        console_level: 콘솔 핸들러 레벨
        file_level: 파일 핸들러 레벨
        log_dir: 로그 디렉토리 (None이면 Paths.LOGS_DIR)
        ledger_level: core.ledger 로거 레벨 (None이면 루트 설정을 따름)

    Returns:
        루트 Logger

    Raises:
        ValueError: 알 수 없는 레벨 이름
    """
    console = resolve_level(console_level)
    file_ = resolve_level(file_level)

    log_dir = log_dir or Paths.LOGS_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = get_log_file_path(process_name, log_dir)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    root_logger.addHandler(_console_handler(console, formatter))
    root_logger.addHandler(_file_handler(log_file, file_, formatter))

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    ledger_logger = logging.getLogger(LEDGER_LOGGER)
    ledger_logger.setLevel(resolve_level(ledger_level) if ledger_level is not None else logging.NOTSET)

    root_logger.info(
        f"로깅 초기화: {process_name} (콘솔 {logging.getLevelName(console)}, "
        f"파일 {log_file} {logging.getLevelName(file_)})"
    )
    return root_logger


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """프로세스 로그 파일 경로"""
    return (log_dir or Paths.LOGS_DIR) / f"{process_name}.log"
