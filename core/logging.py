"""
로깅 설정 유틸리티

Ledger 서비스 로그는 대부분 extra={...} 필드로 계정/잔고 정보를 남긴다.
기본 Formatter는 extra를 버리므로 LedgerFormatter가 메시지 뒤에 key=value로 붙인다.

출력:
- 콘솔 (stdout)
- 파일: logs/<process>/<process>.log (자정 롤링, 7일 보관)

사용법:
    from core.logging import setup_logging
    setup_logging("ledger", console_level=logging.DEBUG)
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

# 건당 로그가 많은 라이브러리 로거 (WARNING 이상만)
NOISY_LOGGERS = ("aiosqlite", "asyncio")

# LogRecord 기본 속성 (extra 판별용)
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class LedgerFormatter(logging.Formatter):
    """extra 필드를 메시지 뒤에 붙이는 포맷터

    예: "잔고 저장 실패 | account_id=player-1 new_balance=150"
    """

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)

        fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if not fields:
            return line

        rendered = " ".join(f"{key}={value}" for key, value in fields.items())
        # traceback이 붙은 경우 첫 줄 뒤에 삽입
        head, sep, tail = line.partition("\n")
        return f"{head} | {rendered}{sep}{tail}"


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거에 콘솔/파일 핸들러 설치

    기존 핸들러는 제거된다. (재호출 시 중복 출력 방지)

    Args:
        process_name: 프로세스 이름 (로그 파일명)
        console_level: 콘솔 로그 레벨
        file_level: 파일 로그 레벨
        log_dir: 로그 디렉토리 (None이면 logs/<process_name>)

    Returns:
        루트 Logger
    """
    log_file = get_log_file_path(process_name)
    if log_dir is not None:
        log_file = log_dir / log_file.name
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = LedgerFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"  # ledger.log.2026-02-21
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    # 핸들러 중 낮은 쪽 레벨까지 통과
    root_logger.setLevel(min(console_level, file_level))
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        "로깅 초기화 완료",
        extra={
            "process_name": process_name,
            "console": logging.getLevelName(console_level),
            "file": str(log_file),
            "file_level": logging.getLevelName(file_level),
        },
    )

    return root_logger


def get_log_file_path(process_name: str) -> Path:
    """기본 로그 파일 경로 (logs/<process_name>/<process_name>.log)"""
    return Paths.LOGS_DIR / process_name / f"{process_name}.log"
