"""
core/logging.py 테스트
"""

import logging
from pathlib import Path

import pytest

from core.constants import Paths
from core.logging import LedgerFormatter, get_log_file_path, setup_logging


@pytest.fixture
def restore_root_logger():
    """테스트 후 루트 로거 핸들러 복원"""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


class TestSetupLogging:
    """setup_logging() 테스트"""

    def test_creates_log_file(self, tmp_path: Path, restore_root_logger) -> None:
        """로그 디렉토리와 파일 핸들러 생성"""
        log_dir = tmp_path / "logs"

        root_logger = setup_logging("ledger", log_dir=log_dir)
        logging.getLogger("core.ledger").info("hello")
        for handler in root_logger.handlers:
            handler.flush()

        log_file = log_dir / "ledger.log"
        assert log_file.exists()
        assert "hello" in log_file.read_text(encoding="utf-8")

    def test_noisy_loggers_quieted(self, tmp_path: Path, restore_root_logger) -> None:
        """aiosqlite 로거는 WARNING"""
        setup_logging("ledger", log_dir=tmp_path)

        assert logging.getLogger("aiosqlite").level == logging.WARNING


class TestLedgerFormatter:
    """LedgerFormatter 테스트"""

    def _record(self, **extra) -> logging.LogRecord:
        logger = logging.getLogger("core.ledger.store")
        return logger.makeRecord(
            logger.name, logging.INFO, __file__, 1, "잔고 저장", None, None, extra=extra
        )

    def test_appends_extra_fields(self) -> None:
        """extra 필드가 key=value로 출력됨"""
        line = LedgerFormatter().format(self._record(account_id="p1", balance="10"))

        assert line.endswith("잔고 저장 | account_id=p1 balance=10")

    def test_without_extra(self) -> None:
        """extra가 없으면 기본 포맷"""
        line = LedgerFormatter().format(self._record())

        assert line.endswith("| core.ledger.store | 잔고 저장")


class TestGetLogFilePath:
    """get_log_file_path() 테스트"""

    def test_path(self) -> None:
        """logs/<process>/<process>.log"""
        assert get_log_file_path("ledger") == Paths.LOGS_DIR / "ledger" / "ledger.log"
