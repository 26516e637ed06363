"""
Ledger Service Bootstrap

설정 로드, 의존성 주입, 생명주기 관리.
호스트는 프로세스당 LedgerService를 한 번 생성하고 service.ledger 핸들을 명시적으로 전달한다.
"""

import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path

from adapters.db.balance_repository import SQLiteBalanceRepository
from adapters.interfaces import IBalanceRepository
from core.config.loader import LedgerConfig, load_config
from core.constants import Defaults
from core.ledger.facade import Ledger
from core.ledger.write_behind import WriteBehindRepository
from core.logging import setup_logging
from core.types import WritePolicy

logger = logging.getLogger("ledger")


def create_repository(config: LedgerConfig) -> IBalanceRepository:
    """설정에 따른 영속화 저장소 생성

    write_behind 정책이면 SQLite 저장소를 WriteBehindRepository로 감싼다.
    """
    repository: IBalanceRepository = SQLiteBalanceRepository(config.storage.db_path)

    if config.storage.write_policy == WritePolicy.WRITE_BEHIND:
        repository = WriteBehindRepository(
            repository,
            flush_interval_sec=config.storage.flush_interval_sec,
        )

    return repository


class LedgerService:
    """Ledger 서비스

    저장소와 Ledger를 생성하고 시작/종료를 관리한다.

    Args:
        config: Ledger 설정
        repository: 영속화 저장소 (None이면 설정에 따라 생성)
    """

    def __init__(
        self,
        config: LedgerConfig,
        repository: IBalanceRepository | None = None,
    ):
        self.config = config
        self.repository = repository if repository is not None else create_repository(config)
        self.ledger = Ledger.from_config(self.repository, config)

        self.heartbeat_interval = Defaults.HEARTBEAT_INTERVAL_SEC
        self._started_at: str | None = None

    @property
    def started_at(self) -> str | None:
        """서비스 시작 시간 (ISO 형식)"""
        return self._started_at

    async def start(self) -> None:
        """서비스 시작"""
        await self.ledger.start()
        self._started_at = datetime.now(timezone.utc).isoformat()

        logger.info(
            "Ledger Service 시작됨",
            extra={
                "write_policy": self.config.storage.write_policy.value,
                "db_path": str(self.config.storage.db_path),
            },
        )

    async def stop(self) -> None:
        """서비스 종료 (진행 중 연산 drain + flush)"""
        logger.info("Ledger Service 종료 중...")
        await self.ledger.close()
        logger.info("Ledger Service 종료됨")

    async def run_until(self, shutdown_event: asyncio.Event) -> None:
        """종료 이벤트까지 대기하며 주기적으로 heartbeat 기록"""
        logger.info("서비스 루프 시작")

        while not shutdown_event.is_set():
            try:
                await asyncio.wait_for(
                    shutdown_event.wait(),
                    timeout=self.heartbeat_interval,
                )
            except asyncio.TimeoutError:
                self._log_heartbeat()

        logger.info("서비스 루프 종료")

    def _log_heartbeat(self) -> None:
        """Heartbeat 로그"""
        stats = {
            "state": self.ledger.state,
            "accounts": self.ledger.account_count(),
            "active_accounts": self.ledger.sequencer.active_accounts,
            "pending": self.ledger.sequencer.pending_count,
            "completed": self.ledger.sequencer.completed_count,
        }
        logger.info(f"Heartbeat: {stats}")


def _install_signal_handlers(shutdown_event: asyncio.Event) -> None:
    """SIGINT/SIGTERM → shutdown_event (Windows는 KeyboardInterrupt로 처리)"""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            pass


async def main(config_path: Path | None = None) -> None:
    """Ledger 서비스 메인 함수"""
    # 1. 설정 로드
    try:
        config = load_config(config_path)
    except Exception as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"설정 로드 실패: {e}")
        sys.exit(1)

    # 2. 로깅 설정
    setup_logging("ledger", console_level=config.log_level_no, file_level=config.log_level_no)

    logger.info("=" * 60)
    logger.info("Balance Ledger 시작")
    logger.info("=" * 60)
    logger.info(f"DB: {config.storage.db_path}")
    logger.info(f"Write policy: {config.storage.write_policy.value}")

    # 3. 서비스 생성 및 시작
    service = LedgerService(config)

    try:
        await service.start()
    except Exception as e:
        logger.error(f"Ledger 시작 실패: {e}")
        await service.repository.close()
        sys.exit(1)

    # 4. 종료 이벤트 설정
    shutdown_event = asyncio.Event()
    _install_signal_handlers(shutdown_event)

    logger.info("Ledger 서비스 실행 중 (종료: Ctrl+C)")

    try:
        await service.run_until(shutdown_event)
    except asyncio.CancelledError:
        logger.info("서비스 루프 취소됨")
    except KeyboardInterrupt:
        logger.info("Ctrl+C 감지")
    finally:
        # 5. 서비스 종료
        await service.stop()

    logger.info("=" * 60)
    logger.info("Balance Ledger 정상 종료")
    logger.info("=" * 60)
