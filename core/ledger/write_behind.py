"""
Write-behind 저장소

IBalanceRepository를 감싸 커밋 시점의 저장을 버퍼링하고,
주기적으로(또는 명시적 요청과 종료 시) 한 트랜잭션으로 flush한다.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from core.ledger.errors import StorageError

if TYPE_CHECKING:
    from adapters.interfaces import IBalanceRepository

logger = logging.getLogger(__name__)


class WriteBehindRepository:
    """Write-behind 저장소 래퍼

    save()는 계정별 최신 잔고만 dirty 맵에 기록하고 즉시 반환한다.
    flush 실패 시 dirty 항목은 유지되어 다음 flush에서 재시도된다.
    (flush 도중 새로 기록된 값이 있으면 새 값이 우선)

    Args:
        inner: 실제 영속화 저장소
        flush_interval_sec: 주기적 flush 간격 (초)
    """

    def __init__(self, inner: IBalanceRepository, flush_interval_sec: float):
        self.inner = inner
        self.flush_interval_sec = flush_interval_sec

        self._dirty: dict[str, Decimal] = {}
        self._flush_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def pending_count(self) -> int:
        """flush 대기 중인 계정 수"""
        return len(self._dirty)

    async def load(self) -> dict[str, Decimal]:
        """내부 저장소에서 로드 후 주기적 flush 시작"""
        balances = await self.inner.load()
        self.start()
        return balances

    def start(self) -> None:
        """주기적 flush 태스크 시작 (이미 실행 중이면 무시)"""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(
                self._flush_loop(), name="ledger-write-behind"
            )

    async def save(self, account_id: str, balance: Decimal) -> None:
        """dirty 맵에 기록 (I/O 없음)"""
        self._dirty[account_id] = balance

    async def save_many(self, items: Iterable[tuple[str, Decimal]]) -> None:
        """dirty 맵에 일괄 기록"""
        for account_id, balance in items:
            self._dirty[account_id] = balance

    async def flush(self) -> None:
        """dirty 항목을 내부 저장소에 반영

        Raises:
            StorageError: 내부 저장소 쓰기 실패 (dirty 항목 유지)
        """
        async with self._flush_lock:
            if not self._dirty:
                await self.inner.flush()
                return

            batch = self._dirty
            self._dirty = {}

            try:
                await self.inner.save_many(batch.items())
            except BaseException:
                # 실패/취소된 배치를 되돌리되, 그 사이 기록된 최신 값은 보존
                batch.update(self._dirty)
                self._dirty = batch
                raise

            await self.inner.flush()

            logger.debug("write-behind flush 완료", extra={"accounts": len(batch)})

    async def _flush_loop(self) -> None:
        """주기적 flush 루프 (실패 시 로그 후 계속)"""
        while True:
            await asyncio.sleep(self.flush_interval_sec)
            try:
                await self.flush()
            except StorageError as e:
                logger.error(
                    "write-behind 주기 flush 실패",
                    extra={"pending": len(self._dirty), "error": str(e)},
                    exc_info=True,
                )

    async def close(self) -> None:
        """flush 태스크 중지 → 최종 flush → 내부 저장소 종료"""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        try:
            await self.flush()
        finally:
            await self.inner.close()
