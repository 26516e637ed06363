"""
계정별 Sequencer

같은 계정에 대한 연산을 제출 순서대로 하나씩 실행하여 lost update를 방지한다.
서로 다른 계정의 연산은 서로를 기다리지 않는다.

구조:
- 활성 계정마다 전용 FIFO 대기열(deque) + 이를 비우는 asyncio.Task 하나
- 대기열이 비면 작업자 태스크는 즉시 종료되고 계정 슬롯은 회수된다
- 전역 Semaphore(max_workers)가 동시에 실행 중인 연산 수를 제한 (작업자 풀)
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from decimal import Decimal
from typing import Any, Awaitable, Callable

from core.ledger.errors import LedgerBusyError, StorageError
from core.ledger.types import AccountId, OperationRecord
from core.types import OperationKind

logger = logging.getLogger(__name__)


class AccountSequencer:
    """계정별 Sequencer

    연산이 대기열에 접수되면 반드시 끝까지 실행된다.
    호출자가 Future를 취소(타임아웃)해도 연산은 커밋되며, 결과 전달만 생략된다.

    Args:
        max_workers: 동시에 실행 가능한 연산 수
        max_queue_depth: 계정당 최대 대기 연산 수 (초과 시 LedgerBusyError)

    사용 예시:
    ```python
    sequencer = AccountSequencer(max_workers=64, max_queue_depth=1000)

    future = sequencer.submit("player-1", OperationKind.DEPOSIT, handler)
    result = await future

    await sequencer.drain()
    ```
    """

    def __init__(self, max_workers: int, max_queue_depth: int):
        if max_workers <= 0 or max_queue_depth <= 0:
            raise ValueError("max_workers와 max_queue_depth는 양수여야 합니다")

        self.max_workers = max_workers
        self.max_queue_depth = max_queue_depth

        self._queues: dict[AccountId, deque[OperationRecord]] = {}
        self._workers: dict[AccountId, asyncio.Task] = {}
        self._semaphore = asyncio.Semaphore(max_workers)
        self._seq = itertools.count(1)
        self._idle = asyncio.Event()
        self._idle.set()

        # 통계
        self.completed_count = 0
        self.rejected_count = 0

    @property
    def active_accounts(self) -> int:
        """작업자가 살아 있는 계정 수"""
        return len(self._workers)

    @property
    def pending_count(self) -> int:
        """대기 중인 연산 수 (실행 중 제외)"""
        return sum(len(queue) for queue in self._queues.values())

    def queue_depth(self, account_id: AccountId) -> int:
        """계정 대기열 길이"""
        queue = self._queues.get(account_id)
        return len(queue) if queue else 0

    def submit(
        self,
        account_id: AccountId,
        kind: OperationKind,
        handler: Callable[[], Awaitable[Any]],
        amount: Decimal | None = None,
    ) -> asyncio.Future:
        """연산 제출

        이벤트 루프 스레드에서 호출해야 한다.

        Args:
            account_id: 대상 계정
            kind: 연산 종류
            handler: 계정 슬롯 안에서 실행될 코루틴 함수
            amount: 요청 금액 (로깅용)

        Returns:
            handler 결과로 정확히 한 번 해소되는 Future
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        queue = self._queues.get(account_id)
        if queue is not None and len(queue) >= self.max_queue_depth:
            self.rejected_count += 1
            logger.warning(
                "계정 대기열 한도 초과",
                extra={"account_id": account_id, "depth": len(queue), "kind": kind.value},
            )
            future.set_exception(
                LedgerBusyError(
                    f"계정 대기열 한도 초과: account_id={account_id}, "
                    f"max_queue_depth={self.max_queue_depth}"
                )
            )
            return future

        if queue is None:
            queue = deque()
            self._queues[account_id] = queue

        record = OperationRecord(
            account_id=account_id,
            kind=kind,
            handler=handler,
            future=future,
            seq=next(self._seq),
            amount=amount,
        )
        queue.append(record)

        if account_id not in self._workers:
            self._idle.clear()
            self._workers[account_id] = loop.create_task(
                self._drain_account(account_id),
                name=f"ledger-account-{account_id}",
            )

        return future

    async def drain(self) -> None:
        """모든 계정 대기열이 빌 때까지 대기"""
        await self._idle.wait()

    async def _drain_account(self, account_id: AccountId) -> None:
        """계정 대기열을 FIFO로 비우는 작업자"""
        queue = self._queues[account_id]

        try:
            while queue:
                # 슬롯을 얻은 뒤 꺼내야 대기 중 취소되어도 레코드가 대기열에 남는다
                async with self._semaphore:
                    record = queue.popleft()
                    await self._run(record)
        finally:
            # 대기열 확인과 슬롯 회수 사이에 await가 없으므로 새 제출과 경합하지 않는다
            for orphan in queue:
                self._fail(orphan, StorageError("작업자 종료로 연산이 실행되지 않았습니다"))
            del self._queues[account_id]
            del self._workers[account_id]
            if not self._workers:
                self._idle.set()

    async def _run(self, record: OperationRecord) -> None:
        """연산 1건 실행 후 Future 해소"""
        try:
            result = await record.handler()
        except asyncio.CancelledError:
            self._fail(record, StorageError("연산 실행 중 작업자가 취소되었습니다"))
            raise
        except Exception as e:
            logger.debug(
                f"연산 실패 #{record.seq} {record.kind.value} {record.account_id}: {e}"
            )
            self._fail(record, e)
        else:
            self.completed_count += 1
            if not record.future.done():
                record.future.set_result(result)

    @staticmethod
    def _fail(record: OperationRecord, error: BaseException) -> None:
        """Future에 장애 신호 전달 (이미 취소된 Future는 무시)"""
        if not record.future.done():
            record.future.set_exception(error)
