"""
Mock 잔고 저장소

테스트 및 임베딩용 인메모리 저장소.
IBalanceRepository Protocol 준수.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.ledger.errors import StorageError


@dataclass
class SaveRecord:
    """저장 기록"""

    account_id: str
    balance: Decimal


class InMemoryBalanceRepository:
    """인메모리 잔고 저장소

    IBalanceRepository Protocol 구현.
    모든 저장 호출을 기록하여 테스트에서 검증 가능.
    같은 인스턴스를 새 Ledger에 넘기면 재시작을 흉내낼 수 있다.

    사용 예시:
    ```python
    repository = InMemoryBalanceRepository({"player-1": Decimal("100")})

    ledger = Ledger(repository)
    await ledger.start()

    # 저장 기록 확인
    assert repository.saves[-1].balance == Decimal("150")
    ```
    """

    def __init__(
        self,
        initial: dict[str, Decimal] | None = None,
        should_fail: bool = False,
        delay: float = 0.0,
    ):
        """
        Args:
            initial: 초기 저장 상태
            should_fail: True면 모든 저장 실패 (장애 시나리오 테스트용)
            delay: 저장마다 대기할 시간 (초, I/O 지연 흉내)
        """
        self.data: dict[str, Decimal] = dict(initial or {})
        self.should_fail = should_fail
        self.fail_load = False
        self.delay = delay
        self.saves: list[SaveRecord] = []
        self.flush_count = 0
        self.closed = False

    async def load(self) -> dict[str, Decimal]:
        """전체 잔고 로드"""
        if self.fail_load:
            raise StorageError("mock load failure")
        self.closed = False
        return dict(self.data)

    async def save(self, account_id: str, balance: Decimal) -> None:
        """단일 잔고 저장"""
        await self.save_many([(account_id, balance)])

    async def save_many(self, items: Iterable[tuple[str, Decimal]]) -> None:
        """다중 잔고 저장 (전부 또는 전무)"""
        batch = list(items)

        if self.delay:
            await asyncio.sleep(self.delay)

        if self.should_fail:
            raise StorageError("mock save failure")

        for account_id, balance in batch:
            self.data[account_id] = balance
            self.saves.append(SaveRecord(account_id=account_id, balance=balance))

    async def flush(self) -> None:
        """flush 호출 횟수 기록"""
        self.flush_count += 1

    async def close(self) -> None:
        """종료 표시"""
        self.closed = True
