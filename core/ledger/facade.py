"""
Ledger Facade

호출자용 비동기 연산 표면.
모든 연산은 즉시 asyncio.Future를 반환하며, 호출 순서가 곧 계정별 제출 순서다.

사용 예시:
```python
ledger = Ledger(repository)
await ledger.start()

result = await ledger.deposit(player_id, "100")
if not result.success:
    print(result.reason)

top = await ledger.get_top_balances(10)

await ledger.close()
```
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable
from uuid import UUID

from core.domain.state_machines import LedgerState, LedgerStateMachine, StateMachineError
from core.ledger.errors import LedgerClosedError
from core.ledger.ranking import RankingIndex
from core.ledger.sequencer import AccountSequencer
from core.ledger.store import AccountStore
from core.ledger.types import (
    AccountId,
    TopBalances,
    TransactionResult,
    normalize_account_id,
)
from core.ledger.validation import exact_sum, is_non_negative, is_positive, parse_amount
from core.constants import Defaults
from core.types import FailureReason, OperationKind

if TYPE_CHECKING:
    from adapters.interfaces import IBalanceRepository
    from core.config.loader import LedgerConfig

logger = logging.getLogger(__name__)


class Ledger:
    """잔고 Ledger

    Account 저장소, 계정별 Sequencer, Ranking Index를 묶는 단일 진입점.
    프로세스당 한 번 생성하여 소비자에게 명시적으로 전달한다.

    Args:
        repository: 영속화 저장소
        precision: 금액 최소 단위
        max_workers: 동시 실행 연산 수
        max_queue_depth: 계정당 최대 대기 연산 수
        ranking_min_balance: 순위 포함 최소 잔고
    """

    def __init__(
        self,
        repository: IBalanceRepository,
        precision: Decimal = Decimal(Defaults.PRECISION),
        max_workers: int = Defaults.MAX_WORKERS,
        max_queue_depth: int = Defaults.MAX_QUEUE_DEPTH,
        ranking_min_balance: Decimal = Decimal(Defaults.RANKING_MIN_BALANCE),
    ):
        self.repository = repository
        self.precision = precision

        self.state_machine = LedgerStateMachine(LedgerState.BOOTING)

        self.store = AccountStore(repository)
        self.ranking = RankingIndex(min_balance=ranking_min_balance)
        self.store.subscribe(self.ranking.on_commit)

        self.sequencer = AccountSequencer(
            max_workers=max_workers,
            max_queue_depth=max_queue_depth,
        )
        self._shutdown_task: asyncio.Task | None = None

    @classmethod
    def from_config(
        cls,
        repository: IBalanceRepository,
        config: LedgerConfig,
    ) -> "Ledger":
        """설정으로부터 Ledger 생성"""
        return cls(
            repository,
            precision=config.precision,
            max_workers=config.sequencer.max_workers,
            max_queue_depth=config.sequencer.max_queue_depth,
            ranking_min_balance=config.ranking_min_balance,
        )

    # -------------------------------------------------------------------------
    # 생명주기
    # -------------------------------------------------------------------------

    @property
    def state(self) -> str:
        """현재 생명주기 상태"""
        return self.state_machine.state

    @property
    def is_running(self) -> bool:
        """연산 접수 가능 여부"""
        return self.state_machine.accepts_operations

    async def start(self) -> None:
        """저장소에서 잔고 로드 후 RUNNING 전환

        Raises:
            StateMachineError: BOOTING 상태가 아님 (저장소는 건드리지 않음)
            StorageError: 로드 실패 (상태는 STOPPED)
        """
        if not self.state_machine.can_transition(LedgerState.RUNNING):
            raise StateMachineError(f"Ledger를 시작할 수 없는 상태입니다: {self.state}")

        try:
            count = await self.store.load()
        except Exception:
            self.state_machine.transition(LedgerState.STOPPED)
            logger.error("Ledger 시작 실패: 잔고 로드 오류", exc_info=True)
            raise

        self.state_machine.transition(LedgerState.RUNNING)
        logger.info(
            "Ledger RUNNING",
            extra={"accounts": count, "ranked": len(self.ranking)},
        )

    async def flush(self) -> None:
        """명시적 영속화 요청"""
        await self.repository.flush()

    async def close(self) -> None:
        """종료: 신규 연산 거부 → 진행 중 연산 drain → flush → 저장소 종료

        동시에 여러 번 호출되면 모두 같은 종료 작업이 끝날 때까지 기다린다.
        """
        if self._shutdown_task is None:
            if self.state == LedgerState.STOPPED.value:
                return

            if self.state == LedgerState.BOOTING.value:
                self.state_machine.transition(LedgerState.STOPPED)
                self._shutdown_task = asyncio.ensure_future(self.repository.close())
            else:
                logger.info(
                    "Ledger 종료 중...",
                    extra={
                        "active_accounts": self.sequencer.active_accounts,
                        "pending": self.sequencer.pending_count,
                    },
                )
                # 신규 연산 거부는 호출 즉시
                self.state_machine.transition(LedgerState.STOPPING)
                self._shutdown_task = asyncio.ensure_future(self._shutdown())

        # 대기자가 취소되어도 종료 작업은 계속 진행
        await asyncio.shield(self._shutdown_task)

    async def _shutdown(self) -> None:
        """STOPPING 이후: drain → flush → 저장소 종료 → STOPPED"""
        try:
            await self.sequencer.drain()
            await self.repository.flush()
        finally:
            try:
                await self.repository.close()
            finally:
                self.state_machine.transition(LedgerState.STOPPED)

        logger.info(
            "Ledger STOPPED",
            extra={
                "accounts": len(self.store),
                "completed": self.sequencer.completed_count,
            },
        )

    # -------------------------------------------------------------------------
    # 조회 연산
    # -------------------------------------------------------------------------

    def get_balance(self, account: str | UUID) -> asyncio.Future:
        """현재 잔고 조회 (미등록 계정은 0)

        Returns:
            Future[Decimal]
        """
        account_id = normalize_account_id(account)

        async def read() -> Decimal:
            return self.store.get(account_id)

        return self._submit(account_id, OperationKind.READ, read)

    def has_balance(self, account: str | UUID, amount: Any) -> asyncio.Future:
        """잔고가 amount 이상인지 조회 (유효하지 않은 금액은 False)

        Returns:
            Future[bool]
        """
        account_id = normalize_account_id(account)
        parsed = parse_amount(amount, self.precision)

        async def read() -> bool:
            if not is_non_negative(parsed):
                return False
            return self.store.get(account_id) >= parsed

        return self._submit(account_id, OperationKind.HAS, read, parsed)

    def get_top_balances(self, n: int) -> asyncio.Future:
        """잔고 상위 n개 조회

        Ranking Index만 읽으므로 계정 대기열을 거치지 않는다.
        n < 0 은 INVALID_COUNT 거부, n == 0 은 빈 결과.

        Returns:
            Future[TopBalances]
        """
        future = asyncio.get_running_loop().create_future()

        if not self.is_running:
            future.set_exception(self._closed_error())
            return future

        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            future.set_result(
                TopBalances(success=False, reason=FailureReason.INVALID_COUNT)
            )
            return future

        future.set_result(TopBalances(success=True, entries=self.ranking.top(n)))
        return future

    def get_rank(self, account: str | UUID) -> int | None:
        """계정의 현재 순위 (1부터, 순위 밖이면 None)"""
        return self.ranking.rank_of(normalize_account_id(account))

    def account_count(self) -> int:
        """알려진 계정 수"""
        return len(self.store)

    def snapshot(self) -> dict[AccountId, Decimal]:
        """커밋된 전체 잔고 복사본"""
        return self.store.snapshot()

    # -------------------------------------------------------------------------
    # 변경 연산
    # -------------------------------------------------------------------------

    def deposit(self, account: str | UUID, amount: Any) -> asyncio.Future:
        """입금: amount > 0 이면 잔고 증가

        Returns:
            Future[TransactionResult]
        """
        account_id = normalize_account_id(account)
        parsed = parse_amount(amount, self.precision)
        kind = OperationKind.DEPOSIT

        def apply(balance: Decimal) -> tuple[Decimal, TransactionResult]:
            if not is_positive(parsed):
                return balance, TransactionResult.rejected(
                    kind, account_id, parsed, balance, FailureReason.INVALID_AMOUNT
                )
            new_balance = exact_sum(balance, parsed)
            if new_balance is None:
                return balance, TransactionResult.rejected(
                    kind, account_id, parsed, balance, FailureReason.BALANCE_OVERFLOW
                )
            return new_balance, TransactionResult.ok(kind, account_id, parsed, new_balance)

        return self._submit_mutation(account_id, kind, apply, parsed)

    def withdraw(self, account: str | UUID, amount: Any) -> asyncio.Future:
        """출금: amount > 0 이고 잔고 >= amount 이면 잔고 감소

        Returns:
            Future[TransactionResult]
        """
        account_id = normalize_account_id(account)
        parsed = parse_amount(amount, self.precision)
        kind = OperationKind.WITHDRAW

        def apply(balance: Decimal) -> tuple[Decimal, TransactionResult]:
            if not is_positive(parsed):
                return balance, TransactionResult.rejected(
                    kind, account_id, parsed, balance, FailureReason.INVALID_AMOUNT
                )
            if balance < parsed:
                return balance, TransactionResult.rejected(
                    kind, account_id, parsed, balance, FailureReason.INSUFFICIENT_FUNDS
                )
            new_balance = exact_sum(balance, parsed.copy_negate())
            if new_balance is None:
                return balance, TransactionResult.rejected(
                    kind, account_id, parsed, balance, FailureReason.BALANCE_OVERFLOW
                )
            return new_balance, TransactionResult.ok(kind, account_id, parsed, new_balance)

        return self._submit_mutation(account_id, kind, apply, parsed)

    def set_balance(self, account: str | UUID, amount: Any) -> asyncio.Future:
        """잔고 설정: amount >= 0 이면 잔고 교체

        Returns:
            Future[TransactionResult]
        """
        account_id = normalize_account_id(account)
        parsed = parse_amount(amount, self.precision)
        kind = OperationKind.SET

        def apply(balance: Decimal) -> tuple[Decimal, TransactionResult]:
            if not is_non_negative(parsed):
                return balance, TransactionResult.rejected(
                    kind, account_id, parsed, balance, FailureReason.INVALID_AMOUNT
                )
            return parsed, TransactionResult.ok(kind, account_id, parsed, parsed)

        return self._submit_mutation(account_id, kind, apply, parsed)

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    def _submit_mutation(
        self,
        account_id: AccountId,
        kind: OperationKind,
        apply: Callable[[Decimal], tuple[Decimal, TransactionResult]],
        amount: Decimal | None,
    ) -> asyncio.Future:
        """검증 + 변경을 계정 슬롯 안에서 한 단계로 실행"""

        async def mutate() -> TransactionResult:
            return await self.store.mutate(account_id, apply)

        return self._submit(account_id, kind, mutate, amount)

    def _submit(
        self,
        account_id: AccountId,
        kind: OperationKind,
        handler: Callable[[], Any],
        amount: Decimal | None = None,
    ) -> asyncio.Future:
        """Sequencer 제출 (RUNNING이 아니면 LedgerClosedError Future)"""
        if not self.is_running:
            future = asyncio.get_running_loop().create_future()
            future.set_exception(self._closed_error())
            logger.warning(
                "RUNNING 상태가 아닌 Ledger에 연산 제출",
                extra={"state": self.state, "kind": kind.value, "account_id": account_id},
            )
            return future

        return self.sequencer.submit(account_id, kind, handler, amount)

    def _closed_error(self) -> LedgerClosedError:
        return LedgerClosedError(f"Ledger가 연산을 받을 수 없는 상태입니다: {self.state}")


class ThreadSafeLedger:
    """다른 스레드에서 Ledger를 호출하기 위한 핸들

    각 호출은 이벤트 루프로 전달되어 그 시점에 제출되고,
    어느 스레드에서든 기다릴 수 있는 concurrent.futures.Future를 반환한다.
    이벤트 루프 스레드 안에서 .result()로 기다리면 교착되므로 Ledger를 직접 사용할 것.

    Args:
        ledger: 대상 Ledger
        loop: Ledger가 속한 이벤트 루프
    """

    def __init__(self, ledger: Ledger, loop: asyncio.AbstractEventLoop):
        self.ledger = ledger
        self.loop = loop

    def get_balance(self, account: str | UUID) -> concurrent.futures.Future:
        return self._call(self.ledger.get_balance, account)

    def has_balance(self, account: str | UUID, amount: Any) -> concurrent.futures.Future:
        return self._call(self.ledger.has_balance, account, amount)

    def deposit(self, account: str | UUID, amount: Any) -> concurrent.futures.Future:
        return self._call(self.ledger.deposit, account, amount)

    def withdraw(self, account: str | UUID, amount: Any) -> concurrent.futures.Future:
        return self._call(self.ledger.withdraw, account, amount)

    def set_balance(self, account: str | UUID, amount: Any) -> concurrent.futures.Future:
        return self._call(self.ledger.set_balance, account, amount)

    def get_top_balances(self, n: int) -> concurrent.futures.Future:
        return self._call(self.ledger.get_top_balances, n)

    def _call(self, method: Callable[..., asyncio.Future], *args: Any) -> concurrent.futures.Future:
        async def invoke() -> Any:
            return await method(*args)

        return asyncio.run_coroutine_threadsafe(invoke(), self.loop)
