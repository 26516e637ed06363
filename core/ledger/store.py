"""
Account 저장소

계정 ID → 잔고의 권위 있는 인메모리 맵.
로드 이후 모든 조회의 단일 진실 공급원.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable

from core.ledger.errors import StorageError
from core.ledger.types import ZERO, AccountId

if TYPE_CHECKING:
    from adapters.interfaces import IBalanceRepository

logger = logging.getLogger(__name__)


# 순수 함수: old_balance → (new_balance, outcome)
MutationFn = Callable[[Decimal], tuple[Decimal, Any]]

# 커밋 리스너: (account_id, new_balance)
CommitListener = Callable[[AccountId, Decimal], None]


@dataclass
class Account:
    """계정 레코드

    Attributes:
        balance: 현재 커밋된 잔고 (항상 0 이상)
        version: 커밋 순번 (커밋마다 1 증가)
    """

    balance: Decimal = ZERO
    version: int = 0


class AccountStore:
    """Account 저장소

    Sequencer 전용. 호출자에게 직접 노출되지 않는다.
    같은 계정에 대한 mutate()는 Sequencer가 직렬화하므로 내부 락이 없다.

    커밋 순서:
        1. old = 현재 잔고
        2. new, outcome = fn(old)
        3. new == old 이면 저장 없이 outcome 반환
        4. 저장소 save() 완료를 기다림 (실패 시 메모리 변경 없음 → StorageError)
        5. 메모리 반영 + version 증가 + 커밋 리스너 통지

    Args:
        repository: 영속화 저장소 (write-through 또는 write-behind 래퍼)
    """

    def __init__(self, repository: IBalanceRepository):
        self.repository = repository
        self._accounts: dict[AccountId, Account] = {}
        self._listeners: list[CommitListener] = []

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: AccountId) -> bool:
        return account_id in self._accounts

    def subscribe(self, listener: CommitListener) -> None:
        """커밋 통지 구독 (Ranking Index 등)"""
        self._listeners.append(listener)

    async def load(self) -> int:
        """저장소에서 전체 잔고 로드

        Returns:
            로드된 계정 수

        Raises:
            StorageError: 로드 실패 또는 음수 잔고
        """
        balances = await self.repository.load()

        accounts: dict[AccountId, Account] = {}
        for account_id, balance in balances.items():
            if balance < 0:
                raise StorageError(
                    f"음수 잔고 로드: account_id={account_id}, balance={balance}"
                )
            accounts[account_id] = Account(balance=balance)

        self._accounts = accounts

        for account_id, account in accounts.items():
            self._notify(account_id, account.balance)

        return len(accounts)

    def get(self, account_id: AccountId) -> Decimal:
        """현재 잔고 조회 (미등록 계정은 0)"""
        account = self._accounts.get(account_id)
        return account.balance if account else ZERO

    def version(self, account_id: AccountId) -> int:
        """현재 커밋 순번 조회 (미등록 계정은 0)"""
        account = self._accounts.get(account_id)
        return account.version if account else 0

    def snapshot(self) -> dict[AccountId, Decimal]:
        """커밋된 전체 잔고 복사본"""
        return {
            account_id: account.balance
            for account_id, account in self._accounts.items()
        }

    async def mutate(self, account_id: AccountId, fn: MutationFn) -> Any:
        """잔고 변경

        Args:
            account_id: 대상 계정
            fn: 순수 함수 old_balance → (new_balance, outcome)

        Returns:
            fn이 반환한 outcome

        Raises:
            StorageError: 음수 결과 또는 저장소 쓰기 실패 (메모리 변경 없음)
        """
        old_balance = self.get(account_id)
        new_balance, outcome = fn(old_balance)

        if new_balance == old_balance:
            return outcome

        if new_balance < 0:
            raise StorageError(
                f"음수 잔고 커밋 시도: account_id={account_id}, balance={new_balance}"
            )

        try:
            await self.repository.save(account_id, new_balance)
        except Exception as e:
            logger.error(
                "잔고 저장 실패 - 메모리 변경 롤백",
                extra={
                    "account_id": account_id,
                    "old_balance": str(old_balance),
                    "new_balance": str(new_balance),
                },
                exc_info=True,
            )
            if isinstance(e, StorageError):
                raise
            raise StorageError(f"잔고 저장 실패: {e}") from e

        account = self._accounts.get(account_id)
        if account is None:
            account = Account()
            self._accounts[account_id] = account

        account.balance = new_balance
        account.version += 1

        logger.debug(
            f"Committed {account_id}: {old_balance} → {new_balance} (v{account.version})"
        )

        self._notify(account_id, new_balance)
        return outcome

    def _notify(self, account_id: AccountId, balance: Decimal) -> None:
        """커밋 리스너 호출"""
        for listener in self._listeners:
            listener(account_id, balance)
