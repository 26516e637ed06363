"""
Ranking Index

커밋 통지를 구독하여 잔고 순위를 증분 유지한다.
조회 시 Account 저장소를 스캔하지 않는다.
"""

import bisect
import logging
from decimal import Decimal

from core.ledger.types import ZERO, AccountId, BalanceEntry

logger = logging.getLogger(__name__)


class RankingIndex:
    """잔고 순위 인덱스

    (-balance, account_id) 키의 정렬 리스트를 유지한다.
    → 잔고 내림차순, 동점 시 계정 ID 오름차순

    커밋된 잔고만 반영되므로 한 번도 커밋되지 않은 값은 노출되지 않는다.

    크기 제한 없이 모든 계정을 담아 어떤 n에도 답할 수 있다.
    위치 탐색은 O(log N)이지만 리스트 삽입/삭제는 원소 이동 때문에 O(N)이다.

    Args:
        min_balance: 이 값 미만의 계정은 순위에서 제외 (기본 0 = 전체 포함)
    """

    def __init__(self, min_balance: Decimal = ZERO):
        self.min_balance = min_balance
        self._keys: list[tuple[Decimal, AccountId]] = []
        self._balances: dict[AccountId, Decimal] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def on_commit(self, account_id: AccountId, balance: Decimal) -> None:
        """커밋 통지 처리 (AccountStore 리스너)"""
        old_balance = self._balances.pop(account_id, None)
        if old_balance is not None:
            idx = bisect.bisect_left(self._keys, (-old_balance, account_id))
            if idx < len(self._keys) and self._keys[idx][1] == account_id:
                self._keys.pop(idx)
            else:
                logger.warning(
                    "순위 인덱스에서 기존 키를 찾지 못함",
                    extra={"account_id": account_id, "balance": str(old_balance)},
                )

        if balance >= self.min_balance:
            bisect.insort(self._keys, (-balance, account_id))
            self._balances[account_id] = balance

    def top(self, n: int) -> tuple[BalanceEntry, ...]:
        """상위 n개 (n이 전체보다 크면 전체)"""
        if n <= 0:
            return ()

        return tuple(
            BalanceEntry(account_id=account_id, balance=-neg_balance)
            for neg_balance, account_id in self._keys[:n]
        )

    def rank_of(self, account_id: AccountId) -> int | None:
        """계정 순위 (1부터, 순위 밖이면 None)"""
        balance = self._balances.get(account_id)
        if balance is None:
            return None

        return bisect.bisect_left(self._keys, (-balance, account_id)) + 1
