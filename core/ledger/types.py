"""
Ledger 타입 정의

연산 결과, 순위 행, 대기 연산 레코드 등 Ledger 내부/외부에서 공유하는 데이터 구조
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable
from uuid import UUID

from core.types import FailureReason, OperationKind


# 계정 식별자: 호스트가 제공하는 불투명 ID (UUID는 표준 소문자 문자열로 정규화)
AccountId = str

ZERO = Decimal("0")


def normalize_account_id(account: str | UUID) -> AccountId:
    """계정 식별자 정규화

    UUID는 str(uuid) 표준 형식으로 변환하고, 문자열은 그대로 사용한다.
    (표준 UUID 문자열의 사전순 = UUID 정수 순서이므로 동점 정렬 규칙과 일치)

    Raises:
        ValueError: 빈 문자열 또는 지원하지 않는 타입
    """
    if isinstance(account, UUID):
        return str(account)

    if isinstance(account, str) and account:
        return account

    raise ValueError(f"유효하지 않은 계정 식별자: {account!r}")


@dataclass(frozen=True)
class TransactionResult:
    """잔고 변경 연산(deposit/withdraw/set) 결과

    Attributes:
        success: 성공 여부
        kind: 연산 종류
        account_id: 대상 계정
        amount: 요청 금액 (파싱 실패 시 None)
        balance: 연산 이후 커밋된 잔고 (거부 시 변경되지 않은 잔고)
        reason: 거부 사유 (성공 시 None)
    """

    success: bool
    kind: OperationKind
    account_id: AccountId
    amount: Decimal | None
    balance: Decimal
    reason: FailureReason | None = None

    @classmethod
    def ok(
        cls,
        kind: OperationKind,
        account_id: AccountId,
        amount: Decimal,
        balance: Decimal,
    ) -> "TransactionResult":
        """성공 결과 생성"""
        return cls(True, kind, account_id, amount, balance)

    @classmethod
    def rejected(
        cls,
        kind: OperationKind,
        account_id: AccountId,
        amount: Decimal | None,
        balance: Decimal,
        reason: FailureReason,
    ) -> "TransactionResult":
        """거부 결과 생성"""
        return cls(False, kind, account_id, amount, balance, reason)


@dataclass(frozen=True)
class BalanceEntry:
    """순위 한 행 (계정, 잔고)"""

    account_id: AccountId
    balance: Decimal


@dataclass(frozen=True)
class TopBalances:
    """get_top_balances 결과

    entries는 잔고 내림차순, 동점 시 계정 ID 오름차순.
    """

    success: bool
    entries: tuple[BalanceEntry, ...] = ()
    reason: FailureReason | None = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


@dataclass
class OperationRecord:
    """대기 중인 연산 한 건

    Sequencer가 완료 시까지 독점 소유하며, Future를 해소한 뒤 폐기된다.
    """

    account_id: AccountId
    kind: OperationKind
    handler: Callable[[], Awaitable[Any]]
    future: asyncio.Future
    seq: int
    amount: Decimal | None = None
