"""
AccountStore 단위 테스트

커밋 순서, 롤백, 커밋 통지 검증
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from adapters.mock.balance_repository import InMemoryBalanceRepository
from core.ledger.errors import StorageError
from core.ledger.store import AccountStore


def add(amount: str):
    """old + amount 변경 함수"""
    def fn(balance: Decimal) -> tuple[Decimal, str]:
        return balance + Decimal(amount), "ok"
    return fn


class TestAccountStoreLoad:
    """load() 테스트"""

    @pytest.mark.asyncio
    async def test_load_balances(self) -> None:
        """저장소 잔고 로드"""
        repository = InMemoryBalanceRepository({"p1": Decimal("10"), "p2": Decimal("0")})
        store = AccountStore(repository)

        count = await store.load()

        assert count == 2
        assert store.get("p1") == Decimal("10")
        assert store.get("p2") == Decimal("0")
        assert "p2" in store

    @pytest.mark.asyncio
    async def test_load_rejects_negative(self) -> None:
        """음수 잔고 로드 시 StorageError"""
        repository = InMemoryBalanceRepository({"bad": Decimal("-1")})
        store = AccountStore(repository)

        with pytest.raises(StorageError):
            await store.load()

    @pytest.mark.asyncio
    async def test_load_notifies_listeners(self) -> None:
        """로드된 계정이 리스너에 통지됨"""
        repository = InMemoryBalanceRepository({"p1": Decimal("5")})
        store = AccountStore(repository)
        seen: list[tuple[str, Decimal]] = []
        store.subscribe(lambda account_id, balance: seen.append((account_id, balance)))

        await store.load()

        assert seen == [("p1", Decimal("5"))]


class TestAccountStoreMutate:
    """mutate() 테스트"""

    @pytest.mark.asyncio
    async def test_unseen_account_is_zero(self) -> None:
        """미등록 계정은 0"""
        store = AccountStore(InMemoryBalanceRepository())

        assert store.get("ghost") == Decimal("0")
        assert store.version("ghost") == 0
        assert "ghost" not in store

    @pytest.mark.asyncio
    async def test_mutate_persists_then_applies(self) -> None:
        """저장 후 메모리 반영, version 증가"""
        repository = InMemoryBalanceRepository()
        store = AccountStore(repository)

        outcome = await store.mutate("p1", add("25"))

        assert outcome == "ok"
        assert store.get("p1") == Decimal("25")
        assert store.version("p1") == 1
        assert repository.data["p1"] == Decimal("25")

    @pytest.mark.asyncio
    async def test_unchanged_balance_skips_save(self) -> None:
        """잔고 변화가 없으면 저장하지 않음"""
        repository = InMemoryBalanceRepository()
        store = AccountStore(repository)

        outcome = await store.mutate("p1", lambda balance: (balance, "noop"))

        assert outcome == "noop"
        assert repository.saves == []
        assert store.version("p1") == 0

    @pytest.mark.asyncio
    async def test_storage_failure_rolls_back(self) -> None:
        """저장 실패 시 메모리 변경 없음"""
        repository = InMemoryBalanceRepository({"p1": Decimal("10")})
        store = AccountStore(repository)
        await store.load()
        seen: list[str] = []
        store.subscribe(lambda account_id, balance: seen.append(account_id))

        repository.should_fail = True
        with pytest.raises(StorageError):
            await store.mutate("p1", add("5"))

        assert store.get("p1") == Decimal("10")
        assert store.version("p1") == 0
        assert seen == []

    @pytest.mark.asyncio
    async def test_unexpected_repository_error_wrapped(self) -> None:
        """저장소의 예상치 못한 예외는 StorageError로 변환"""
        repository = AsyncMock()
        repository.save.side_effect = OSError("disk full")
        store = AccountStore(repository)

        with pytest.raises(StorageError) as exc_info:
            await store.mutate("p1", add("5"))

        assert isinstance(exc_info.value.__cause__, OSError)
        assert store.get("p1") == Decimal("0")

    @pytest.mark.asyncio
    async def test_negative_result_refused(self) -> None:
        """음수 결과는 커밋되지 않음"""
        repository = InMemoryBalanceRepository()
        store = AccountStore(repository)

        with pytest.raises(StorageError):
            await store.mutate("p1", add("-1"))

        assert repository.saves == []
        assert store.get("p1") == Decimal("0")

    @pytest.mark.asyncio
    async def test_snapshot_is_copy(self) -> None:
        """snapshot은 복사본"""
        store = AccountStore(InMemoryBalanceRepository())
        await store.mutate("p1", add("1"))

        snapshot = store.snapshot()
        snapshot["p1"] = Decimal("999")

        assert store.get("p1") == Decimal("1")
