"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from decimal import Decimal
from typing import Iterable, Protocol, runtime_checkable


@runtime_checkable
class IBalanceRepository(Protocol):
    """잔고 영속화 저장소 인터페이스 (Persistence Adapter)

    계정 ID → 잔고 매핑의 내구성 저장을 담당.
    금액은 반드시 Decimal 타입 사용.
    모든 I/O 실패는 StorageError로 변환하여 전파해야 하며, 조용히 무시하면 안 됨.
    """

    async def load(self) -> dict[str, Decimal]:
        """전체 계정 잔고 로드 (시작 시 1회)

        Returns:
            {account_id: balance}

        Raises:
            StorageError: 읽기 실패
        """
        ...

    async def save(self, account_id: str, balance: Decimal) -> None:
        """단일 계정 잔고 저장 (커밋마다 호출)

        Raises:
            StorageError: 쓰기 실패 (호출자는 메모리 변경을 롤백)
        """
        ...

    async def save_many(self, items: Iterable[tuple[str, Decimal]]) -> None:
        """여러 계정 잔고를 한 트랜잭션으로 저장 (write-behind flush용)

        Raises:
            StorageError: 쓰기 실패 (전체 롤백)
        """
        ...

    async def flush(self) -> None:
        """버퍼된 쓰기를 강제로 내구 저장소에 반영"""
        ...

    async def close(self) -> None:
        """저장소 종료 (flush 이후 연결 해제)"""
        ...
