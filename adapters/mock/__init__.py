"""
Mock 어댑터

테스트용 Mock 구현체.
"""

from adapters.mock.balance_repository import InMemoryBalanceRepository, SaveRecord

__all__ = [
    "InMemoryBalanceRepository",
    "SaveRecord",
]
