"""
core/types.py 테스트

모든 Enum이 문자열 직렬화 가능한지 확인
"""

from core.types import FailureReason, OperationKind, WritePolicy


class TestWritePolicy:
    """WritePolicy 테스트"""

    def test_values(self) -> None:
        """값 확인"""
        assert WritePolicy.WRITE_THROUGH.value == "write_through"
        assert WritePolicy.WRITE_BEHIND.value == "write_behind"

    def test_from_string(self) -> None:
        """문자열에서 생성"""
        assert WritePolicy("write_behind") == WritePolicy.WRITE_BEHIND


class TestOperationKind:
    """OperationKind 테스트"""

    def test_all_kinds(self) -> None:
        """연산 종류 목록"""
        assert {kind.value for kind in OperationKind} == {
            "READ", "HAS", "DEPOSIT", "WITHDRAW", "SET", "TOP",
        }

    def test_str_comparison(self) -> None:
        """str 상속으로 문자열과 비교 가능"""
        assert OperationKind.DEPOSIT == "DEPOSIT"


class TestFailureReason:
    """FailureReason 테스트"""

    def test_values(self) -> None:
        """값 확인"""
        assert FailureReason.INVALID_AMOUNT.value == "INVALID_AMOUNT"
        assert FailureReason.INSUFFICIENT_FUNDS.value == "INSUFFICIENT_FUNDS"
        assert FailureReason.INVALID_COUNT.value == "INVALID_COUNT"
        assert FailureReason.BALANCE_OVERFLOW.value == "BALANCE_OVERFLOW"
