"""
core/ledger/validation.py 테스트

금액 파싱과 전제조건 검사
"""

from decimal import Decimal, Inexact, getcontext

import pytest

from core.ledger.validation import exact_sum, is_non_negative, is_positive, parse_amount


PRECISION = Decimal("0.01")


class TestParseAmount:
    """parse_amount 테스트"""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Decimal("10.50"), Decimal("10.50")),
            (10, Decimal("10")),
            ("25.5", Decimal("25.5")),
            (" 7 ", Decimal("7")),
            (0.1, Decimal("0.1")),
            ("-5", Decimal("-5")),
            ("0", Decimal("0")),
        ],
    )
    def test_valid_values(self, value, expected: Decimal) -> None:
        """허용 타입 변환"""
        assert parse_amount(value, PRECISION) == expected

    @pytest.mark.parametrize(
        "value",
        ["abc", "", "NaN", "Infinity", "-inf", None, True, [1], object()],
    )
    def test_invalid_values(self, value) -> None:
        """숫자가 아니거나 유한하지 않은 값은 None"""
        assert parse_amount(value, PRECISION) is None

    def test_finer_than_precision(self) -> None:
        """정밀도보다 세밀한 값은 None"""
        assert parse_amount("10.005", PRECISION) is None
        assert parse_amount("10.005", Decimal("0.001")) == Decimal("10.005")

    def test_huge_value_rejected(self) -> None:
        """컨텍스트 정밀도를 넘는 값은 예외 없이 None"""
        assert parse_amount("1E+100", PRECISION) is None


class TestPreconditions:
    """전제조건 헬퍼 테스트"""

    def test_is_positive(self) -> None:
        """0보다 큰 값만 True"""
        assert is_positive(Decimal("0.01")) is True
        assert is_positive(Decimal("0")) is False
        assert is_positive(Decimal("-1")) is False
        assert is_positive(None) is False

    def test_is_non_negative(self) -> None:
        """0 이상만 True"""
        assert is_non_negative(Decimal("0")) is True
        assert is_non_negative(Decimal("5")) is True
        assert is_non_negative(Decimal("-0.01")) is False
        assert is_non_negative(None) is False


class TestExactSum:
    """exact_sum 테스트"""

    def test_exact(self) -> None:
        """정밀도 안에서는 일반 덧셈과 같음"""
        assert exact_sum(Decimal("10.50"), Decimal("0.25")) == Decimal("10.75")
        assert exact_sum(Decimal("10"), Decimal("-10")) == Decimal("0")

    def test_rounding_rejected(self) -> None:
        """28자리를 넘어 반올림되는 결과는 None"""
        big = Decimal("1" + "0" * 27)

        assert exact_sum(big, Decimal("0.01")) is None
        assert exact_sum(big, Decimal("-0.01")) is None

    def test_context_restored(self) -> None:
        """호출 후 기본 컨텍스트의 Inexact 트랩은 그대로"""
        exact_sum(Decimal("1" + "0" * 27), Decimal("0.01"))

        assert not getcontext().traps[Inexact]
