"""
금액 검증

호출자가 넘긴 금액을 Decimal로 정규화한다.
잘못된 금액은 예외가 아니라 None으로 반환되어 INVALID_AMOUNT 거부로 처리된다.
"""

from decimal import Decimal, Inexact, InvalidOperation, localcontext
from typing import Any


def parse_amount(value: Any, precision: Decimal) -> Decimal | None:
    """금액 파싱

    Decimal, int, str 허용. float은 str을 거쳐 변환한다 (0.1 → "0.1").
    bool, NaN/Infinity, 숫자가 아닌 값, precision보다 세밀한 값은 None.

    Args:
        value: 호출자가 넘긴 금액
        precision: 허용 최소 단위 (예: Decimal("0.01"))

    Returns:
        정규화된 Decimal 또는 None (유효하지 않은 금액)

    Example:
        >>> parse_amount("10.5", Decimal("0.01"))
        Decimal('10.5')
        >>> parse_amount("10.005", Decimal("0.01")) is None
        True
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    else:
        return None

    if not amount.is_finite():
        return None

    # 정밀도 초과 (예: 0.01 단위에 10.005)
    try:
        if amount % precision != 0:
            return None
    except InvalidOperation:
        # 컨텍스트 정밀도를 넘는 거대한 값
        return None

    return amount


def is_positive(amount: Decimal | None) -> bool:
    """0보다 큰 유효 금액 여부 (deposit/withdraw 전제조건)"""
    return amount is not None and amount > 0


def is_non_negative(amount: Decimal | None) -> bool:
    """0 이상 유효 금액 여부 (set_balance 전제조건)"""
    return amount is not None and amount >= 0


def exact_sum(balance: Decimal, delta: Decimal) -> Decimal | None:
    """balance + delta 를 반올림 없이 계산

    결과가 Decimal 컨텍스트 정밀도(기본 28자리)를 넘으면 None.
    큰 잔고에 작은 금액을 더해도 값이 그대로인 상황을 막는다.
    """
    with localcontext() as ctx:
        ctx.traps[Inexact] = True
        try:
            return balance + delta
        except Inexact:
            return None
