"""
Liquidity Math - 유동성 계산

집중화된 유동성(Concentrated Liquidity)에서 특정 틱 범위의 토큰 수량과
유동성 간의 변환.

핵심 공식:
    Δa = L × (1/√P_lower - 1/√P_upper)   # token A 기준
    Δb = L × (√P_upper - √P_lower)       # token B 기준

현재 가격과 범위의 관계에 따라 세 가지 경우로 나뉩니다:
    current < lower          → token A만 필요
    lower ≤ current ≤ upper  → 양쪽 토큰 필요
    current > upper          → token B만 필요
"""

from decimal import Decimal, ROUND_DOWN, ROUND_UP, localcontext
from enum import IntEnum
from typing import NamedTuple, Optional

from ..config import DEFAULT_CONFIG, MathConfig, Numeric, as_decimal
from ..errors import InvalidRange, InvalidSlippage, OutOfDomain
from .tick_math import check_tick_range, tick_to_sqrt_price

ZERO = Decimal(0)
ONE = Decimal(1)


class TokenSide(IntEnum):
    """입력 수량이 어느 토큰인지"""
    A = 0
    B = 1


class TokenAmounts(NamedTuple):
    """유동성에 대응하는 토큰 수량 (최소 단위)"""
    amount_a: Decimal
    amount_b: Decimal


class LiquidityQuote(NamedTuple):
    """유동성 계산 결과"""
    liquidity: Decimal
    amount_a: Decimal  # 필요한 token A
    amount_b: Decimal  # 필요한 token B


class SlippageAmounts(NamedTuple):
    """슬리피지 허용 범위를 반영한 토큰 수량"""
    amount_a: Decimal
    max_amount_a: Decimal
    min_amount_a: Decimal
    amount_b: Decimal
    max_amount_b: Decimal
    min_amount_b: Decimal


def _to_units(value: Decimal, rounding: Optional[str]) -> Decimal:
    if rounding is None:
        return value
    return value.to_integral_value(rounding=rounding)


def _range_sqrt_prices(tick_lower: int, tick_upper: int, config: MathConfig):
    check_tick_range(tick_lower, tick_upper)
    return tick_to_sqrt_price(tick_lower, config), tick_to_sqrt_price(tick_upper, config)


def amount_a_delta(
    sqrt_price_a: Numeric,
    sqrt_price_b: Numeric,
    liquidity: Numeric,
    rounding: Optional[str] = None,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """두 √가격 사이에서 유동성 L에 해당하는 token A 양

    공식: Δa = L / √P_lo - L / √P_hi

    Args:
        sqrt_price_a: √가격 (순서 무관)
        sqrt_price_b: √가격 (순서 무관)
        liquidity: 유동성
        rounding: 정수 단위 반올림 모드. None이면 전체 정밀도 반환
    """
    lo, hi = sorted((as_decimal(sqrt_price_a), as_decimal(sqrt_price_b)))
    liquidity = as_decimal(liquidity)
    with localcontext(config.context()):
        return _to_units(liquidity / lo - liquidity / hi, rounding)


def amount_b_delta(
    sqrt_price_a: Numeric,
    sqrt_price_b: Numeric,
    liquidity: Numeric,
    rounding: Optional[str] = None,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """두 √가격 사이에서 유동성 L에 해당하는 token B 양

    공식: Δb = L × (√P_hi - √P_lo)
    """
    lo, hi = sorted((as_decimal(sqrt_price_a), as_decimal(sqrt_price_b)))
    liquidity = as_decimal(liquidity)
    with localcontext(config.context()):
        return _to_units(liquidity * (hi - lo), rounding)


def liquidity_only_a(
    tick_lower: int,
    tick_upper: int,
    amount_a: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """token A만으로 유동성 계산 (현재 가격이 범위 아래)

    공식: L = Δa / (1/√P_lower - 1/√P_upper)
    """
    lower, upper = _range_sqrt_prices(tick_lower, tick_upper, config)
    with localcontext(config.context()):
        return as_decimal(amount_a) / (ONE / lower - ONE / upper)


def liquidity_only_b(
    tick_lower: int,
    tick_upper: int,
    amount_b: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """token B만으로 유동성 계산 (현재 가격이 범위 위)

    공식: L = Δb / (√P_upper - √P_lower)
    """
    lower, upper = _range_sqrt_prices(tick_lower, tick_upper, config)
    with localcontext(config.context()):
        return as_decimal(amount_b) / (upper - lower)


def liquidity_in_range(
    tick_lower: int,
    tick_upper: int,
    desired_amount: Numeric,
    current_sqrt_price: Numeric,
    side: TokenSide,
    config: MathConfig = DEFAULT_CONFIG
) -> LiquidityQuote:
    """현재 가격이 범위 안일 때, 한쪽 토큰 수량으로 유동성과 반대쪽 수량 계산

    side == A:
        L = Δa / (1/√P_c - 1/√P_upper),  Δb = L × (√P_c - √P_lower)
    side == B:
        L = Δb / (√P_c - √P_lower),      Δa = L × (1/√P_c - 1/√P_upper)

    반대쪽 수량은 ROUND_DOWN으로 정수 단위에 맞춥니다.

    Raises:
        OutOfDomain: 현재 가격이 [lower, upper] 밖인 경우
        InvalidRange: 주어진 토큰이 이 가격에서 범위를 채울 수 없는 경우
    """
    lower, upper = _range_sqrt_prices(tick_lower, tick_upper, config)
    current = as_decimal(current_sqrt_price)
    desired = as_decimal(desired_amount)
    if current < lower:
        raise OutOfDomain(current, lower, f"현재 √가격 {current} 이(가) 범위 하한 {lower} 보다 작습니다")
    if current > upper:
        raise OutOfDomain(current, upper, f"현재 √가격 {current} 이(가) 범위 상한 {upper} 보다 큽니다")

    with localcontext(config.context()):
        per_unit_a = ONE / current - ONE / upper
        per_unit_b = current - lower

        if side == TokenSide.A:
            if per_unit_a == 0:
                raise InvalidRange(tick_lower, tick_upper, "현재 가격이 상한에 있어 token A로 유동성을 만들 수 없습니다")
            liquidity = desired / per_unit_a
            other = _to_units(liquidity * per_unit_b, ROUND_DOWN)
            return LiquidityQuote(liquidity, desired, other)

        if per_unit_b == 0:
            raise InvalidRange(tick_lower, tick_upper, "현재 가격이 하한에 있어 token B로 유동성을 만들 수 없습니다")
        liquidity = desired / per_unit_b
        other = _to_units(liquidity * per_unit_a, ROUND_DOWN)
        return LiquidityQuote(liquidity, other, desired)


def liquidity_for_token_a(
    tick_lower: int,
    tick_upper: int,
    amount_a: Numeric,
    current_sqrt_price: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> LiquidityQuote:
    """token A 희망 수량으로 유동성 계산

    Raises:
        InvalidRange: 범위 전체가 현재 가격 아래에 있어 token A가 필요 없는 경우
    """
    lower, upper = _range_sqrt_prices(tick_lower, tick_upper, config)
    current = as_decimal(current_sqrt_price)
    amount_a = as_decimal(amount_a)

    if current < lower:
        return LiquidityQuote(liquidity_only_a(tick_lower, tick_upper, amount_a, config), amount_a, ZERO)
    if current < upper:
        return liquidity_in_range(tick_lower, tick_upper, amount_a, current, TokenSide.A, config)
    raise InvalidRange(
        tick_lower, tick_upper,
        f"범위 [{tick_lower}, {tick_upper}] 이(가) 현재 가격 아래에 있어 token A로 채울 수 없습니다"
    )


def liquidity_for_token_b(
    tick_lower: int,
    tick_upper: int,
    amount_b: Numeric,
    current_sqrt_price: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> LiquidityQuote:
    """token B 희망 수량으로 유동성 계산

    Raises:
        InvalidRange: 범위 전체가 현재 가격 위에 있어 token B가 필요 없는 경우
    """
    lower, upper = _range_sqrt_prices(tick_lower, tick_upper, config)
    current = as_decimal(current_sqrt_price)
    amount_b = as_decimal(amount_b)

    if current > upper:
        return LiquidityQuote(liquidity_only_b(tick_lower, tick_upper, amount_b, config), ZERO, amount_b)
    if current > lower:
        return liquidity_in_range(tick_lower, tick_upper, amount_b, current, TokenSide.B, config)
    raise InvalidRange(
        tick_lower, tick_upper,
        f"범위 [{tick_lower}, {tick_upper}] 이(가) 현재 가격 위에 있어 token B로 채울 수 없습니다"
    )


def liquidity_for_amounts(
    tick_lower: int,
    tick_upper: int,
    amount_a: Numeric,
    amount_b: Numeric,
    current_sqrt_price: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """두 토큰 예산으로 민트 가능한 최대 유동성

    범위 안이면 두 제약 조건 중 작은 값을 반환합니다.
    """
    lower, upper = _range_sqrt_prices(tick_lower, tick_upper, config)
    current = as_decimal(current_sqrt_price)
    amount_a = as_decimal(amount_a)
    amount_b = as_decimal(amount_b)

    with localcontext(config.context()):
        if current <= lower:
            return amount_a / (ONE / lower - ONE / upper)
        if current < upper:
            liquidity_a = amount_a / (ONE / current - ONE / upper)
            liquidity_b = amount_b / (current - lower)
            return min(liquidity_a, liquidity_b)
        return amount_b / (upper - lower)


def token_amounts_for_liquidity(
    tick_lower: int,
    tick_upper: int,
    liquidity: Numeric,
    current_sqrt_price: Numeric,
    rounding: str = ROUND_DOWN,
    config: MathConfig = DEFAULT_CONFIG
) -> TokenAmounts:
    """유동성에서 토큰 수량 계산

    포지션 가치 평가 및 출금 예상 수량에 사용합니다.

    Args:
        tick_lower: 하한 틱
        tick_upper: 상한 틱
        liquidity: 유동성
        current_sqrt_price: 현재 √가격
        rounding: 정수 단위 반올림. 최대 필요량은 ROUND_DOWN,
            최소 보장량은 ROUND_UP

    Returns:
        TokenAmounts(amount_a, amount_b)

    Raises:
        InvalidRange: tick_lower >= tick_upper
    """
    lower, upper = _range_sqrt_prices(tick_lower, tick_upper, config)
    current = as_decimal(current_sqrt_price)

    if current < lower:
        # 범위가 현재 가격 위: token A만 보유
        return TokenAmounts(amount_a_delta(lower, upper, liquidity, rounding, config), ZERO)
    if current > upper:
        # 범위가 현재 가격 아래: token B만 보유
        return TokenAmounts(ZERO, amount_b_delta(lower, upper, liquidity, rounding, config))
    return TokenAmounts(
        amount_a_delta(current, upper, liquidity, rounding, config),
        amount_b_delta(lower, current, liquidity, rounding, config),
    )


def slippage_amounts(
    tick_lower: int,
    tick_upper: int,
    liquidity: Numeric,
    current_sqrt_price: Numeric,
    slippage: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> SlippageAmounts:
    """슬리피지를 반영한 토큰 수량 범위

    현재 √가격과 √가격 × sqrt(1 ± slippage) 세 지점에서 수량을 계산해
    토큰별 최대/최소를 취합니다.

    Raises:
        InvalidSlippage: slippage가 (0, 1) 밖인 경우
    """
    slippage = as_decimal(slippage)
    if not ZERO < slippage < ONE:
        raise InvalidSlippage(slippage)

    current = as_decimal(current_sqrt_price)
    with localcontext(config.context()):
        shifted_up = current * (ONE + slippage).sqrt()
        shifted_down = current * (ONE - slippage).sqrt()

    desired = token_amounts_for_liquidity(tick_lower, tick_upper, liquidity, current, ROUND_DOWN, config)
    prices = (current, shifted_up, shifted_down)
    upper_evals = [
        token_amounts_for_liquidity(tick_lower, tick_upper, liquidity, p, ROUND_DOWN, config)
        for p in prices
    ]
    lower_evals = [desired] + [
        token_amounts_for_liquidity(tick_lower, tick_upper, liquidity, p, ROUND_UP, config)
        for p in prices
    ]

    return SlippageAmounts(
        amount_a=desired.amount_a,
        max_amount_a=max(e.amount_a for e in upper_evals),
        min_amount_a=min(e.amount_a for e in lower_evals),
        amount_b=desired.amount_b,
        max_amount_b=max(e.amount_b for e in upper_evals),
        min_amount_b=min(e.amount_b for e in lower_evals),
    )
