"""
Tick Math - Tick ↔ Price 변환

원장 프로그램과 같은 Decimal 정밀도로 틱/가격/√가격을 변환합니다.

핵심 공식:
    price = 1.0001^tick
    sqrtPrice = 1.0001^(tick / 2)
    tick = round_half_up(log₁.₀₀₀₁(price))

유효 틱 간격 격자는 0이 아니라 MIN_TICK을 기준으로 정렬됩니다.
"""

from decimal import Decimal, ROUND_HALF_UP, localcontext
from functools import lru_cache
from typing import Optional, Sequence, Tuple

from ..config import DEFAULT_CONFIG, MathConfig, Numeric, as_decimal
from ..constants import BASE, MAX_TICK, MIN_TICK
from ..errors import InvalidRange, InvalidSpacing, InvalidTickArray, OutOfDomain


@lru_cache(maxsize=None)
def domain_bounds(config: MathConfig = DEFAULT_CONFIG) -> Tuple[Decimal, Decimal, Decimal, Decimal]:
    """(MIN_SQRT_PRICE, MAX_SQRT_PRICE, MIN_PRICE, MAX_PRICE) 반환

    경계값은 tick_to_sqrt_price / tick_to_price와 같은 연산으로 계산하므로
    MIN_TICK, MAX_TICK 자체는 항상 범위 안에 들어갑니다.
    """
    return (
        _sqrt_price_at(MIN_TICK, config),
        _sqrt_price_at(MAX_TICK, config),
        _price_at(MIN_TICK, config),
        _price_at(MAX_TICK, config),
    )


@lru_cache(maxsize=8192)
def _sqrt_price_at(tick: int, config: MathConfig) -> Decimal:
    with localcontext(config.context()):
        return BASE ** (Decimal(tick) / 2)


@lru_cache(maxsize=8192)
def _price_at(tick: int, config: MathConfig) -> Decimal:
    with localcontext(config.context()):
        return BASE ** tick


def _check_tick(tick: int) -> None:
    if tick < MIN_TICK:
        raise OutOfDomain(tick, MIN_TICK, f"틱이 유효 범위를 벗어났습니다: {tick} (최소: {MIN_TICK})")
    if tick > MAX_TICK:
        raise OutOfDomain(tick, MAX_TICK, f"틱이 유효 범위를 벗어났습니다: {tick} (최대: {MAX_TICK})")


def _check_bounds(value: Decimal, low: Decimal, high: Decimal, name: str) -> None:
    if value < low:
        raise OutOfDomain(value, low, f"{name}이(가) 너무 작습니다: {value} (최소: {low})")
    if value > high:
        raise OutOfDomain(value, high, f"{name}이(가) 너무 큽니다: {value} (최대: {high})")


def tick_to_sqrt_price(tick: int, config: MathConfig = DEFAULT_CONFIG) -> Decimal:
    """틱에서 √가격 계산

    Args:
        tick: 틱 인덱스 (MIN_TICK ~ MAX_TICK)

    Returns:
        1.0001^(tick / 2)

    Raises:
        OutOfDomain: 틱이 유효 범위를 벗어난 경우
    """
    _check_tick(tick)
    return _sqrt_price_at(tick, config)


def tick_to_price(tick: int, config: MathConfig = DEFAULT_CONFIG) -> Decimal:
    """틱에서 가격 계산 (1.0001^tick)"""
    _check_tick(tick)
    return _price_at(tick, config)


def sqrt_price_to_tick(sqrt_price: Numeric, config: MathConfig = DEFAULT_CONFIG) -> int:
    """√가격에서 틱 계산

    tick = round_half_up(log₁.₀₀₀₁(sqrtPrice²))

    Raises:
        OutOfDomain: √가격이 [MIN_SQRT_PRICE, MAX_SQRT_PRICE] 밖인 경우
    """
    sqrt_price = as_decimal(sqrt_price)
    min_sqrt, max_sqrt, _, _ = domain_bounds(config)
    _check_bounds(sqrt_price, min_sqrt, max_sqrt, "sqrtPrice")

    with localcontext(config.context()):
        raw = (sqrt_price * sqrt_price).ln() / BASE.ln()
        return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def price_to_tick(price: Numeric, config: MathConfig = DEFAULT_CONFIG) -> int:
    """가격에서 틱 계산

    tick = round_half_up(log₁.₀₀₀₁(price))

    Raises:
        OutOfDomain: 가격이 [MIN_PRICE, MAX_PRICE] 밖인 경우
    """
    price = as_decimal(price)
    _, _, min_price, max_price = domain_bounds(config)
    _check_bounds(price, min_price, max_price, "price")

    with localcontext(config.context()):
        raw = price.ln() / BASE.ln()
        return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def check_tick_spacing(tick_spacing: int) -> None:
    if isinstance(tick_spacing, bool) or not isinstance(tick_spacing, int) or tick_spacing <= 0:
        raise InvalidSpacing(tick_spacing)


def round_tick_to_spacing(tick: int, tick_spacing: int) -> int:
    """틱을 가장 가까운 유효 틱으로 반올림

    격자는 MIN_TICK에서 시작하며, 같은 거리일 때는 큰 쪽(upper)을 선택합니다.
    반올림 결과가 MAX_TICK을 넘으면 한 칸 아래 틱을 반환합니다.

    Args:
        tick: 반올림할 틱
        tick_spacing: 틱 간격 (양의 정수)

    Returns:
        (tick - MIN_TICK) 이 tick_spacing의 배수인 가장 가까운 틱

    Raises:
        InvalidSpacing: tick_spacing이 양의 정수가 아닌 경우
    """
    check_tick_spacing(tick_spacing)

    offset = (tick - MIN_TICK) % tick_spacing
    if offset * 2 >= tick_spacing:
        snapped = tick - offset + tick_spacing
    else:
        snapped = tick - offset

    if snapped > MAX_TICK:
        snapped -= tick_spacing
    return snapped


def nearest_valid_tick_by_sqrt_price(
    sqrt_price: Numeric,
    tick_spacing: int,
    config: MathConfig = DEFAULT_CONFIG
) -> int:
    """√가격에 가장 가까운 유효 틱 (포지션 경계용)"""
    check_tick_spacing(tick_spacing)
    return round_tick_to_spacing(sqrt_price_to_tick(sqrt_price, config), tick_spacing)


def nearest_valid_tick_by_price(
    price: Numeric,
    tick_spacing: int,
    config: MathConfig = DEFAULT_CONFIG
) -> int:
    """가격에 가장 가까운 유효 틱 (포지션 경계용)

    Example:
        >>> nearest_valid_tick_by_price(1, 60)
        8
    """
    check_tick_spacing(tick_spacing)
    return round_tick_to_spacing(price_to_tick(price, config), tick_spacing)


def check_tick_range(tick_lower: int, tick_upper: int, tick_spacing: Optional[int] = None) -> None:
    """포지션 틱 범위 검증

    Raises:
        InvalidRange: lower >= upper 이거나 틱 간격 격자 위에 있지 않은 경우
        OutOfDomain: 틱이 유효 범위를 벗어난 경우
    """
    if tick_lower >= tick_upper:
        raise InvalidRange(
            tick_lower, tick_upper,
            f"tickLower는 tickUpper보다 작아야 합니다: [{tick_lower}, {tick_upper}]"
        )
    _check_tick(tick_lower)
    _check_tick(tick_upper)

    if tick_spacing is not None:
        check_tick_spacing(tick_spacing)
        if (tick_lower - MIN_TICK) % tick_spacing or (tick_upper - MIN_TICK) % tick_spacing:
            raise InvalidRange(
                tick_lower, tick_upper,
                f"틱 범위 [{tick_lower}, {tick_upper}] 이(가) 간격 {tick_spacing} 격자와 맞지 않습니다"
            )


def check_ticks_sorted(ticks: Sequence) -> None:
    """틱 배열이 tick_index 기준 엄격한 오름차순인지 검증

    Raises:
        InvalidTickArray: 정렬되지 않았거나 중복 틱이 있는 경우
    """
    for prev, cur in zip(ticks, ticks[1:]):
        if cur.tick_index <= prev.tick_index:
            raise InvalidTickArray(
                f"틱 배열이 오름차순이 아닙니다: {prev.tick_index} 다음에 {cur.tick_index}"
            )


def ui_price_to_lamport_price(
    ui_price: Numeric,
    decimals_a: int,
    decimals_b: int,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """사람이 읽는 가격(B per A)을 원장 최소 단위 가격으로 변환

    lamport_price = ui_price / 10^(decimals_a - decimals_b)
    """
    with localcontext(config.context()):
        return as_decimal(ui_price).scaleb(decimals_b - decimals_a)


def lamport_price_to_ui_price(
    lamport_price: Numeric,
    decimals_a: int,
    decimals_b: int,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """원장 최소 단위 가격을 사람이 읽는 가격으로 변환

    ui_price = lamport_price × 10^(decimals_a - decimals_b)
    """
    with localcontext(config.context()):
        return as_decimal(lamport_price).scaleb(decimals_a - decimals_b)


def ui_price_to_tick(
    ui_price: Numeric,
    decimals_a: int,
    decimals_b: int,
    config: MathConfig = DEFAULT_CONFIG
) -> int:
    return price_to_tick(ui_price_to_lamport_price(ui_price, decimals_a, decimals_b, config), config)


def tick_to_ui_price(
    tick: int,
    decimals_a: int,
    decimals_b: int,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    return lamport_price_to_ui_price(tick_to_price(tick, config), decimals_a, decimals_b, config)


def nearest_valid_tick_by_ui_price(
    ui_price: Numeric,
    decimals_a: int,
    decimals_b: int,
    tick_spacing: int,
    config: MathConfig = DEFAULT_CONFIG
) -> int:
    """사람이 읽는 가격에 가장 가까운 유효 틱"""
    lamport_price = ui_price_to_lamport_price(ui_price, decimals_a, decimals_b, config)
    return nearest_valid_tick_by_price(lamport_price, tick_spacing, config)
