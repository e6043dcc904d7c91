"""
Fee Math - 포지션 수수료 정산

틱의 fee growth outside와 풀의 fee growth global로 범위 내 수수료
성장률을 구하고, 포지션의 미수령 수수료를 계산합니다.

핵심 공식:
    f_b(i) = f_o(i)        if √P(i) < √P_c else f_g - f_o(i)  # 틱 i 아래 수수료
    f_a(i) = f_g - f_o(i)  if √P(i) < √P_c else f_o(i)        # 틱 i 위 수수료
    f_r = f_g - f_b(i_l) - f_a(i_u)                           # 범위 내 수수료
    f_u = l × (f_r(t_1) - f_r(t_0)) + carry                   # 미수령 수수료

틱은 √가격이 현재 √가격보다 엄격하게 작을 때만 "넘은" 것으로 봅니다.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, localcontext
from typing import List, NamedTuple, Sequence, TYPE_CHECKING

import pandas as pd

from ..config import DEFAULT_CONFIG, MathConfig, Numeric, as_decimal
from ..errors import ConsistencyError
from .tick_math import tick_to_sqrt_price

if TYPE_CHECKING:
    from ..data.types import PoolState, Position, Tick

ZERO = Decimal(0)


class PendingFees(NamedTuple):
    """미수령 수수료 계산 결과"""
    amount_a: Decimal  # token A 미수령 수수료 (최소 단위)
    amount_b: Decimal  # token B 미수령 수수료 (최소 단위)
    fee_growth_inside_a: Decimal  # 현재 범위 내 fee growth token A
    fee_growth_inside_b: Decimal  # 현재 범위 내 fee growth token B


class LiquidityBand(NamedTuple):
    """같은 유동성이 유지되는 틱 구간"""
    lower_tick: int
    upper_tick: int
    liquidity: Decimal


@dataclass(frozen=True)
class LiquidityTable:
    """틱 배열의 유동성 분포 (depth 시각화용)"""
    bands: List[LiquidityBand]
    min_liquidity: Decimal
    max_liquidity: Decimal

    def to_frame(self) -> pd.DataFrame:
        """밴드를 DataFrame으로 변환

        Columns: lower_tick, upper_tick, liquidity
        """
        return pd.DataFrame(
            [band._asdict() for band in self.bands],
            columns=list(LiquidityBand._fields),
        )


def _crossed(tick_index: int, current_sqrt_price: Decimal, config: MathConfig) -> bool:
    return tick_to_sqrt_price(tick_index, config) < current_sqrt_price


def fee_growth_below(
    tick_index: int,
    current_sqrt_price: Numeric,
    fee_growth_global: Numeric,
    fee_growth_outside: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """틱 아래에서 발생한 수수료 성장률 (f_b)

    Args:
        tick_index: 틱 인덱스 (i)
        current_sqrt_price: 현재 √가격
        fee_growth_global: 전역 fee growth (f_g)
        fee_growth_outside: 틱의 fee growth outside (f_o)
    """
    fee_growth_global = as_decimal(fee_growth_global)
    fee_growth_outside = as_decimal(fee_growth_outside)
    if _crossed(tick_index, as_decimal(current_sqrt_price), config):
        return fee_growth_outside
    with localcontext(config.context()):
        return fee_growth_global - fee_growth_outside


def fee_growth_above(
    tick_index: int,
    current_sqrt_price: Numeric,
    fee_growth_global: Numeric,
    fee_growth_outside: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """틱 위에서 발생한 수수료 성장률 (f_a)"""
    fee_growth_global = as_decimal(fee_growth_global)
    fee_growth_outside = as_decimal(fee_growth_outside)
    if _crossed(tick_index, as_decimal(current_sqrt_price), config):
        with localcontext(config.context()):
            return fee_growth_global - fee_growth_outside
    return fee_growth_outside


def fee_growth_inside(
    tick_lower: int,
    tick_upper: int,
    current_sqrt_price: Numeric,
    fee_growth_global: Numeric,
    fee_growth_outside_lower: Numeric,
    fee_growth_outside_upper: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """범위 내 fee growth 계산 (f_r)

    공식:
        f_r = f_g - f_b(i_l) - f_a(i_u)

    Args:
        tick_lower: 하한 틱 (i_l)
        tick_upper: 상한 틱 (i_u)
        current_sqrt_price: 현재 √가격
        fee_growth_global: 전역 fee growth (f_g)
        fee_growth_outside_lower: 하한 틱의 fee growth outside (f_o(i_l))
        fee_growth_outside_upper: 상한 틱의 fee growth outside (f_o(i_u))

    Returns:
        범위 내 fee growth (f_r). 장부가 일관되면 음수가 아닙니다.
    """
    f_b = fee_growth_below(tick_lower, current_sqrt_price, fee_growth_global, fee_growth_outside_lower, config)
    f_a = fee_growth_above(tick_upper, current_sqrt_price, fee_growth_global, fee_growth_outside_upper, config)
    with localcontext(config.context()):
        return as_decimal(fee_growth_global) - f_b - f_a


def pending_fee(
    fee_growth_inside_current: Numeric,
    fee_growth_inside_last: Numeric,
    liquidity: Numeric,
    unclaimed_carry: Numeric = 0,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """미수령 수수료 계산 (f_u)

    공식:
        f_u = l × (f_r(t_1) - f_r(t_0)) + carry

    Returns:
        미수령 수수료 (ROUND_DOWN, 최소 단위)

    Raises:
        ConsistencyError: 결과가 음수인 경우 (오래된 스냅샷 등)
    """
    with localcontext(config.context()):
        delta = as_decimal(fee_growth_inside_current) - as_decimal(fee_growth_inside_last)
        fee = delta * as_decimal(liquidity) + as_decimal(unclaimed_carry)

    if fee < 0:
        raise ConsistencyError(
            f"미수령 수수료가 음수입니다: {fee} "
            f"(inside={fee_growth_inside_current}, last={fee_growth_inside_last})"
        )
    return fee.to_integral_value(rounding=ROUND_DOWN)


def pending_fees(
    position: "Position",
    lower_tick: "Tick",
    upper_tick: "Tick",
    pool: "PoolState",
    config: MathConfig = DEFAULT_CONFIG
) -> PendingFees:
    """두 토큰의 미수령 수수료 계산

    Args:
        position: 포지션 레코드
        lower_tick: 포지션 하한 틱 레코드
        upper_tick: 포지션 상한 틱 레코드
        pool: 풀 상태

    Returns:
        PendingFees: 미수령 수수료 및 현재 fee growth inside

    Raises:
        ConsistencyError: 틱 레코드가 포지션 경계와 다르거나 수수료가 음수인 경우
    """
    if lower_tick.tick_index != position.lower_tick or upper_tick.tick_index != position.upper_tick:
        raise ConsistencyError(
            f"틱 레코드 [{lower_tick.tick_index}, {upper_tick.tick_index}] 이(가) "
            f"포지션 범위 [{position.lower_tick}, {position.upper_tick}] 와 다릅니다"
        )

    inside_a = fee_growth_inside(
        position.lower_tick, position.upper_tick, pool.current_sqrt_price,
        pool.fee_growth_global_a,
        lower_tick.fee_growth_outside_a,
        upper_tick.fee_growth_outside_a,
        config
    )
    inside_b = fee_growth_inside(
        position.lower_tick, position.upper_tick, pool.current_sqrt_price,
        pool.fee_growth_global_b,
        lower_tick.fee_growth_outside_b,
        upper_tick.fee_growth_outside_b,
        config
    )

    return PendingFees(
        amount_a=pending_fee(inside_a, position.fee_growth_inside_a_last, position.liquidity,
                             position.token_a_fee, config),
        amount_b=pending_fee(inside_b, position.fee_growth_inside_b_last, position.liquidity,
                             position.token_b_fee, config),
        fee_growth_inside_a=inside_a,
        fee_growth_inside_b=inside_b,
    )


def liquidity_table(ticks: Sequence["Tick"]) -> LiquidityTable:
    """틱 배열을 한 번 순회하며 유동성 밴드 생성

    누적 유동성이 0인 구간은 밴드로 만들지 않습니다.
    min_liquidity는 0이 아닌 밴드 중 최소값입니다.
    """
    bands: List[LiquidityBand] = []
    min_liquidity = ZERO
    max_liquidity = ZERO
    amount = ZERO
    lower = None

    for tick in ticks:
        if amount == 0:
            lower = tick.tick_index
            amount = tick.liquidity_net
            continue

        bands.append(LiquidityBand(lower, tick.tick_index, amount))
        if min_liquidity == 0 or amount < min_liquidity:
            min_liquidity = amount
        if amount > max_liquidity:
            max_liquidity = amount

        amount += tick.liquidity_net
        lower = tick.tick_index

    return LiquidityTable(bands=bands, min_liquidity=min_liquidity, max_liquidity=max_liquidity)
