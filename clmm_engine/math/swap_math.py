"""
Swap Math - 틱 배열을 따라가는 스왑 시뮬레이션

정렬된 틱 배열 위에서 한 방향 거래를 단계별로 계산합니다.
각 단계는 다음 틱 경계까지 이동하거나, 입력이 소진되면 그 안에서 끝납니다.

핵심 공식:
    A→B (가격 하락):  √P_after = L / (Δa + L / √P)
    B→A (가격 상승):  √P_after = Δb / L + √P

수수료 규칙:
    전체 단계:  max_in(ROUND_UP) + max_in × fee(ROUND_DOWN) 소비
    마지막 단계: fee = min(remaining × fee / (1 + fee) (ROUND_UP), remaining), 나머지가 가격 이동
    출력량은 항상 ROUND_DOWN
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN, ROUND_UP, localcontext
from enum import Enum
from typing import Optional, Sequence, Tuple, TYPE_CHECKING

from ..config import DEFAULT_CONFIG, MathConfig, Numeric, as_decimal
from ..errors import ConsistencyError, InvalidAmount, OutOfTicks
from .liquidity_math import amount_a_delta, amount_b_delta
from .tick_math import check_ticks_sorted, tick_to_sqrt_price

if TYPE_CHECKING:
    from ..data.types import Tick

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
ONE = Decimal(1)


class SwapDirection(Enum):
    """스왑 방향"""
    A_TO_B = "a_to_b"  # token A 입력, 가격 하락
    B_TO_A = "b_to_a"  # token B 입력, 가격 상승


@dataclass(frozen=True)
class SwapResult:
    """스왑 시뮬레이션 결과

    - amount_out: 받는 토큰 수량
    - amount_used: 사용한 입력 수량 (수수료 포함)
    - fee_used: 수수료 부분
    - after_sqrt_price / after_liquidity: 스왑 후 풀 상태
    - ticks_crossed: 넘은 틱 수
    - config: 시뮬레이션에 사용한 정밀도 설정 (파생 값 계산에도 사용)
    """
    direction: SwapDirection
    amount_out: Decimal
    amount_used: Decimal
    fee_used: Decimal
    after_sqrt_price: Decimal
    after_liquidity: Decimal
    ticks_crossed: int = 0
    config: MathConfig = field(default=DEFAULT_CONFIG, repr=False, compare=False)

    @property
    def after_price(self) -> Decimal:
        with localcontext(self.config.context()):
            return self.after_sqrt_price * self.after_sqrt_price

    @property
    def amount_net(self) -> Decimal:
        """가격 이동에 쓰인 입력 (amount_used - fee_used)"""
        return self.amount_used - self.fee_used

    @property
    def transaction_price(self) -> Decimal:
        """실제 체결 가격 (B per A)

        스왑 후 순간 가격(after_price)과는 다릅니다.
        """
        if self.amount_used == 0 or self.amount_out == 0:
            return ZERO
        with localcontext(self.config.context()):
            if self.direction == SwapDirection.A_TO_B:
                return self.amount_out / self.amount_used
            return self.amount_used / self.amount_out


def _check_inputs(
    ticks: Sequence["Tick"],
    current_sqrt_price: Decimal,
    current_liquidity: Decimal,
    fee_rate: Decimal,
    amount_in: Decimal,
    direction: SwapDirection,
    config: MathConfig
) -> None:
    if amount_in <= 0:
        raise InvalidAmount(f"입력 수량은 양수여야 합니다: {amount_in}")
    if current_liquidity < 0:
        raise InvalidAmount(f"현재 유동성은 음수일 수 없습니다: {current_liquidity}")
    if fee_rate < 0 or fee_rate >= 1:
        raise InvalidAmount(f"fee_rate는 [0, 1) 범위여야 합니다: {fee_rate}")

    check_ticks_sorted(ticks)
    if not ticks:
        raise OutOfTicks("틱 배열이 비어 있습니다")

    if direction == SwapDirection.A_TO_B:
        first = tick_to_sqrt_price(ticks[0].tick_index, config)
        if current_sqrt_price <= first:
            raise OutOfTicks(
                f"현재 √가격 {current_sqrt_price} 이(가) 첫 틱 {ticks[0].tick_index} 위에 있지 않습니다"
            )
    else:
        last = tick_to_sqrt_price(ticks[-1].tick_index, config)
        if current_sqrt_price >= last:
            raise OutOfTicks(
                f"현재 √가격 {current_sqrt_price} 이(가) 마지막 틱 {ticks[-1].tick_index} 아래에 있지 않습니다"
            )


def _next_boundary(
    ticks: Sequence["Tick"],
    sqrt_prices: Sequence[Decimal],
    running: Decimal,
    direction: SwapDirection
) -> Optional[Tuple["Tick", Decimal]]:
    """진행 방향의 다음 틱 경계

    A→B: √가격이 running 이하인 가장 큰 틱
    B→A: √가격이 running 보다 큰 가장 작은 틱
    """
    if direction == SwapDirection.A_TO_B:
        for tick, sqrt_price in zip(reversed(ticks), reversed(sqrt_prices)):
            if sqrt_price <= running:
                return tick, sqrt_price
        return None

    for tick, sqrt_price in zip(ticks, sqrt_prices):
        if sqrt_price > running:
            return tick, sqrt_price
    return None


def compute_swap(
    ticks: Sequence["Tick"],
    current_sqrt_price: Numeric,
    current_liquidity: Numeric,
    fee_rate: Numeric,
    amount_in: Numeric,
    direction: SwapDirection,
    config: MathConfig = DEFAULT_CONFIG
) -> SwapResult:
    """스왑 시뮬레이션

    Args:
        ticks: tick_index 오름차순 틱 배열
        current_sqrt_price: 현재 √가격
        current_liquidity: 현재 활성 유동성
        fee_rate: 수수료율 (예: 0.003)
        amount_in: 입력 수량 (수수료 포함)
        direction: 스왑 방향

    Returns:
        SwapResult

    Raises:
        InvalidAmount: 입력 수량/유동성/수수료율이 잘못된 경우
        InvalidTickArray: 틱 배열이 정렬되지 않은 경우
        OutOfTicks: 현재 가격이 틱 배열 안에 있지 않거나, 틱을 모두
            소진해도 입력이 남는 경우 (partial에 누적 결과 포함)
        ConsistencyError: 틱을 넘은 뒤 유동성이 음수가 되는 경우
    """
    running = as_decimal(current_sqrt_price)
    liquidity = as_decimal(current_liquidity)
    fee_rate = as_decimal(fee_rate)
    remaining = as_decimal(amount_in)
    _check_inputs(ticks, running, liquidity, fee_rate, remaining, direction, config)

    a_to_b = direction == SwapDirection.A_TO_B
    sqrt_prices = [tick_to_sqrt_price(t.tick_index, config) for t in ticks]
    epsilon = config.epsilon

    amount_out = ZERO
    amount_used = ZERO
    fee_used = ZERO
    ticks_crossed = 0

    def snapshot() -> SwapResult:
        return SwapResult(
            direction=direction,
            amount_out=amount_out,
            amount_used=amount_used,
            fee_used=fee_used,
            after_sqrt_price=running,
            after_liquidity=liquidity,
            ticks_crossed=ticks_crossed,
            config=config,
        )

    with localcontext(config.context()):
        while remaining > 0:
            boundary = _next_boundary(ticks, sqrt_prices, running, direction)
            if boundary is None:
                raise OutOfTicks(
                    f"틱 배열을 모두 소진했지만 입력 {remaining} 이(가) 남았습니다",
                    partial=snapshot(),
                )
            tick, boundary_sqrt = boundary

            if liquidity == 0:
                # 유동성 공백: 입력 소비 없이 경계로 이동
                logger.debug("유동성 0 구간 통과: tick=%d", tick.tick_index)
            else:
                if a_to_b:
                    max_in = amount_a_delta(boundary_sqrt, running, liquidity, ROUND_UP, config)
                else:
                    max_in = amount_b_delta(running, boundary_sqrt, liquidity, ROUND_UP, config)
                step_fee = (max_in * fee_rate).to_integral_value(rounding=ROUND_DOWN)

                if remaining < max_in + step_fee:
                    # 1 단위 미만 입력에서도 수수료가 입력을 넘지 않도록 remaining으로 제한
                    fee = min(
                        (remaining * fee_rate / (ONE + fee_rate)).to_integral_value(rounding=ROUND_UP),
                        remaining,
                    )
                    net = remaining - fee
                    # 가격은 [boundary, running] 구간 밖으로 나가지 않음
                    if a_to_b:
                        after = min(max(liquidity / (net + liquidity / running), boundary_sqrt), running)
                        out = amount_b_delta(after, running, liquidity, ROUND_DOWN, config)
                    else:
                        after = max(min(net / liquidity + running, boundary_sqrt), running)
                        out = amount_a_delta(running, after, liquidity, ROUND_DOWN, config)

                    logger.debug(
                        "마지막 단계: in=%s fee=%s out=%s sqrt_price %s -> %s",
                        remaining, fee, out, running, after
                    )
                    amount_out += out
                    amount_used += remaining
                    fee_used += fee
                    running = after
                    remaining = ZERO
                    break

                if a_to_b:
                    out = amount_b_delta(boundary_sqrt, running, liquidity, ROUND_DOWN, config)
                else:
                    out = amount_a_delta(running, boundary_sqrt, liquidity, ROUND_DOWN, config)

                logger.debug(
                    "전체 단계: tick=%d in=%s fee=%s out=%s",
                    tick.tick_index, max_in, step_fee, out
                )
                amount_out += out
                amount_used += max_in + step_fee
                fee_used += step_fee
                remaining -= max_in + step_fee

            # 틱 크로싱: A→B는 liquidity_net을 빼고, B→A는 더함
            if a_to_b:
                liquidity -= tick.liquidity_net
                running = boundary_sqrt - epsilon
            else:
                liquidity += tick.liquidity_net
                running = boundary_sqrt + epsilon
            ticks_crossed += 1

            if liquidity < 0:
                raise ConsistencyError(
                    f"틱 {tick.tick_index} 을(를) 넘은 뒤 유동성이 음수입니다: {liquidity}"
                )

    return snapshot()


def swap_a_to_b(
    ticks: Sequence["Tick"],
    current_sqrt_price: Numeric,
    current_liquidity: Numeric,
    fee_rate: Numeric,
    amount_in: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> SwapResult:
    """token A를 넣고 token B를 받는 스왑"""
    return compute_swap(
        ticks, current_sqrt_price, current_liquidity, fee_rate, amount_in,
        SwapDirection.A_TO_B, config
    )


def swap_b_to_a(
    ticks: Sequence["Tick"],
    current_sqrt_price: Numeric,
    current_liquidity: Numeric,
    fee_rate: Numeric,
    amount_in: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> SwapResult:
    """token B를 넣고 token A를 받는 스왑"""
    return compute_swap(
        ticks, current_sqrt_price, current_liquidity, fee_rate, amount_in,
        SwapDirection.B_TO_A, config
    )


def price_impact(
    current_sqrt_price: Numeric,
    after_sqrt_price: Numeric,
    config: MathConfig = DEFAULT_CONFIG
) -> Tuple[Decimal, Decimal]:
    """가격 영향 (impact_a, impact_b)

    impact_a = |P_after / P_current - 1|  (B per A 기준)
    impact_b = |P_current / P_after - 1|  (A per B 기준)
    """
    current = as_decimal(current_sqrt_price)
    after = as_decimal(after_sqrt_price)
    with localcontext(config.context()):
        current_price = current * current
        after_price = after * after
        return abs(after_price / current_price - ONE), abs(current_price / after_price - ONE)
