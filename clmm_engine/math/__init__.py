"""
Math layer for the pricing engine

원장과 같은 정밀도의 수학 함수들:
- tick_math: Tick ↔ Price 변환, 유효 틱 반올림
- liquidity_math: 유동성 ↔ 토큰 수량
- swap_math: 틱 배열 위 스왑 시뮬레이션
- fee_math: 포지션 수수료 정산, 유동성 분포
"""

from .tick_math import (
    tick_to_sqrt_price,
    tick_to_price,
    sqrt_price_to_tick,
    price_to_tick,
    round_tick_to_spacing,
    nearest_valid_tick_by_price,
    nearest_valid_tick_by_sqrt_price,
)
from .liquidity_math import (
    amount_a_delta,
    amount_b_delta,
    liquidity_for_token_a,
    liquidity_for_token_b,
    liquidity_for_amounts,
    token_amounts_for_liquidity,
    slippage_amounts,
)
from .swap_math import (
    SwapDirection,
    SwapResult,
    compute_swap,
    swap_a_to_b,
    swap_b_to_a,
    price_impact,
)
from .fee_math import (
    fee_growth_inside,
    pending_fee,
    pending_fees,
    liquidity_table,
)
