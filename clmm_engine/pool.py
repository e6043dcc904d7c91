"""
Pool Snapshot - 한 시점의 풀 데이터 묶음

한 번의 원장 조회로 얻은 (PoolState, ticks, positions)을 묶어
유동성/포지션/스왑 견적을 제공합니다. 서로 다른 시점의 풀 상태와
틱 배열을 섞으면 결과가 틀어지므로 반드시 같은 조회에서 가져와야 합니다.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, NamedTuple, Optional, Tuple

from .config import DEFAULT_CONFIG, MathConfig, Numeric
from .data.types import PoolState, Position, Tick
from .errors import ConsistencyError
from .math.fee_math import LiquidityTable, PendingFees, liquidity_table, pending_fees
from .math.liquidity_math import (
    LiquidityQuote,
    SlippageAmounts,
    TokenAmounts,
    liquidity_for_token_a,
    liquidity_for_token_b,
    slippage_amounts,
    token_amounts_for_liquidity,
)
from .math.swap_math import SwapResult, price_impact, swap_a_to_b, swap_b_to_a
from .math.tick_math import check_tick_range, check_ticks_sorted, nearest_valid_tick_by_price

logger = logging.getLogger(__name__)


class SwapQuote(NamedTuple):
    """스왑 견적"""
    result: SwapResult
    impact_a: Decimal  # |P_after / P_current - 1|
    impact_b: Decimal  # |P_current / P_after - 1|
    transaction_price: Decimal  # 체결 가격 (B per A)


class PoolSnapshot:
    """풀 스냅샷

    사용법:
        snapshot = PoolSnapshot(pool, ticks, positions)
        quote = snapshot.liquidity_by_token_a(-120, 120, 1_000_000)
        swap = snapshot.quote_swap_a_to_b(50_000)
    """

    def __init__(
        self,
        pool: PoolState,
        ticks: Iterable[Tick],
        positions: Iterable[Position] = (),
        config: MathConfig = DEFAULT_CONFIG
    ):
        """
        Args:
            pool: 풀 상태
            ticks: tick_index 오름차순 틱 배열
            positions: 포지션 레코드
            config: Decimal 연산 설정

        Raises:
            InvalidTickArray: 틱 배열이 정렬되지 않은 경우
        """
        self.pool = pool
        self.ticks: Tuple[Tick, ...] = tuple(ticks)
        self.positions: Tuple[Position, ...] = tuple(positions)
        self.config = config

        check_ticks_sorted(self.ticks)
        self._tick_by_index: Dict[int, Tick] = {t.tick_index: t for t in self.ticks}
        self._position_by_id: Dict[str, Position] = {
            p.position_id: p for p in self.positions if p.position_id
        }

    def get_tick(self, tick_index: int) -> Optional[Tick]:
        return self._tick_by_index.get(tick_index)

    def get_position(self, position_id: str) -> Optional[Position]:
        return self._position_by_id.get(position_id)

    def _boundary_tick(self, tick_index: int) -> Tick:
        tick = self.get_tick(tick_index)
        if tick is None:
            raise ConsistencyError(f"포지션 경계 틱 {tick_index} 이(가) 스냅샷에 없습니다")
        return tick

    def liquidity_by_token_a(self, tick_lower: int, tick_upper: int, amount_a: Numeric) -> LiquidityQuote:
        """token A 희망 수량으로 유동성 및 필요한 token B 계산

        Raises:
            InvalidRange: 범위가 tick spacing과 맞지 않거나 token A로 채울 수 없는 경우
        """
        check_tick_range(tick_lower, tick_upper, self.pool.tick_spacing)
        return liquidity_for_token_a(
            tick_lower, tick_upper, amount_a, self.pool.current_sqrt_price, self.config
        )

    def liquidity_by_token_b(self, tick_lower: int, tick_upper: int, amount_b: Numeric) -> LiquidityQuote:
        """token B 희망 수량으로 유동성 및 필요한 token A 계산"""
        check_tick_range(tick_lower, tick_upper, self.pool.tick_spacing)
        return liquidity_for_token_b(
            tick_lower, tick_upper, amount_b, self.pool.current_sqrt_price, self.config
        )

    def position_value(self, position: Position) -> TokenAmounts:
        """현재 가격에서 포지션이 보유한 토큰 수량"""
        return token_amounts_for_liquidity(
            position.lower_tick, position.upper_tick, position.liquidity,
            self.pool.current_sqrt_price, config=self.config
        )

    def position_slippage(self, position: Position, slippage: Numeric) -> SlippageAmounts:
        """슬리피지를 반영한 포지션 토큰 수량 범위 (출금 최소 수량 계산용)"""
        return slippage_amounts(
            position.lower_tick, position.upper_tick, position.liquidity,
            self.pool.current_sqrt_price, slippage, self.config
        )

    def pending_fees(self, position: Position) -> PendingFees:
        """포지션의 미수령 수수료

        Raises:
            ConsistencyError: 경계 틱이 스냅샷에 없거나 수수료가 음수인 경우
        """
        lower = self._boundary_tick(position.lower_tick)
        upper = self._boundary_tick(position.upper_tick)
        return pending_fees(position, lower, upper, self.pool, self.config)

    def _quote(self, result: SwapResult) -> SwapQuote:
        impact_a, impact_b = price_impact(
            self.pool.current_sqrt_price, result.after_sqrt_price, self.config
        )
        logger.debug(
            "스왑 견적: out=%s used=%s fee=%s ticks_crossed=%d",
            result.amount_out, result.amount_used, result.fee_used, result.ticks_crossed
        )
        return SwapQuote(
            result=result,
            impact_a=impact_a,
            impact_b=impact_b,
            transaction_price=result.transaction_price,
        )

    def quote_swap_a_to_b(self, amount_in: Numeric) -> SwapQuote:
        """token A → token B 스왑 견적

        Raises:
            OutOfTicks: 틱 배열의 유동성이 부족한 경우
        """
        result = swap_a_to_b(
            self.ticks, self.pool.current_sqrt_price, self.pool.current_liquidity,
            self.pool.fee_rate, amount_in, self.config
        )
        return self._quote(result)

    def quote_swap_b_to_a(self, amount_in: Numeric) -> SwapQuote:
        """token B → token A 스왑 견적"""
        result = swap_b_to_a(
            self.ticks, self.pool.current_sqrt_price, self.pool.current_liquidity,
            self.pool.fee_rate, amount_in, self.config
        )
        return self._quote(result)

    def nearest_tick_by_price(self, price: Numeric) -> int:
        """가격에 가장 가까운 유효 틱 (이 풀의 tick spacing 기준)"""
        return nearest_valid_tick_by_price(price, self.pool.tick_spacing, self.config)

    def liquidity_table(self) -> LiquidityTable:
        return liquidity_table(self.ticks)
