"""
Swap Math 테스트

두 밴드 틱 배열(conftest.book_ticks) 위에서 스왑 시뮬레이션을 검증합니다.
시작 가격은 틱 -100, 유동성 500 × 10^9 입니다.
"""

import dataclasses

import pytest
from decimal import Decimal

from ..config import MathConfig
from ..data.types import Tick
from ..errors import InvalidAmount, InvalidTickArray, OutOfTicks
from ..math.swap_math import (
    SwapDirection,
    compute_swap,
    price_impact,
    swap_a_to_b,
    swap_b_to_a,
)
from ..math.tick_math import tick_to_sqrt_price

START = tick_to_sqrt_price(-100)
LIQUIDITY = Decimal(500_000_000_000)
FEE = Decimal("0.003")


class TestSwapWithinBand:
    """틱을 넘지 않는 스왑"""

    def test_b_to_a_price_up(self, book_ticks):
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        assert result.after_sqrt_price > START
        assert result.after_liquidity == LIQUIDITY
        assert result.ticks_crossed == 0
        assert result.amount_out > 0

    def test_a_to_b_price_down(self, book_ticks):
        result = swap_a_to_b(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        assert result.after_sqrt_price < START
        assert result.after_liquidity == LIQUIDITY
        assert result.ticks_crossed == 0
        assert result.amount_out > 0

    def test_conservation(self, book_ticks):
        """amount_used = fee_used + 가격 이동에 쓰인 입력"""
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        assert result.amount_used == 1_000_000
        assert result.fee_used > 0
        assert result.amount_net == result.amount_used - result.fee_used

    def test_output_matches_price_move(self, book_ticks):
        """B→A 출력량은 Δ(1/√P) × L 의 내림"""
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        expected = LIQUIDITY / START - LIQUIDITY / result.after_sqrt_price
        assert result.amount_out <= expected < result.amount_out + 1

    def test_transaction_price(self, book_ticks):
        """체결 가격은 스왑 방향으로 불리함"""
        current_price = START * START
        sell = swap_a_to_b(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        buy = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        assert sell.transaction_price < current_price
        assert buy.transaction_price > current_price

    def test_fee_monotonic(self, book_ticks):
        """수수료율이 커지면 출력량은 줄거나 같음"""
        outs = [
            swap_b_to_a(book_ticks, START, LIQUIDITY, fee, 100_000_000).amount_out
            for fee in (Decimal(0), Decimal("0.003"), Decimal("0.01"))
        ]
        assert outs[0] >= outs[1] >= outs[2]

    def test_zero_fee(self, book_ticks):
        result = swap_a_to_b(book_ticks, START, LIQUIDITY, 0, 1_000_000)
        assert result.fee_used == 0


class TestSwapCrossingTicks:
    """틱 크로싱 테스트 (두 밴드 + 공백)"""

    def test_b_to_a_crosses_gap(self, book_ticks):
        """공백을 건너 두 번째 밴드에서 끝남"""
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 3_000_000_000)
        assert result.ticks_crossed == 2
        assert result.after_liquidity == Decimal(300_000_000_000)
        assert tick_to_sqrt_price(100) < result.after_sqrt_price < tick_to_sqrt_price(300)
        assert result.amount_used == 3_000_000_000

    def test_b_to_a_out_of_ticks(self, book_ticks):
        """모든 틱을 소진해도 입력이 남으면 OutOfTicks"""
        with pytest.raises(OutOfTicks) as exc_info:
            swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 10_000_000_000)

        partial = exc_info.value.partial
        assert partial is not None
        assert partial.ticks_crossed == 3
        assert partial.after_liquidity == 0
        assert partial.amount_out > 0
        assert 0 < partial.amount_used < 10_000_000_000
        assert partial.after_sqrt_price > tick_to_sqrt_price(300)

    def test_a_to_b_out_of_ticks(self, book_ticks):
        with pytest.raises(OutOfTicks) as exc_info:
            swap_a_to_b(book_ticks, START, LIQUIDITY, FEE, 10_000_000_000)

        partial = exc_info.value.partial
        assert partial.ticks_crossed == 1
        assert partial.after_liquidity == 0
        assert partial.after_sqrt_price < tick_to_sqrt_price(-200)

    def test_start_in_gap_b_to_a(self, book_ticks):
        """유동성 0에서 시작하면 입력 소비 없이 다음 경계로 이동"""
        result = swap_b_to_a(book_ticks, tick_to_sqrt_price(50), 0, FEE, 1_000_000)
        assert result.ticks_crossed == 1
        assert result.after_liquidity == Decimal(300_000_000_000)
        assert result.after_sqrt_price > tick_to_sqrt_price(100)
        assert result.amount_used == 1_000_000

    def test_start_in_gap_a_to_b(self, book_ticks):
        """A→B는 틱 0을 넘으며 liquidity_net(-500 × 10^9)을 뺌"""
        result = swap_a_to_b(book_ticks, tick_to_sqrt_price(50), 0, FEE, 1_000_000)
        assert result.ticks_crossed == 1
        assert result.after_liquidity == LIQUIDITY
        assert result.after_sqrt_price < 1

    def test_after_liquidity_is_sum_of_crossed_nets(self, book_ticks):
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 3_000_000_000)
        crossed = [t for t in book_ticks if START < t.sqrt_price() < result.after_sqrt_price]
        assert result.after_liquidity == LIQUIDITY + sum(t.liquidity_net for t in crossed)

    def test_direction_enum(self, book_ticks):
        by_enum = compute_swap(book_ticks, START, LIQUIDITY, FEE, 1_000_000, SwapDirection.B_TO_A)
        by_wrapper = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        assert by_enum == by_wrapper


class TestFractionalInput:
    """1 단위 미만 또는 소수 입력에서도 가격 이동 방향 유지"""

    @pytest.mark.parametrize("amount_in", [Decimal("0.5"), Decimal("0.001"), Decimal("1000.5")])
    def test_a_to_b_never_raises_price(self, book_ticks, amount_in):
        result = swap_a_to_b(book_ticks, START, LIQUIDITY, FEE, amount_in)
        assert result.after_sqrt_price <= START
        assert 0 <= result.fee_used <= result.amount_used
        assert result.amount_out >= 0

    @pytest.mark.parametrize("amount_in", [Decimal("0.5"), Decimal("0.001"), Decimal("1000.5")])
    def test_b_to_a_never_lowers_price(self, book_ticks, amount_in):
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, amount_in)
        assert result.after_sqrt_price >= START
        assert 0 <= result.fee_used <= result.amount_used
        assert result.amount_out >= 0

    def test_sub_unit_input_all_fee(self, book_ticks):
        """올림 수수료가 입력을 넘으면 입력 전체가 수수료"""
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, Decimal("0.5"))
        assert result.fee_used == Decimal("0.5")
        assert result.amount_net == 0
        assert result.amount_out == 0
        assert result.after_sqrt_price == START

    def test_sub_unit_impact_non_negative(self, book_ticks):
        result = swap_a_to_b(book_ticks, START, LIQUIDITY, FEE, Decimal("0.5"))
        impact_a, impact_b = price_impact(START, result.after_sqrt_price)
        assert impact_a >= 0
        assert impact_b >= 0
        assert result.amount_out == 0


class TestSwapConfig:
    """SwapResult 파생 값은 시뮬레이션 설정을 따름"""

    def test_result_carries_config(self, book_ticks):
        config = MathConfig(precision=80)
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000, config)
        assert result.config == config

    def test_after_price_uses_config(self, book_ticks):
        config = MathConfig(precision=80)
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000, config)
        assert len(result.after_price.as_tuple().digits) > 64

    def test_config_not_part_of_equality(self, book_ticks):
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        assert result == dataclasses.replace(result, config=MathConfig(precision=80))


class TestSwapPreconditions:
    """스왑 입력 검증"""

    def test_zero_amount(self, book_ticks):
        with pytest.raises(InvalidAmount):
            swap_a_to_b(book_ticks, START, LIQUIDITY, FEE, 0)

    def test_invalid_fee_rate(self, book_ticks):
        with pytest.raises(InvalidAmount):
            swap_a_to_b(book_ticks, START, LIQUIDITY, 1, 1000)

    def test_negative_liquidity(self, book_ticks):
        with pytest.raises(InvalidAmount):
            swap_a_to_b(book_ticks, START, -1, FEE, 1000)

    def test_unsorted_ticks(self, book_ticks):
        with pytest.raises(InvalidTickArray):
            swap_a_to_b(list(reversed(book_ticks)), START, LIQUIDITY, FEE, 1000)

    def test_empty_ticks(self):
        with pytest.raises(OutOfTicks):
            swap_a_to_b([], START, LIQUIDITY, FEE, 1000)

    def test_price_not_bracketed_b_to_a(self, book_ticks):
        """마지막 틱 이상에서 B→A는 시작할 수 없음"""
        with pytest.raises(OutOfTicks) as exc_info:
            swap_b_to_a(book_ticks, tick_to_sqrt_price(300), 0, FEE, 1000)
        assert exc_info.value.partial is None

    def test_price_not_bracketed_a_to_b(self, book_ticks):
        with pytest.raises(OutOfTicks):
            swap_a_to_b(book_ticks, tick_to_sqrt_price(-250), 0, FEE, 1000)

    def test_single_band_book(self):
        ticks = [Tick(-100, Decimal(10 ** 12)), Tick(100, Decimal(-10 ** 12))]
        result = swap_a_to_b(ticks, 1, 10 ** 12, FEE, 1_000_000)
        assert result.after_sqrt_price < 1
        assert result.after_price < 1


class TestPriceImpact:
    """price_impact 테스트"""

    def test_no_move(self):
        assert price_impact(1, 1) == (0, 0)

    def test_price_up(self):
        impact_a, impact_b = price_impact(1, tick_to_sqrt_price(200))
        # 1.0001^200 - 1 ≈ 0.0202
        assert Decimal("0.0201") < impact_a < Decimal("0.0203")
        assert Decimal("0.0197") < impact_b < Decimal("0.0199")

    def test_from_swap(self, book_ticks):
        result = swap_b_to_a(book_ticks, START, LIQUIDITY, FEE, 1_000_000)
        impact_a, impact_b = price_impact(START, result.after_sqrt_price)
        assert impact_a > 0
        assert impact_b > 0
