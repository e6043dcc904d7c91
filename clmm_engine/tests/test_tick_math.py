"""
Tick Math 테스트

tick_math.py의 함수들을 테스트합니다.
원장 프로그램의 계산 결과와 비교하여 정확도를 검증합니다.
"""

import pytest
from decimal import Decimal, ROUND_HALF_UP

from ..constants import MAX_TICK, MIN_TICK
from ..errors import InvalidRange, InvalidSpacing, OutOfDomain
from ..math.tick_math import (
    check_tick_range,
    domain_bounds,
    lamport_price_to_ui_price,
    nearest_valid_tick_by_price,
    nearest_valid_tick_by_sqrt_price,
    nearest_valid_tick_by_ui_price,
    price_to_tick,
    round_tick_to_spacing,
    sqrt_price_to_tick,
    tick_to_price,
    tick_to_sqrt_price,
    ui_price_to_lamport_price,
)


class TestTickToSqrtPrice:
    """tick_to_sqrt_price 테스트"""

    def test_tick_0(self):
        """틱 0에서의 sqrtPrice (price = 1)"""
        assert tick_to_sqrt_price(0) == 1

    def test_positive_tick(self):
        """1.0001^10 을 소수 15자리까지"""
        result = tick_to_sqrt_price(20)
        assert result.quantize(Decimal("1e-15")) == Decimal("1.001000450120021")

    def test_negative_tick(self):
        """원장 값과 비교 (소수 15자리, HALF_UP)"""
        result = tick_to_sqrt_price(-20000)
        assert result.quantize(Decimal("1e-15"), rounding=ROUND_HALF_UP) == Decimal("0.367897834377124")

    def test_domain_bounds(self):
        """MIN/MAX 틱에서의 sqrtPrice"""
        min_sqrt, max_sqrt, min_price, max_price = domain_bounds()
        assert tick_to_sqrt_price(MIN_TICK) == min_sqrt
        assert tick_to_sqrt_price(MAX_TICK) == max_sqrt
        assert tick_to_price(MAX_TICK) == max_price
        assert abs(max_sqrt / Decimal("4294027728.7238701638") - 1) < Decimal("1e-15")
        assert abs(min_sqrt / Decimal("2.3288158884274069273608478048194e-10") - 1) < Decimal("1e-15")
        assert min_price < 1 < max_price

    def test_invalid_tick_too_low(self):
        """유효 범위를 벗어난 틱 (너무 낮음)"""
        with pytest.raises(OutOfDomain):
            tick_to_sqrt_price(MIN_TICK - 1)

    def test_invalid_tick_too_high(self):
        """유효 범위를 벗어난 틱 (너무 높음)"""
        with pytest.raises(OutOfDomain):
            tick_to_price(MAX_TICK + 1)

    def test_monotonic(self):
        """틱이 커지면 가격도 커짐"""
        for tick in [-443000, -1000, -1, 0, 1, 1000, 443000]:
            assert tick_to_sqrt_price(tick) < tick_to_sqrt_price(tick + 1)
            assert tick_to_price(tick) < tick_to_price(tick + 1)


class TestSqrtPriceToTick:
    """sqrt_price_to_tick 테스트"""

    def test_known_values(self):
        """원장 값 비교"""
        assert sqrt_price_to_tick(Decimal("1.0006001500200015")) == 12
        assert sqrt_price_to_tick(Decimal("0.3678978343771642")) == -20000

    def test_sqrt_price_1(self):
        assert sqrt_price_to_tick(1) == 0

    def test_roundtrip(self):
        """틱 -> sqrtPrice -> 틱 왕복 테스트 (경계 포함)"""
        for tick in [MIN_TICK, -50000, -20000, -1, 0, 1, 12, 50000, MAX_TICK]:
            assert sqrt_price_to_tick(tick_to_sqrt_price(tick)) == tick

    def test_invalid_sqrt_price_zero(self):
        """sqrtPrice 0은 유효하지 않음"""
        with pytest.raises(OutOfDomain):
            sqrt_price_to_tick(0)

    def test_invalid_sqrt_price_too_high(self):
        _, max_sqrt, _, _ = domain_bounds()
        with pytest.raises(OutOfDomain):
            sqrt_price_to_tick(max_sqrt * 2)

    def test_out_of_domain_is_value_error(self):
        """OutOfDomain은 ValueError로도 잡힘"""
        with pytest.raises(ValueError):
            sqrt_price_to_tick(-1)


class TestPriceToTick:
    """price_to_tick 테스트"""

    def test_price_1(self):
        assert price_to_tick(1) == 0

    def test_float_input(self):
        """float 입력은 문자열을 거쳐 변환"""
        assert price_to_tick(1.0001) == 1

    def test_roundtrip(self):
        """틱 -> 가격 -> 틱 왕복 테스트"""
        for tick in [MIN_TICK, -1000, -7, 0, 7, 1000, MAX_TICK]:
            assert price_to_tick(tick_to_price(tick)) == tick

    def test_invalid_price_negative(self):
        """음수 가격은 유효하지 않음"""
        with pytest.raises(OutOfDomain):
            price_to_tick(-1.0)


class TestRoundTickToSpacing:
    """round_tick_to_spacing 테스트

    격자는 0이 아니라 MIN_TICK(-443632)에서 시작합니다.
    spacing 60이면 유효 틱은 ... -52, 8, 68, ... 입니다.
    """

    def test_anchor_at_min_tick(self):
        """가격 1 (틱 0) → spacing 60 에서 8"""
        assert round_tick_to_spacing(0, 60) == 8
        assert nearest_valid_tick_by_price(1, 60) == 8
        assert nearest_valid_tick_by_sqrt_price(1, 60) == 8

    def test_already_aligned(self):
        """이미 정렬된 틱"""
        assert round_tick_to_spacing(8, 60) == 8
        assert round_tick_to_spacing(-52, 60) == -52
        assert round_tick_to_spacing(MIN_TICK, 60) == MIN_TICK

    def test_round_nearest(self):
        """가장 가까운 틱으로"""
        assert round_tick_to_spacing(37, 60) == 8
        assert round_tick_to_spacing(39, 60) == 68
        assert round_tick_to_spacing(-20, 60) == 8
        assert round_tick_to_spacing(-23, 60) == -52

    def test_tie_rounds_up(self):
        """정확히 중간이면 큰 쪽"""
        assert round_tick_to_spacing(38, 60) == 68
        assert round_tick_to_spacing(2, 4) == 4
        assert round_tick_to_spacing(-2, 4) == 0

    def test_spacing_divides_anchor(self):
        """spacing 4는 443632를 나누므로 격자가 0을 포함"""
        assert round_tick_to_spacing(0, 4) == 0
        assert round_tick_to_spacing(1, 4) == 0
        assert round_tick_to_spacing(-101, 4) == -100

    def test_clamped_below_max_tick(self):
        """MAX_TICK을 넘으면 한 칸 아래"""
        result = round_tick_to_spacing(MAX_TICK, 60)
        assert result == 443588
        assert result <= MAX_TICK

    @pytest.mark.parametrize("spacing", [0, -1, 1.5, True])
    def test_invalid_spacing(self, spacing):
        """양의 정수가 아닌 spacing"""
        with pytest.raises(InvalidSpacing):
            round_tick_to_spacing(0, spacing)
        with pytest.raises(InvalidSpacing):
            nearest_valid_tick_by_price(1, spacing)


class TestCheckTickRange:
    """check_tick_range 테스트"""

    def test_valid(self):
        check_tick_range(-100, 100)
        check_tick_range(8, 68, 60)

    def test_lower_not_below_upper(self):
        with pytest.raises(InvalidRange):
            check_tick_range(10, 10)
        with pytest.raises(InvalidRange):
            check_tick_range(20, 10)

    def test_not_on_spacing_grid(self):
        """0은 spacing 60 격자 위에 있지 않음"""
        with pytest.raises(InvalidRange):
            check_tick_range(0, 68, 60)

    def test_out_of_domain(self):
        with pytest.raises(OutOfDomain):
            check_tick_range(MIN_TICK - 1, 0)


class TestUiPrice:
    """UI 가격 ↔ 원장 가격 변환 테스트"""

    def test_ui_to_lamport(self):
        """decimals 9 / 6: 2000 → 2"""
        assert ui_price_to_lamport_price(Decimal("2000"), 9, 6) == 2

    def test_lamport_to_ui(self):
        assert lamport_price_to_ui_price(Decimal(2), 9, 6) == 2000

    def test_roundtrip(self):
        price = Decimal("153.27")
        lamport = ui_price_to_lamport_price(price, 9, 6)
        assert lamport_price_to_ui_price(lamport, 9, 6) == price

    def test_nearest_tick_by_ui_price(self):
        """UI 가격 1000, decimals 9 / 6 → 원장 가격 1 → 틱 8 (spacing 60)"""
        assert nearest_valid_tick_by_ui_price(1000, 9, 6, 60) == 8
