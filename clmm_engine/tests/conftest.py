"""
공통 테스트 fixture

두 개의 유동성 밴드를 가진 틱 배열:
    [-200, 0]   L = 500 × 10^9
    [0, 100]    L = 0 (공백)
    [100, 300]  L = 300 × 10^9
"""

from decimal import Decimal

import pytest

from ..data.types import PoolState, Position, Tick
from ..math.tick_math import tick_to_sqrt_price
from ..pool import PoolSnapshot


@pytest.fixture
def book_ticks():
    """두 밴드 틱 배열"""
    return [
        Tick(-200, Decimal(500_000_000_000), Decimal(500_000_000_000), Decimal(1), Decimal(0)),
        Tick(0, Decimal(-500_000_000_000), Decimal(500_000_000_000), Decimal(1), Decimal(0)),
        Tick(100, Decimal(300_000_000_000), Decimal(300_000_000_000)),
        Tick(300, Decimal(-300_000_000_000), Decimal(300_000_000_000)),
    ]


@pytest.fixture
def book_pool():
    """틱 -100에 있는 풀 (첫 번째 밴드 안)"""
    return PoolState(
        current_sqrt_price=tick_to_sqrt_price(-100),
        current_liquidity=Decimal(500_000_000_000),
        fee_rate=Decimal("0.003"),
        tick_spacing=4,
        fee_growth_global_a=Decimal(4),
        fee_growth_global_b=Decimal(0),
    )


@pytest.fixture
def book_position():
    """첫 번째 밴드 전체를 덮는 포지션"""
    return Position(
        lower_tick=-200,
        upper_tick=0,
        liquidity=Decimal(10),
        position_id="p1",
    )


@pytest.fixture
def snapshot(book_pool, book_ticks, book_position):
    return PoolSnapshot(book_pool, book_ticks, [book_position])
