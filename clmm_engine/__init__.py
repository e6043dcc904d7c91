"""
Concentrated Liquidity Pricing Engine

원장 프로그램과 같은 Decimal 정밀도로 집중화된 유동성 풀의 스왑 견적,
유동성 ↔ 토큰 수량 변환, 포지션 수수료 정산을 계산하는 라이브러리.
"""

__version__ = "0.1.0"

from .config import MathConfig, DEFAULT_CONFIG
from .constants import MAX_TICK, MIN_TICK
from .errors import (
    EngineError,
    OutOfDomain,
    InvalidRange,
    InvalidSpacing,
    InvalidScale,
    InvalidWidth,
    RangeOverflow,
    OutOfTicks,
    ConsistencyError,
    InvalidTickArray,
    InvalidAmount,
    InvalidSlippage,
)
from .data.types import Tick, PoolState, Position
from .math.swap_math import SwapDirection, SwapResult
from .pool import PoolSnapshot, SwapQuote
