"""
Data layer for the pricing engine

원장 스냅샷 레코드 및 고정폭 정수 코덱
"""

from .types import Tick, PoolState, Position
from .codec import LedgerInt, decode, encode
