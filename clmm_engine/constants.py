"""
CLMM 엔진 상수 정의

온체인 프로그램과 동일한 결과를 내기 위한 상수들:
- BASE: 틱 하나당 가격 배율 (1 basis point)
- MIN_TICK / MAX_TICK: 유효 틱 범위
- *_SCALE: 원장 정수 ↔ Decimal 변환 시 사용하는 10의 거듭제곱 지수
- CODEC_WIDTHS: 지원하는 고정폭 정수 비트 수
"""

from decimal import Decimal
from typing import Tuple

# price = BASE ** tick
BASE: Decimal = Decimal("1.0001")

# 틱 범위 상수 (대칭)
MAX_TICK: int = 443632
MIN_TICK: int = -MAX_TICK

# 원장 계정 필드별 스케일 (wire 정수 = value × 10^scale)
SQRT_PRICE_SCALE: int = 12
FEE_RATE_SCALE: int = 12
FEE_GROWTH_SCALE: int = 16
LIQUIDITY_SCALE: int = 0
AMOUNT_SCALE: int = 0

# 코덱 제약
CODEC_WIDTHS: Tuple[int, ...] = (64, 128)
MAX_SCALE: int = 40

