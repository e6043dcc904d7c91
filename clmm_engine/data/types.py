"""
CLMM 데이터 타입 정의

원장 계정 리더가 디코딩해 넘겨주는 스냅샷 레코드를 dataclass로 정의.
모든 레코드는 불변이며, 엔진은 이를 수정하지 않습니다.
숫자 필드는 생성 시 Decimal로 정규화됩니다.
"""

from dataclasses import dataclass, fields
from decimal import Decimal, localcontext

from ..config import DEFAULT_CONFIG, MathConfig, as_decimal
from ..errors import InvalidAmount, InvalidRange
from ..math.tick_math import check_tick_spacing, sqrt_price_to_tick, tick_to_sqrt_price


def _normalize_decimals(record) -> None:
    # frozen dataclass이므로 object.__setattr__ 사용
    for f in fields(record):
        value = getattr(record, f.name)
        if f.type in (Decimal, "Decimal"):
            object.__setattr__(record, f.name, as_decimal(value))


@dataclass(frozen=True)
class Tick:
    """Tick-Indexed State

    - tick_index: 틱 인덱스
    - liquidity_net: 왼쪽→오른쪽으로 크로싱할 때 적용되는 유동성 변화량 (ΔL)
    - liquidity_gross: 이 틱을 경계로 참조하는 총 유동성 (항상 ≥ 0)
    - fee_growth_outside_a/b: 틱 바깥쪽 누적 수수료 성장률 (f_o)
    """
    tick_index: int
    liquidity_net: Decimal
    liquidity_gross: Decimal = Decimal(0)
    fee_growth_outside_a: Decimal = Decimal(0)
    fee_growth_outside_b: Decimal = Decimal(0)

    def __post_init__(self):
        _normalize_decimals(self)
        if self.liquidity_gross < 0:
            raise InvalidAmount(f"liquidity_gross는 음수일 수 없습니다: {self.liquidity_gross}")

    def sqrt_price(self, config: MathConfig = DEFAULT_CONFIG) -> Decimal:
        """틱 인덱스에서 유도한 √가격 (tick_math에서 설정별로 캐시)"""
        return tick_to_sqrt_price(self.tick_index, config)

    @classmethod
    def from_dict(cls, data: dict) -> "Tick":
        return cls(
            tick_index=int(data["tickIndex"]),
            liquidity_net=as_decimal(data.get("liquidityNet", 0)),
            liquidity_gross=as_decimal(data.get("liquidityGross", 0)),
            fee_growth_outside_a=as_decimal(data.get("feeGrowthOutsideA", 0)),
            fee_growth_outside_b=as_decimal(data.get("feeGrowthOutsideB", 0)),
        )


@dataclass(frozen=True)
class PoolState:
    """Pool Global State

    - current_sqrt_price: 현재 √가격
    - current_liquidity: 현재 가격에서 활성화된 유동성 (현재 가격 이하 틱들의
      liquidity_net 합과 같아야 함)
    - fee_rate: 수수료율 (예: 0.003)
    - fee_growth_global_a/b: 단위 유동성당 누적 수수료 (f_g)
    - tick_spacing: 포지션 경계로 쓸 수 있는 틱 간격
    """
    current_sqrt_price: Decimal
    current_liquidity: Decimal
    fee_rate: Decimal
    tick_spacing: int
    fee_growth_global_a: Decimal = Decimal(0)
    fee_growth_global_b: Decimal = Decimal(0)

    def __post_init__(self):
        _normalize_decimals(self)
        check_tick_spacing(self.tick_spacing)
        if self.current_liquidity < 0:
            raise InvalidAmount(f"current_liquidity는 음수일 수 없습니다: {self.current_liquidity}")
        if self.fee_rate < 0 or self.fee_rate >= 1:
            raise InvalidAmount(f"fee_rate는 [0, 1) 범위여야 합니다: {self.fee_rate}")

    def current_price(self, config: MathConfig = DEFAULT_CONFIG) -> Decimal:
        with localcontext(config.context()):
            return self.current_sqrt_price * self.current_sqrt_price

    def current_tick(self, config: MathConfig = DEFAULT_CONFIG) -> int:
        return sqrt_price_to_tick(self.current_sqrt_price, config)

    @classmethod
    def from_dict(cls, data: dict) -> "PoolState":
        return cls(
            current_sqrt_price=as_decimal(data["currentSqrtPrice"]),
            current_liquidity=as_decimal(data.get("currentLiquidity", 0)),
            fee_rate=as_decimal(data["fee"]),
            tick_spacing=int(data["tickSpacing"]),
            fee_growth_global_a=as_decimal(data.get("feeGrowthGlobalA", 0)),
            fee_growth_global_b=as_decimal(data.get("feeGrowthGlobalB", 0)),
        )


@dataclass(frozen=True)
class Position:
    """Position-Indexed State

    - lower_tick / upper_tick: 포지션 범위 (lower < upper)
    - liquidity: 포지션 유동성 (l ≥ 0). 0이 되어도 레코드는 남습니다.
    - fee_growth_inside_a/b_last: 마지막 유동성 변경/수령 시점의 범위 내 수수료 (f_r(t_0))
    - token_a/b_fee: 이미 적립되었지만 아직 수령하지 않은 수수료
    """
    lower_tick: int
    upper_tick: int
    liquidity: Decimal
    fee_growth_inside_a_last: Decimal = Decimal(0)
    fee_growth_inside_b_last: Decimal = Decimal(0)
    token_a_fee: Decimal = Decimal(0)
    token_b_fee: Decimal = Decimal(0)
    position_id: str = ""

    def __post_init__(self):
        _normalize_decimals(self)
        if self.lower_tick >= self.upper_tick:
            raise InvalidRange(self.lower_tick, self.upper_tick)
        if self.liquidity < 0:
            raise InvalidAmount(f"포지션 유동성은 음수일 수 없습니다: {self.liquidity}")

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        return cls(
            position_id=str(data.get("positionId", "")),
            lower_tick=int(data["lowerTick"]),
            upper_tick=int(data["upperTick"]),
            liquidity=as_decimal(data.get("liquidity", 0)),
            fee_growth_inside_a_last=as_decimal(data.get("feeGrowthInsideALast", 0)),
            fee_growth_inside_b_last=as_decimal(data.get("feeGrowthInsideBLast", 0)),
            token_a_fee=as_decimal(data.get("tokenAFee", 0)),
            token_b_fee=as_decimal(data.get("tokenBFee", 0)),
        )
