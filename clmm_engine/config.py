"""
Decimal 연산 설정

전역 decimal 컨텍스트를 건드리지 않고, 각 함수에 MathConfig를 명시적으로
전달합니다. 연산은 항상 ``decimal.localcontext(config.context())`` 안에서
수행됩니다.
"""

from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_DOWN
from typing import Optional, Union

Numeric = Union[Decimal, int, str, float]


def as_decimal(value: Numeric) -> Decimal:
    """임의의 숫자 입력을 Decimal로 변환

    float은 이진 표현 오차를 피하기 위해 문자열을 거칩니다.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True)
class MathConfig:
    """Decimal 정밀도/반올림 설정

    Attributes:
        precision: 유효 자릿수 (최소 64)
        rounding: 중간 연산의 기본 반올림 모드. 결과값의 반올림은
            각 호출 지점에서 따로 지정합니다.
        tick_cross_epsilon: 틱을 넘은 뒤 가격을 경계 바깥으로 밀어내는 오프셋.
            None이면 정밀도에서 유도합니다 (10^(24 - precision)).
    """
    precision: int = 64
    rounding: str = ROUND_HALF_DOWN
    tick_cross_epsilon: Optional[Decimal] = None

    def __post_init__(self):
        if self.precision < 64:
            raise ValueError(f"precision은 64 이상이어야 합니다: {self.precision}")
        if self.tick_cross_epsilon is not None and self.tick_cross_epsilon <= 0:
            raise ValueError(
                f"tick_cross_epsilon은 양수여야 합니다: {self.tick_cross_epsilon}"
            )

    @property
    def epsilon(self) -> Decimal:
        """틱 크로싱 오프셋 (TICK_CROSS_EPSILON)"""
        if self.tick_cross_epsilon is not None:
            return self.tick_cross_epsilon
        return Decimal(1).scaleb(24 - self.precision)

    def context(self) -> Context:
        """이 설정으로 새 decimal Context 생성"""
        return Context(prec=self.precision, rounding=self.rounding)


DEFAULT_CONFIG = MathConfig()
