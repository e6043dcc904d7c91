"""
Fixed-Point Codec - 원장 정수 ↔ Decimal 변환

원장은 모든 수량을 고정폭(64/128비트) 리틀엔디언 정수로 저장하고,
필드마다 암묵적인 10의 거듭제곱 스케일을 가집니다.

핵심 공식:
    wire_int = round(value × 10^scale)
    value    = wire_int / 10^scale

엔진의 나머지 부분은 바이트를 직접 다루지 않고 이 모듈만 사용합니다.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_DOWN, localcontext
from typing import Tuple

from ..config import DEFAULT_CONFIG, MathConfig, Numeric, as_decimal
from ..constants import CODEC_WIDTHS, MAX_SCALE
from ..errors import InvalidScale, InvalidWidth, RangeOverflow

# 인코딩 시 wire 정수로 반올림하는 모드
ENCODE_ROUNDING = ROUND_HALF_DOWN


def _check_width(width: int) -> None:
    if width not in CODEC_WIDTHS:
        raise InvalidWidth(width)


def _check_scale(scale: int) -> None:
    if not isinstance(scale, int) or abs(scale) >= MAX_SCALE:
        raise InvalidScale(scale, MAX_SCALE)


def _invert(data: bytes) -> bytes:
    return bytes((~b) & 0xFF for b in data)


@dataclass(frozen=True)
class LedgerInt:
    """원장 고정폭 정수

    Python int는 폭 제한이 없으므로, 2의 보수 변환은 부호 없는 크기에
    대해 비트 반전 + 1을 직접 수행합니다.
    """
    value: int
    width: int
    signed: bool

    @staticmethod
    def bounds(width: int, signed: bool) -> Tuple[int, int]:
        """(최소값, 최대값) 반환"""
        _check_width(width)
        if signed:
            return -(1 << (width - 1)), (1 << (width - 1)) - 1
        return 0, (1 << width) - 1

    @classmethod
    def checked(cls, value: int, width: int, signed: bool) -> "LedgerInt":
        """범위 검사 후 생성

        Raises:
            RangeOverflow: value가 대상 폭에 들어가지 않는 경우
        """
        low, high = cls.bounds(width, signed)
        if value < low or value > high:
            raise RangeOverflow(value, width, signed)
        return cls(value, width, signed)

    @classmethod
    def from_bytes_le(cls, data: bytes, width: int, signed: bool) -> "LedgerInt":
        """리틀엔디언 바이트에서 정수 복원"""
        _check_width(width)
        size = width // 8
        if len(data) != size:
            raise InvalidWidth(
                width, f"버퍼 길이 {len(data)} 이(가) {width}비트({size}바이트)와 다릅니다"
            )

        data = bytes(data)
        if signed and data[-1] & 0x80:
            # 음수: -(~x + 1)
            value = -(int.from_bytes(_invert(data), "little") + 1)
        else:
            value = int.from_bytes(data, "little")
        return cls(value, width, signed)

    def to_bytes_le(self) -> bytes:
        """리틀엔디언 바이트로 직렬화"""
        size = self.width // 8
        if self.value < 0:
            # ~(|v| - 1) == v (2의 보수)
            return _invert((-self.value - 1).to_bytes(size, "little"))
        return self.value.to_bytes(size, "little")


def decode(
    data: bytes,
    width: int,
    signed: bool,
    scale: int = 0,
    config: MathConfig = DEFAULT_CONFIG
) -> Decimal:
    """원장 바이트를 Decimal로 디코딩

    Args:
        data: 리틀엔디언 바이트 (width // 8 바이트)
        width: 64 또는 128
        signed: 부호 있는 정수 여부
        scale: 10의 거듭제곱 지수 (음수면 곱셈)

    Returns:
        wire 정수 / 10^scale

    Raises:
        InvalidScale: |scale| >= 40
        InvalidWidth: 폭이나 버퍼 길이가 맞지 않음
    """
    _check_scale(scale)
    raw = LedgerInt.from_bytes_le(data, width, signed).value
    with localcontext(config.context()):
        return Decimal(raw).scaleb(-scale)


def encode(
    value: Numeric,
    width: int,
    signed: bool,
    scale: int = 0,
    config: MathConfig = DEFAULT_CONFIG
) -> bytes:
    """Decimal을 원장 바이트로 인코딩

    Args:
        value: 인코딩할 값
        width: 64 또는 128
        signed: 부호 있는 정수 여부
        scale: 10의 거듭제곱 지수

    Returns:
        round(value × 10^scale) 의 리틀엔디언 바이트

    Raises:
        InvalidScale: |scale| >= 40
        InvalidWidth: 지원하지 않는 폭
        RangeOverflow: 스케일 적용 후 값이 폭을 벗어남
    """
    _check_width(width)
    _check_scale(scale)
    with localcontext(config.context()):
        scaled = as_decimal(value).scaleb(scale)
        if not scaled.is_finite():
            raise RangeOverflow(value, width, signed)
        wire = int(scaled.to_integral_value(rounding=ENCODE_ROUNDING))
    return LedgerInt.checked(wire, width, signed).to_bytes_le()


def decode_u64(data: bytes, scale: int = 0, config: MathConfig = DEFAULT_CONFIG) -> Decimal:
    return decode(data, 64, False, scale, config)


def decode_i64(data: bytes, scale: int = 0, config: MathConfig = DEFAULT_CONFIG) -> Decimal:
    return decode(data, 64, True, scale, config)


def decode_u128(data: bytes, scale: int = 0, config: MathConfig = DEFAULT_CONFIG) -> Decimal:
    return decode(data, 128, False, scale, config)


def decode_i128(data: bytes, scale: int = 0, config: MathConfig = DEFAULT_CONFIG) -> Decimal:
    return decode(data, 128, True, scale, config)


def encode_u64(value: Numeric, scale: int = 0, config: MathConfig = DEFAULT_CONFIG) -> bytes:
    return encode(value, 64, False, scale, config)


def encode_i64(value: Numeric, scale: int = 0, config: MathConfig = DEFAULT_CONFIG) -> bytes:
    return encode(value, 64, True, scale, config)


def encode_u128(value: Numeric, scale: int = 0, config: MathConfig = DEFAULT_CONFIG) -> bytes:
    return encode(value, 128, False, scale, config)


def encode_i128(value: Numeric, scale: int = 0, config: MathConfig = DEFAULT_CONFIG) -> bytes:
    return encode(value, 128, True, scale, config)
