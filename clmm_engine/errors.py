"""
엔진 오류 정의

모든 오류는 입력이 같으면 항상 같은 결과가 나오는 로컬 검증 실패이며
재시도 대상이 아닙니다. 재조회 후 재시도 여부는 호출자가 결정합니다.
"""


class EngineError(Exception):
    """엔진 오류의 기반 클래스"""
    pass


class OutOfDomain(EngineError, ValueError):
    """가격/틱이 표현 가능한 범위를 벗어남"""

    def __init__(self, value, bound, message: str = ""):
        self.value = value
        self.bound = bound
        super().__init__(message or f"범위를 벗어난 값: {value} (경계: {bound})")


class InvalidRange(EngineError, ValueError):
    """lower >= upper 이거나 tick spacing과 맞지 않는 범위"""

    def __init__(self, tick_lower: int, tick_upper: int, message: str = ""):
        self.tick_lower = tick_lower
        self.tick_upper = tick_upper
        super().__init__(
            message or f"잘못된 틱 범위: [{tick_lower}, {tick_upper}]"
        )


class InvalidSpacing(EngineError, ValueError):
    """tick spacing이 양의 정수가 아님"""

    def __init__(self, tick_spacing):
        self.tick_spacing = tick_spacing
        super().__init__(f"tick spacing은 양의 정수여야 합니다: {tick_spacing}")


class InvalidScale(EngineError, ValueError):
    """|scale| 이 허용 범위를 벗어남"""

    def __init__(self, scale, limit: int):
        self.scale = scale
        self.limit = limit
        super().__init__(f"잘못된 scale: {scale} (|scale| < {limit})")


class InvalidWidth(EngineError, ValueError):
    """지원하지 않는 정수 폭 또는 버퍼 길이 불일치"""

    def __init__(self, width, message: str = ""):
        self.width = width
        super().__init__(message or f"지원하지 않는 정수 폭: {width}")


class RangeOverflow(EngineError, ValueError):
    """값이 대상 정수 폭에 들어가지 않음"""

    def __init__(self, value, width: int, signed: bool):
        self.value = value
        self.width = width
        self.signed = signed
        kind = "int" if signed else "uint"
        super().__init__(f"{value} 은(는) {kind}{width} 범위를 벗어납니다")


class OutOfTicks(EngineError):
    """틱 배열의 유동성이 스왑을 감당하지 못함

    Attributes:
        partial: 틱을 모두 소진할 때까지 누적된 SwapResult (사전 조건
            위반으로 시작조차 못 한 경우 None)
    """

    def __init__(self, message: str, partial=None):
        self.partial = partial
        super().__init__(message)


class ConsistencyError(EngineError):
    """수수료/유동성 장부 불변식 위반 (오래된 스냅샷 등)"""
    pass


class InvalidTickArray(EngineError, ValueError):
    """틱 배열이 오름차순으로 정렬되어 있지 않음"""
    pass


class InvalidAmount(EngineError, ValueError):
    """수량/유동성/수수료율 입력값이 잘못됨"""
    pass


class InvalidSlippage(EngineError, ValueError):
    """슬리피지 비율이 (0, 1) 범위를 벗어남"""

    def __init__(self, slippage):
        self.slippage = slippage
        super().__init__(f"슬리피지는 (0, 1) 범위여야 합니다: {slippage}")
