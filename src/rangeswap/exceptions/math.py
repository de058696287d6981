from rangeswap.exceptions.base import RangeswapError

"""
Exceptions raised by the fixed-point math libraries when an operand or result does not fit the
fixed-width integer type it represents.
"""


class MathError(RangeswapError):
    """
    Raised when a fixed-point operation cannot produce a valid result.
    """


class Overflow(MathError):
    """
    Raised when a value exceeds the capacity of its fixed-width accumulator, or when a burn asks for
    more liquidity than the position holds.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message=message or "Overflow")


class LiquidityOverflow(Overflow):
    """
    Raised when the gross liquidity referencing a tick would exceed the per-tick maximum.
    """

    def __init__(self, tick: int) -> None:
        self.tick = tick
        super().__init__(message=f"LiquidityOverflow: tick {tick} exceeds the per-tick maximum")

    def __reduce__(self) -> tuple[type["LiquidityOverflow"], tuple[int]]:
        return self.__class__, (self.tick,)


class DivisionByZero(MathError):
    def __init__(self) -> None:
        super().__init__(message="Division by zero")


class InvalidSqrtPrice(MathError):
    """
    Raised when a sqrt price is outside the range covered by the tick math.
    """

    def __init__(self, sqrt_price_x96: int) -> None:
        self.sqrt_price_x96 = sqrt_price_x96
        super().__init__(message=f"sqrt price {sqrt_price_x96} is outside the supported range")
