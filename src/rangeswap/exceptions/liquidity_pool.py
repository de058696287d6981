from typing import Any

from rangeswap.exceptions.base import RangeswapError


class LiquidityPoolError(RangeswapError):
    """
    Exception raised inside liquidity pool operations.
    """


# 2nd level exceptions for liquidity pool operations
class InvalidTick(LiquidityPoolError):
    """
    Raised when a tick is misaligned with the spacing, outside the supported range, has the wrong
    parity for its role in a range, or cannot be removed.
    """

    def __init__(self, tick: int, reason: str) -> None:
        self.tick = tick
        self.reason = reason
        super().__init__(message=f"InvalidTick: {tick} ({reason})")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.tick, self.reason)


class InvalidTickHint(LiquidityPoolError):
    """
    Raised when the hint passed for a tick insertion is not its initialized predecessor.
    """

    def __init__(self, tick: int, hint: int) -> None:
        self.tick = tick
        self.hint = hint
        super().__init__(message=f"InvalidTickHint: {hint} does not precede {tick}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.tick, self.hint)


class LiquidityZero(LiquidityPoolError):
    def __init__(self) -> None:
        super().__init__(message="LiquidityZero")


class Locked(LiquidityPoolError):
    """
    Raised when a pool is called from inside one of its own mutating calls.
    """

    def __init__(self) -> None:
        super().__init__(message="Locked: the pool is in the middle of another call")


class LiquidityInsufficient(LiquidityPoolError):
    """
    Raised when the pool cannot serve the requested swap or loan at any reachable price.
    """

    def __init__(self, amount_in: int = 0, amount_out: int = 0) -> None:
        self.amount_in = amount_in
        self.amount_out = amount_out
        super().__init__(message="LiquidityInsufficient")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.amount_in, self.amount_out)


class TooLittleReceived(LiquidityPoolError):
    """
    Raised when an output amount falls below the caller's minimum.
    """

    def __init__(self, amount: int, minimum: int) -> None:
        self.amount = amount
        self.minimum = minimum
        super().__init__(message=f"TooLittleReceived: {amount} < {minimum}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.amount, self.minimum)


class TooLittleAmountIn(LiquidityPoolError):
    """
    Raised when an exact output swap needs more input than the caller's maximum.
    """

    def __init__(self, amount_in: int, maximum: int) -> None:
        self.amount_in = amount_in
        self.maximum = maximum
        super().__init__(message=f"TooLittleAmountIn: {amount_in} > {maximum}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.amount_in, self.maximum)


class InvalidPriceLimit(LiquidityPoolError):
    def __init__(self, sqrt_price_limit_x96: int) -> None:
        self.sqrt_price_limit_x96 = sqrt_price_limit_x96
        super().__init__(message=f"InvalidPriceLimit: {sqrt_price_limit_x96}")


class InvalidSwapFee(LiquidityPoolError):
    def __init__(self, fee: int) -> None:
        self.fee = fee
        super().__init__(message=f"InvalidSwapFee: {fee}")


class InvalidEpoch(LiquidityPoolError):
    """
    Raised when a reward or airdrop deposit has an empty or already expired emission window.
    """

    def __init__(self, start_time: int, period: int) -> None:
        self.start_time = start_time
        self.period = period
        super().__init__(message=f"InvalidEpoch: start {start_time}, period {period}")


class InvalidTimestamp(LiquidityPoolError):
    """
    Raised when a call supplies a time earlier than the pool's last accrual.
    """

    def __init__(self, now: int, last: int) -> None:
        self.now = now
        self.last = last
        super().__init__(message=f"InvalidTimestamp: {now} is earlier than {last}")


class NotAuthorized(LiquidityPoolError):
    def __init__(self, sender: str) -> None:
        self.sender = sender
        super().__init__(message=f"NotAuthorized: {sender}")


class Token0Missing(LiquidityPoolError):
    def __init__(self, paid: int, required: int) -> None:
        self.paid = paid
        self.required = required
        super().__init__(message=f"Token0Missing: paid {paid}, required {required}")


class Token1Missing(LiquidityPoolError):
    def __init__(self, paid: int, required: int) -> None:
        self.paid = paid
        self.required = required
        super().__init__(message=f"Token1Missing: paid {paid}, required {required}")
