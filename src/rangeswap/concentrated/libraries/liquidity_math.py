from rangeswap.concentrated.libraries.functions import to_int128, to_uint128
from rangeswap.exceptions import Overflow


def add_delta(x: int, y: int) -> int:
    """
    Apply a signed liquidity delta to an unsigned liquidity value.

    Raises `Overflow` with "LS" if the result would drop below zero, or "LA" if it would exceed the
    uint128 maximum.
    """

    to_uint128(x)
    to_int128(y)

    z = x + y
    if z < 0:
        raise Overflow(message="LS")
    try:
        return to_uint128(z)
    except Overflow:
        raise Overflow(message="LA") from None
