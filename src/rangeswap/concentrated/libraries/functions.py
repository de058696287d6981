from rangeswap.constants import (
    MAX_INT128,
    MAX_UINT128,
    MAX_UINT160,
    MAX_UINT256,
    MIN_INT128,
)
from rangeswap.exceptions import Overflow

"""
Range checks for values stored in fixed-width fields, plus modular arithmetic for the growth
accumulators, which wrap at 2**256.
"""

_UINT256_MODULUS = MAX_UINT256 + 1


def to_uint128(x: int) -> int:
    if not (0 <= x <= MAX_UINT128):
        raise Overflow(message=f"{x} outside range of uint128 values")
    return x


def to_int128(x: int) -> int:
    if not (MIN_INT128 <= x <= MAX_INT128):
        raise Overflow(message=f"{x} outside range of int128 values")
    return x


def to_uint160(x: int) -> int:
    if not (0 <= x <= MAX_UINT160):
        raise Overflow(message=f"{x} outside range of uint160 values")
    return x


def to_uint256(x: int) -> int:
    if not (0 <= x <= MAX_UINT256):
        raise Overflow(message=f"{x} outside range of uint256 values")
    return x


def wrapping_add(x: int, y: int) -> int:
    return (x + y) % _UINT256_MODULUS


def wrapping_sub(x: int, y: int) -> int:
    return (x - y) % _UINT256_MODULUS
