from rangeswap.concentrated.libraries.functions import to_uint256
from rangeswap.exceptions import DivisionByZero


def muldiv(a: int, b: int, denominator: int) -> int:
    """
    Calculate floor(a * b / denominator) for unsigned 256-bit operands.

    The product is computed at full precision, so only the operands and the result are range
    checked. A result wider than 256 bits raises `Overflow`.
    """

    to_uint256(a)
    to_uint256(b)
    if denominator == 0:
        raise DivisionByZero
    return to_uint256((a * b) // to_uint256(denominator))


def muldiv_rounding_up(a: int, b: int, denominator: int) -> int:
    """
    Calculate ceil(a * b / denominator) for unsigned 256-bit operands.
    """

    result = muldiv(a, b, denominator)
    if (a * b) % denominator:
        result = to_uint256(result + 1)
    return result
