import functools

from rangeswap.concentrated.libraries.full_math import muldiv, muldiv_rounding_up
from rangeswap.concentrated.libraries.functions import to_uint160
from rangeswap.concentrated.libraries.unsafe_math import div_rounding_up
from rangeswap.config import settings
from rangeswap.constants import MAX_UINT160, MAX_UINT256, Q96, Q96_RESOLUTION
from rangeswap.exceptions import MathError
from rangeswap.types.aliases import Liquidity, SqrtPriceX96

"""
Token amounts between two sqrt prices, and the sqrt price reached after adding or removing an
amount of token at constant liquidity.

    amount0 = L * (p_b - p_a) / (p_a * p_b)     (scaled by 2**96)
    amount1 = L * (p_b - p_a)                    (scaled by 1 / 2**96)
"""


def _ordered(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a <= b else (b, a)


@functools.lru_cache(maxsize=settings.math_cache_size)
def get_amount0_delta(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
    round_up: bool,
) -> int:
    """
    Amount of token0 covering `liquidity` between the two prices, in either order.
    """

    lower, upper = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if lower == 0:
        raise MathError(message="sqrt price must be positive")

    numerator1 = liquidity << Q96_RESOLUTION
    numerator2 = upper - lower

    if round_up:
        return div_rounding_up(muldiv_rounding_up(numerator1, numerator2, upper), lower)
    return muldiv(numerator1, numerator2, upper) // lower


@functools.lru_cache(maxsize=settings.math_cache_size)
def get_amount1_delta(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
    round_up: bool,
) -> int:
    """
    Amount of token1 covering `liquidity` between the two prices, in either order.
    """

    lower, upper = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if round_up:
        return muldiv_rounding_up(liquidity, upper - lower, Q96)
    return muldiv(liquidity, upper - lower, Q96)


def _next_price_from_amount0(
    sqrt_price_x96: SqrtPriceX96,
    liquidity: Liquidity,
    amount: int,
    add: bool,
) -> SqrtPriceX96:
    # Rounds up, so the price never moves further than the amount pays for
    if amount == 0:
        return sqrt_price_x96

    numerator1 = liquidity << Q96_RESOLUTION
    product = amount * sqrt_price_x96

    if add:
        denominator = numerator1 + product
        if denominator <= MAX_UINT256:
            return muldiv_rounding_up(numerator1, sqrt_price_x96, denominator)
        # Denominator overflows 256 bits, fall back to the less precise form
        return div_rounding_up(numerator1, numerator1 // sqrt_price_x96 + amount)

    if numerator1 <= product:
        raise MathError(message="output amount exceeds the token0 available at this liquidity")
    return to_uint160(muldiv_rounding_up(numerator1, sqrt_price_x96, numerator1 - product))


def _next_price_from_amount1(
    sqrt_price_x96: SqrtPriceX96,
    liquidity: Liquidity,
    amount: int,
    add: bool,
) -> SqrtPriceX96:
    # Rounds down, so the price never moves further than the amount pays for
    if add:
        quotient = (
            (amount << Q96_RESOLUTION) // liquidity
            if amount <= MAX_UINT160
            else muldiv(amount, Q96, liquidity)
        )
        return to_uint160(sqrt_price_x96 + quotient)

    quotient = (
        div_rounding_up(amount << Q96_RESOLUTION, liquidity)
        if amount <= MAX_UINT160
        else muldiv_rounding_up(amount, Q96, liquidity)
    )
    if sqrt_price_x96 <= quotient:
        raise MathError(message="output amount exceeds the token1 available at this liquidity")
    return sqrt_price_x96 - quotient


@functools.lru_cache(maxsize=settings.math_cache_size)
def get_next_sqrt_price_from_input(
    sqrt_price_x96: SqrtPriceX96,
    liquidity: Liquidity,
    amount_in: int,
    zero_for_one: bool,
) -> SqrtPriceX96:
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise MathError(message="sqrt price and liquidity must be positive")

    if zero_for_one:
        return _next_price_from_amount0(sqrt_price_x96, liquidity, amount_in, add=True)
    return _next_price_from_amount1(sqrt_price_x96, liquidity, amount_in, add=True)


@functools.lru_cache(maxsize=settings.math_cache_size)
def get_next_sqrt_price_from_output(
    sqrt_price_x96: SqrtPriceX96,
    liquidity: Liquidity,
    amount_out: int,
    zero_for_one: bool,
) -> SqrtPriceX96:
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise MathError(message="sqrt price and liquidity must be positive")

    if zero_for_one:
        return _next_price_from_amount1(sqrt_price_x96, liquidity, amount_out, add=False)
    return _next_price_from_amount0(sqrt_price_x96, liquidity, amount_out, add=False)
