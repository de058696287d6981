from rangeswap.concentrated.libraries import sqrt_price_math
from rangeswap.concentrated.libraries.full_math import muldiv
from rangeswap.constants import Q96
from rangeswap.types.aliases import Liquidity, SqrtPriceX96

"""
Liquidity obtainable from token amounts over a price range, and the amounts represented by a
liquidity value. Liquidity computed from amounts always rounds down.
"""


def get_liquidity_for_amount0(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    amount0: int,
) -> Liquidity:
    lower, upper = sorted((sqrt_ratio_a_x96, sqrt_ratio_b_x96))
    intermediate = muldiv(lower, upper, Q96)
    return muldiv(amount0, intermediate, upper - lower)


def get_liquidity_for_amount1(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    amount1: int,
) -> Liquidity:
    lower, upper = sorted((sqrt_ratio_a_x96, sqrt_ratio_b_x96))
    return muldiv(amount1, Q96, upper - lower)


def get_liquidity_for_amounts(
    sqrt_price_x96: SqrtPriceX96,
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    amount0: int,
    amount1: int,
) -> Liquidity:
    """
    Compute the largest liquidity that `amount0` and `amount1` can fund over the range
    [sqrt_ratio_a_x96, sqrt_ratio_b_x96] at the current price.

    A range above the current price holds only token0, a range at or below it only token1, and a
    range straddling it is limited by whichever token runs out first.
    """

    lower, upper = sorted((sqrt_ratio_a_x96, sqrt_ratio_b_x96))

    if sqrt_price_x96 <= lower:
        liquidity = get_liquidity_for_amount0(lower, upper, amount0)
    elif sqrt_price_x96 < upper:
        liquidity = min(
            get_liquidity_for_amount0(sqrt_price_x96, upper, amount0),
            get_liquidity_for_amount1(lower, sqrt_price_x96, amount1),
        )
    else:
        liquidity = get_liquidity_for_amount1(lower, upper, amount1)

    return liquidity


def get_amounts_for_liquidity(
    sqrt_price_x96: SqrtPriceX96,
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
    round_up: bool,
) -> tuple[int, int]:
    """
    Compute the token0 and token1 amounts represented by `liquidity` over the range at the current
    price. Round up for amounts owed by the caller and down for amounts paid out.
    """

    lower, upper = sorted((sqrt_ratio_a_x96, sqrt_ratio_b_x96))

    if sqrt_price_x96 <= lower:
        return sqrt_price_math.get_amount0_delta(lower, upper, liquidity, round_up), 0
    if sqrt_price_x96 < upper:
        return (
            sqrt_price_math.get_amount0_delta(sqrt_price_x96, upper, liquidity, round_up),
            sqrt_price_math.get_amount1_delta(lower, sqrt_price_x96, liquidity, round_up),
        )
    return 0, sqrt_price_math.get_amount1_delta(lower, upper, liquidity, round_up)
