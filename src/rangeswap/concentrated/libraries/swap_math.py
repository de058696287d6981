from rangeswap.concentrated.libraries import full_math, sqrt_price_math
from rangeswap.constants import PIPS_DENOMINATOR
from rangeswap.types.aliases import Liquidity, Pip, SqrtPriceX96

type AmountIn = int
type AmountOut = int
type FeeAmount = int


def _input_between(
    price_from: SqrtPriceX96,
    price_to: SqrtPriceX96,
    liquidity: Liquidity,
    zero_for_one: bool,
) -> int:
    # Input is owed by the swapper, so it rounds up
    if zero_for_one:
        return sqrt_price_math.get_amount0_delta(price_to, price_from, liquidity, True)
    return sqrt_price_math.get_amount1_delta(price_from, price_to, liquidity, True)


def _output_between(
    price_from: SqrtPriceX96,
    price_to: SqrtPriceX96,
    liquidity: Liquidity,
    zero_for_one: bool,
) -> int:
    # Output is paid to the swapper, so it rounds down
    if zero_for_one:
        return sqrt_price_math.get_amount1_delta(price_to, price_from, liquidity, False)
    return sqrt_price_math.get_amount0_delta(price_from, price_to, liquidity, False)


def compute_swap_step(
    sqrt_ratio_x96_current: SqrtPriceX96,
    sqrt_ratio_x96_target: SqrtPriceX96,
    liquidity: Liquidity,
    amount_remaining: int,
    fee_pips: Pip,
) -> tuple[SqrtPriceX96, AmountIn, AmountOut, FeeAmount]:
    """
    Compute one swap step at constant liquidity, moving the price from `sqrt_ratio_x96_current`
    toward `sqrt_ratio_x96_target` until either the target is reached or `amount_remaining` is
    exhausted.

    A positive `amount_remaining` is an exact input (fee included), a negative value is an exact
    output. The fee is charged on the input side.

    Returns a tuple (next_sqrt_price, amount_in, amount_out, fee_amount).
    """

    zero_for_one = sqrt_ratio_x96_current >= sqrt_ratio_x96_target
    exact_in = amount_remaining >= 0

    if exact_in:
        amount_remaining_less_fee = full_math.muldiv(
            amount_remaining, PIPS_DENOMINATOR - fee_pips, PIPS_DENOMINATOR
        )
        amount_in = _input_between(
            sqrt_ratio_x96_current, sqrt_ratio_x96_target, liquidity, zero_for_one
        )
        sqrt_ratio_x96_next = (
            sqrt_ratio_x96_target
            if amount_remaining_less_fee >= amount_in
            else sqrt_price_math.get_next_sqrt_price_from_input(
                sqrt_ratio_x96_current, liquidity, amount_remaining_less_fee, zero_for_one
            )
        )
    else:
        amount_out = _output_between(
            sqrt_ratio_x96_current, sqrt_ratio_x96_target, liquidity, zero_for_one
        )
        sqrt_ratio_x96_next = (
            sqrt_ratio_x96_target
            if -amount_remaining >= amount_out
            else sqrt_price_math.get_next_sqrt_price_from_output(
                sqrt_ratio_x96_current, liquidity, -amount_remaining, zero_for_one
            )
        )

    reached_target = sqrt_ratio_x96_next == sqrt_ratio_x96_target

    if not (reached_target and exact_in):
        amount_in = _input_between(
            sqrt_ratio_x96_current, sqrt_ratio_x96_next, liquidity, zero_for_one
        )
    if not (reached_target and not exact_in):
        amount_out = _output_between(
            sqrt_ratio_x96_current, sqrt_ratio_x96_next, liquidity, zero_for_one
        )

    if not exact_in:
        amount_out = min(amount_out, -amount_remaining)

    if exact_in and not reached_target:
        # Target not reached, the remainder of the maximum input is taken as fee
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = full_math.muldiv_rounding_up(
            amount_in, fee_pips, PIPS_DENOMINATOR - fee_pips
        )

    return sqrt_ratio_x96_next, amount_in, amount_out, fee_amount
