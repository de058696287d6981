import functools

from rangeswap.config import settings
from rangeswap.constants import MAX_UINT256, Q128
from rangeswap.exceptions import InvalidSqrtPrice, InvalidTick
from rangeswap.types.aliases import SqrtPriceX96, Tick

"""
Conversions between a tick index and its Q64.96 sqrt price, sqrt(1.0001 ** tick) * 2**96.

The forward conversion reproduces the canonical fixed-point approximation bit-for-bit, so prices
computed here agree exactly with any other implementation of the same algorithm.
"""

MIN_TICK = -887272
MAX_TICK = -MIN_TICK
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

# 1 / sqrt(1.0001) ** (2 ** bit) as Q128 values, for bit = 0..19
_INVERSE_ROOT_POWERS_X128 = (
    340265354078544963557816517032075149313,
    340248342086729790484326174814286782778,
    340214320654664324051920982716015181260,
    340146287995602323631171512101879684304,
    340010263488231146823593991679159461444,
    339738377640345403697157401104375502016,
    339195258003219555707034227454543997025,
    338111622100601834656805679988414885971,
    335954724994790223023589805789778977700,
    331682121138379247127172139078559817300,
    323299236684853023288211250268160618739,
    307163716377032989948697243942600083929,
    277268403626896220162999269216087595045,
    225923453940442621947126027127485391333,
    149997214084966997727330242082538205943,
    66119101136024775622716233608466517926,
    12847376061809297530290974190478138313,
    485053260817066172746253684029974020,
    691415978906521570653435304214168,
    1404880482679654955896180642,
)


@functools.lru_cache(maxsize=settings.math_cache_size)
def get_sqrt_ratio_at_tick(tick: Tick) -> SqrtPriceX96:
    """
    Find the Q64.96 sqrt price for the given tick.
    """

    if not (MIN_TICK <= tick <= MAX_TICK):
        raise InvalidTick(tick=tick, reason="outside of the supported tick range")

    abs_tick = abs(tick)

    ratio = Q128
    for bit, multiplier in enumerate(_INVERSE_ROOT_POWERS_X128):
        if abs_tick & (1 << bit):
            ratio = (ratio * multiplier) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96, rounding up so the inverse conversion of the result is consistent
    quotient, remainder = divmod(ratio, 1 << 32)
    return quotient + (remainder != 0)


@functools.lru_cache(maxsize=settings.math_cache_size)
def get_tick_at_sqrt_ratio(sqrt_price_x96: SqrtPriceX96) -> Tick:
    """
    Find the greatest tick whose sqrt price is less than or equal to `sqrt_price_x96`.

    `get_sqrt_ratio_at_tick` is strictly increasing, so a binary search over the tick range finds
    the same tick as the closed-form logarithm.
    """

    if not (MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO):
        raise InvalidSqrtPrice(sqrt_price_x96)

    low, high = MIN_TICK, MAX_TICK - 1
    while low < high:
        mid = (low + high + 1) // 2
        if get_sqrt_ratio_at_tick(mid) <= sqrt_price_x96:
            low = mid
        else:
            high = mid - 1
    return low
