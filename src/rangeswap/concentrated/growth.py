import dataclasses
from typing import Self

from rangeswap.concentrated.libraries.functions import wrapping_sub
from rangeswap.types.aliases import Tick, X128


@dataclasses.dataclass(slots=True, frozen=True)
class Growth:
    """
    Growth-per-unit-liquidity values for every accumulator the pool distributes through the
    growth-outside technique. Values are Q128 and wrap at 2**256.
    """

    fee0: X128 = 0
    fee1: X128 = 0
    reward: X128 = 0
    airdrop0: X128 = 0
    airdrop1: X128 = 0

    def __sub__(self, other: Self) -> Self:
        return type(self)(
            fee0=wrapping_sub(self.fee0, other.fee0),
            fee1=wrapping_sub(self.fee1, other.fee1),
            reward=wrapping_sub(self.reward, other.reward),
            airdrop0=wrapping_sub(self.airdrop0, other.airdrop0),
            airdrop1=wrapping_sub(self.airdrop1, other.airdrop1),
        )


def growth_inside(
    *,
    tick_lower: Tick,
    tick_upper: Tick,
    tick_current: Tick,
    outside_lower: Growth,
    outside_upper: Growth,
    growth_global: Growth,
) -> Growth:
    """
    Derive the growth accumulated inside [tick_lower, tick_upper) from the outside values stored at
    the two boundary ticks.

    All subtractions wrap, so the inside value of a range that is out of range can appear to move
    in either direction as the global value grows. Only differences of inside values are
    meaningful.
    """

    if tick_current < tick_lower:
        return outside_lower - outside_upper
    if tick_current >= tick_upper:
        return outside_upper - outside_lower
    return growth_global - outside_lower - outside_upper
