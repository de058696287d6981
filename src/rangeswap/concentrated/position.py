import dataclasses
from collections.abc import Hashable

from rangeswap.concentrated.growth import Growth
from rangeswap.concentrated.libraries.full_math import muldiv
from rangeswap.concentrated.libraries.liquidity_math import add_delta
from rangeswap.constants import Q128
from rangeswap.types.aliases import Liquidity, Tick

type PositionKey = tuple[Hashable, Tick, Tick]


@dataclasses.dataclass(slots=True, frozen=True)
class OwedAmounts:
    fees0: int = 0
    fees1: int = 0
    reward: int = 0
    airdrop0: int = 0
    airdrop1: int = 0


def owed_for_growth(liquidity: Liquidity, growth_delta: Growth) -> OwedAmounts:
    """
    Convert a growth-inside delta into token amounts for `liquidity`, rounding down.
    """

    return OwedAmounts(
        fees0=muldiv(liquidity, growth_delta.fee0, Q128),
        fees1=muldiv(liquidity, growth_delta.fee1, Q128),
        reward=muldiv(liquidity, growth_delta.reward, Q128),
        airdrop0=muldiv(liquidity, growth_delta.airdrop0, Q128),
        airdrop1=muldiv(liquidity, growth_delta.airdrop1, Q128),
    )


@dataclasses.dataclass(slots=True)
class Position:
    """
    A liquidity provider's claim over a tick range.

    `growth_inside_last` is the growth-inside snapshot taken when the position was last settled.
    Settled amounts wait in the `*_owed` fields until collected; a position with zero liquidity and
    outstanding amounts remains valid.
    """

    liquidity: Liquidity = 0
    growth_inside_last: Growth = Growth()
    tokens_owed0: int = 0
    tokens_owed1: int = 0
    airdrop_owed0: int = 0
    airdrop_owed1: int = 0
    reward_owed: int = 0

    @property
    def fee_growth_inside0_last(self) -> int:
        return self.growth_inside_last.fee0

    @property
    def fee_growth_inside1_last(self) -> int:
        return self.growth_inside_last.fee1

    @property
    def reward_growth_inside_last(self) -> int:
        return self.growth_inside_last.reward

    @property
    def airdrop_growth_inside0_last(self) -> int:
        return self.growth_inside_last.airdrop0

    @property
    def airdrop_growth_inside1_last(self) -> int:
        return self.growth_inside_last.airdrop1

    def pending(self, growth_inside: Growth) -> OwedAmounts:
        """
        Amounts earned since the last settlement, not yet added to the owed fields.
        """

        if self.liquidity == 0:
            return OwedAmounts()
        return owed_for_growth(self.liquidity, growth_inside - self.growth_inside_last)

    def settle(self, growth_inside: Growth) -> OwedAmounts:
        """
        Credit everything earned since the last settlement at the current liquidity, then take a
        new snapshot.
        """

        earned = self.pending(growth_inside)
        self.tokens_owed0 += earned.fees0
        self.tokens_owed1 += earned.fees1
        self.reward_owed += earned.reward
        self.airdrop_owed0 += earned.airdrop0
        self.airdrop_owed1 += earned.airdrop1
        self.growth_inside_last = growth_inside
        return earned

    def update_liquidity(self, liquidity_delta: int) -> None:
        self.liquidity = add_delta(self.liquidity, liquidity_delta)
