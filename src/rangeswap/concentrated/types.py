import dataclasses

import pydantic

from rangeswap.concentrated.growth import Growth
from rangeswap.concentrated.position import Position, PositionKey
from rangeswap.concentrated.rewards import RewardStream
from rangeswap.concentrated.tick_index import TickIndex
from rangeswap.types.aliases import Liquidity, SqrtPriceX96, Tick, X128
from rangeswap.validation.evm_values import (
    ValidatedPips,
    ValidatedTickSpacing,
    ValidatedUint160NonZero,
)


class PoolParameters(pydantic.BaseModel, frozen=True):
    swap_fee: ValidatedPips
    tick_spacing: ValidatedTickSpacing
    sqrt_price_x96: ValidatedUint160NonZero
    tick_parity: bool
    protocol_fee_share: ValidatedPips
    strict_liquidity: bool


@dataclasses.dataclass(slots=True, kw_only=True)
class PoolState:
    """
    The complete mutable state of a pool.

    Mutating calls change the state in place between `begin()` and `commit()`. Until then the first
    write to each tick and position records its prior value, and `rollback()` restores those along
    with the scalar fields and streams.
    """

    sqrt_price_x96: SqrtPriceX96
    tick: Tick
    nearest_tick: Tick
    liquidity: Liquidity
    ticks: TickIndex
    positions: dict[PositionKey, Position] = dataclasses.field(default_factory=dict)
    fee_growth_global0: X128 = 0
    fee_growth_global1: X128 = 0
    protocol_fees0: int = 0
    protocol_fees1: int = 0
    reserve0: int = 0
    reserve1: int = 0
    airdrop_reserve0: int = 0
    airdrop_reserve1: int = 0
    reward_reserve: int = 0
    reward: RewardStream = dataclasses.field(default_factory=RewardStream)
    airdrop0: RewardStream = dataclasses.field(default_factory=RewardStream)
    airdrop1: RewardStream = dataclasses.field(default_factory=RewardStream)
    _checkpoint: "PoolState | None" = dataclasses.field(
        default=None, init=False, repr=False, compare=False
    )
    _saved_positions: dict[PositionKey, Position | None] = dataclasses.field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    @property
    def growth_global(self) -> Growth:
        return Growth(
            fee0=self.fee_growth_global0,
            fee1=self.fee_growth_global1,
            reward=self.reward.growth_global,
            airdrop0=self.airdrop0.growth_global,
            airdrop1=self.airdrop1.growth_global,
        )

    @property
    def streams(self) -> tuple[RewardStream, RewardStream, RewardStream]:
        return self.reward, self.airdrop0, self.airdrop1

    def copy(self) -> "PoolState":
        return dataclasses.replace(
            self,
            ticks=self.ticks.copy(),
            positions={key: dataclasses.replace(pos) for key, pos in self.positions.items()},
            reward=dataclasses.replace(self.reward),
            airdrop0=dataclasses.replace(self.airdrop0),
            airdrop1=dataclasses.replace(self.airdrop1),
        )

    def begin(self) -> None:
        self._checkpoint = dataclasses.replace(
            self,
            reward=dataclasses.replace(self.reward),
            airdrop0=dataclasses.replace(self.airdrop0),
            airdrop1=dataclasses.replace(self.airdrop1),
        )
        self._saved_positions = {}
        self.ticks.begin()

    def commit(self) -> None:
        self._checkpoint = None
        self._saved_positions = {}
        self.ticks.commit()

    def rollback(self) -> None:
        """
        Undo every change made since `begin()`.
        """

        checkpoint = self._checkpoint
        if checkpoint is None:
            return

        for field in dataclasses.fields(self):
            if field.init and field.name not in {"ticks", "positions"}:
                setattr(self, field.name, getattr(checkpoint, field.name))
        for key, position in self._saved_positions.items():
            if position is None:
                self.positions.pop(key, None)
            else:
                self.positions[key] = position
        self.ticks.rollback()
        self.commit()

    def position_for_update(self, key: PositionKey) -> Position | None:
        """
        Return the position stored under `key` for modification, recording its prior value.
        """

        position = self.positions.get(key)
        if self._checkpoint is not None and key not in self._saved_positions:
            self._saved_positions[key] = (
                dataclasses.replace(position) if position is not None else None
            )
        return position


@dataclasses.dataclass(slots=True, frozen=True)
class MintResult:
    liquidity: Liquidity
    amount0: int
    amount1: int


@dataclasses.dataclass(slots=True, frozen=True)
class CollectResult:
    fees0: int
    fees1: int
    airdrop0: int
    airdrop1: int

    @property
    def amount0(self) -> int:
        return self.fees0 + self.airdrop0

    @property
    def amount1(self) -> int:
        return self.fees1 + self.airdrop1


@dataclasses.dataclass(slots=True, frozen=True)
class BurnResult:
    """
    Principal returned for the burned liquidity, plus the owed fees and airdrops paid with it.
    """

    liquidity: Liquidity
    amount0: int
    amount1: int
    collected: CollectResult

    @property
    def total0(self) -> int:
        return self.amount0 + self.collected.amount0

    @property
    def total1(self) -> int:
        return self.amount1 + self.collected.amount1


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class SwapResult:
    """
    Outcome of a swap. `amount0_delta` and `amount1_delta` are signed from the pool's perspective:
    positive amounts were paid into the pool, negative amounts were paid out.
    """

    zero_for_one: bool
    amount_in: int
    amount_out: int
    fee_amount: int
    protocol_fee: int
    sqrt_price_x96: SqrtPriceX96
    tick: Tick
    liquidity: Liquidity

    @property
    def amount0_delta(self) -> int:
        return self.amount_in if self.zero_for_one else -self.amount_out

    @property
    def amount1_delta(self) -> int:
        return -self.amount_out if self.zero_for_one else self.amount_in


@dataclasses.dataclass(slots=True, frozen=True)
class FlashResult:
    fee0: int
    fee1: int
    paid0: int
    paid1: int


@dataclasses.dataclass(slots=True, frozen=True)
class PositionFees:
    """
    Token0 and token1 collectible by a position: settled and pending swap fees, settled and pending
    airdrops, and the current fee growth inside its range.
    """

    fees0: int
    fees1: int
    airdrop0: int
    airdrop1: int
    fee_growth_inside0: X128
    fee_growth_inside1: X128

    @property
    def amount0(self) -> int:
        return self.fees0 + self.airdrop0

    @property
    def amount1(self) -> int:
        return self.fees1 + self.airdrop1


@dataclasses.dataclass(slots=True, frozen=True)
class PriceAndNearestTicks:
    sqrt_price_x96: SqrtPriceX96
    tick: Tick
    nearest_tick: Tick
    next_tick: Tick
