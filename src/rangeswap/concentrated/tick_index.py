import dataclasses
from collections.abc import Iterator

from rangeswap.concentrated.growth import Growth, growth_inside
from rangeswap.concentrated.libraries.functions import to_int128
from rangeswap.concentrated.libraries.tick_math import MAX_TICK, MIN_TICK
from rangeswap.constants import MAX_UINT128
from rangeswap.exceptions import InvalidTick, InvalidTickHint, LiquidityOverflow
from rangeswap.functions import evm_divide
from rangeswap.types.aliases import Liquidity, LiquidityGross, LiquidityNet, Tick

SENTINEL_TICKS = (MIN_TICK, MAX_TICK)


def tick_spacing_to_max_liquidity_per_tick(tick_spacing: int) -> Liquidity:
    """
    Divide the uint128 liquidity range evenly across every usable tick, so that the pool liquidity
    cannot overflow even if every tick holds its maximum.
    """

    min_tick = evm_divide(MIN_TICK, tick_spacing) * tick_spacing
    max_tick = evm_divide(MAX_TICK, tick_spacing) * tick_spacing
    num_ticks = (max_tick - min_tick) // tick_spacing + 1
    return MAX_UINT128 // num_ticks


@dataclasses.dataclass(slots=True)
class TickInfo:
    prev_tick: Tick
    next_tick: Tick
    liquidity_gross: LiquidityGross = 0
    liquidity_net: LiquidityNet = 0
    growth_outside: Growth = Growth()

    @property
    def fee_growth_outside0(self) -> int:
        return self.growth_outside.fee0

    @property
    def fee_growth_outside1(self) -> int:
        return self.growth_outside.fee1

    @property
    def reward_growth_outside(self) -> int:
        return self.growth_outside.reward

    @property
    def airdrop_growth_outside0(self) -> int:
        return self.growth_outside.airdrop0

    @property
    def airdrop_growth_outside1(self) -> int:
        return self.growth_outside.airdrop1


class TickIndex:
    """
    A doubly linked, ordered set of initialized ticks.

    The minimum and maximum ticks are always present as sentinels and are never removed. New ticks
    are linked in O(1) after the caller-supplied predecessor hint is verified; a wrong hint raises
    `InvalidTickHint` rather than falling back to a search.

    Between `begin()` and `commit()` the first change to each tick records its prior entry, so that
    `rollback()` undoes the changes in time proportional to the number of ticks touched.
    """

    def __init__(self, tick_spacing: int, *, tick_parity: bool = True) -> None:
        if tick_spacing <= 0:
            raise InvalidTick(tick=tick_spacing, reason="tick spacing must be positive")

        self.tick_spacing = tick_spacing
        self.tick_parity = tick_parity
        self.max_liquidity_per_tick = tick_spacing_to_max_liquidity_per_tick(tick_spacing)
        self._ticks: dict[Tick, TickInfo] = {
            MIN_TICK: TickInfo(prev_tick=MIN_TICK, next_tick=MAX_TICK),
            MAX_TICK: TickInfo(prev_tick=MIN_TICK, next_tick=MAX_TICK),
        }
        self._journal: dict[Tick, TickInfo | None] | None = None

    def __contains__(self, tick: object) -> bool:
        return tick in self._ticks

    def __getitem__(self, tick: Tick) -> TickInfo:
        return self._ticks[tick]

    def __iter__(self) -> Iterator[Tick]:
        """
        Iterate over the initialized ticks in ascending order, sentinels included.
        """

        tick = MIN_TICK
        while True:
            yield tick
            if tick == MAX_TICK:
                return
            tick = self._ticks[tick].next_tick

    def __len__(self) -> int:
        return len(self._ticks)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TickIndex):
            return NotImplemented
        return (self.tick_spacing, self.tick_parity, self._ticks) == (
            other.tick_spacing,
            other.tick_parity,
            other._ticks,
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(tick_spacing={self.tick_spacing}, ticks={list(self)})"

    def copy(self) -> "TickIndex":
        duplicate = object.__new__(TickIndex)
        duplicate.tick_spacing = self.tick_spacing
        duplicate.tick_parity = self.tick_parity
        duplicate.max_liquidity_per_tick = self.max_liquidity_per_tick
        duplicate._ticks = {tick: dataclasses.replace(info) for tick, info in self._ticks.items()}
        duplicate._journal = None
        return duplicate

    def begin(self) -> None:
        self._journal = {}

    def commit(self) -> None:
        self._journal = None

    def rollback(self) -> None:
        """
        Restore every tick changed since `begin()`.
        """

        if self._journal is None:
            return
        for tick, info in self._journal.items():
            if info is None:
                self._ticks.pop(tick, None)
            else:
                self._ticks[tick] = info
        self._journal = None

    def _record(self, *ticks: Tick) -> None:
        if self._journal is None:
            return
        for tick in ticks:
            if tick not in self._journal:
                info = self._ticks.get(tick)
                self._journal[tick] = dataclasses.replace(info) if info is not None else None

    def get(self, tick: Tick) -> TickInfo | None:
        return self._ticks.get(tick)

    def get_next(self, tick: Tick) -> Tick:
        return self._ticks[tick].next_tick

    def get_prev(self, tick: Tick) -> Tick:
        return self._ticks[tick].prev_tick

    def validate_range(self, tick_lower: Tick, tick_upper: Tick) -> None:
        """
        Check that a position range is ordered, inside the tick bounds, aligned to the spacing and,
        for pools using tick parity, that the lower tick is an even multiple and the upper tick an
        odd multiple of the spacing.
        """

        if tick_lower >= tick_upper:
            raise InvalidTick(tick=tick_lower, reason=f"lower tick must be below {tick_upper}")
        for tick in (tick_lower, tick_upper):
            if not (MIN_TICK <= tick <= MAX_TICK):
                raise InvalidTick(tick=tick, reason="outside of the supported tick range")
            if tick % self.tick_spacing != 0:
                raise InvalidTick(tick=tick, reason=f"not a multiple of {self.tick_spacing}")

        if self.tick_parity:
            if (tick_lower // self.tick_spacing) % 2 != 0:
                raise InvalidTick(tick=tick_lower, reason="lower tick must be an even multiple")
            if (tick_upper // self.tick_spacing) % 2 == 0:
                raise InvalidTick(tick=tick_upper, reason="upper tick must be an odd multiple")

    def insert(
        self,
        tick: Tick,
        hint: Tick,
        *,
        tick_current: Tick,
        growth_global: Growth,
    ) -> TickInfo:
        """
        Link `tick` into the index after its predecessor `hint`, or return the existing entry.

        The hint is ignored when the tick is already initialized. Otherwise it must be an
        initialized tick with `hint < tick < next(hint)`. A new tick is seeded with the global
        growth values if it is at or below the current tick, so that the growth recorded "outside"
        is the growth below it.
        """

        if (info := self._ticks.get(tick)) is not None:
            return info

        if not (MIN_TICK < tick < MAX_TICK):
            raise InvalidTick(tick=tick, reason="outside of the supported tick range")

        prev_info = self._ticks.get(hint)
        if prev_info is None or not (hint < tick < prev_info.next_tick):
            raise InvalidTickHint(tick=tick, hint=hint)

        self._record(tick, hint, prev_info.next_tick)
        info = TickInfo(
            prev_tick=hint,
            next_tick=prev_info.next_tick,
            growth_outside=growth_global if tick <= tick_current else Growth(),
        )
        self._ticks[prev_info.next_tick].prev_tick = tick
        prev_info.next_tick = tick
        self._ticks[tick] = info
        return info

    def remove(self, tick: Tick) -> None:
        """
        Unlink a tick that no longer holds liquidity.
        """

        if tick in SENTINEL_TICKS:
            raise InvalidTick(tick=tick, reason="sentinel ticks cannot be removed")

        info = self._ticks.get(tick)
        if info is None:
            raise InvalidTick(tick=tick, reason="not initialized")
        if info.liquidity_gross != 0:
            raise InvalidTick(tick=tick, reason="tick still holds liquidity")

        self._record(tick, info.prev_tick, info.next_tick)
        self._ticks[info.prev_tick].next_tick = info.next_tick
        self._ticks[info.next_tick].prev_tick = info.prev_tick
        del self._ticks[tick]

    def add_liquidity(
        self,
        tick: Tick,
        hint: Tick,
        liquidity: Liquidity,
        *,
        upper: bool,
        tick_current: Tick,
        growth_global: Growth,
    ) -> TickInfo:
        """
        Reference `liquidity` from a range boundary, initializing the tick if needed. A lower
        boundary adds to the net liquidity, an upper boundary subtracts from it.
        """

        info = self.insert(tick, hint, tick_current=tick_current, growth_global=growth_global)

        liquidity_gross = info.liquidity_gross + liquidity
        if liquidity_gross > self.max_liquidity_per_tick:
            raise LiquidityOverflow(tick=tick)

        self._record(tick)
        info.liquidity_gross = liquidity_gross
        info.liquidity_net = to_int128(
            info.liquidity_net - liquidity if upper else info.liquidity_net + liquidity
        )
        return info

    def remove_liquidity(self, tick: Tick, liquidity: Liquidity, *, upper: bool) -> bool:
        """
        Release `liquidity` from a range boundary. Returns True if the tick was removed because no
        liquidity references it any more.
        """

        info = self._ticks.get(tick)
        if info is None or info.liquidity_gross < liquidity:
            raise InvalidTick(tick=tick, reason="tick does not hold the liquidity being removed")

        self._record(tick)
        info.liquidity_gross -= liquidity
        info.liquidity_net = to_int128(
            info.liquidity_net + liquidity if upper else info.liquidity_net - liquidity
        )

        if info.liquidity_gross == 0 and tick not in SENTINEL_TICKS:
            self.remove(tick)
            return True
        return False

    def cross(self, tick: Tick, growth_global: Growth) -> LiquidityNet:
        """
        Flip the outside growth of a tick as the price moves through it, and return the net
        liquidity to apply for an upward crossing.
        """

        self._record(tick)
        info = self._ticks[tick]
        info.growth_outside = growth_global - info.growth_outside
        return info.liquidity_net

    def growth_inside(
        self,
        tick_lower: Tick,
        tick_upper: Tick,
        *,
        tick_current: Tick,
        growth_global: Growth,
    ) -> Growth:
        """
        Growth accumulated inside the range. An uninitialized boundary contributes zero outside
        growth.
        """

        lower = self._ticks.get(tick_lower)
        upper = self._ticks.get(tick_upper)
        return growth_inside(
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            tick_current=tick_current,
            outside_lower=lower.growth_outside if lower is not None else Growth(),
            outside_upper=upper.growth_outside if upper is not None else Growth(),
            growth_global=growth_global,
        )

    def find_predecessor(self, tick: Tick, start: Tick = MIN_TICK) -> Tick:
        """
        Return the greatest initialized tick strictly below `tick`, for use as an insertion hint.

        The search walks the links from the initialized tick `start`, so its cost is the number of
        initialized ticks between `start` and `tick`.
        """

        if tick <= MIN_TICK:
            return MIN_TICK
        if tick > MAX_TICK:
            return MAX_TICK

        current = start if start in self._ticks else MIN_TICK
        while current >= tick:
            current = self._ticks[current].prev_tick
        while (next_tick := self._ticks[current].next_tick) < tick:
            current = next_tick
        return current

    def adjust_range(self, tick_lower: Tick, tick_upper: Tick) -> tuple[Tick, Tick, Tick, Tick]:
        """
        Snap a requested range to a valid one and compute insertion hints for it.

        The range is clamped inside the sentinels, truncated toward zero onto the spacing and, for
        pools using tick parity, moved onto an even lower and odd upper multiple. If the range
        collapses, the lower tick is placed one spacing below the upper tick.

        Returns (lower_hint, tick_lower, upper_hint, tick_upper). The upper hint assumes the lower
        tick is inserted first.
        """

        spacing = self.tick_spacing
        lowest, highest = MIN_TICK + spacing, MAX_TICK - spacing

        tick_lower = evm_divide(max(tick_lower, lowest), spacing) * spacing
        tick_upper = evm_divide(min(tick_upper, highest), spacing) * spacing

        if self.tick_parity:
            if (tick_lower // spacing) % 2 != 0:
                tick_lower += spacing
            if (tick_upper // spacing) % 2 == 0:
                tick_upper += spacing if tick_upper + spacing <= highest else -spacing

        if tick_lower >= tick_upper:
            tick_lower = tick_upper - spacing

        lower_hint = self.find_predecessor(tick_lower)
        upper_hint = max(self.find_predecessor(tick_upper), tick_lower)
        return lower_hint, tick_lower, upper_hint, tick_upper
