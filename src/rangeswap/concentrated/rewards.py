import dataclasses

from rangeswap.concentrated.libraries.functions import wrapping_add
from rangeswap.constants import Q128_RESOLUTION
from rangeswap.exceptions import InvalidEpoch, InvalidTimestamp
from rangeswap.types.aliases import Liquidity, Timestamp, X128


@dataclasses.dataclass(slots=True)
class RewardStream:
    """
    A token emission at a constant Q128 rate over the window [epoch_start, epoch_end), distributed
    to in-range liquidity through `growth_global`.

    Emission that finds no in-range liquidity, and the rounding residue of each distribution, is
    held in `undistributed` and released to the next liquidity that is in range when the stream
    accrues. Nothing emitted is lost to a liquidity gap.
    """

    rate_per_second: X128 = 0
    epoch_start: Timestamp = 0
    epoch_end: Timestamp = 0
    last_accrual_time: Timestamp = 0
    growth_global: X128 = 0
    undistributed: X128 = 0

    def emitted_between(self, start: Timestamp, end: Timestamp) -> X128:
        """
        Q128 amount emitted over [start, end), clipped to the emission window.
        """

        elapsed = min(end, self.epoch_end) - max(start, self.epoch_start)
        return self.rate_per_second * elapsed if elapsed > 0 else 0

    def remaining(self, now: Timestamp) -> X128:
        """
        Q128 amount still to be emitted after `now`.
        """

        return self.emitted_between(now, self.epoch_end)

    def accrue(self, now: Timestamp, liquidity: Liquidity) -> None:
        if now < self.last_accrual_time:
            raise InvalidTimestamp(now=now, last=self.last_accrual_time)

        pending = self.undistributed + self.emitted_between(self.last_accrual_time, now)
        self.last_accrual_time = now

        if liquidity == 0:
            self.undistributed = pending
            return

        growth, self.undistributed = divmod(pending, liquidity)
        self.growth_global = wrapping_add(self.growth_global, growth)

    def schedule(
        self,
        amount: int,
        start_time: Timestamp,
        period: int,
        now: Timestamp,
    ) -> None:
        """
        Start a new emission window ending at `start_time + period`, funded by `amount` plus
        whatever the current window has not yet emitted.

        A window starting in the past begins at `now`. The stream must already be accrued to `now`.
        """

        epoch_end = start_time + period
        if period <= 0 or epoch_end <= now:
            raise InvalidEpoch(start_time=start_time, period=period)

        funding = (amount << Q128_RESOLUTION) + self.remaining(now)
        epoch_start = max(start_time, now)

        self.rate_per_second, residue = divmod(funding, epoch_end - epoch_start)
        self.undistributed += residue
        self.epoch_start = epoch_start
        self.epoch_end = epoch_end
