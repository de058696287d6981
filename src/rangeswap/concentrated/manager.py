import dataclasses
from threading import Lock

from eth_typing import ChecksumAddress

from rangeswap.concentrated.pool import ConcentratedLiquidityPool
from rangeswap.concentrated.types import BurnResult, CollectResult, MintResult, PositionFees
from rangeswap.exceptions import NotOwner, PoolMisMatch, PositionNotFound
from rangeswap.functions import get_checksum_address, next_placeholder_address
from rangeswap.logging import logger
from rangeswap.types.aliases import Liquidity, PositionId, Tick, Timestamp


@dataclasses.dataclass(slots=True, frozen=True)
class ManagedPosition:
    holder: ChecksumAddress
    pool: ConcentratedLiquidityPool
    tick_lower: Tick
    tick_upper: Tick

    def matches(self, pool: ConcentratedLiquidityPool, tick_lower: Tick, tick_upper: Tick) -> bool:
        return self.pool is pool and (self.tick_lower, self.tick_upper) == (tick_lower, tick_upper)


class PositionManager:
    """
    Issues numbered positions on behalf of holders. Each numbered position is a separate pool
    position owned by the manager and keyed by `(manager address, position id)`, so positions
    sharing a range never mix their fees or rewards.

    Only the holder of a position may burn or collect from it. Funds are paid by, and returned to,
    the holder unless another account is given.
    """

    def __init__(self, address: str | None = None) -> None:
        self.address: ChecksumAddress = (
            get_checksum_address(address) if address is not None else next_placeholder_address()
        )
        self._positions: dict[PositionId, ManagedPosition] = {}
        self._next_position_id: PositionId = 1
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._positions)

    def _owner_key(self, position_id: PositionId) -> tuple[ChecksumAddress, PositionId]:
        return self.address, position_id

    def _get(self, position_id: PositionId) -> ManagedPosition:
        try:
            return self._positions[position_id]
        except KeyError:
            raise PositionNotFound(key=position_id) from None

    def _get_held(self, position_id: PositionId, caller: str) -> ManagedPosition:
        record = self._get(position_id)
        if record.holder != get_checksum_address(caller):
            raise NotOwner(position_id=position_id, caller=caller)
        return record

    def position(self, position_id: PositionId) -> ManagedPosition:
        return self._get(position_id)

    def positions_of(self, holder: str) -> list[PositionId]:
        _holder = get_checksum_address(holder)
        return [
            position_id
            for position_id, record in self._positions.items()
            if record.holder == _holder
        ]

    def mint(
        self,
        pool: ConcentratedLiquidityPool,
        tick_lower: Tick,
        tick_upper: Tick,
        amount0_desired: int,
        amount1_desired: int,
        *,
        holder: str,
        now: Timestamp,
        payer: str | None = None,
        lower_hint: Tick | None = None,
        upper_hint: Tick | None = None,
        minimum_liquidity: Liquidity = 0,
    ) -> tuple[PositionId, MintResult]:
        """
        Open a new numbered position for `holder`. The position id is only consumed if the pool
        accepts the mint.
        """

        _holder = get_checksum_address(holder)

        with self._lock:
            position_id = self._next_position_id
            result = pool.mint(
                self._owner_key(position_id),
                tick_lower,
                tick_upper,
                amount0_desired,
                amount1_desired,
                now=now,
                payer=payer if payer is not None else _holder,
                lower_hint=lower_hint,
                upper_hint=upper_hint,
                minimum_liquidity=minimum_liquidity,
            )
            self._positions[position_id] = ManagedPosition(
                holder=_holder,
                pool=pool,
                tick_lower=tick_lower,
                tick_upper=tick_upper,
            )
            self._next_position_id += 1

        logger.debug(f"Position {position_id} issued to {_holder} in {pool.address}")
        return position_id, result

    def add_liquidity(
        self,
        position_id: PositionId,
        pool: ConcentratedLiquidityPool,
        tick_lower: Tick,
        tick_upper: Tick,
        amount0_desired: int,
        amount1_desired: int,
        *,
        now: Timestamp,
        payer: str,
        minimum_liquidity: Liquidity = 0,
    ) -> MintResult:
        """
        Add liquidity to an existing numbered position. Anyone may fund a position; the pool and
        range must be the ones the position was issued for.
        """

        record = self._get(position_id)
        if not record.matches(pool, tick_lower, tick_upper):
            raise PoolMisMatch(position_id=position_id)

        return pool.mint(
            self._owner_key(position_id),
            tick_lower,
            tick_upper,
            amount0_desired,
            amount1_desired,
            now=now,
            payer=payer,
            minimum_liquidity=minimum_liquidity,
        )

    def burn(
        self,
        position_id: PositionId,
        liquidity: Liquidity,
        *,
        caller: str,
        now: Timestamp,
        recipient: str | None = None,
        amount0_minimum: int = 0,
        amount1_minimum: int = 0,
    ) -> BurnResult:
        record = self._get_held(position_id, caller)
        return record.pool.burn(
            self._owner_key(position_id),
            record.tick_lower,
            record.tick_upper,
            liquidity,
            now=now,
            recipient=recipient if recipient is not None else record.holder,
            amount0_minimum=amount0_minimum,
            amount1_minimum=amount1_minimum,
        )

    def collect(
        self,
        position_id: PositionId,
        *,
        caller: str,
        now: Timestamp,
        recipient: str | None = None,
    ) -> CollectResult:
        record = self._get_held(position_id, caller)
        return record.pool.collect(
            self._owner_key(position_id),
            record.tick_lower,
            record.tick_upper,
            now=now,
            recipient=recipient if recipient is not None else record.holder,
        )

    def collect_reward(
        self,
        position_id: PositionId,
        *,
        caller: str,
        now: Timestamp,
        recipient: str | None = None,
    ) -> int:
        record = self._get_held(position_id, caller)
        return record.pool.collect_reward(
            self._owner_key(position_id),
            record.tick_lower,
            record.tick_upper,
            now=now,
            recipient=recipient if recipient is not None else record.holder,
        )

    def transfer(self, position_id: PositionId, *, caller: str, recipient: str) -> None:
        """
        Hand a numbered position to a new holder.
        """

        with self._lock:
            record = self._get_held(position_id, caller)
            self._positions[position_id] = dataclasses.replace(
                record, holder=get_checksum_address(recipient)
            )

    def position_fees(
        self,
        position_id: PositionId,
        *,
        now: Timestamp | None = None,
    ) -> PositionFees:
        record = self._get(position_id)
        return record.pool.position_fees(
            self._owner_key(position_id), record.tick_lower, record.tick_upper, now=now
        )

    def position_reward_amount(
        self,
        position_id: PositionId,
        *,
        now: Timestamp | None = None,
    ) -> int:
        record = self._get(position_id)
        return record.pool.position_reward_amount(
            self._owner_key(position_id), record.tick_lower, record.tick_upper, now=now
        )
