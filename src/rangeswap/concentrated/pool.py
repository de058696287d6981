import contextlib
import dataclasses
from collections.abc import Callable, Hashable, Iterator
from threading import Lock, get_ident
from typing import Any

import pydantic
from eth_typing import ChecksumAddress

from rangeswap.concentrated.growth import Growth
from rangeswap.concentrated.libraries.full_math import muldiv
from rangeswap.concentrated.libraries.functions import to_uint128, wrapping_add
from rangeswap.concentrated.libraries.liquidity_amounts import (
    get_amounts_for_liquidity,
    get_liquidity_for_amounts,
)
from rangeswap.concentrated.libraries.liquidity_math import add_delta
from rangeswap.concentrated.libraries.swap_math import compute_swap_step
from rangeswap.concentrated.libraries.tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from rangeswap.concentrated.libraries.unsafe_math import div_rounding_up
from rangeswap.concentrated.position import Position, PositionKey
from rangeswap.concentrated.rewards import RewardStream
from rangeswap.concentrated.tick_index import TickIndex
from rangeswap.concentrated.types import (
    BurnResult,
    CollectResult,
    FlashResult,
    MintResult,
    PoolParameters,
    PoolState,
    PositionFees,
    PriceAndNearestTicks,
    SwapResult,
)
from rangeswap.config import settings
from rangeswap.constants import PIPS_DENOMINATOR, Q128
from rangeswap.exceptions import (
    InvalidPriceLimit,
    InvalidSwapFee,
    LiquidityInsufficient,
    LiquidityZero,
    Locked,
    NotAuthorized,
    Overflow,
    PositionNotFound,
    RangeswapTypeError,
    RangeswapValueError,
    Token0Missing,
    Token1Missing,
    TooLittleAmountIn,
    TooLittleReceived,
)
from rangeswap.functions import get_checksum_address, next_placeholder_address
from rangeswap.ledger import TokenLedger, TokenVault
from rangeswap.logging import logger
from rangeswap.types.aliases import Liquidity, Pip, PositionOwner, SqrtPriceX96, Tick, Timestamp

type FlashCallback = Callable[[int, int], None]


class ConcentratedLiquidityPool:
    """
    A concentrated liquidity pool for a token0/token1 pair, with swap fees, a reward token stream
    and token0/token1 airdrop streams distributed to liquidity providers in range.

    Every mutating call takes the caller's current time `now`, runs to completion under the pool
    lock, and either commits its result or raises with no effect on the pool or the vault. Views and
    quotes take the same lock, so they only ever see the state between calls. The lock is not
    reentrant: calling back into the pool from a flash callback raises `Locked`.
    """

    @dataclasses.dataclass(slots=True, eq=False)
    class SwapState:
        amount_specified_remaining: int
        amount_calculated: int
        sqrt_price_x96: int
        tick: int
        liquidity: int
        fee_amount: int = 0
        protocol_fee: int = 0

    @dataclasses.dataclass(slots=True, eq=False)
    class StepComputations:
        sqrt_price_start_x96: int = 0
        sqrt_price_next_x96: int = 0
        tick_next: int = 0
        amount_in: int = 0
        amount_out: int = 0
        fee_amount: int = 0

    def __init__(
        self,
        token0: str,
        token1: str,
        *,
        swap_fee: Pip,
        tick_spacing: int,
        sqrt_price_x96: SqrtPriceX96,
        reward_token: str | None = None,
        tick_parity: bool = True,
        protocol_fee_share: Pip | None = None,
        strict_liquidity: bool | None = None,
        distributor: str | None = None,
        vault: TokenVault | None = None,
        address: str | None = None,
        created_at: Timestamp = 0,
        silent: bool = False,
    ) -> None:
        self.token0 = get_checksum_address(token0)
        self.token1 = get_checksum_address(token1)
        if self.token0 == self.token1:
            raise RangeswapValueError(message="token0 and token1 must be different tokens")

        if not (0 <= swap_fee <= settings.max_swap_fee):
            raise InvalidSwapFee(fee=swap_fee)

        try:
            self.parameters = PoolParameters(
                swap_fee=swap_fee,
                tick_spacing=tick_spacing,
                sqrt_price_x96=sqrt_price_x96,
                tick_parity=tick_parity,
                protocol_fee_share=(
                    protocol_fee_share
                    if protocol_fee_share is not None
                    else settings.protocol_fee_share
                ),
                strict_liquidity=(
                    strict_liquidity if strict_liquidity is not None else settings.strict_liquidity
                ),
            )
        except pydantic.ValidationError as exc:
            raise RangeswapValueError(message=f"Invalid pool parameters: {exc}") from exc

        self.address: ChecksumAddress = (
            get_checksum_address(address) if address is not None else next_placeholder_address()
        )
        self.reward_token = get_checksum_address(reward_token) if reward_token else None
        self.distributor = get_checksum_address(distributor) if distributor else None
        self.vault: TokenVault = vault if vault is not None else TokenLedger()

        self._state = PoolState(
            sqrt_price_x96=sqrt_price_x96,
            tick=get_tick_at_sqrt_ratio(sqrt_price_x96),
            nearest_tick=MIN_TICK,
            liquidity=0,
            ticks=TickIndex(tick_spacing, tick_parity=tick_parity),
            reward=RewardStream(last_accrual_time=created_at),
            airdrop0=RewardStream(last_accrual_time=created_at),
            airdrop1=RewardStream(last_accrual_time=created_at),
        )
        self._state_lock = Lock()
        self._state_owner: int | None = None

        if not silent:
            logger.info(self.name)
            logger.info(f"• Address: {self.address}")
            logger.info(f"• Token 0: {self.token0}")
            logger.info(f"• Token 1: {self.token1}")
            logger.info(f"• Reward token: {self.reward_token}")
            logger.info(f"• Swap fee: {self.swap_fee}")
            logger.info(f"• Tick spacing: {self.tick_spacing}")
            logger.info(f"• SqrtPrice: {self.sqrt_price_x96}")
            logger.info(f"• Tick: {self.tick}")

    def __getstate__(self) -> dict[str, Any]:
        # Remove objects that cannot be pickled
        with self._reading():
            return {
                k: v for k, v in self.__dict__.items() if k not in ("_state_lock", "_state_owner")
            }

    def __setstate__(self, state: dict[str, Any]) -> None:
        state["_state_lock"] = Lock()
        state["_state_owner"] = None
        self.__dict__ = state

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"{self.__class__.__name__}(address={self.address}, token0={self.token0}, "
            f"token1={self.token1}, swap_fee={self.swap_fee}, tick_spacing={self.tick_spacing})"
        )

    def __str__(self) -> str:
        return self.name

    @property
    def name(self) -> str:
        return f"{self.token0}-{self.token1} ({self.swap_fee / 10_000:.2f}%, {self.tick_spacing})"

    @property
    def swap_fee(self) -> Pip:
        return self.parameters.swap_fee

    @property
    def tick_spacing(self) -> int:
        return self.parameters.tick_spacing

    @property
    def tick_parity(self) -> bool:
        return self.parameters.tick_parity

    @property
    def protocol_fee_share(self) -> Pip:
        return self.parameters.protocol_fee_share

    @property
    def strict_liquidity(self) -> bool:
        return self.parameters.strict_liquidity

    @property
    def state(self) -> PoolState:
        """
        A snapshot of the state between mutating calls.
        """

        with self._reading() as state:
            return state.copy()

    @property
    def liquidity(self) -> Liquidity:
        with self._reading() as state:
            return state.liquidity

    @property
    def sqrt_price_x96(self) -> SqrtPriceX96:
        with self._reading() as state:
            return state.sqrt_price_x96

    @property
    def tick(self) -> Tick:
        with self._reading() as state:
            return state.tick

    @property
    def nearest_tick(self) -> Tick:
        with self._reading() as state:
            return state.nearest_tick

    @property
    def ticks(self) -> TickIndex:
        with self._reading() as state:
            return state.ticks.copy()

    def _check_reentry(self) -> None:
        if self._state_owner == get_ident():
            raise Locked

    @contextlib.contextmanager
    def _reading(self) -> Iterator[PoolState]:
        """
        Hold the state between mutating calls. Raises `Locked` if called from inside a mutating call
        on the same thread, such as from a flash callback.
        """

        self._check_reentry()
        with self._state_lock:
            yield self._state

    @contextlib.contextmanager
    def _transaction(self, now: Timestamp) -> Iterator[PoolState]:
        """
        Serialize a mutating call. The call changes the state in place after accruing it to `now`.
        If the block raises, the state is rolled back along with the transfers made through the
        vault inside the block.

        A call into the pool from inside the block on the same thread raises `Locked`.
        """

        self._check_reentry()
        with self._state_lock, self.vault.atomic():
            self._state_owner = get_ident()
            state = self._state
            state.begin()
            try:
                self._accrue(state, now)
                yield state
            except BaseException:
                state.rollback()
                raise
            else:
                state.commit()
            finally:
                self._state_owner = None

    @contextlib.contextmanager
    def _simulation(self) -> Iterator[PoolState]:
        """
        Run a calculation against the state and undo its changes afterwards.
        """

        with self._reading() as state:
            state.begin()
            try:
                yield state
            finally:
                state.rollback()

    @staticmethod
    def _accrue(state: PoolState, now: Timestamp) -> None:
        for stream in state.streams:
            stream.accrue(now, state.liquidity)

    @staticmethod
    def _owner_key(owner: PositionOwner) -> PositionOwner:
        if not isinstance(owner, Hashable):
            raise RangeswapTypeError(message=f"Position owner {owner!r} is not hashable")
        return get_checksum_address(owner) if isinstance(owner, str) else owner

    @staticmethod
    def _default_account(account: str | None, owner: PositionOwner) -> ChecksumAddress:
        if account is not None:
            return get_checksum_address(account)
        if isinstance(owner, str):
            return get_checksum_address(owner)
        raise RangeswapValueError(message=f"An account address is required for owner {owner!r}")

    def _transfer_in(self, token: ChecksumAddress, sender: ChecksumAddress, amount: int) -> None:
        self.vault.transfer(token, sender, self.address, amount)

    def _transfer_out(
        self, token: ChecksumAddress, recipient: ChecksumAddress, amount: int
    ) -> None:
        self.vault.transfer(token, self.address, recipient, amount)

    def _get_position(self, state: PoolState, key: PositionKey) -> Position:
        try:
            return state.positions[key]
        except KeyError:
            raise PositionNotFound(key=key) from None

    def _position_for_update(self, state: PoolState, key: PositionKey) -> Position:
        position = state.position_for_update(key)
        if position is None:
            raise PositionNotFound(key=key)
        return position

    def _settle(self, state: PoolState, key: PositionKey, position: Position) -> None:
        if position.liquidity == 0:
            return
        _, tick_lower, tick_upper = key
        position.settle(
            state.ticks.growth_inside(
                tick_lower,
                tick_upper,
                tick_current=state.tick,
                growth_global=state.growth_global,
            )
        )

    def _add_liquidity(
        self,
        state: PoolState,
        key: PositionKey,
        liquidity: Liquidity,
        lower_hint: Tick | None,
        upper_hint: Tick | None,
    ) -> Position:
        _, tick_lower, tick_upper = key
        growth_global = state.growth_global

        state.ticks.add_liquidity(
            tick_lower,
            (
                lower_hint
                if lower_hint is not None
                else state.ticks.find_predecessor(tick_lower, start=state.nearest_tick)
            ),
            liquidity,
            upper=False,
            tick_current=state.tick,
            growth_global=growth_global,
        )
        state.ticks.add_liquidity(
            tick_upper,
            (
                upper_hint
                if upper_hint is not None
                else state.ticks.find_predecessor(tick_upper, start=tick_lower)
            ),
            liquidity,
            upper=True,
            tick_current=state.tick,
            growth_global=growth_global,
        )
        for tick in (tick_lower, tick_upper):
            if state.nearest_tick < tick <= state.tick:
                state.nearest_tick = tick

        position = state.position_for_update(key)
        if position is None:
            position = state.positions[key] = Position()
        if position.liquidity == 0:
            position.growth_inside_last = state.ticks.growth_inside(
                tick_lower, tick_upper, tick_current=state.tick, growth_global=growth_global
            )
        else:
            self._settle(state, key, position)
        position.update_liquidity(liquidity)

        if tick_lower <= state.tick < tick_upper:
            state.liquidity = add_delta(state.liquidity, liquidity)
        return position

    def _remove_liquidity(
        self,
        state: PoolState,
        key: PositionKey,
        position: Position,
        liquidity: Liquidity,
    ) -> None:
        _, tick_lower, tick_upper = key

        self._settle(state, key, position)
        if liquidity == 0:
            return
        position.update_liquidity(-liquidity)

        if tick_lower <= state.tick < tick_upper:
            state.liquidity = add_delta(state.liquidity, -liquidity)

        for tick, upper in ((tick_lower, False), (tick_upper, True)):
            prev_tick = state.ticks.get_prev(tick)
            if state.ticks.remove_liquidity(tick, liquidity, upper=upper) and (
                state.nearest_tick == tick
            ):
                state.nearest_tick = prev_tick

    def _pay_owed(
        self,
        state: PoolState,
        position: Position,
        recipient: ChecksumAddress,
    ) -> CollectResult:
        collected = CollectResult(
            fees0=position.tokens_owed0,
            fees1=position.tokens_owed1,
            airdrop0=position.airdrop_owed0,
            airdrop1=position.airdrop_owed1,
        )
        position.tokens_owed0 = position.tokens_owed1 = 0
        position.airdrop_owed0 = position.airdrop_owed1 = 0

        state.reserve0 -= collected.fees0
        state.reserve1 -= collected.fees1
        state.airdrop_reserve0 -= collected.airdrop0
        state.airdrop_reserve1 -= collected.airdrop1

        self._transfer_out(self.token0, recipient, collected.amount0)
        self._transfer_out(self.token1, recipient, collected.amount1)
        return collected

    def mint(
        self,
        owner: PositionOwner,
        tick_lower: Tick,
        tick_upper: Tick,
        amount0_desired: int,
        amount1_desired: int,
        *,
        now: Timestamp,
        payer: str | None = None,
        lower_hint: Tick | None = None,
        upper_hint: Tick | None = None,
        minimum_liquidity: Liquidity = 0,
    ) -> MintResult:
        """
        Add the largest liquidity that the desired amounts can fund to the owner's position over
        [tick_lower, tick_upper), pulling the required amounts (rounded up) from `payer`.

        `lower_hint` and `upper_hint` are the initialized ticks immediately preceding the range
        boundaries, used when a boundary tick must be initialized. The upper hint may be the lower
        tick. A hint that is given is verified and a wrong one raises `InvalidTickHint`; it is never
        corrected by a search. Omitting a hint opts in to a lookup that walks the index from the
        nearest tick, costing one step per initialized tick in between.
        """

        if amount0_desired < 0 or amount1_desired < 0:
            raise RangeswapValueError(message="Desired amounts must not be negative")

        owner = self._owner_key(owner)
        _payer = self._default_account(payer, owner)
        key: PositionKey = (owner, tick_lower, tick_upper)

        with self._transaction(now) as state:
            state.ticks.validate_range(tick_lower, tick_upper)
            sqrt_price_lower = get_sqrt_ratio_at_tick(tick_lower)
            sqrt_price_upper = get_sqrt_ratio_at_tick(tick_upper)

            liquidity = get_liquidity_for_amounts(
                state.sqrt_price_x96,
                sqrt_price_lower,
                sqrt_price_upper,
                amount0_desired,
                amount1_desired,
            )
            if liquidity == 0:
                raise LiquidityZero
            if liquidity < minimum_liquidity:
                raise TooLittleReceived(amount=liquidity, minimum=minimum_liquidity)
            to_uint128(liquidity)

            self._add_liquidity(state, key, liquidity, lower_hint, upper_hint)

            amount0, amount1 = get_amounts_for_liquidity(
                state.sqrt_price_x96, sqrt_price_lower, sqrt_price_upper, liquidity, round_up=True
            )
            state.reserve0 += amount0
            state.reserve1 += amount1
            self._transfer_in(self.token0, _payer, amount0)
            self._transfer_in(self.token1, _payer, amount1)

        logger.debug(
            f"{self.address} MINT {owner} [{tick_lower}, {tick_upper}) liquidity={liquidity} "
            f"amount0={amount0} amount1={amount1}"
        )
        return MintResult(liquidity=liquidity, amount0=amount0, amount1=amount1)

    def burn(
        self,
        owner: PositionOwner,
        tick_lower: Tick,
        tick_upper: Tick,
        liquidity: Liquidity,
        *,
        now: Timestamp,
        recipient: str | None = None,
        amount0_minimum: int = 0,
        amount1_minimum: int = 0,
    ) -> BurnResult:
        """
        Remove liquidity from the owner's position, paying the principal (rounded down) together
        with all owed fees and airdrops to `recipient`. Reward tokens stay owed until
        `collect_reward`.
        """

        if liquidity < 0:
            raise RangeswapValueError(message="Liquidity to burn must not be negative")

        owner = self._owner_key(owner)
        _recipient = self._default_account(recipient, owner)
        key: PositionKey = (owner, tick_lower, tick_upper)

        with self._transaction(now) as state:
            position = self._position_for_update(state, key)
            if liquidity > position.liquidity:
                raise Overflow(message="Overflow: burn exceeds the position liquidity")

            self._remove_liquidity(state, key, position, liquidity)

            amount0, amount1 = get_amounts_for_liquidity(
                state.sqrt_price_x96,
                get_sqrt_ratio_at_tick(tick_lower),
                get_sqrt_ratio_at_tick(tick_upper),
                liquidity,
                round_up=False,
            )
            if amount0 < amount0_minimum:
                raise TooLittleReceived(amount=amount0, minimum=amount0_minimum)
            if amount1 < amount1_minimum:
                raise TooLittleReceived(amount=amount1, minimum=amount1_minimum)

            state.reserve0 -= amount0
            state.reserve1 -= amount1
            self._transfer_out(self.token0, _recipient, amount0)
            self._transfer_out(self.token1, _recipient, amount1)
            collected = self._pay_owed(state, position, _recipient)

        logger.debug(
            f"{self.address} BURN {owner} [{tick_lower}, {tick_upper}) liquidity={liquidity} "
            f"amount0={amount0} amount1={amount1} {collected}"
        )
        return BurnResult(
            liquidity=liquidity,
            amount0=amount0,
            amount1=amount1,
            collected=collected,
        )

    def collect(
        self,
        owner: PositionOwner,
        tick_lower: Tick,
        tick_upper: Tick,
        *,
        now: Timestamp,
        recipient: str | None = None,
    ) -> CollectResult:
        """
        Settle the position and pay all owed swap fees and airdrops to `recipient`.
        """

        owner = self._owner_key(owner)
        _recipient = self._default_account(recipient, owner)
        key: PositionKey = (owner, tick_lower, tick_upper)

        with self._transaction(now) as state:
            position = self._position_for_update(state, key)
            self._settle(state, key, position)
            collected = self._pay_owed(state, position, _recipient)

        logger.debug(f"{self.address} COLLECT {owner} [{tick_lower}, {tick_upper}) {collected}")
        return collected

    def collect_reward(
        self,
        owner: PositionOwner,
        tick_lower: Tick,
        tick_upper: Tick,
        *,
        now: Timestamp,
        recipient: str | None = None,
    ) -> int:
        """
        Settle the position and pay its owed reward tokens to `recipient`.
        """

        owner = self._owner_key(owner)
        _recipient = self._default_account(recipient, owner)
        key: PositionKey = (owner, tick_lower, tick_upper)

        with self._transaction(now) as state:
            position = self._position_for_update(state, key)
            self._settle(state, key, position)

            amount, position.reward_owed = position.reward_owed, 0
            state.reward_reserve -= amount
            if amount:
                assert self.reward_token is not None
                self._transfer_out(self.reward_token, _recipient, amount)

        logger.debug(f"{self.address} COLLECT REWARD {owner} [{tick_lower}, {tick_upper}) {amount}")
        return amount

    def _calculate_swap(
        self,
        state: PoolState,
        *,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: SqrtPriceX96 | None,
    ) -> SwapResult:
        """
        Run the swap state machine against `state`, updating its price, tick, liquidity, fee growth,
        protocol fees and crossed ticks. Reserves and transfers are left to the caller.

        A positive `amount_specified` is an exact input, a negative value an exact output.
        """

        if amount_specified == 0:
            raise RangeswapValueError(message="Swap amount must be non-zero")

        exact_input = amount_specified > 0
        to_price_bound = sqrt_price_limit_x96 is None
        if sqrt_price_limit_x96 is None:
            sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
            if state.sqrt_price_x96 == sqrt_price_limit_x96:
                raise LiquidityInsufficient

        if (
            zero_for_one and not (MIN_SQRT_RATIO < sqrt_price_limit_x96 < state.sqrt_price_x96)
        ) or (
            not zero_for_one
            and not (state.sqrt_price_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO)
        ):
            raise InvalidPriceLimit(sqrt_price_limit_x96=sqrt_price_limit_x96)

        swap_state = self.SwapState(
            amount_specified_remaining=amount_specified,
            amount_calculated=0,
            sqrt_price_x96=state.sqrt_price_x96,
            tick=state.tick,
            liquidity=state.liquidity,
        )
        step = self.StepComputations()

        while (
            swap_state.amount_specified_remaining != 0
            and swap_state.sqrt_price_x96 != sqrt_price_limit_x96
        ):
            step.sqrt_price_start_x96 = swap_state.sqrt_price_x96
            step.tick_next = (
                state.nearest_tick if zero_for_one else state.ticks.get_next(state.nearest_tick)
            )
            step.sqrt_price_next_x96 = get_sqrt_ratio_at_tick(step.tick_next)

            swap_state.sqrt_price_x96, step.amount_in, step.amount_out, step.fee_amount = (
                compute_swap_step(
                    sqrt_ratio_x96_current=swap_state.sqrt_price_x96,
                    sqrt_ratio_x96_target=(
                        max(step.sqrt_price_next_x96, sqrt_price_limit_x96)
                        if zero_for_one
                        else min(step.sqrt_price_next_x96, sqrt_price_limit_x96)
                    ),
                    liquidity=swap_state.liquidity,
                    amount_remaining=swap_state.amount_specified_remaining,
                    fee_pips=self.swap_fee,
                )
            )

            if exact_input:
                swap_state.amount_specified_remaining -= step.amount_in + step.fee_amount
                swap_state.amount_calculated += step.amount_out
            else:
                swap_state.amount_specified_remaining += step.amount_out
                swap_state.amount_calculated += step.amount_in + step.fee_amount

            if step.fee_amount:
                protocol_fee = step.fee_amount * self.protocol_fee_share // PIPS_DENOMINATOR
                swap_state.fee_amount += step.fee_amount
                swap_state.protocol_fee += protocol_fee
                self._distribute_fee(
                    state,
                    zero=zero_for_one,
                    protocol_fee=protocol_fee,
                    lp_fee=step.fee_amount - protocol_fee,
                    liquidity=swap_state.liquidity,
                )

            if swap_state.sqrt_price_x96 == step.sqrt_price_next_x96:
                if not zero_for_one:
                    swap_state.liquidity = add_delta(
                        swap_state.liquidity,
                        state.ticks.cross(step.tick_next, state.growth_global),
                    )
                    state.nearest_tick = step.tick_next
                    swap_state.tick = step.tick_next
                elif (
                    swap_state.amount_specified_remaining == 0
                    or swap_state.sqrt_price_x96 == sqrt_price_limit_x96
                ):
                    # Finished exactly on the boundary, which still belongs to the tick above
                    swap_state.tick = step.tick_next
                else:
                    swap_state.liquidity = add_delta(
                        swap_state.liquidity,
                        -state.ticks.cross(step.tick_next, state.growth_global),
                    )
                    state.nearest_tick = state.ticks.get_prev(step.tick_next)
                    swap_state.tick = step.tick_next - 1
            elif swap_state.sqrt_price_x96 != step.sqrt_price_start_x96:
                swap_state.tick = get_tick_at_sqrt_ratio(swap_state.sqrt_price_x96)

        if (
            zero_for_one
            and swap_state.tick < MAX_TICK
            and swap_state.sqrt_price_x96 == get_sqrt_ratio_at_tick(swap_state.tick + 1)
        ):
            # Crossed down without moving further: step below the boundary of the crossed tick
            swap_state.sqrt_price_x96 -= 1

        if exact_input:
            amount_in = amount_specified - swap_state.amount_specified_remaining
            amount_out = swap_state.amount_calculated
        else:
            amount_in = swap_state.amount_calculated
            amount_out = swap_state.amount_specified_remaining - amount_specified

        if (
            swap_state.amount_specified_remaining != 0
            and to_price_bound
            and (amount_out == 0 or self.strict_liquidity)
        ):
            raise LiquidityInsufficient(amount_in=amount_in, amount_out=amount_out)

        state.sqrt_price_x96 = swap_state.sqrt_price_x96
        state.tick = swap_state.tick
        state.liquidity = swap_state.liquidity

        return SwapResult(
            zero_for_one=zero_for_one,
            amount_in=amount_in,
            amount_out=amount_out,
            fee_amount=swap_state.fee_amount,
            protocol_fee=swap_state.protocol_fee,
            sqrt_price_x96=swap_state.sqrt_price_x96,
            tick=swap_state.tick,
            liquidity=swap_state.liquidity,
        )

    @staticmethod
    def _distribute_fee(
        state: PoolState,
        *,
        zero: bool,
        protocol_fee: int,
        lp_fee: int,
        liquidity: Liquidity,
    ) -> None:
        """
        Record a fee in token0 (`zero`) or token1. The liquidity providers' share is added to the
        global fee growth; with no liquidity in range the protocol keeps the whole fee.
        """

        if liquidity == 0:
            protocol_fee, lp_fee = protocol_fee + lp_fee, 0

        if zero:
            state.protocol_fees0 += protocol_fee
            if lp_fee:
                state.fee_growth_global0 = wrapping_add(
                    state.fee_growth_global0, muldiv(lp_fee, Q128, liquidity)
                )
        else:
            state.protocol_fees1 += protocol_fee
            if lp_fee:
                state.fee_growth_global1 = wrapping_add(
                    state.fee_growth_global1, muldiv(lp_fee, Q128, liquidity)
                )

    def _execute_swap(
        self,
        state: PoolState,
        *,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: SqrtPriceX96 | None,
        payer: ChecksumAddress,
        recipient: ChecksumAddress,
    ) -> SwapResult:
        result = self._calculate_swap(
            state,
            zero_for_one=zero_for_one,
            amount_specified=amount_specified,
            sqrt_price_limit_x96=sqrt_price_limit_x96,
        )

        if zero_for_one:
            token_in, token_out = self.token0, self.token1
            state.reserve0 += result.amount_in
            state.reserve1 -= result.amount_out
        else:
            token_in, token_out = self.token1, self.token0
            state.reserve1 += result.amount_in
            state.reserve0 -= result.amount_out

        if state.reserve0 < 0 or state.reserve1 < 0:
            raise LiquidityInsufficient(amount_in=result.amount_in, amount_out=result.amount_out)

        self._transfer_in(token_in, payer, result.amount_in)
        self._transfer_out(token_out, recipient, result.amount_out)

        logger.debug(
            f"{self.address} SWAP {'0->1' if zero_for_one else '1->0'} in={result.amount_in} "
            f"out={result.amount_out} fee={result.fee_amount} tick={result.tick}"
        )
        return result

    def swap(
        self,
        *,
        zero_for_one: bool,
        amount_specified: int,
        payer: str,
        now: Timestamp,
        recipient: str | None = None,
        sqrt_price_limit_x96: SqrtPriceX96 | None = None,
    ) -> SwapResult:
        """
        Swap token0 for token1 (`zero_for_one`) or the reverse. A positive `amount_specified` is an
        exact input, a negative value an exact output.

        Without a price limit the swap may run to the price bounds. If demand is left unserved
        there, `LiquidityInsufficient` is raised when nothing was exchanged or the pool is strict,
        otherwise the partial fill is returned.
        """

        _payer = get_checksum_address(payer)
        _recipient = get_checksum_address(recipient) if recipient is not None else _payer

        with self._transaction(now) as state:
            return self._execute_swap(
                state,
                zero_for_one=zero_for_one,
                amount_specified=amount_specified,
                sqrt_price_limit_x96=sqrt_price_limit_x96,
                payer=_payer,
                recipient=_recipient,
            )

    def exact_input(
        self,
        *,
        zero_for_one: bool,
        amount_in: int,
        payer: str,
        now: Timestamp,
        amount_out_minimum: int = 0,
        recipient: str | None = None,
        sqrt_price_limit_x96: SqrtPriceX96 | None = None,
    ) -> SwapResult:
        if amount_in <= 0:
            raise RangeswapValueError(message="amount_in must be positive")

        _payer = get_checksum_address(payer)
        _recipient = get_checksum_address(recipient) if recipient is not None else _payer

        with self._transaction(now) as state:
            result = self._execute_swap(
                state,
                zero_for_one=zero_for_one,
                amount_specified=amount_in,
                sqrt_price_limit_x96=sqrt_price_limit_x96,
                payer=_payer,
                recipient=_recipient,
            )
            if result.amount_out < amount_out_minimum:
                raise TooLittleReceived(amount=result.amount_out, minimum=amount_out_minimum)
            return result

    def exact_output(
        self,
        *,
        zero_for_one: bool,
        amount_out: int,
        payer: str,
        now: Timestamp,
        amount_in_maximum: int | None = None,
        recipient: str | None = None,
        sqrt_price_limit_x96: SqrtPriceX96 | None = None,
    ) -> SwapResult:
        if amount_out <= 0:
            raise RangeswapValueError(message="amount_out must be positive")

        _payer = get_checksum_address(payer)
        _recipient = get_checksum_address(recipient) if recipient is not None else _payer

        with self._transaction(now) as state:
            result = self._execute_swap(
                state,
                zero_for_one=zero_for_one,
                amount_specified=-amount_out,
                sqrt_price_limit_x96=sqrt_price_limit_x96,
                payer=_payer,
                recipient=_recipient,
            )
            if amount_in_maximum is not None and result.amount_in > amount_in_maximum:
                raise TooLittleAmountIn(amount_in=result.amount_in, maximum=amount_in_maximum)
            return result

    def quote_exact_input(
        self,
        *,
        zero_for_one: bool,
        amount_in: int,
        sqrt_price_limit_x96: SqrtPriceX96 | None = None,
    ) -> SwapResult:
        """
        Simulate an exact input swap without changing the pool.
        """

        with self._simulation() as state:
            return self._calculate_swap(
                state,
                zero_for_one=zero_for_one,
                amount_specified=amount_in,
                sqrt_price_limit_x96=sqrt_price_limit_x96,
            )

    def quote_exact_output(
        self,
        *,
        zero_for_one: bool,
        amount_out: int,
        sqrt_price_limit_x96: SqrtPriceX96 | None = None,
    ) -> SwapResult:
        """
        Simulate an exact output swap without changing the pool.
        """

        with self._simulation() as state:
            return self._calculate_swap(
                state,
                zero_for_one=zero_for_one,
                amount_specified=-amount_out,
                sqrt_price_limit_x96=sqrt_price_limit_x96,
            )

    def flash(
        self,
        amount0: int,
        amount1: int,
        *,
        recipient: str,
        callback: FlashCallback,
        now: Timestamp,
    ) -> FlashResult:
        """
        Lend reserves to `recipient` for the duration of `callback(fee0, fee1)`, which must return
        the borrowed amounts plus the fees to the pool through the vault before it returns.

        Any amount paid beyond the loan is split between the protocol and the in-range liquidity
        providers like a swap fee.
        """

        if amount0 < 0 or amount1 < 0:
            raise RangeswapValueError(message="Flash amounts must not be negative")

        _recipient = get_checksum_address(recipient)

        with self._transaction(now) as state:
            if amount0 > state.reserve0 or amount1 > state.reserve1:
                raise LiquidityInsufficient(amount_out=max(amount0, amount1))

            fee0 = div_rounding_up(amount0 * self.swap_fee, PIPS_DENOMINATOR)
            fee1 = div_rounding_up(amount1 * self.swap_fee, PIPS_DENOMINATOR)
            balance0_before = self.vault.balance_of(self.address, self.token0)
            balance1_before = self.vault.balance_of(self.address, self.token1)

            self._transfer_out(self.token0, _recipient, amount0)
            self._transfer_out(self.token1, _recipient, amount1)
            callback(fee0, fee1)

            paid0 = self.vault.balance_of(self.address, self.token0) - balance0_before
            paid1 = self.vault.balance_of(self.address, self.token1) - balance1_before
            if paid0 < fee0:
                raise Token0Missing(paid=amount0 + paid0, required=amount0 + fee0)
            if paid1 < fee1:
                raise Token1Missing(paid=amount1 + paid1, required=amount1 + fee1)

            for zero, paid in ((True, paid0), (False, paid1)):
                protocol_fee = paid * self.protocol_fee_share // PIPS_DENOMINATOR
                self._distribute_fee(
                    state,
                    zero=zero,
                    protocol_fee=protocol_fee,
                    lp_fee=paid - protocol_fee,
                    liquidity=state.liquidity,
                )
            state.reserve0 += paid0
            state.reserve1 += paid1

        logger.debug(f"{self.address} FLASH {amount0} {amount1} paid={paid0} {paid1}")
        return FlashResult(fee0=fee0, fee1=fee1, paid0=paid0, paid1=paid1)

    def _check_distributor(self, sender: ChecksumAddress) -> None:
        if self.distributor is not None and sender != self.distributor:
            raise NotAuthorized(sender=sender)

    def _deposit_reward(
        self,
        state: PoolState,
        amount: int,
        start_time: Timestamp,
        period: int,
        sender: ChecksumAddress,
        now: Timestamp,
    ) -> None:
        if self.reward_token is None:
            raise RangeswapValueError(message="This pool has no reward token")
        if amount < 0:
            raise RangeswapValueError(message="Reward amount must not be negative")

        state.reward.schedule(amount, start_time, period, now)
        state.reward_reserve += amount
        self._transfer_in(self.reward_token, sender, amount)

    def _deposit_airdrop(
        self,
        state: PoolState,
        amount0: int,
        amount1: int,
        start_time: Timestamp,
        period: int,
        sender: ChecksumAddress,
        now: Timestamp,
    ) -> None:
        if amount0 < 0 or amount1 < 0 or amount0 == amount1 == 0:
            raise RangeswapValueError(message="Airdrop amounts must be positive")

        if amount0:
            state.airdrop0.schedule(amount0, start_time, period, now)
            state.airdrop_reserve0 += amount0
            self._transfer_in(self.token0, sender, amount0)
        if amount1:
            state.airdrop1.schedule(amount1, start_time, period, now)
            state.airdrop_reserve1 += amount1
            self._transfer_in(self.token1, sender, amount1)

    def deposit_reward(
        self,
        amount: int,
        start_time: Timestamp,
        period: int,
        *,
        sender: str,
        now: Timestamp,
    ) -> None:
        """
        Fund the reward token stream over [max(start_time, now), start_time + period). Any part of
        the current window not yet emitted is carried into the new one.
        """

        _sender = get_checksum_address(sender)
        self._check_distributor(_sender)

        with self._transaction(now) as state:
            self._deposit_reward(state, amount, start_time, period, _sender, now)

        logger.debug(f"{self.address} DEPOSIT REWARD {amount} [{start_time}, +{period})")

    def deposit_airdrop(
        self,
        amount0: int,
        amount1: int,
        start_time: Timestamp,
        period: int,
        *,
        sender: str,
        now: Timestamp,
    ) -> None:
        """
        Fund the token0 and token1 airdrop streams over [max(start_time, now), start_time + period).
        A zero amount leaves that token's stream unchanged.
        """

        _sender = get_checksum_address(sender)
        self._check_distributor(_sender)

        with self._transaction(now) as state:
            self._deposit_airdrop(state, amount0, amount1, start_time, period, _sender, now)

        logger.debug(
            f"{self.address} DEPOSIT AIRDROP {amount0} {amount1} [{start_time}, +{period})"
        )

    def deposit_airdrop_and_reward(
        self,
        amount0: int,
        amount1: int,
        reward_amount: int,
        start_time: Timestamp,
        period: int,
        *,
        sender: str,
        now: Timestamp,
    ) -> None:
        _sender = get_checksum_address(sender)
        self._check_distributor(_sender)

        with self._transaction(now) as state:
            self._deposit_airdrop(state, amount0, amount1, start_time, period, _sender, now)
            self._deposit_reward(state, reward_amount, start_time, period, _sender, now)

    def touch(self, now: Timestamp) -> None:
        """
        Accrue the reward and airdrop streams to `now` without any other effect.
        """

        with self._transaction(now):
            pass

    def collect_protocol_fee(self, recipient: str, *, now: Timestamp) -> tuple[int, int]:
        _recipient = get_checksum_address(recipient)

        with self._transaction(now) as state:
            amount0, amount1 = state.protocol_fees0, state.protocol_fees1
            state.protocol_fees0 = state.protocol_fees1 = 0
            state.reserve0 -= amount0
            state.reserve1 -= amount1
            self._transfer_out(self.token0, _recipient, amount0)
            self._transfer_out(self.token1, _recipient, amount1)

        logger.debug(f"{self.address} COLLECT PROTOCOL FEE {amount0} {amount1}")
        return amount0, amount1

    def _growth_global_at(self, state: PoolState, now: Timestamp | None) -> Growth:
        if now is None:
            return state.growth_global

        reward, airdrop0, airdrop1 = (dataclasses.replace(stream) for stream in state.streams)
        for stream in (reward, airdrop0, airdrop1):
            stream.accrue(now, state.liquidity)
        return Growth(
            fee0=state.fee_growth_global0,
            fee1=state.fee_growth_global1,
            reward=reward.growth_global,
            airdrop0=airdrop0.growth_global,
            airdrop1=airdrop1.growth_global,
        )

    def get_position(self, owner: PositionOwner, tick_lower: Tick, tick_upper: Tick) -> Position:
        key: PositionKey = (self._owner_key(owner), tick_lower, tick_upper)
        with self._reading() as state:
            return dataclasses.replace(self._get_position(state, key))

    def position_fees(
        self,
        owner: PositionOwner,
        tick_lower: Tick,
        tick_upper: Tick,
        *,
        now: Timestamp | None = None,
    ) -> PositionFees:
        """
        Token0 and token1 the position could collect, including amounts not yet settled. Airdrops
        are projected to `now` if given, otherwise to the last accrual.
        """

        key: PositionKey = (self._owner_key(owner), tick_lower, tick_upper)
        with self._reading() as state:
            position = dataclasses.replace(self._get_position(state, key))
            growth_inside = state.ticks.growth_inside(
                tick_lower,
                tick_upper,
                tick_current=state.tick,
                growth_global=self._growth_global_at(state, now),
            )
        pending = position.pending(growth_inside)
        return PositionFees(
            fees0=position.tokens_owed0 + pending.fees0,
            fees1=position.tokens_owed1 + pending.fees1,
            airdrop0=position.airdrop_owed0 + pending.airdrop0,
            airdrop1=position.airdrop_owed1 + pending.airdrop1,
            fee_growth_inside0=growth_inside.fee0,
            fee_growth_inside1=growth_inside.fee1,
        )

    def position_reward_amount(
        self,
        owner: PositionOwner,
        tick_lower: Tick,
        tick_upper: Tick,
        *,
        now: Timestamp | None = None,
    ) -> int:
        """
        Reward tokens the position could collect, projected to `now` if given.
        """

        key: PositionKey = (self._owner_key(owner), tick_lower, tick_upper)
        with self._reading() as state:
            position = dataclasses.replace(self._get_position(state, key))
            growth_inside = state.ticks.growth_inside(
                tick_lower,
                tick_upper,
                tick_current=state.tick,
                growth_global=self._growth_global_at(state, now),
            )
        return position.reward_owed + position.pending(growth_inside).reward

    def price_and_nearest_ticks(self) -> PriceAndNearestTicks:
        with self._reading() as state:
            return PriceAndNearestTicks(
                sqrt_price_x96=state.sqrt_price_x96,
                tick=state.tick,
                nearest_tick=state.nearest_tick,
                next_tick=state.ticks.get_next(state.nearest_tick),
            )

    def range_fee_growth(self, tick_lower: Tick, tick_upper: Tick) -> tuple[int, int]:
        """
        Fee growth per unit of liquidity inside [tick_lower, tick_upper) for token0 and token1.
        """

        with self._reading() as state:
            growth = state.ticks.growth_inside(
                tick_lower,
                tick_upper,
                tick_current=state.tick,
                growth_global=state.growth_global,
            )
        return growth.fee0, growth.fee1

    def reserves(self) -> tuple[int, int]:
        with self._reading() as state:
            return state.reserve0, state.reserve1

    def protocol_fees(self) -> tuple[int, int]:
        with self._reading() as state:
            return state.protocol_fees0, state.protocol_fees1
