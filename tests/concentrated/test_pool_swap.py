import hypothesis
import hypothesis.strategies
import pytest
from pool_helpers import (
    ALICE,
    BOB,
    CAROL,
    INITIAL_BALANCE,
    PROTOCOL_FEE_SHARE,
    RANGE_LOWER,
    RANGE_UPPER,
    SWAP_FEE,
    TOKEN0,
    TOKEN1,
    TREASURY,
    assert_pool_invariants,
    funded_ledger,
    make_pool,
)

from rangeswap.concentrated.libraries.full_math import muldiv
from rangeswap.concentrated.libraries.swap_math import compute_swap_step
from rangeswap.concentrated.libraries.tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    MIN_TICK,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from rangeswap.concentrated.pool import ConcentratedLiquidityPool
from rangeswap.constants import PIPS_DENOMINATOR, Q128
from rangeswap.exceptions import (
    InvalidPriceLimit,
    LiquidityInsufficient,
    RangeswapValueError,
    TooLittleAmountIn,
    TooLittleReceived,
)
from rangeswap.ledger import TokenLedger

DEPOSIT = 10**24
SWAP_AMOUNT = 10**18


@pytest.fixture
def funded_pool(pool: ConcentratedLiquidityPool) -> ConcentratedLiquidityPool:
    pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    return pool


def test_exact_input_single_step(
    funded_pool: ConcentratedLiquidityPool, ledger: TokenLedger
) -> None:
    price_before = funded_pool.sqrt_price_x96
    liquidity = funded_pool.liquidity
    reserve0, reserve1 = funded_pool.reserves()

    next_price, step_in, step_out, step_fee = compute_swap_step(
        price_before, get_sqrt_ratio_at_tick(RANGE_LOWER), liquidity, SWAP_AMOUNT, SWAP_FEE
    )

    result = funded_pool.exact_input(
        zero_for_one=True, amount_in=SWAP_AMOUNT, payer=BOB, now=0
    )

    assert step_in + step_fee == SWAP_AMOUNT
    assert result.amount_in == SWAP_AMOUNT
    assert result.amount_out == step_out
    assert result.fee_amount == step_fee
    assert result.amount0_delta == SWAP_AMOUNT
    assert result.amount1_delta == -step_out
    assert funded_pool.sqrt_price_x96 == next_price
    assert funded_pool.tick == get_tick_at_sqrt_ratio(next_price)
    assert funded_pool.liquidity == liquidity
    assert funded_pool.reserves() == (reserve0 + SWAP_AMOUNT, reserve1 - step_out)

    assert ledger.balance_of(BOB, TOKEN0) == INITIAL_BALANCE - SWAP_AMOUNT
    assert ledger.balance_of(BOB, TOKEN1) == INITIAL_BALANCE + step_out
    assert_pool_invariants(funded_pool)


def test_swap_fee_accounting(funded_pool: ConcentratedLiquidityPool) -> None:
    liquidity = funded_pool.liquidity
    result = funded_pool.exact_input(zero_for_one=True, amount_in=SWAP_AMOUNT, payer=BOB, now=0)

    protocol_fee = result.fee_amount * PROTOCOL_FEE_SHARE // PIPS_DENOMINATOR
    lp_fee = result.fee_amount - protocol_fee
    assert result.protocol_fee == protocol_fee
    assert funded_pool.protocol_fees() == (protocol_fee, 0)
    assert funded_pool.state.fee_growth_global0 == muldiv(lp_fee, Q128, liquidity)
    assert funded_pool.state.fee_growth_global1 == 0

    fees = funded_pool.position_fees(ALICE, RANGE_LOWER, RANGE_UPPER)
    assert lp_fee - 1 <= fees.fees0 <= lp_fee
    assert fees.fees1 == 0
    assert funded_pool.range_fee_growth(RANGE_LOWER, RANGE_UPPER) == (
        funded_pool.state.fee_growth_global0,
        0,
    )

    collected = funded_pool.collect(ALICE, RANGE_LOWER, RANGE_UPPER, now=0)
    assert collected.fees0 == fees.fees0
    assert funded_pool.position_fees(ALICE, RANGE_LOWER, RANGE_UPPER).fees0 == 0
    assert_pool_invariants(funded_pool)


def test_quote_does_not_change_the_pool(funded_pool: ConcentratedLiquidityPool) -> None:
    state = funded_pool.state
    quote = funded_pool.quote_exact_input(zero_for_one=False, amount_in=SWAP_AMOUNT)

    assert funded_pool.state == state
    assert funded_pool.sqrt_price_x96 == state.sqrt_price_x96
    assert funded_pool.protocol_fees() == (0, 0)

    result = funded_pool.exact_input(zero_for_one=False, amount_in=SWAP_AMOUNT, payer=BOB, now=0)
    assert result == quote


def test_exact_output(funded_pool: ConcentratedLiquidityPool, ledger: TokenLedger) -> None:
    quote = funded_pool.quote_exact_output(zero_for_one=False, amount_out=SWAP_AMOUNT)
    assert quote.amount_out == SWAP_AMOUNT

    result = funded_pool.exact_output(
        zero_for_one=False,
        amount_out=SWAP_AMOUNT,
        payer=BOB,
        now=0,
        amount_in_maximum=quote.amount_in,
    )
    assert result == quote
    assert ledger.balance_of(BOB, TOKEN0) == INITIAL_BALANCE + SWAP_AMOUNT
    assert ledger.balance_of(BOB, TOKEN1) == INITIAL_BALANCE - result.amount_in
    assert funded_pool.tick >= 0
    assert_pool_invariants(funded_pool)


def test_swap_with_signed_amount(funded_pool: ConcentratedLiquidityPool) -> None:
    exact_in = funded_pool.quote_exact_input(zero_for_one=True, amount_in=SWAP_AMOUNT)
    exact_out = funded_pool.quote_exact_output(zero_for_one=True, amount_out=SWAP_AMOUNT)

    assert funded_pool.swap(
        zero_for_one=True, amount_specified=-SWAP_AMOUNT, payer=BOB, now=0
    ) == exact_out
    assert exact_in.amount_in == SWAP_AMOUNT

    with pytest.raises(RangeswapValueError):
        funded_pool.swap(zero_for_one=True, amount_specified=0, payer=BOB, now=0)


def test_swap_to_another_recipient(
    funded_pool: ConcentratedLiquidityPool, ledger: TokenLedger
) -> None:
    result = funded_pool.exact_input(
        zero_for_one=True, amount_in=SWAP_AMOUNT, payer=BOB, recipient=TREASURY, now=0
    )
    assert ledger.balance_of(BOB, TOKEN0) == INITIAL_BALANCE - SWAP_AMOUNT
    assert ledger.balance_of(BOB, TOKEN1) == INITIAL_BALANCE
    assert ledger.balance_of(TREASURY, TOKEN1) == result.amount_out


def test_slippage_limits(funded_pool: ConcentratedLiquidityPool, ledger: TokenLedger) -> None:
    state = funded_pool.state
    quote_in = funded_pool.quote_exact_input(zero_for_one=True, amount_in=SWAP_AMOUNT)
    quote_out = funded_pool.quote_exact_output(zero_for_one=True, amount_out=SWAP_AMOUNT)

    with pytest.raises(TooLittleReceived):
        funded_pool.exact_input(
            zero_for_one=True,
            amount_in=SWAP_AMOUNT,
            payer=BOB,
            now=0,
            amount_out_minimum=quote_in.amount_out + 1,
        )
    with pytest.raises(TooLittleAmountIn):
        funded_pool.exact_output(
            zero_for_one=True,
            amount_out=SWAP_AMOUNT,
            payer=BOB,
            now=0,
            amount_in_maximum=quote_out.amount_in - 1,
        )

    assert funded_pool.state == state
    assert ledger.balance_of(BOB, TOKEN0) == INITIAL_BALANCE
    assert ledger.balance_of(BOB, TOKEN1) == INITIAL_BALANCE


@pytest.mark.parametrize(
    ("zero_for_one", "sqrt_price_limit_x96"),
    [
        (True, get_sqrt_ratio_at_tick(0)),  # at the current price
        (True, get_sqrt_ratio_at_tick(10)),  # above the current price
        (True, MIN_SQRT_RATIO),
        (False, get_sqrt_ratio_at_tick(-10)),
        (False, MAX_SQRT_RATIO),
    ],
)
def test_invalid_price_limit(
    funded_pool: ConcentratedLiquidityPool, zero_for_one: bool, sqrt_price_limit_x96: int
) -> None:
    with pytest.raises(InvalidPriceLimit):
        funded_pool.exact_input(
            zero_for_one=zero_for_one,
            amount_in=SWAP_AMOUNT,
            payer=BOB,
            now=0,
            sqrt_price_limit_x96=sqrt_price_limit_x96,
        )


def test_swap_stops_at_the_price_limit(funded_pool: ConcentratedLiquidityPool) -> None:
    limit = get_sqrt_ratio_at_tick(-50)
    result = funded_pool.exact_input(
        zero_for_one=True, amount_in=10**27, payer=BOB, now=0, sqrt_price_limit_x96=limit
    )

    assert result.amount_in < 10**27
    assert funded_pool.sqrt_price_x96 == limit
    assert funded_pool.tick == -50
    assert_pool_invariants(funded_pool)


def test_empty_pool(pool: ConcentratedLiquidityPool) -> None:
    with pytest.raises(LiquidityInsufficient):
        pool.exact_input(zero_for_one=True, amount_in=SWAP_AMOUNT, payer=BOB, now=0)
    with pytest.raises(LiquidityInsufficient):
        pool.exact_output(zero_for_one=False, amount_out=SWAP_AMOUNT, payer=BOB, now=0)
    assert pool.tick == 0

    # With an explicit limit the price moves without exchanging anything
    result = pool.exact_input(
        zero_for_one=True,
        amount_in=SWAP_AMOUNT,
        payer=BOB,
        now=0,
        sqrt_price_limit_x96=get_sqrt_ratio_at_tick(-100),
    )
    assert (result.amount_in, result.amount_out) == (0, 0)
    assert pool.tick == -100
    assert_pool_invariants(pool)


def test_partial_fill(funded_pool: ConcentratedLiquidityPool) -> None:
    reserve1 = funded_pool.reserves()[1]
    result = funded_pool.exact_input(zero_for_one=True, amount_in=10**28, payer=BOB, now=0)

    assert 0 < result.amount_in < 10**28
    assert 0 < result.amount_out <= reserve1
    assert funded_pool.sqrt_price_x96 == MIN_SQRT_RATIO + 1
    assert funded_pool.tick == MIN_TICK
    assert funded_pool.liquidity == 0
    assert funded_pool.nearest_tick == MIN_TICK
    assert_pool_invariants(funded_pool)

    # Nothing further can be served in this direction
    with pytest.raises(LiquidityInsufficient):
        funded_pool.exact_input(zero_for_one=True, amount_in=1, payer=BOB, now=0)

    # The price can return through the range
    funded_pool.exact_input(zero_for_one=False, amount_in=10**28, payer=BOB, now=0)
    assert_pool_invariants(funded_pool)


def test_strict_pool_rejects_partial_fills(ledger: TokenLedger) -> None:
    pool = make_pool(ledger, strict_liquidity=True)
    pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    state = pool.state

    with pytest.raises(LiquidityInsufficient) as exc_info:
        pool.exact_input(zero_for_one=True, amount_in=10**28, payer=BOB, now=0)

    assert exc_info.value.amount_out > 0
    assert pool.state == state
    assert ledger.balance_of(BOB, TOKEN0) == INITIAL_BALANCE


def test_crossing_ticks(funded_pool: ConcentratedLiquidityPool) -> None:
    liquidity_a = funded_pool.liquidity
    liquidity_b = funded_pool.mint(BOB, -200, 210, DEPOSIT, DEPOSIT, now=0).liquidity
    assert funded_pool.liquidity == liquidity_a + liquidity_b

    # Down through -200
    funded_pool.exact_input(
        zero_for_one=True,
        amount_in=10**27,
        payer=CAROL,
        now=0,
        sqrt_price_limit_x96=get_sqrt_ratio_at_tick(-500),
    )
    assert funded_pool.tick == -500
    assert funded_pool.liquidity == liquidity_a
    assert funded_pool.nearest_tick == RANGE_LOWER
    assert_pool_invariants(funded_pool)

    # Back up through -200
    funded_pool.exact_input(
        zero_for_one=False,
        amount_in=10**27,
        payer=CAROL,
        now=0,
        sqrt_price_limit_x96=get_sqrt_ratio_at_tick(100),
    )
    assert funded_pool.tick == 100
    assert funded_pool.liquidity == liquidity_a + liquidity_b
    assert funded_pool.nearest_tick == -200
    assert_pool_invariants(funded_pool)

    # Up through 210
    funded_pool.exact_input(
        zero_for_one=False,
        amount_in=10**27,
        payer=CAROL,
        now=0,
        sqrt_price_limit_x96=get_sqrt_ratio_at_tick(300),
    )
    assert funded_pool.liquidity == liquidity_a
    assert funded_pool.nearest_tick == 210
    assert_pool_invariants(funded_pool)


def test_stopping_on_a_tick_going_down(funded_pool: ConcentratedLiquidityPool) -> None:
    liquidity_a = funded_pool.liquidity
    liquidity_b = funded_pool.mint(BOB, -200, 210, DEPOSIT, DEPOSIT, now=0).liquidity

    funded_pool.exact_input(
        zero_for_one=True,
        amount_in=10**27,
        payer=CAROL,
        now=0,
        sqrt_price_limit_x96=get_sqrt_ratio_at_tick(-200),
    )

    # The boundary price belongs to the range above it, so the tick is not crossed yet
    assert funded_pool.sqrt_price_x96 == get_sqrt_ratio_at_tick(-200)
    assert funded_pool.tick == -200
    assert funded_pool.nearest_tick == -200
    assert funded_pool.liquidity == liquidity_a + liquidity_b
    assert_pool_invariants(funded_pool)

    funded_pool.exact_input(
        zero_for_one=True,
        amount_in=10**27,
        payer=CAROL,
        now=0,
        sqrt_price_limit_x96=get_sqrt_ratio_at_tick(-300),
    )
    assert funded_pool.tick == -300
    assert funded_pool.nearest_tick == RANGE_LOWER
    assert funded_pool.liquidity == liquidity_a
    assert_pool_invariants(funded_pool)


def test_price_and_nearest_ticks(funded_pool: ConcentratedLiquidityPool) -> None:
    view = funded_pool.price_and_nearest_ticks()
    assert view.sqrt_price_x96 == get_sqrt_ratio_at_tick(0)
    assert view.tick == 0
    assert view.nearest_tick == RANGE_LOWER
    assert view.next_tick == RANGE_UPPER


def test_collect_protocol_fee(funded_pool: ConcentratedLiquidityPool, ledger: TokenLedger) -> None:
    funded_pool.exact_input(zero_for_one=True, amount_in=SWAP_AMOUNT, payer=BOB, now=0)
    funded_pool.exact_input(zero_for_one=False, amount_in=SWAP_AMOUNT, payer=BOB, now=0)
    protocol0, protocol1 = funded_pool.protocol_fees()
    assert protocol0 > 0
    assert protocol1 > 0

    assert funded_pool.collect_protocol_fee(TREASURY, now=0) == (protocol0, protocol1)
    assert ledger.balance_of(TREASURY, TOKEN0) == protocol0
    assert ledger.balance_of(TREASURY, TOKEN1) == protocol1
    assert funded_pool.protocol_fees() == (0, 0)
    assert funded_pool.collect_protocol_fee(TREASURY, now=0) == (0, 0)
    assert_pool_invariants(funded_pool)


@hypothesis.settings(deadline=None, max_examples=50)
@hypothesis.given(
    swaps=hypothesis.strategies.lists(
        hypothesis.strategies.tuples(
            hypothesis.strategies.booleans(),
            hypothesis.strategies.integers(min_value=1, max_value=10**25),
            hypothesis.strategies.booleans(),
        ),
        min_size=1,
        max_size=12,
    )
)
def test_swap_sequences_preserve_invariants(swaps: list[tuple[bool, int, bool]]) -> None:
    ledger = funded_ledger()
    pool = make_pool(ledger)
    pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    pool.mint(BOB, -200, 210, DEPOSIT, DEPOSIT, now=0)
    pool.mint(CAROL, 100, 2_010, DEPOSIT, DEPOSIT, now=0)

    for zero_for_one, amount, exact_in in swaps:
        try:
            if exact_in:
                pool.exact_input(zero_for_one=zero_for_one, amount_in=amount, payer=CAROL, now=0)
            else:
                pool.exact_output(
                    zero_for_one=zero_for_one, amount_out=amount, payer=CAROL, now=0
                )
        except LiquidityInsufficient:
            pass
        assert_pool_invariants(pool)
