import pytest
from pool_helpers import (
    ALICE,
    BOB,
    CAROL,
    DISTRIBUTOR,
    INITIAL_BALANCE,
    RANGE_LOWER,
    RANGE_UPPER,
    REWARD_TOKEN,
    TOKEN0,
    TOKEN1,
    assert_pool_invariants,
    make_pool,
)

from rangeswap.concentrated.pool import ConcentratedLiquidityPool
from rangeswap.exceptions import (
    InvalidEpoch,
    InvalidTimestamp,
    NotAuthorized,
    RangeswapValueError,
)
from rangeswap.ledger import TokenLedger

DEPOSIT = 10**24
REWARD = 10**18
PERIOD = 100


@pytest.fixture
def rewarded_pool(ledger: TokenLedger) -> ConcentratedLiquidityPool:
    return make_pool(ledger, distributor=DISTRIBUTOR)


def test_equal_positions_share_the_reward(
    rewarded_pool: ConcentratedLiquidityPool, ledger: TokenLedger
) -> None:
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.mint(BOB, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)

    assert ledger.balance_of(DISTRIBUTOR, REWARD_TOKEN) == INITIAL_BALANCE - REWARD
    assert ledger.balance_of(rewarded_pool.address, REWARD_TOKEN) == REWARD

    halfway = rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=50)
    assert REWARD // 4 - 1 <= halfway <= REWARD // 4

    for owner in (ALICE, BOB):
        amount = rewarded_pool.position_reward_amount(owner, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
        assert REWARD // 2 - 1 <= amount <= REWARD // 2

    # Nothing accrues after the window closes
    assert rewarded_pool.position_reward_amount(
        ALICE, RANGE_LOWER, RANGE_UPPER, now=10 * PERIOD
    ) == rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)

    expected = rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    collected = rewarded_pool.collect_reward(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    assert collected == expected
    assert ledger.balance_of(ALICE, REWARD_TOKEN) == INITIAL_BALANCE + collected
    assert rewarded_pool.state.reward_reserve == REWARD - collected
    assert rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER) == 0
    assert rewarded_pool.collect_reward(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD) == 0


def test_reward_is_proportional_to_liquidity(rewarded_pool: ConcentratedLiquidityPool) -> None:
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.mint(BOB, RANGE_LOWER, RANGE_UPPER, 2 * DEPOSIT, 2 * DEPOSIT, now=0)
    rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)

    alice = rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    bob = rewarded_pool.position_reward_amount(BOB, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    assert abs(bob - 2 * alice) <= 3
    assert REWARD - 2 <= alice + bob <= REWARD


def test_out_of_range_position_earns_nothing(rewarded_pool: ConcentratedLiquidityPool) -> None:
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.mint(CAROL, 100, 210, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)

    assert rewarded_pool.position_reward_amount(CAROL, 100, 210, now=PERIOD) == 0
    alice = rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    assert REWARD - 1 <= alice <= REWARD


def test_reward_emitted_without_liquidity_is_carried_over(
    rewarded_pool: ConcentratedLiquidityPool,
) -> None:
    rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=PERIOD // 2)

    amount = rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    assert REWARD - 1 <= amount <= REWARD


def test_reward_carried_over_across_a_gap(rewarded_pool: ConcentratedLiquidityPool) -> None:
    minted = rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)

    # Alice leaves for the middle half of the window, Bob joins at the end
    rewarded_pool.burn(ALICE, RANGE_LOWER, RANGE_UPPER, minted.liquidity, now=25)
    rewarded_pool.mint(BOB, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=75)

    alice = rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    bob = rewarded_pool.position_reward_amount(BOB, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    assert REWARD // 4 - 1 <= alice <= REWARD // 4
    assert 3 * REWARD // 4 - 1 <= bob <= 3 * REWARD // 4


def test_top_up_extends_the_stream(rewarded_pool: ConcentratedLiquidityPool) -> None:
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)
    rewarded_pool.deposit_reward(REWARD, 50, PERIOD, sender=DISTRIBUTOR, now=50)

    stream = rewarded_pool.state.reward
    assert (stream.epoch_start, stream.epoch_end) == (50, 150)

    amount = rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=150)
    assert 2 * REWARD - 2 <= amount <= 2 * REWARD
    assert rewarded_pool.state.reward_reserve == 2 * REWARD


def test_reward_survives_burn(
    rewarded_pool: ConcentratedLiquidityPool, ledger: TokenLedger
) -> None:
    minted = rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)
    rewarded_pool.burn(ALICE, RANGE_LOWER, RANGE_UPPER, minted.liquidity, now=PERIOD)

    assert ledger.balance_of(ALICE, REWARD_TOKEN) == INITIAL_BALANCE
    owed = rewarded_pool.get_position(ALICE, RANGE_LOWER, RANGE_UPPER).reward_owed
    assert REWARD - 1 <= owed <= REWARD
    assert rewarded_pool.collect_reward(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD) == owed


def test_deposit_errors(ledger: TokenLedger, rewarded_pool: ConcentratedLiquidityPool) -> None:
    with pytest.raises(NotAuthorized):
        rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=BOB, now=0)
    with pytest.raises(NotAuthorized):
        rewarded_pool.deposit_airdrop(REWARD, REWARD, 0, PERIOD, sender=BOB, now=0)
    with pytest.raises(InvalidEpoch):
        rewarded_pool.deposit_reward(REWARD, 0, 0, sender=DISTRIBUTOR, now=0)
    with pytest.raises(InvalidEpoch):
        rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=PERIOD)
    with pytest.raises(RangeswapValueError):
        rewarded_pool.deposit_airdrop(0, 0, 0, PERIOD, sender=DISTRIBUTOR, now=0)

    assert ledger.balance_of(DISTRIBUTOR, REWARD_TOKEN) == INITIAL_BALANCE
    assert rewarded_pool.state.reward_reserve == 0

    no_reward_token = make_pool(ledger, reward_token=None)
    with pytest.raises(RangeswapValueError):
        no_reward_token.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)


def test_anyone_may_deposit_without_a_distributor(pool: ConcentratedLiquidityPool) -> None:
    pool.deposit_reward(REWARD, 0, PERIOD, sender=BOB, now=0)
    assert pool.state.reward_reserve == REWARD


def test_time_cannot_move_backward(rewarded_pool: ConcentratedLiquidityPool) -> None:
    rewarded_pool.touch(100)
    with pytest.raises(InvalidTimestamp):
        rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=99)
    assert rewarded_pool.liquidity == 0


def test_touch_accrues_the_streams(rewarded_pool: ConcentratedLiquidityPool) -> None:
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.deposit_reward(REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)
    assert rewarded_pool.state.reward.growth_global == 0

    rewarded_pool.touch(PERIOD)
    assert rewarded_pool.state.reward.growth_global > 0
    assert rewarded_pool.state.reward.last_accrual_time == PERIOD
    assert rewarded_pool.position_reward_amount(
        ALICE, RANGE_LOWER, RANGE_UPPER
    ) == rewarded_pool.position_reward_amount(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)


def test_airdrop(rewarded_pool: ConcentratedLiquidityPool, ledger: TokenLedger) -> None:
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    reserves = rewarded_pool.reserves()
    rewarded_pool.deposit_airdrop(REWARD, 2 * REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)

    # Airdrops are held apart from the trading reserves
    assert rewarded_pool.reserves() == reserves
    assert (rewarded_pool.state.airdrop_reserve0, rewarded_pool.state.airdrop_reserve1) == (
        REWARD,
        2 * REWARD,
    )
    assert_pool_invariants(rewarded_pool)

    fees = rewarded_pool.position_fees(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    assert (fees.fees0, fees.fees1) == (0, 0)
    assert REWARD - 1 <= fees.airdrop0 <= REWARD
    assert 2 * REWARD - 1 <= fees.airdrop1 <= 2 * REWARD

    balance0 = ledger.balance_of(ALICE, TOKEN0)
    balance1 = ledger.balance_of(ALICE, TOKEN1)
    collected = rewarded_pool.collect(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    assert (collected.airdrop0, collected.airdrop1) == (fees.airdrop0, fees.airdrop1)
    assert ledger.balance_of(ALICE, TOKEN0) == balance0 + collected.amount0
    assert ledger.balance_of(ALICE, TOKEN1) == balance1 + collected.amount1
    assert rewarded_pool.state.airdrop_reserve0 == REWARD - collected.airdrop0
    assert_pool_invariants(rewarded_pool)


def test_single_token_airdrop(rewarded_pool: ConcentratedLiquidityPool) -> None:
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.deposit_airdrop(0, REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0)

    assert rewarded_pool.state.airdrop0.rate_per_second == 0
    fees = rewarded_pool.position_fees(ALICE, RANGE_LOWER, RANGE_UPPER, now=PERIOD)
    assert fees.airdrop0 == 0
    assert REWARD - 1 <= fees.airdrop1 <= REWARD


def test_combined_deposit(rewarded_pool: ConcentratedLiquidityPool, ledger: TokenLedger) -> None:
    rewarded_pool.mint(ALICE, RANGE_LOWER, RANGE_UPPER, DEPOSIT, DEPOSIT, now=0)
    rewarded_pool.deposit_airdrop_and_reward(
        REWARD, REWARD, REWARD, 0, PERIOD, sender=DISTRIBUTOR, now=0
    )

    assert rewarded_pool.state.reward_reserve == REWARD
    assert rewarded_pool.state.airdrop_reserve0 == REWARD
    assert ledger.balance_of(DISTRIBUTOR, TOKEN0) == INITIAL_BALANCE - REWARD
    assert ledger.balance_of(DISTRIBUTOR, REWARD_TOKEN) == INITIAL_BALANCE - REWARD

    with pytest.raises(InvalidEpoch):
        rewarded_pool.deposit_airdrop_and_reward(
            REWARD, REWARD, REWARD, 0, 0, sender=DISTRIBUTOR, now=0
        )
    assert rewarded_pool.state.airdrop_reserve0 == REWARD
    assert ledger.balance_of(DISTRIBUTOR, TOKEN0) == INITIAL_BALANCE - REWARD
