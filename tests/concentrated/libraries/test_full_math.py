import hypothesis
import hypothesis.strategies
import pytest

from rangeswap.concentrated.libraries.full_math import muldiv, muldiv_rounding_up
from rangeswap.concentrated.libraries.unsafe_math import div_rounding_up
from rangeswap.constants import MAX_UINT256, Q128
from rangeswap.exceptions import DivisionByZero, Overflow


def test_muldiv() -> None:
    with pytest.raises(DivisionByZero):
        muldiv(Q128, 5, 0)

    with pytest.raises(Overflow):
        muldiv(Q128, Q128, 1)

    with pytest.raises(Overflow):
        muldiv(MAX_UINT256, MAX_UINT256, MAX_UINT256 - 1)

    assert muldiv(MAX_UINT256, MAX_UINT256, MAX_UINT256) == MAX_UINT256
    assert muldiv(Q128, 50 * Q128 // 100, 150 * Q128 // 100) == Q128 // 3
    assert muldiv(Q128, 35 * Q128, 8 * Q128) == 4375 * Q128 // 1000
    assert muldiv(Q128, 1000 * Q128, 3000 * Q128) == Q128 // 3


def test_muldiv_rounding_up() -> None:
    with pytest.raises(DivisionByZero):
        muldiv_rounding_up(Q128, 5, 0)

    with pytest.raises(Overflow):
        muldiv_rounding_up(
            535006138814359,
            432862656469423142931042426214547535783388063929571229938474969,
            2,
        )

    # Result of exactly MAX_UINT256 rounds up past the maximum
    with pytest.raises(Overflow):
        muldiv_rounding_up(
            115792089237316195423570985008687907853269984659341747863450311749907997002549,
            115792089237316195423570985008687907853269984659341747863450311749907997002550,
            115792089237316195423570985008687907853269984653042931687443039491902864365164,
        )

    assert muldiv_rounding_up(MAX_UINT256, MAX_UINT256, MAX_UINT256) == MAX_UINT256
    assert muldiv_rounding_up(Q128, 50 * Q128 // 100, 150 * Q128 // 100) == Q128 // 3 + 1
    assert muldiv_rounding_up(Q128, 1000 * Q128, 3000 * Q128) == Q128 // 3 + 1


def test_div_rounding_up() -> None:
    with pytest.raises(DivisionByZero):
        div_rounding_up(1, 0)

    assert div_rounding_up(0, 3) == 0
    assert div_rounding_up(6, 3) == 2
    assert div_rounding_up(7, 3) == 3


@hypothesis.given(
    a=hypothesis.strategies.integers(min_value=0, max_value=2**128),
    b=hypothesis.strategies.integers(min_value=0, max_value=2**128),
    denominator=hypothesis.strategies.integers(min_value=1, max_value=MAX_UINT256),
)
def test_rounding_directions(a: int, b: int, denominator: int) -> None:
    down = muldiv(a, b, denominator)
    up = muldiv_rounding_up(a, b, denominator)
    assert down <= a * b / denominator + 1
    assert up - down == (1 if (a * b) % denominator else 0)
