from rangeswap.exceptions.base import RangeswapError, RangeswapTypeError, RangeswapValueError
from rangeswap.exceptions.ledger import InsufficientBalance, LedgerError
from rangeswap.exceptions.liquidity_pool import (
    InvalidEpoch,
    InvalidPriceLimit,
    InvalidSwapFee,
    InvalidTick,
    InvalidTickHint,
    InvalidTimestamp,
    LiquidityInsufficient,
    LiquidityPoolError,
    LiquidityZero,
    Locked,
    NotAuthorized,
    Token0Missing,
    Token1Missing,
    TooLittleAmountIn,
    TooLittleReceived,
)
from rangeswap.exceptions.math import (
    DivisionByZero,
    InvalidSqrtPrice,
    LiquidityOverflow,
    MathError,
    Overflow,
)
from rangeswap.exceptions.position import NotOwner, PoolMisMatch, PositionError, PositionNotFound

from . import ledger, liquidity_pool, math, position

__all__ = (
    "DivisionByZero",
    "InsufficientBalance",
    "InvalidEpoch",
    "InvalidPriceLimit",
    "InvalidSqrtPrice",
    "InvalidSwapFee",
    "InvalidTick",
    "InvalidTickHint",
    "InvalidTimestamp",
    "LedgerError",
    "LiquidityInsufficient",
    "LiquidityOverflow",
    "LiquidityPoolError",
    "LiquidityZero",
    "Locked",
    "MathError",
    "NotAuthorized",
    "NotOwner",
    "Overflow",
    "PoolMisMatch",
    "PositionError",
    "PositionNotFound",
    "RangeswapError",
    "RangeswapTypeError",
    "RangeswapValueError",
    "Token0Missing",
    "Token1Missing",
    "TooLittleAmountIn",
    "TooLittleReceived",
    "ledger",
    "liquidity_pool",
    "math",
    "position",
)
