from rangeswap.types.aliases import (
    Liquidity,
    LiquidityGross,
    LiquidityNet,
    Pip,
    PositionId,
    PositionOwner,
    SqrtPriceX96,
    Tick,
    Timestamp,
    X128,
)

__all__ = (
    "X128",
    "Liquidity",
    "LiquidityGross",
    "LiquidityNet",
    "Pip",
    "PositionId",
    "PositionOwner",
    "SqrtPriceX96",
    "Tick",
    "Timestamp",
)
