from . import libraries as libraries  # excluded from __all__, access via rangeswap.concentrated
from .growth import Growth
from .manager import ManagedPosition, PositionManager
from .pool import ConcentratedLiquidityPool
from .position import OwedAmounts, Position, PositionKey
from .rewards import RewardStream
from .tick_index import TickIndex, TickInfo
from .types import (
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

__all__ = (
    "BurnResult",
    "CollectResult",
    "ConcentratedLiquidityPool",
    "FlashResult",
    "Growth",
    "ManagedPosition",
    "MintResult",
    "OwedAmounts",
    "PoolParameters",
    "PoolState",
    "Position",
    "PositionFees",
    "PositionKey",
    "PositionManager",
    "PriceAndNearestTicks",
    "RewardStream",
    "SwapResult",
    "TickIndex",
    "TickInfo",
)
