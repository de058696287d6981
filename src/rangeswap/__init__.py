from .config import settings
from .functions import get_checksum_address
from .version import __version__

# isort: split

from .concentrated import (
    BurnResult,
    CollectResult,
    ConcentratedLiquidityPool,
    FlashResult,
    MintResult,
    PoolState,
    Position,
    PositionFees,
    PositionManager,
    PriceAndNearestTicks,
    SwapResult,
    TickIndex,
)
from .ledger import TokenLedger, TokenVault
from .logging import logger
from .registry import PoolRegistry

__all__ = (
    "BurnResult",
    "CollectResult",
    "ConcentratedLiquidityPool",
    "FlashResult",
    "MintResult",
    "PoolRegistry",
    "PoolState",
    "Position",
    "PositionFees",
    "PositionManager",
    "PriceAndNearestTicks",
    "SwapResult",
    "TickIndex",
    "TokenLedger",
    "TokenVault",
    "__version__",
    "get_checksum_address",
    "logger",
    "settings",
)
