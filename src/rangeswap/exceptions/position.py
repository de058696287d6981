from collections.abc import Hashable

from rangeswap.exceptions.base import RangeswapError


class PositionError(RangeswapError):
    """
    Exception raised by position accounting and the position registry.
    """


class NotOwner(PositionError):
    def __init__(self, position_id: int, caller: str) -> None:
        self.position_id = position_id
        self.caller = caller
        super().__init__(message=f"NotOwner: {caller} does not hold position {position_id}")


class PoolMisMatch(PositionError):
    """
    Raised when a position identifier is used with a pool or range it does not belong to.
    """

    def __init__(self, position_id: int) -> None:
        self.position_id = position_id
        super().__init__(message=f"PoolMisMatch: position {position_id}")


class PositionNotFound(PositionError):
    def __init__(self, key: Hashable) -> None:
        self.key = key
        super().__init__(message=f"Position {key!r} does not exist")
