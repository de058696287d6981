from collections.abc import Iterator

from eth_typing import ChecksumAddress

from rangeswap.concentrated.pool import ConcentratedLiquidityPool
from rangeswap.exceptions import RangeswapValueError
from rangeswap.functions import get_checksum_address


class PoolRegistry:
    """
    Pools tracked by address. A registry is an ordinary object; create as many as needed.
    """

    def __init__(self) -> None:
        self._all_pools: dict[
            ChecksumAddress,  # pool address
            ConcentratedLiquidityPool,
        ] = {}

    def __contains__(self, pool_address: object) -> bool:
        return isinstance(pool_address, str) and (
            get_checksum_address(pool_address) in self._all_pools
        )

    def __iter__(self) -> Iterator[ConcentratedLiquidityPool]:
        return iter(self._all_pools.values())

    def __len__(self) -> int:
        return len(self._all_pools)

    def get(self, pool_address: str) -> ConcentratedLiquidityPool | None:
        return self._all_pools.get(get_checksum_address(pool_address))

    def add(self, pool: ConcentratedLiquidityPool, pool_address: str | None = None) -> None:
        _pool_address = get_checksum_address(
            pool_address if pool_address is not None else pool.address
        )
        if _pool_address in self._all_pools:
            raise RangeswapValueError(message="Pool is already registered")
        self._all_pools[_pool_address] = pool

    def remove(self, pool_address: str) -> None:
        self._all_pools.pop(get_checksum_address(pool_address), None)
