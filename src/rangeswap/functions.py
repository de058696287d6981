import functools
import itertools

from cchecksum import to_checksum_address
from eth_typing import ChecksumAddress, HexAddress


@functools.lru_cache(maxsize=512)
def get_checksum_address(address: HexAddress | str | bytes) -> ChecksumAddress:
    return to_checksum_address(address)


def evm_divide(x: int, y: int) -> int:
    """
    Integer division that truncates toward zero, matching EVM `sdiv` semantics instead of
    Python's floor division.
    """

    if y == 0:
        raise ZeroDivisionError

    quotient = abs(x) // abs(y)
    return -quotient if (x < 0) != (y < 0) else quotient


_placeholder_addresses = itertools.count(1)


def next_placeholder_address() -> ChecksumAddress:
    """
    Generate a unique address for an in-memory pool or registry that was not given one.
    """

    return get_checksum_address(f"0x{0xA11CE << 136 | next(_placeholder_addresses):040x}")
