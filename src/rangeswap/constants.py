__all__ = (
    "MAX_INT24",
    "MAX_INT128",
    "MAX_INT256",
    "MAX_UINT24",
    "MAX_UINT64",
    "MAX_UINT128",
    "MAX_UINT160",
    "MAX_UINT256",
    "MIN_INT24",
    "MIN_INT128",
    "MIN_INT256",
    "MIN_UINT24",
    "MIN_UINT64",
    "MIN_UINT128",
    "MIN_UINT160",
    "MIN_UINT256",
    "PIPS_DENOMINATOR",
    "Q96",
    "Q96_RESOLUTION",
    "Q128",
    "Q128_RESOLUTION",
    "ZERO_ADDRESS",
)

import typing

from eth_typing import ChecksumAddress

from rangeswap.functions import get_checksum_address


def _min_uint(_: int) -> int:
    return 0


def _max_uint(bits: int) -> int:
    return typing.cast("int", 2**bits - 1)


def _min_int(bits: int) -> int:
    return typing.cast("int", -(2 ** (bits - 1)))


def _max_int(bits: int) -> int:
    return typing.cast("int", (2 ** (bits - 1)) - 1)


MIN_INT24 = _min_int(24)
MAX_INT24 = _max_int(24)

MIN_INT128 = _min_int(128)
MAX_INT128 = _max_int(128)

MIN_INT256 = _min_int(256)
MAX_INT256 = _max_int(256)

MIN_UINT24 = _min_uint(24)
MAX_UINT24 = _max_uint(24)

MIN_UINT64 = _min_uint(64)
MAX_UINT64 = _max_uint(64)

MIN_UINT128 = _min_uint(128)
MAX_UINT128 = _max_uint(128)

MIN_UINT160 = _min_uint(160)
MAX_UINT160 = _max_uint(160)

MIN_UINT256 = _min_uint(256)
MAX_UINT256 = _max_uint(256)

# Fixed-point bases: sqrt prices are Q64.96, growth accumulators and rates are Q128
Q96_RESOLUTION = 96
Q96 = 1 << Q96_RESOLUTION
Q128_RESOLUTION = 128
Q128 = 1 << Q128_RESOLUTION

# Swap fees and the protocol fee share are expressed in pips (parts per million)
PIPS_DENOMINATOR = 1_000_000

ZERO_ADDRESS: ChecksumAddress = get_checksum_address("0x0000000000000000000000000000000000000000")
