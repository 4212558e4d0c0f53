"""Byte-order conversion for 16, 32 and 64 bit unsigned integers."""

import sys

_SIZES = (2, 4, 8)


def byteswap(value, size):
    """Reverse the byte order of ``value`` taken as an unsigned integer of ``size`` bytes."""
    if size not in _SIZES:
        raise ValueError(f"unsupported integer size {size}, expected one of {_SIZES}")
    mask = (1 << (8 * size)) - 1
    return int.from_bytes((value & mask).to_bytes(size, "big"), "little")


def byteswap_on_little_endian(value, size):
    """Swap bytes only when running on a little-endian machine."""
    if sys.byteorder == "little":
        return byteswap(value, size)
    return value


def byteswap_on_big_endian(value, size):
    """Swap bytes only when running on a big-endian machine."""
    if sys.byteorder == "big":
        return byteswap(value, size)
    return value