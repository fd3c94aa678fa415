"""Bit level helpers: HDLC frame check sequence, bit packing and hex dumps."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableSequence, Sequence
from itertools import islice

_FCS_POLY = 0x11021  # x^16 + x^12 + x^5 + 1, including the carry bit
_FCS_GOOD = 0xFFFF


def _iter_bits(data: Iterable[int]) -> Iterator[int]:
    """Yield the bits of ``data`` byte by byte, least significant bit first."""
    for byte in data:
        for shift in range(8):
            yield (byte >> shift) & 1


def check_fcs(data: Sequence[int], nbits: int) -> bool:
    """Return True when the first ``nbits`` bits of ``data`` carry a valid FCS.

    The frame check sequence is the 16 bit CRC used by HDLC, computed with
    the first 16 bits of data inverted; the check covers the data together
    with the trailing FCS.
    """
    if len(data) * 8 < max(nbits, 16):
        raise ValueError(f"{nbits} bits requested but only {len(data) * 8} available")

    bits = _iter_bits(data)
    crc = 0
    for bit in islice(bits, 16):
        crc = (crc << 1) | bit
    crc ^= 0xFFFF

    for bit in islice(bits, max(nbits - 16, 0)):
        crc = (crc << 1) | bit
        if crc & 0x10000:
            crc ^= _FCS_POLY

    return crc == _FCS_GOOD


def pack_bits(buf: MutableSequence[int], bits: Iterable[int], offs: int = 0) -> None:
    """OR ``bits`` into the byte buffer ``buf`` starting at bit offset ``offs``.

    Bits are stored least significant bit first within each byte.
    """
    for pos, bit in enumerate(bits, start=offs):
        buf[pos // 8] |= (bit & 1) << (pos % 8)


def sprint_hex(data: Iterable[int]) -> str:
    """Format bytes as two digit hex numbers separated by spaces."""
    return " ".join(f"{byte:02x}" for byte in data)


def sprint_hex2(data: Iterable[int]) -> str:
    """Format bytes as a contiguous string of two digit hex numbers."""
    return "".join(f"{byte:02x}" for byte in data)