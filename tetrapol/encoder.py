"""Encoding of TETRAPOL frames into the bit stream sent on air."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence

from .bitutils import pack_bits
from .frame import (
    DIFF_PRECOD,
    FRAME_DATA_LEN,
    FRAME_LEN,
    INTERLEAVE_DATA_UHF,
    INTERLEAVE_DATA_VHF,
    INTERLEAVE_VOICE_UHF,
    INTERLEAVE_VOICE_VHF,
    Band,
    Direction,
    Frame,
    FrameType,
    descramble,
    mk_crc3,
    mk_crc5,
)

# PAS 0001-2 6.1.5.2, 6.2.5.2: frame synchronisation header
FRAME_SYNC_BYTE = 0x46

# Coded bits of the protected head shared by data and voice frames.
_HEAD_CODED = 52
_HEAD_BITS = 26
# Decoded bits of a data frame including the CRC and padding.
_DATA_BITS = 76


def encode_protected(bits: Sequence[int]) -> list[int]:
    """Convolutionally encode ``bits`` cyclically, two coded bits per input bit.

    This is the inverse of :func:`tetrapol.frame.decode_data_frame`
    (PAS 0001-2 6.1.2, 6.2.2).
    """
    n = len(bits)
    coded: list[int] = []
    for k in range(n):
        cur, prev, prev2 = bits[k], bits[(k - 1) % n], bits[(k - 2) % n]
        coded.append(cur ^ prev ^ prev2)
        coded.append(cur ^ prev2)
    return coded


def encode_data_tail(buf: MutableSequence[int], bits: Sequence[int]) -> None:
    """OR the coded second part of a data frame into the coded bits ``buf``.

    ``bits`` is the decoded data frame; its first 26 bits belong to the
    protected head and are skipped. The remaining 50 bits are encoded into
    positions 52 to 151 of ``buf``.
    """
    if len(bits) < _DATA_BITS:
        raise ValueError(f"data frame needs {_DATA_BITS} bits, got {len(bits)}")
    coded = encode_protected(bits[_HEAD_BITS:_DATA_BITS])
    for pos, bit in enumerate(coded, start=_HEAD_CODED):
        buf[pos] |= bit


def _interleave(bits: Sequence[int], table: Sequence[int]) -> list[int]:
    out = [0] * FRAME_DATA_LEN
    for j, k in enumerate(table):
        out[k] = bits[j]
    return out


def _diff_encode(bits: Sequence[int]) -> list[int]:
    out = list(bits)
    for j in range(1, len(out)):
        out[j] ^= out[j - DIFF_PRECOD[j]]
    return out


class FrameEncoder:
    """Encodes frames for one band and scrambling constant.

    The encoder keeps the last bit sent so that the differential encoding
    runs on across consecutive frames.
    """

    def __init__(self, band: Band, scr: int, direction: Direction) -> None:
        self.band = band
        self.scr = scr
        self.direction = direction
        self._carry = 0

    def _coded_data(self, frame: Frame) -> tuple[list[int], tuple[int, ...]]:
        blob = list(frame.blob[:_DATA_BITS])
        blob[0] = FrameType.DATA
        blob[69:74] = mk_crc5(blob[:69])
        blob[74:76] = [0, 0]

        coded = encode_protected(blob[:_HEAD_BITS]) + [0] * (FRAME_DATA_LEN - _HEAD_CODED)
        encode_data_tail(coded, blob)
        table = INTERLEAVE_DATA_VHF if self.band == Band.VHF else INTERLEAVE_DATA_UHF
        return coded, table

    def _coded_voice(self, frame: Frame) -> tuple[list[int], tuple[int, ...]]:
        blob = list(frame.blob)
        blob[0] = FrameType.VOICE
        blob[23:26] = mk_crc3(blob[:23])

        # PAS 0001-2 6.1.2: the second part of a voice frame is unprotected
        coded = encode_protected(blob[:_HEAD_BITS]) + blob[26:126]
        table = INTERLEAVE_VOICE_VHF if self.band == Band.VHF else INTERLEAVE_VOICE_UHF
        return coded, table

    def encode(self, frame: Frame) -> bytes:
        """Encode ``frame`` into the 20 bytes of one frame on air.

        Bits are packed least significant bit first. The D bit and the CRC
        are computed here; ``frame`` itself is left unchanged.
        """
        if self.band not in (Band.VHF, Band.UHF):
            raise ValueError(f"unsupported band: {self.band!r}")

        if frame.fr_type == FrameType.DATA:
            coded, table = self._coded_data(frame)
        elif frame.fr_type == FrameType.VOICE:
            coded, table = self._coded_voice(frame)
        else:
            raise ValueError(f"cannot encode frame type {frame.fr_type!r}")

        payload = _interleave(coded, table)
        if self.band == Band.UHF:
            payload = _diff_encode(payload)
        # scrambling is an XOR with a fixed sequence, so it is its own inverse
        payload = descramble(payload, self.scr)

        stream = [(FRAME_SYNC_BYTE >> shift) & 1 for shift in range(8)] + payload

        prev = self._carry
        diff: list[int] = []
        for bit in stream:
            diff.append(bit ^ prev)
            prev = bit
        self._carry = prev

        out = bytearray(FRAME_LEN // 8)
        pack_bits(out, diff)
        return bytes(out)