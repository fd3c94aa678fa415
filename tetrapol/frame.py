"""Decoding of TETRAPOL radio frames.

A frame on air carries 160 bits: an 8 bit synchronisation header followed
by 152 bits of scrambled, (for UHF) differentially precoded and interleaved
convolutionally coded payload.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, MutableSequence, Sequence
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

FRAME_LEN = 160
FRAME_HDR_LEN = 8
FRAME_DATA_LEN = 152

# Decoded bits in a frame; a voice frame is the longest layout.
BLOB_LEN = 126

# Length of the coded head common to data and voice frames.
_HEAD_LEN = 52


class FrameType(enum.IntEnum):
    """Frame type; the value of VOICE and DATA is the frame's D bit."""

    AUTO = -1
    VOICE = 0
    DATA = 1


class Band(enum.Enum):
    VHF = "VHF"
    UHF = "UHF"


class Direction(enum.Enum):
    DOWNLINK = "DOWN"
    UPLINK = "UP"


def _lfsr_sequence(length: int) -> tuple[int, ...]:
    seq = [1] * 7
    for k in range(7, length):
        seq.append(seq[k - 1] ^ seq[k - 7])
    return tuple(seq)


# PAS 0001-2 6.1.5.1, 6.2.5.1, 6.3.4.1
SCRAMBLE_SEQUENCE = _lfsr_sequence(127)

# PAS 0001-2 6.1.4.2, 6.2.4.2: positions precoded against the bit two back
_PRECOD_SHIFT2 = frozenset(range(7, 77, 3)) | frozenset(range(83, 150, 3))
DIFF_PRECOD = tuple(2 if j in _PRECOD_SHIFT2 else 1 for j in range(FRAME_DATA_LEN))


def _vhf_interleave() -> tuple[int, ...]:
    perm = (0, 4, 2, 6, 1, 5, 3, 7)
    return tuple(19 * perm[j % 8] + (3 * (j // 8)) % 19 for j in range(FRAME_DATA_LEN))


# PAS 0001-2 6.1.3.1
INTERLEAVE_VOICE_VHF = _vhf_interleave()

# PAS 0001-2 6.1.4.1
INTERLEAVE_VOICE_UHF = (
    1, 77, 38, 114, 20, 96, 59, 135,
    3, 79, 41, 117, 23, 99, 62, 138,
    5, 81, 44, 120, 26, 102, 65, 141,
    8, 84, 47, 123, 29, 105, 68, 144,
    11, 87, 50, 126, 32, 108, 71, 147,
    14, 90, 53, 129, 35, 111, 74, 150,
    17, 93, 56, 132, 37, 113, 73, 4,
    0, 76, 40, 119, 19, 95, 58, 137,
    151, 80, 42, 115, 24, 100, 60, 133,
    12, 88, 48, 121, 30, 106, 66, 139,
    18, 91, 51, 124, 28, 104, 67, 146,
    10, 89, 52, 131, 34, 110, 70, 149,
    13, 97, 57, 130, 36, 112, 75, 148,
    6, 82, 39, 116, 16, 92, 55, 134,
    2, 78, 43, 122, 22, 98, 61, 140,
    9, 85, 45, 118, 27, 103, 63, 136,
    15, 83, 46, 125, 25, 101, 64, 143,
    7, 86, 49, 128, 31, 107, 69, 142,
    21, 94, 54, 127, 33, 109, 72, 145,
)

# PAS 0001-2 6.2.3.1
INTERLEAVE_DATA_VHF = INTERLEAVE_VOICE_VHF

# PAS 0001-2 6.2.4.1
INTERLEAVE_DATA_UHF = (
    1, 77, 38, 114, 20, 96, 59, 135,
    3, 79, 41, 117, 23, 99, 62, 138,
    5, 81, 44, 120, 26, 102, 65, 141,
    8, 84, 47, 123, 29, 105, 68, 144,
    11, 87, 50, 126, 32, 108, 71, 147,
    14, 90, 53, 129, 35, 111, 74, 150,
    17, 93, 56, 132, 37, 112, 76, 148,
    2, 88, 40, 115, 19, 97, 58, 133,
    4, 75, 43, 118, 22, 100, 61, 136,
    7, 85, 46, 121, 25, 103, 64, 139,
    10, 82, 49, 124, 28, 106, 67, 142,
    13, 91, 52, 127, 31, 109, 73, 145,
    16, 94, 55, 130, 34, 113, 70, 151,
    0, 80, 39, 116, 21, 95, 57, 134,
    6, 78, 42, 119, 24, 98, 60, 137,
    9, 83, 45, 122, 27, 101, 63, 140,
    12, 86, 48, 125, 30, 104, 66, 143,
    15, 89, 51, 128, 33, 107, 69, 146,
    18, 92, 54, 131, 36, 110, 72, 149,
)


def _interleave_table(band: Band, fr_type: int) -> tuple[int, ...]:
    if band == Band.VHF:
        return INTERLEAVE_DATA_VHF if fr_type == FrameType.DATA else INTERLEAVE_VOICE_VHF
    return INTERLEAVE_DATA_UHF if fr_type == FrameType.DATA else INTERLEAVE_VOICE_UHF


@dataclass
class Frame:
    """A decoded frame.

    ``broken`` is 0 for a valid frame, -1 for a CRC failure, -2 for an
    unsupported frame type and a positive count of uncorrected errors
    otherwise.  ``blob`` holds the decoded bits; the properties give the
    fields of the data and voice layouts.
    """

    fr_type: int = FrameType.DATA
    broken: int = 0
    syndromes: int = 0
    bits_fixed: int = 0
    blob: list[int] = field(default_factory=lambda: [0] * BLOB_LEN)

    def _assign(self, start: int, length: int, bits: Iterable[int]) -> None:
        values = list(bits)
        if len(values) != length:
            raise ValueError(f"expected {length} bits, got {len(values)}")
        self.blob[start:start + length] = values

    @property
    def ok(self) -> bool:
        return self.broken == 0

    @property
    def d(self) -> int:
        return self.blob[0]

    @property
    def asb(self) -> list[int]:
        return self.blob[1:3]

    @asb.setter
    def asb(self, bits: Iterable[int]) -> None:
        self._assign(1, 2, bits)

    @property
    def data(self) -> list[int]:
        """The 66 bits of a data frame: two FN bits followed by 64 data bits."""
        return self.blob[3:69]

    @data.setter
    def data(self, bits: Iterable[int]) -> None:
        self._assign(3, 66, bits)

    @property
    def fn(self) -> list[int]:
        return self.blob[3:5]

    @property
    def data_crc(self) -> list[int]:
        return self.blob[69:74]

    @property
    def voice1(self) -> list[int]:
        return self.blob[3:23]

    @voice1.setter
    def voice1(self, bits: Iterable[int]) -> None:
        self._assign(3, 20, bits)

    @property
    def voice_crc(self) -> list[int]:
        return self.blob[23:26]

    @property
    def voice2(self) -> list[int]:
        return self.blob[26:126]

    @voice2.setter
    def voice2(self, bits: Iterable[int]) -> None:
        self._assign(26, 100, bits)


def descramble(bits: Sequence[int], scr: int) -> list[int]:
    """Remove scrambling with constant ``scr`` (0 means no scrambling)."""
    if scr == 0:
        return list(bits)
    return [bit ^ SCRAMBLE_SEQUENCE[(k + scr) % 127] for k, bit in enumerate(bits)]


def diff_decode(bits: Sequence[int]) -> list[int]:
    """Undo the UHF differential precoding."""
    out = list(bits)
    for j in range(len(out) - 1, 0, -1):
        out[j] ^= out[j - DIFF_PRECOD[j]]
    return out


def deinterleave(bits: Sequence[int], band: Band, fr_type: int) -> list[int]:
    """Deinterleave a frame.

    The head common to all frame types always uses the data table; the rest
    uses the table of ``fr_type``.
    """
    head = _interleave_table(band, FrameType.DATA)[:_HEAD_LEN]
    tail = _interleave_table(band, fr_type)[_HEAD_LEN:]
    return [bits[k] for k in head] + [bits[k] for k in tail]


def mk_crc5(bits: Iterable[int]) -> list[int]:
    """CRC with polynomial x^5 + x^2 + 1, as a list of five bits."""
    res = [0] * 5
    for bit in bits:
        inv = bit ^ res[0]
        res = [res[1], res[2], res[3] ^ inv, res[4], inv]
    return res


def mk_crc3(bits: Iterable[int]) -> list[int]:
    """Inverted CRC with polynomial x^3 + x + 1, as a list of three bits."""
    res = [0] * 3
    for bit in bits:
        inv = bit ^ res[0]
        res = [res[1], res[2] ^ inv, inv]
    return [b ^ 1 for b in res]


def decode_data_frame(fr_data: Sequence[int], sol_len: int) -> tuple[list[int], list[int]]:
    """Decode ``2 * sol_len`` coded bits (PAS 0001-2 6.1.2, 6.2.2).

    Returns the decoded bits and, for each of them, 1 where the two
    independent solutions disagree.
    """
    n = 2 * sol_len

    def bit(pos: int) -> int:
        return fr_data[pos % n]

    sol: list[int] = []
    errs: list[int] = []
    for i in range(0, n, 2):
        s1 = bit(i + 2) ^ bit(i + 3)
        s2 = bit(i + 5) ^ bit(i + 6) ^ bit(i + 7)
        sol.append(s1)
        errs.append(s1 ^ s2)
    return sol, errs


def fix_errors(data: MutableSequence[int], errs: MutableSequence[int]) -> tuple[int, int]:
    """Correct simple error patterns in place using the syndromes ``errs``.

    Each single bit error leaves a characteristic syndrome (101 or 111);
    this recognises isolated syndromes of one, two and three bit errors and
    inverts the faulty bits. Returns the number of syndrome bits cleared
    and the number of data bits flipped.
    """
    n = len(errs)
    nerrs = 0
    bits_fixed = 0
    i = 0

    def e(k: int) -> int:
        return errs[(i + k) % n]

    while i < n:
        # 3 bit errors with 5 bit syndromes
        if not (e(0) | e(1) | e(2) | e(3) | (e(4) ^ 1)
                | (e(8) ^ 1) | e(9) | e(10) | e(11) | e(12)):
            nerrs += 2 + e(5) + e(6) + e(7)
            bits_fixed += 2 + e(6)
            data[(i + 6) % n] ^= 1
            data[(i + 7) % n] ^= e(6)
            data[(i + 8) % n] ^= 1
            for k in range(4, 9):
                errs[(i + k) % n] = 0
            i += 7
            continue
        # 2 bit errors with 4 bit syndromes
        if not (e(0) | e(1) | e(2) | (e(3) ^ 1)
                | (e(6) ^ 1) | e(7) | e(8) | e(9)):
            nerrs += 2 + e(4) + e(5)
            bits_fixed += 2
            data[(i + 5) % n] ^= 1
            data[(i + 6) % n] ^= 1
            for k in range(3, 7):
                errs[(i + k) % n] = 0
            i += 5
            continue
        # 1 bit errors with 3 bit syndromes
        if not (e(0) | e(1) | (e(2) ^ 1)
                | (e(4) ^ 1) | e(5) | e(6)):
            nerrs += 2 + e(3)
            bits_fixed += 1
            data[(i + 4) % n] ^= 1
            for k in range(2, 5):
                errs[(i + k) % n] = 0
            i += 5
            continue
        i += 1

    return nerrs, bits_fixed


def check_crc(blob: Sequence[int], fr_type: int) -> bool:
    """Check the CRC of a decoded frame; AUTO takes the type from the D bit."""
    if fr_type == FrameType.AUTO:
        fr_type = blob[0]
    elif fr_type != blob[0]:
        return False

    if fr_type == FrameType.DATA:
        return mk_crc5(blob[:69]) == list(blob[69:74])
    if fr_type == FrameType.VOICE:
        return mk_crc3(blob[:23]) == list(blob[23:26])
    return False


class FrameDecoder:
    """Decodes demodulated frame payloads for one band and scrambling constant."""

    def __init__(self, band: Band, scr: int, fr_type: int) -> None:
        self.reset(band, scr, fr_type)

    def reset(self, band: Band, scr: int, fr_type: int) -> None:
        self.band = band
        self.scr = scr
        self.fr_type = fr_type

    def decode(self, fr_data: Sequence[int]) -> Frame:
        """Decode the 152 payload bits of one frame."""
        if len(fr_data) != FRAME_DATA_LEN:
            raise ValueError(f"frame data must have {FRAME_DATA_LEN} bits, got {len(fr_data)}")

        if self.fr_type not in (FrameType.AUTO, FrameType.VOICE, FrameType.DATA):
            return Frame(fr_type=self.fr_type, broken=-2)

        bits = descramble(fr_data, self.scr)
        if self.band == Band.UHF:
            bits = diff_decode(bits)

        head = [bits[k] for k in _interleave_table(self.band, FrameType.DATA)[:_HEAD_LEN]]
        sol, errs = decode_data_frame(head, _HEAD_LEN // 2)

        frame = Frame()
        nerrs = sum(errs)
        frame.syndromes = nerrs
        frame.fr_type = FrameType(sol[0] if self.fr_type == FrameType.AUTO else self.fr_type)
        frame.broken = nerrs

        if nerrs:
            fixed, bits_fixed = fix_errors(sol, errs)
            frame.bits_fixed += bits_fixed
            frame.broken = nerrs - fixed
        frame.blob[:_HEAD_LEN // 2] = sol
        if frame.broken > 0:
            return frame

        tail = [bits[k] for k in _interleave_table(self.band, frame.fr_type)[_HEAD_LEN:]]

        if frame.fr_type == FrameType.VOICE:
            frame.blob[26:126] = tail[:100]
            frame.broken = 0 if check_crc(frame.blob, frame.fr_type) else -1
            return frame

        sol2, errs2 = decode_data_frame(tail, 50)
        nerrs2 = sum(errs2)
        if not nerrs2 and (sol2[48] or sol2[49]):
            logger.debug("nonzero padding in frame: %d %d", sol2[48], sol2[49])
        frame.syndromes += nerrs2
        frame.broken = nerrs2

        if nerrs2:
            fixed, bits_fixed = fix_errors(sol2, errs2)
            frame.bits_fixed += bits_fixed
            frame.broken = nerrs2 - fixed
        frame.blob[26:76] = sol2
        if frame.broken > 0:
            return frame

        frame.broken = 0 if check_crc(frame.blob, frame.fr_type) else -1
        return frame