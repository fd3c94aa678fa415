"""Reassembly of single, dual and multi-block data frames."""

from __future__ import annotations

import dataclasses
import logging

from .bitutils import pack_bits
from .frame import Frame

logger = logging.getLogger(__name__)

DATA_FRAME_BLOCKS_MAX = 8

# Frame number (FN) values carried in the first two bits of a data frame.
_FN_00 = 0
_FN_01 = 1
_FN_10 = 2
_FN_11 = 3

# Offset of the data field (FN bits followed by data bits) in a frame blob.
_DATA = 3


class DataFrame:
    """Collects consecutive data frames into one block of data.

    A block is a single frame, a dual frame or a multiframe closed by a
    parity frame that allows one broken frame to be reconstructed.
    """

    def __init__(self) -> None:
        self._frames: list[Frame] = []
        self._fns: list[int] = []
        self._nerrs = 0

    def __len__(self) -> int:
        return len(self._frames)

    def reset(self) -> None:
        """Drop all collected frames."""
        self._frames.clear()
        self._fns.clear()
        self._nerrs = 0

    def _fail(self) -> int:
        logger.debug("MB err")
        self.reset()
        return -1

    def _repush(self, fr: Frame) -> int:
        logger.debug("MB err")
        self.reset()
        r = self.push_frame(fr)
        return {0: -1, 1: 2}.get(r, r)

    def _check_parity(self) -> bool:
        return all(
            sum(f.blob[i] for f in self._frames) % 2 == 0
            for i in range(_DATA + 3, _DATA + 67)
        )

    def _fix_by_parity(self) -> None:
        err = next((k for k, f in enumerate(self._frames) if f.broken), 0)
        # do not fix the parity frame
        if err == len(self._frames) - 1:
            return
        others = [f for k, f in enumerate(self._frames) if k != err]
        target = self._frames[err].blob
        for i in range(_DATA + 1, _DATA + 67):
            target[i] = sum(f.blob[i] for f in others) % 2

    def _check_multiblock(self) -> int:
        if self._nerrs:
            self._fix_by_parity()
        elif not self._check_parity():
            logger.error("MB parity error %d", len(self._frames))
            self.reset()
            return -1
        return 1

    def push_frame(self, fr: Frame) -> int:
        """Add a frame.

        Returns 1 when a block is complete, 2 when a block is complete but
        earlier frames had to be dropped, 0 when more frames are needed and
        -1 when the collected frames were dropped.
        """
        if len(self._frames) == DATA_FRAME_BLOCKS_MAX + 1:
            self.reset()

        broken = bool(fr.broken)
        self._nerrs += 1 if broken else 0
        if self._nerrs > 1:
            self.reset()
            return -1

        fn = fr.blob[_DATA] | (fr.blob[_DATA + 1] << 1)
        self._fns.append(-1 if broken else fn)
        self._frames.append(dataclasses.replace(fr, blob=list(fr.blob)))
        n = len(self._frames)

        # single frame
        if n == 1:
            if broken:
                return 0
            if fn == _FN_00:
                return 1
            if fn != _FN_01:
                return self._fail()
            return 0

        fn_prev = self._fns[n - 2]
        prev_broken = bool(self._frames[n - 2].broken)

        # dual frame or start of multiframe
        if n == 2:
            if broken:
                if fn_prev != _FN_01:
                    return self._fail()
                return 0
            if fn == _FN_11:
                if prev_broken:
                    return self._fail()
                return 1
            if fn != _FN_10:
                return self._repush(fr)
            return 0

        # inner frame of multiframe
        if n == 3:
            if broken:
                return 0
            if fn not in (_FN_10, _FN_11):
                return self._repush(fr)
            return 0

        # end of multiframe with the final frame broken
        if broken:
            if fn_prev == _FN_10:
                return self._check_multiblock()
            return 0

        if fn in (_FN_11, _FN_10):
            if fn_prev != _FN_11 and not prev_broken:
                return self._fail()
            return 0

        if fn == _FN_01:
            if fn_prev != _FN_10 and not prev_broken:
                return self._fail()
            return self._check_multiblock()

        return self._repush(fr)

    def get_bytes(self) -> bytes:
        """Return the data of the completed block and reset.

        The parity frame of a multiframe is not part of the data.
        """
        n = len(self._frames)
        if n > 2:
            n -= 1
        buf = bytearray(8 * n)
        for k, fr in enumerate(self._frames[:n]):
            pack_bits(buf, fr.blob[_DATA + 2:_DATA + 66], 64 * k)
        self.reset()
        return bytes(buf)