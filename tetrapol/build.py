"""Build a TETRAPOL channel bit stream from JSON frame descriptions.

The input uses the line format written for received frames: one JSON event
per line, blank lines and lines starting with ``#`` are ignored. The output
holds 160 bytes per frame, one bit per byte, most significant bit of each
encoded byte first.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Iterable, Iterator
from contextlib import ExitStack

from .encoder import FrameEncoder
from .frame import Band, Direction, Frame, FrameType

logger = logging.getLogger(__name__)

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_DATA_BYTES = 8
_VOICE_BYTES = 15
_VOICE1_BITS = 20


class BuildError(Exception):
    """An input line could not be turned into a frame."""

    def __init__(self, line_no: int, message: str) -> None:
        super().__init__(f"Error at line {line_no}: {message}")
        self.line_no = line_no
        self.message = message


def frame_to_bits(frame_bytes: bytes) -> bytes:
    """Expand encoded frame bytes to one bit per byte, most significant bit first."""
    return bytes((byte >> shift) & 1 for byte in frame_bytes for shift in range(7, -1, -1))


def _bits_lsb_first(data: bytes) -> list[int]:
    return [(byte >> shift) & 1 for byte in data for shift in range(8)]


def _get_key(obj: object, key: str, line_no: int, message: str) -> object:
    if not isinstance(obj, dict) or key not in obj:
        raise BuildError(line_no, message)
    return obj[key]


def _frame_payload(json_frame: object, nbytes: int, line_no: int) -> bytes:
    data = _get_key(json_frame, "data", line_no, "missing 'frame/data' keys")
    encoding = _get_key(data, "encoding", line_no, "failed to get 'frame/data/encoding' key")
    if encoding != "hex":
        raise BuildError(line_no, f"unsupported data encoding: '{encoding}'")
    value = _get_key(data, "value", line_no, "failed to get 'frame/data/value' key")
    if not isinstance(value, str) or len(value) != 2 * nbytes:
        raise BuildError(line_no, "invalid length of frame/data/value content")
    if not set(value) <= _HEX_DIGITS:
        raise BuildError(line_no, "illegal data value")
    return bytes.fromhex(value)


def _two_bits(json_frame: object, key: str, line_no: int, name: str) -> list[int]:
    """Read a two element bit list such as ASB or FN."""
    value = _get_key(json_frame, key, line_no, f"failed to get {name}")
    if not isinstance(value, list) or len(value) < 2:
        raise BuildError(line_no, f"failed to get {name}")
    bits = value[:2]
    for bit in bits:
        if isinstance(bit, bool) or not isinstance(bit, int) or bit not in (0, 1):
            raise BuildError(line_no, "invalid bits value")
    return list(bits)


def _encode(encoder: FrameEncoder, frame: Frame, kind: str, line_no: int) -> bytes:
    try:
        return encoder.encode(frame)
    except ValueError as exc:
        raise BuildError(line_no, f"{kind} frame encoding failed") from exc


def _data_frame(json_frame: object, line_no: int) -> Frame:
    payload = _frame_payload(json_frame, _DATA_BYTES, line_no)
    fn = _two_bits(json_frame, "fn", line_no, "FN")
    asb = _two_bits(json_frame, "asb", line_no, "ASB field")
    frame = Frame(fr_type=FrameType.DATA)
    frame.data = fn + _bits_lsb_first(payload)
    frame.asb = asb
    return frame


def _voice_frame(json_frame: object, line_no: int) -> Frame:
    payload = _frame_payload(json_frame, _VOICE_BYTES, line_no)
    asb = _two_bits(json_frame, "asb", line_no, "ASB field")
    bits = _bits_lsb_first(payload)
    frame = Frame(fr_type=FrameType.VOICE)
    frame.voice1 = bits[:_VOICE1_BITS]
    frame.voice2 = bits[_VOICE1_BITS:]
    frame.asb = asb
    return frame


def build_frames(lines: Iterable[str], encoder: FrameEncoder) -> Iterator[bytes]:
    """Yield the encoded 20 bytes of every frame described in ``lines``.

    ``scr`` events change the scrambling constant of ``encoder``; other
    events are ignored, as are frames of an unsupported type.
    Raises :class:`BuildError` on malformed input.
    """
    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            event = None

        name = _get_key(event, "event", line_no, "missing 'event' key")
        if name == "scr":
            scr = _get_key(event, "scr", line_no, "missing 'scr' key")
            if isinstance(scr, bool) or not isinstance(scr, int):
                raise BuildError(line_no, "invalid 'scr' value")
            encoder.scr = scr
            continue

        if name != "frame":
            continue

        json_frame = _get_key(event, "frame", line_no, "missing 'frame' key")
        fr_type = _get_key(json_frame, "type", line_no, "missing 'frame/type' keys")

        if fr_type == "DATA":
            yield _encode(encoder, _data_frame(json_frame, line_no), "data", line_no)
        elif fr_type == "VOICE":
            yield _encode(encoder, _voice_frame(json_frame, line_no), "voice", line_no)
        else:
            logger.error("Error at line %d: unsupported frame type '%s'", line_no, fr_type)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tetrapol-build",
        description="Create a TETRAPOL channel bit stream for radio transmission.",
    )
    parser.add_argument("-b", dest="band", choices=["UHF", "VHF"], default="UHF",
                        help="radio band (default UHF)")
    parser.add_argument("-d", dest="direction", choices=["DOWN", "UP"], default="DOWN",
                        help="direction, downlink or uplink (default DOWN)")
    parser.add_argument("-i", dest="input", default="-", metavar="INPUT_FILE",
                        help="input file, '-' for standard input")
    parser.add_argument("-o", dest="output", default="-", metavar="OUTPUT_FILE",
                        help="output file, '-' for standard output")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the stream builder; returns the exit status."""
    parser = _parser()
    args = parser.parse_args(argv)
    encoder = FrameEncoder(Band(args.band), 0, Direction(args.direction))

    with ExitStack() as stack:
        try:
            if args.input == "-":
                infile = sys.stdin
            else:
                infile = stack.enter_context(open(args.input, encoding="utf-8"))
        except OSError as exc:
            print(f"Failed to open input file: {exc}", file=sys.stderr)
            parser.print_usage(sys.stderr)
            return 1

        try:
            if args.output == "-":
                outfile = sys.stdout.buffer
            else:
                outfile = stack.enter_context(open(args.output, "wb"))
        except OSError as exc:
            print(f"Failed to open output file: {exc}", file=sys.stderr)
            parser.print_usage(sys.stderr)
            return 1

        try:
            for frame in build_frames(infile, encoder):
                outfile.write(frame_to_bits(frame))
        except BuildError as exc:
            print(exc, file=sys.stderr)
            return 1
        except OSError as exc:
            print(f"I/O error: {exc}", file=sys.stderr)
            return 1

    return 0