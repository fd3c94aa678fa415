"""JSON reports of received frames."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime, timezone

from .bitutils import pack_bits, sprint_hex2
from .frame import Frame, FrameType


def _format_time(rx_time: datetime) -> str:
    if rx_time.tzinfo is not None:
        rx_time = rx_time.astimezone(timezone.utc)
    return (
        f"{rx_time.year:4d}-{rx_time.month:02d}-{rx_time.day:02d}"
        f"T{rx_time.hour:02d}-{rx_time.minute:02d}-{rx_time.second:02d}"
        f".{rx_time.microsecond:06d}"
    )


def _hex_bits(bits: Iterable[int], nbytes: int) -> str:
    buf = bytearray(nbytes)
    pack_bits(buf, bits)
    return sprint_hex2(buf)


def _type_name(fr_type: int) -> str:
    if fr_type == FrameType.VOICE:
        return "VOICE"
    if fr_type == FrameType.DATA:
        return "DATA"
    return "FIXME"


def frame_to_json(
    fr: Frame,
    rx_offs: int,
    frame_no: int | None = None,
    rx_time: datetime | None = None,
) -> str:
    """Describe a frame as one line of JSON.

    ``frame_no`` is None while the frame number is unknown. ``rx_time``
    defaults to the current time and is reported in UTC.
    """
    if rx_time is None:
        rx_time = datetime.now(timezone.utc)

    info: dict[str, object] = {"frame_no": frame_no}
    if fr.broken == 0:
        info["state"] = "ok"
        info["syndromes"] = fr.syndromes
        info["bits_fixed"] = fr.bits_fixed
        info["type"] = _type_name(fr.fr_type)
        if fr.fr_type == FrameType.DATA:
            info["asb"] = list(fr.asb)
            info["fn"] = list(fr.fn)
            info["data"] = {"encoding": "hex", "value": _hex_bits(fr.data[2:], 8)}
        elif fr.fr_type == FrameType.VOICE:
            info["asb"] = list(fr.asb)
            info["data"] = {
                "encoding": "hex",
                "value": _hex_bits(fr.voice1 + fr.voice2, 120 // 8),
            }
        else:
            info["FIXME"] = "FIXME"
    elif fr.broken == -1:
        info["state"] = "bad_CRC"
        info["syndromes"] = fr.syndromes
        info["bits_fixed"] = fr.bits_fixed
    elif fr.broken > 0:
        info["state"] = fr.broken
    else:
        info["state"] = "FIXME"

    event = {
        "event": "frame",
        "rx_offs": rx_offs,
        "rx_time": _format_time(rx_time),
        "frame": info,
    }
    return json.dumps(event)