"""TETRAPOL frame decoding and encoding, data block reassembly and stream building."""

__version__ = "0.1.0"
__all__ = [
    "bitutils",
    "frame",
    "encoder",
    "data_frame",
    "frame_json",
    "build",
]