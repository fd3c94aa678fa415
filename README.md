# tetrapol

Decoding and encoding of TETRAPOL radio frames.

The package decodes the 152 payload bits of a single frame. It
descrambles them, undoes the UHF differential precoding, deinterleaves
them, corrects simple bit errors and checks the CRC. It reassembles
single, dual and multi-block data frames and reports frames as JSON lines.
It can also encode frames and build a channel bit stream from those JSON
lines.

## Installation

```
pip install .
```

## Command line

`tetrapol-build` turns JSON lines into a channel bit stream:

```
tetrapol-build -b UHF -d DOWN -i frames.jsonl -o channel.bits
```

Options:

- `-b UHF|VHF` sets the radio band. The default is UHF.
- `-d DOWN|UP` sets the direction. The default is DOWN.
- `-i INPUT_FILE` sets the input file. The default is standard input, and `-` also means standard input.
- `-o OUTPUT_FILE` sets the output file. The default is standard output, and `-` also means standard output.

Each input line holds one JSON event. The command skips blank lines and
lines that start with `#`.

- An event `{"event": "scr", "scr": N}` sets the scrambling constant.
- An event `{"event": "frame", "frame": {...}}` with `"type": "DATA"` or
  `"type": "VOICE"` is encoded.
  - A DATA frame needs `asb`, `fn` and 8 bytes of hex `data`.
  - A VOICE frame needs `asb` and 15 bytes of hex `data`.
- Other events are ignored.

Each frame is written as 160 bytes, one bit per byte, with the most
significant bit of each encoded byte first. On malformed input the command
prints the line number and exits with status 1.

## Library use

Decode one frame:

```python
from tetrapol.frame import Band, FrameDecoder, FrameType

decoder = FrameDecoder(Band.UHF, 67, FrameType.DATA)
frame = decoder.decode(bits_152)   # sequence of 152 ints, 0 or 1
if frame.ok:
    print(frame.fn, frame.data)
```

`Frame.broken` holds the result of the decode:

- 0 means the frame is valid.
- -1 means the CRC check failed.
- -2 means the frame type is not supported.
- A positive number counts the errors that could not be corrected.

Encode a frame into the 20 bytes sent on air:

```python
from tetrapol.encoder import FrameEncoder
from tetrapol.frame import Direction

encoder = FrameEncoder(Band.UHF, 67, Direction.DOWNLINK)
raw = encoder.encode(frame)
```

Other modules:

- `tetrapol.data_frame.DataFrame` collects decoded data frames with `push_frame()`. Once a block is complete, `get_bytes()` returns its data.
- `tetrapol.frame_json.frame_to_json()` formats a frame as a one-line JSON `frame` event.
- `tetrapol.build.build_frames()` yields the encoded bytes for an iterable of JSON lines.
- `tetrapol.bitutils` provides the HDLC frame check (`check_fcs`), bit packing and hex formatting.

## What the package does not do

The package works on frames that have already been cut out of the
demodulated stream. It does not search a continuous bit stream for frame
synchronisation. It does not detect the scrambling constant by itself, and
it has no command that dumps a received channel. To decode a capture, the
caller has to align the frames and supply the scrambling constant.

## Tests

```
pip install .[test]
pytest
```