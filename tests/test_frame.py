import pytest

from tetrapol.frame import (
    FRAME_DATA_LEN,
    INTERLEAVE_DATA_UHF,
    INTERLEAVE_DATA_VHF,
    INTERLEAVE_VOICE_UHF,
    INTERLEAVE_VOICE_VHF,
    SCRAMBLE_SEQUENCE,
    Band,
    Frame,
    FrameDecoder,
    FrameType,
    check_crc,
    decode_data_frame,
    deinterleave,
    descramble,
    diff_decode,
    fix_errors,
    mk_crc3,
    mk_crc5,
)


def _bits(text):
    return [int(c) for c in text if c in "01"]


DATA_FRAME_IN = _bits(
    "0010101110100000 0111001110111110 0110100101000100 1111101110100111 "
    "0110100000010000 1101000111111001 1001011111100010 0101010100101000 "
    "0010100000100010 11011100"
)

DATA_FRAME_EXP = _bits(
    "1010000000011000 0010001101100000 0000010000001101 1001101011111101 "
    "100011101100"
)

VOICE_FRAME_IN = _bits(
    "0100101110110010 1001100111010110 0101001000110010 0001011010001001 "
    "0111010100000110 1011000011110000 1110010010101001 1100100011111001 "
    "0011001000101011 00000000"
)

VOICE_FRAME_EXP = _bits(
    "0100100100011111 0100110110110101 1110111011111011 1000111111110010 "
    "0001001000010110 0111010001111000 0110111000111010 00010100111111"
)


def test_fixture_lengths():
    assert len(DATA_FRAME_IN) == FRAME_DATA_LEN
    assert len(VOICE_FRAME_IN) == FRAME_DATA_LEN
    assert len(DATA_FRAME_EXP) == 76
    assert len(VOICE_FRAME_EXP) == 126
    data_fr = FrameDecoder(Band.UHF, 67, FrameType.DATA).decode(DATA_FRAME_IN)
    voice_fr = FrameDecoder(Band.UHF, 118, FrameType.VOICE).decode(VOICE_FRAME_IN)
    assert len(data_fr.blob) == 126
    assert len(voice_fr.blob) == 126


def test_scramble_sequence_start():
    assert len(SCRAMBLE_SEQUENCE) == 127
    # scr == 127 selects the sequence from its very start
    seq = descramble([0] * FRAME_DATA_LEN, 127)
    assert len(seq) == FRAME_DATA_LEN
    assert seq[:16] == [1, 1, 1, 1, 1, 1, 1, 0, 1, 0, 1, 0, 1, 0, 0, 1]
    assert seq[120:127] == [1, 0, 0, 0, 0, 0, 0]
    assert seq[127:] == seq[:FRAME_DATA_LEN - 127]


def test_descramble_zero_is_identity():
    assert descramble(DATA_FRAME_IN, 0) == DATA_FRAME_IN


def test_descramble_is_involution():
    once = descramble(DATA_FRAME_IN, 67)
    assert once != DATA_FRAME_IN
    assert descramble(once, 67) == DATA_FRAME_IN


def test_frame_deinterleave():
    fr_data = [0x7F & (i + 1 + 8) for i in range(FRAME_DATA_LEN)]
    expected = bytes.fromhex(
        "0a562f7b"
        "1d6944100c58327e206c4713"
        "0e5a3501236f4a16115d3804"
        "26724d1914603b072975501c"
        "17633e0a2c78531f1a66410d"
        "2e79551d0b61317c1c6a430e"
        "0d54347f1f6d4611105e3702"
        "227049141 35b3a0525734c17".replace(" ", "")
        + "16643d082876521a1967400b"
        "2b7a4f200959307d1e68420f"
        "0f573300216b4512125c3603"
        "246e4815155f39062771 4b18".replace(" ", "")
        + "18623c092a744e1b1b653f0c"
        "2d77511e"
    )
    assert len(expected) == FRAME_DATA_LEN
    assert deinterleave(fr_data, Band.UHF, FrameType.DATA) == list(expected)


@pytest.mark.parametrize(
    "table",
    [INTERLEAVE_DATA_UHF, INTERLEAVE_VOICE_UHF, INTERLEAVE_DATA_VHF, INTERLEAVE_VOICE_VHF],
)
def test_interleave_tables_are_permutations(table):
    assert sorted(table) == list(range(FRAME_DATA_LEN))


def test_vhf_interleave_table_values():
    # deinterleaving the identity sequence yields the table itself
    out = deinterleave(list(range(FRAME_DATA_LEN)), Band.VHF, FrameType.VOICE)
    assert out[:8] == [0, 76, 38, 114, 19, 95, 57, 133]
    assert out[56:64] == [2, 78, 40, 116, 21, 97, 59, 135]
    assert out[-8:] == [16, 92, 54, 130, 35, 111, 73, 149]
    data_out = deinterleave(list(range(FRAME_DATA_LEN)), Band.VHF, FrameType.DATA)
    assert data_out == out


def test_frame_decoder_data_01():
    fd = FrameDecoder(Band.UHF, 67, FrameType.DATA)
    fr = fd.decode(DATA_FRAME_IN)
    assert fr.blob[:76] == DATA_FRAME_EXP
    assert fr.broken == 0
    assert fr.fr_type == FrameType.DATA


def test_frame_decoder_data_auto_type():
    fd = FrameDecoder(Band.UHF, 67, FrameType.AUTO)
    fr = fd.decode(DATA_FRAME_IN)
    assert fr.fr_type == FrameType.DATA
    assert fr.blob[:76] == DATA_FRAME_EXP
    assert fr.broken == 0


def test_frame_decoder_data_02_single_bit_errors():
    fd = FrameDecoder(Band.UHF, 67, FrameType.DATA)
    fr_data = list(DATA_FRAME_IN)
    for i in range(FRAME_DATA_LEN):
        fr_data[i] ^= 1
        fr = fd.decode(fr_data)
        assert fr.blob[:76] == DATA_FRAME_EXP, f"flipped bit {i}"
        assert fr.broken == 0, f"flipped bit {i}"
        fr_data[i] ^= 1


def test_frame_decoder_voice_01():
    fd = FrameDecoder(Band.UHF, 118, FrameType.VOICE)
    fr = fd.decode(VOICE_FRAME_IN)
    assert fr.blob[:76] == VOICE_FRAME_EXP[:76]
    assert fr.broken == 0
    assert fr.fr_type == FrameType.VOICE


def test_frame_decoder_wrong_scr_fails():
    fd = FrameDecoder(Band.UHF, 66, FrameType.DATA)
    fr = fd.decode(DATA_FRAME_IN)
    assert fr.broken != 0
    assert fr.syndromes > 0


def test_frame_decoder_unsupported_type():
    fd = FrameDecoder(Band.UHF, 0, 5)
    fr = fd.decode([0] * FRAME_DATA_LEN)
    assert fr.broken == -2


def test_frame_decoder_rejects_wrong_length():
    fd = FrameDecoder(Band.UHF, 0, FrameType.DATA)
    with pytest.raises(ValueError):
        fd.decode([0] * 10)


def test_frame_decoder_reset_changes_scr():
    fd = FrameDecoder(Band.UHF, 0, FrameType.VOICE)
    fd.reset(Band.UHF, 67, FrameType.DATA)
    fr = fd.decode(DATA_FRAME_IN)
    assert fr.blob[:76] == DATA_FRAME_EXP


@pytest.mark.parametrize(
    "bits, expected",
    [
        ([1, 0, 1, 0, 1], [0, 1, 0, 1, 1]),
        ([0, 0, 0, 0, 0], [0, 0, 0, 0, 0]),
        ([1, 1, 1, 1, 1], [0, 1, 1, 0, 0]),
    ],
)
def test_mk_crc5(bits, expected):
    assert mk_crc5(bits) == expected


def test_mk_crc3_empty_is_inverted_zero():
    assert mk_crc3([]) == [1, 1, 1]


def test_check_crc_data_and_voice():
    fr = Frame()
    fr.blob[0] = 1
    fr.blob[1:69] = [(i * 7) % 3 % 2 for i in range(1, 69)]
    fr.blob[69:74] = mk_crc5(fr.blob[:69])
    assert check_crc(fr.blob, FrameType.DATA) is True
    assert check_crc(fr.blob, FrameType.AUTO) is True
    assert check_crc(fr.blob, FrameType.VOICE) is False
    fr.blob[10] ^= 1
    assert check_crc(fr.blob, FrameType.DATA) is False

    voice = [0] + [1, 0] * 11
    voice_blob = voice + mk_crc3(voice)
    assert check_crc(voice_blob, FrameType.VOICE) is True
    voice_blob[5] ^= 1
    assert check_crc(voice_blob, FrameType.VOICE) is False


def test_decode_data_frame_zero_input():
    sol, errs = decode_data_frame([0] * 52, 26)
    assert sol == [0] * 26
    assert errs == [0] * 26


def test_decode_data_frame_all_ones_consistent():
    sol, errs = decode_data_frame([1] * 52, 26)
    assert sol == [0] * 26
    assert errs == [1] * 26


def test_fix_errors_no_syndromes():
    data = [1, 0] * 13
    errs = [0] * 26
    assert fix_errors(data, errs) == (0, 0)
    assert data == [1, 0] * 13


def test_fix_errors_single_bit_syndrome():
    data = [0] * 26
    errs = [0, 0, 1, 0, 1] + [0] * 21
    assert fix_errors(data, errs) == (2, 1)
    assert data == [0, 0, 0, 0, 1] + [0] * 21
    assert errs == [0] * 26


def test_frame_field_properties():
    fr = Frame()
    fr.asb = [1, 0]
    fr.data = [1] * 66
    assert fr.blob[1:3] == [1, 0]
    assert fr.fn == [1, 1]
    assert fr.data == [1] * 66
    assert fr.blob[69:] == [0] * (126 - 69)
    fr.voice2 = [1] * 100
    assert fr.voice2 == [1] * 100
    assert fr.blob[26:126] == [1] * 100
    with pytest.raises(ValueError):
        fr.voice1 = [1] * 3