import io
import struct

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from roaringcodec.serialization import (
    InvalidBitmapError,
    deserialize,
    deserialize_from,
    deserialize_unchecked_from,
    from_byte_sequence,
    from_lsb0_bytes,
    serialize,
    serialize_into,
    serialized_size,
)

U32_MAX = 0xFFFF_FFFF
CONTAINER_OFFSET = 64 * 1024
CONTAINER_OFFSET_IN_BYTES = CONTAINER_OFFSET // 8


@st.composite
def bitmaps(draw):
    sparse = draw(st.sets(st.integers(min_value=0, max_value=U32_MAX), max_size=200))
    start = draw(st.integers(min_value=0, max_value=U32_MAX - 10_000))
    length = draw(st.sampled_from([0, 10, 5000]))
    return sparse | set(range(start, start + length))


@settings(max_examples=50, deadline=None)
@given(bitmaps())
def test_serialization_round_trip(values):
    buffer = io.BytesIO()
    serialize_into(values, buffer)
    assert deserialize_from(io.BytesIO(buffer.getvalue())) == sorted(values)


@settings(max_examples=50, deadline=None)
@given(bitmaps())
def test_byte_sequence_round_trip(values):
    assert from_byte_sequence(list(serialize(values))) == sorted(values)


@settings(max_examples=50, deadline=None)
@given(bitmaps())
def test_serialized_size_matches_output(values):
    assert serialized_size(values) == len(serialize(values))


@settings(max_examples=30, deadline=None)
@given(bitmaps())
def test_unchecked_round_trip(values):
    assert deserialize_unchecked_from(io.BytesIO(serialize(values))) == sorted(values)


def test_small_example_size_and_bytes():
    assert serialized_size(range(1, 4)) == 22
    expected = (
        b"\x3a\x30\x00\x00"
        b"\x01\x00\x00\x00"
        b"\x00\x00\x02\x00"
        b"\x10\x00\x00\x00"
        b"\x01\x00\x02\x00\x03\x00"
    )
    assert serialize([3, 1, 2, 2]) == expected
    assert deserialize(expected) == [1, 2, 3]


def test_bitmap_container_size():
    assert serialized_size(range(5000)) == 8 + 8 + 8192
    assert deserialize(serialize(range(5000))) == list(range(5000))


def test_empty_bitmap():
    assert serialize([]) == b"\x3a\x30\x00\x00\x00\x00\x00\x00"
    assert deserialize(serialize([])) == []


def test_serialize_rejects_out_of_range():
    with pytest.raises(ValueError):
        serialize([U32_MAX + 1])


def test_from_lsb0_bytes():
    data = b"\xff" * CONTAINER_OFFSET_IN_BYTES + b"\x00" * CONTAINER_OFFSET_IN_BYTES
    data += bytes([0b00000001, 0b00000010, 0b00000011, 0b00000100])
    offset = 32
    rb = from_lsb0_bytes(offset, data)
    assert rb[:CONTAINER_OFFSET] == list(range(offset, offset + CONTAINER_OFFSET))
    assert rb[CONTAINER_OFFSET:] == [
        bit + offset + CONTAINER_OFFSET * 2 for bit in [0, 9, 16, 17, 26]
    ]
    assert len(rb) == CONTAINER_OFFSET + 5


def test_from_lsb0_bytes_skips_empty_container():
    data = b"\x00" * CONTAINER_OFFSET_IN_BYTES + b"\xff"
    assert min(from_lsb0_bytes(0, data)) == CONTAINER_OFFSET
    assert min(from_lsb0_bytes(8, data)) == CONTAINER_OFFSET + 8


def test_from_lsb0_bytes_last_byte_array():
    rb = from_lsb0_bytes(0xFFFFFFF8, b"\x80")
    assert rb == [U32_MAX]


def test_from_lsb0_bytes_last_byte_bitmap():
    rb = from_lsb0_bytes(0xFFFF0000, b"\xff" * (0x1_0000 // 8))
    assert len(rb) == 0x1_0000
    assert rb[-1] == U32_MAX


def test_from_lsb0_bytes_doc_examples():
    data = bytes([0b00000101, 0b00000010, 0b00000000, 0b10000000])
    assert from_lsb0_bytes(0, data) == [0, 2, 9, 31]
    assert from_lsb0_bytes(8, data) == [8, 10, 17, 39]
    assert from_lsb0_bytes(3, data) == [3, 5, 12, 34]


def test_from_lsb0_bytes_not_multiple_of_8():
    data = bytes([0b0101_1001]) + b"\x00" * CONTAINER_OFFSET_IN_BYTES
    data += bytes([0b00000001, 0b00000010, 0b00000011, 0b00000100])
    indices = [0, 3, 4, 6] + [8 + CONTAINER_OFFSET + i for i in [0, 9, 16, 17, 26]]
    for offset in range(8):
        rb = set(from_lsb0_bytes(offset, data))
        assert {i + offset for i in indices} <= rb
        assert len(rb) == len(indices)


def test_from_lsb0_bytes_empty():
    assert from_lsb0_bytes(5, b"") == []


def test_from_lsb0_bytes_overflow():
    with pytest.raises(ValueError, match="<= 2\\^32"):
        from_lsb0_bytes(U32_MAX - 7, bytes([0x01, 0x01]))


def test_deserialize_overflow_s_plus_len():
    data = bytes([59, 48, 0, 0, 255, 130, 254, 59, 48, 2, 0, 41, 255, 255, 166, 197, 4, 0, 2])
    with pytest.raises(InvalidBitmapError):
        deserialize(data)


def test_run_container_decoding():
    data = (
        struct.pack("<I", 12347)
        + b"\x01"
        + struct.pack("<HH", 0, 3)
        + struct.pack("<HHH", 1, 5, 3)
    )
    assert deserialize(data) == [5, 6, 7, 8]


def test_unknown_cookie():
    with pytest.raises(InvalidBitmapError, match="cookie"):
        deserialize(b"\x00\x00\x00\x00\x00\x00\x00\x00")


def test_truncated_data():
    with pytest.raises(InvalidBitmapError):
        deserialize(serialize([1, 2, 3])[:-1])


def test_unsorted_array_checked_and_unchecked():
    data = (
        struct.pack("<II", 12346, 1)
        + struct.pack("<HH", 0, 1)
        + struct.pack("<I", 16)
        + struct.pack("<HH", 3, 1)
    )
    with pytest.raises(InvalidBitmapError):
        deserialize(data)
    assert deserialize_unchecked_from(io.BytesIO(data)) == [3, 1]


def test_bitmap_cardinality_mismatch():
    bits = bytearray(8192)
    bits[0] = 0b10
    data = (
        struct.pack("<II", 12346, 1)
        + struct.pack("<HH", 2, 4096)
        + struct.pack("<I", 16)
        + bytes(bits)
    )
    with pytest.raises(InvalidBitmapError):
        deserialize(data)
    assert deserialize_unchecked_from(io.BytesIO(data)) == [(2 << 16) + 1]


def test_from_byte_sequence_rejects_non_bytes():
    with pytest.raises(InvalidBitmapError):
        from_byte_sequence([300, 1, 2])