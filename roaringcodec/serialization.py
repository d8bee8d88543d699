"""Reading and writing sets of 32-bit integers in the portable Roaring format.

A bitmap is handled as a collection of unsigned 32-bit integers.  Functions
that produce a bitmap return its values as a list of ints in container order,
which is ascending for any well-formed input.
"""

from __future__ import annotations

import io
import struct
from itertools import groupby, pairwise
from typing import BinaryIO, Iterable

SERIAL_COOKIE_NO_RUNCONTAINER = 12346
SERIAL_COOKIE = 12347
NO_OFFSET_THRESHOLD = 4

DESCRIPTION_BYTES = 4
OFFSET_BYTES = 4

ARRAY_LIMIT = 4096
BITMAP_LENGTH = 1024
BITMAP_BYTES = BITMAP_LENGTH * 8
CONTAINER_SPAN = 0x1_0000
MAX_VALUE = 0xFFFF_FFFF

__all__ = [
    "InvalidBitmapError",
    "serialized_size",
    "serialize",
    "serialize_into",
    "deserialize",
    "deserialize_from",
    "deserialize_unchecked_from",
    "from_byte_sequence",
    "from_lsb0_bytes",
]


class InvalidBitmapError(ValueError):
    """Raised when serialized bitmap data is malformed or truncated."""


def _containers(values: Iterable[int]) -> list[tuple[int, list[int]]]:
    """Group distinct values into (key, sorted low halves) pairs."""
    unique = sorted(set(values))
    if unique and (unique[0] < 0 or unique[-1] > MAX_VALUE):
        raise ValueError("bitmap values must lie in the range 0..2**32-1")
    return [
        (key, [value & 0xFFFF for value in group])
        for key, group in groupby(unique, key=lambda value: value >> 16)
    ]


def _container_payload_size(cardinality: int) -> int:
    return cardinality * 2 if cardinality <= ARRAY_LIMIT else BITMAP_BYTES


def serialized_size(values: Iterable[int]) -> int:
    """Return the number of bytes that serialize() produces for these values."""
    return 8 + sum(8 + _container_payload_size(len(lows)) for _, lows in _containers(values))


def serialize(values: Iterable[int]) -> bytes:
    """Encode the values in the Roaring format without run containers."""
    containers = _containers(values)
    out = bytearray()
    out += struct.pack("<II", SERIAL_COOKIE_NO_RUNCONTAINER, len(containers))
    for key, lows in containers:
        out += struct.pack("<HH", key, len(lows) - 1)

    offset = 8 + 8 * len(containers)
    for _, lows in containers:
        out += struct.pack("<I", offset)
        offset += _container_payload_size(len(lows))

    for _, lows in containers:
        if len(lows) <= ARRAY_LIMIT:
            out += struct.pack(f"<{len(lows)}H", *lows)
        else:
            bits = bytearray(BITMAP_BYTES)
            for low in lows:
                bits[low >> 3] |= 1 << (low & 7)
            out += bits
    return bytes(out)


def serialize_into(values: Iterable[int], writer: BinaryIO) -> None:
    """Write the encoded values to a binary writer."""
    writer.write(serialize(values))


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining:
        chunk = reader.read(remaining)
        if not chunk:
            raise InvalidBitmapError("unexpected end of data")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _bit_positions(data: bytes) -> list[int]:
    return [
        index * 8 + bit
        for index, byte in enumerate(data)
        if byte
        for bit in range(8)
        if byte >> bit & 1
    ]


def _read_run_container(reader: BinaryIO) -> list[int]:
    (runs,) = struct.unpack("<H", _read_exact(reader, 2))
    raw = _read_exact(reader, 4 * runs)
    lows: set[int] = set()
    for start, length in struct.iter_unpack("<HH", raw):
        end = start + length
        if end > 0xFFFF:
            raise InvalidBitmapError("run extends past the end of its container")
        lows.update(range(start, end + 1))
    return sorted(lows)


def _read_array_container(reader: BinaryIO, cardinality: int, checked: bool) -> list[int]:
    lows = list(struct.unpack(f"<{cardinality}H", _read_exact(reader, 2 * cardinality)))
    if checked and any(a >= b for a, b in pairwise(lows)):
        raise InvalidBitmapError("array container values are not strictly ascending")
    return lows


def _read_bitmap_container(reader: BinaryIO, cardinality: int, checked: bool) -> list[int]:
    lows = _bit_positions(_read_exact(reader, BITMAP_BYTES))
    if checked and len(lows) != cardinality:
        raise InvalidBitmapError(
            f"bitmap container holds {len(lows)} values but declares {cardinality}"
        )
    return lows


def _deserialize(reader: BinaryIO, checked: bool) -> list[int]:
    (cookie,) = struct.unpack("<I", _read_exact(reader, 4))
    if cookie == SERIAL_COOKIE_NO_RUNCONTAINER:
        (size,) = struct.unpack("<I", _read_exact(reader, 4))
        has_offsets, has_runs = True, False
    elif cookie & 0xFFFF == SERIAL_COOKIE:
        size = (cookie >> 16) + 1
        has_offsets, has_runs = size >= NO_OFFSET_THRESHOLD, True
    else:
        raise InvalidBitmapError("unknown cookie value")

    run_flags = _read_exact(reader, (size + 7) // 8) if has_runs else b""

    if size > CONTAINER_SPAN:
        raise InvalidBitmapError("size is greater than supported")

    descriptions = list(struct.iter_unpack("<HH", _read_exact(reader, size * DESCRIPTION_BYTES)))
    if has_offsets:
        _read_exact(reader, size * OFFSET_BYTES)

    result: list[int] = []
    for index, (key, cardinality_minus_one) in enumerate(descriptions):
        cardinality = cardinality_minus_one + 1
        is_run = has_runs and bool(run_flags[index // 8] >> (index % 8) & 1)
        if is_run:
            lows = _read_run_container(reader)
        elif cardinality <= ARRAY_LIMIT:
            lows = _read_array_container(reader, cardinality, checked)
        else:
            lows = _read_bitmap_container(reader, cardinality, checked)
        base = key << 16
        result.extend(base + low for low in lows)
    return result


def deserialize_from(reader: BinaryIO) -> list[int]:
    """Read a bitmap from a binary reader, validating every container."""
    return _deserialize(reader, checked=True)


def deserialize_unchecked_from(reader: BinaryIO) -> list[int]:
    """Read a bitmap from a binary reader without validating container contents."""
    return _deserialize(reader, checked=False)


def deserialize(data: bytes) -> list[int]:
    """Decode a bitmap from bytes, validating every container."""
    return deserialize_from(io.BytesIO(data))


def from_byte_sequence(items: Iterable[int]) -> list[int]:
    """Decode a bitmap whose serialized bytes are given as a sequence of ints."""
    try:
        data = bytes(items)
    except (TypeError, ValueError) as exc:
        raise InvalidBitmapError(f"expected a sequence of bytes: {exc}") from exc
    return deserialize(data)


def from_lsb0_bytes(offset: int, data: bytes) -> list[int]:
    """Return the positions of set bits, least significant bit first, starting at offset.

    Raises ValueError when the bits would reach beyond 2**32.
    """
    if not 0 <= offset <= MAX_VALUE:
        raise ValueError("offset must lie in the range 0..2**32-1")
    data = bytes(data)
    if not data:
        return []

    shift = offset % 8
    base = offset - shift
    length = len(data)
    if shift and data[-1] >> (8 - shift):
        length += 1
    if base + length * 8 - 1 > MAX_VALUE:
        raise ValueError("offset + bytes.len() must be <= 2^32")

    return [offset + position for position in _bit_positions(data)]