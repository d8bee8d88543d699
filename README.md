# roaringcodec

Read and write sets of unsigned 32-bit integers in the standard Roaring
bitmap serialization format, the portable layout that other Roaring
implementations also read and write.

A bitmap is passed in as any iterable of integers in the range
`0 .. 2**32 - 1`; duplicates are ignored. Functions that decode a bitmap
return a `list` of ints, in ascending order for well-formed input.

## Installation

```
pip install roaringcodec
```

The package has no runtime dependencies. The `test` extra installs pytest and
hypothesis.

## Serializing and deserializing

Everything lives in `roaringcodec.serialization`:

```python
from roaringcodec.serialization import serialize, deserialize, serialized_size

values = range(1, 4)
data = serialize(values)
assert len(data) == serialized_size(values)
assert deserialize(data) == [1, 2, 3]
```

Binary streams work as well:

```python
import io
from roaringcodec.serialization import serialize_into, deserialize_from

buffer = io.BytesIO()
serialize_into([5, 70_000, 4_000_000_000], buffer)
buffer.seek(0)
assert deserialize_from(buffer) == [5, 70_000, 4_000_000_000]
```

Output always uses the layout without run containers. A container with at
most 4096 values is written as an array of 16-bit values; a larger one is
written as an 8 KiB bitset. `serialized_size` returns the exact length that
`serialize` produces. Values outside `0 .. 2**32 - 1` raise `ValueError`.

On input both header kinds are accepted, including the one that marks run
containers.

`deserialize` and `deserialize_from` check that array containers hold strictly
increasing values and that a bitset container's declared cardinality matches
the bits it holds. They raise `InvalidBitmapError` (a subclass of
`ValueError`) when a check fails, when the header cookie is unknown, when the
container count is larger than the format allows, when a run extends past the
end of its container, or when the input ends early.

`deserialize_unchecked_from` reads the same format but skips the array and
bitset content checks; header, length and run checks still apply. Use it only
for trusted input: its result need not be sorted or free of duplicates if the
data is malformed.

`from_byte_sequence(items)` takes the serialized bytes as an iterable of ints,
one per byte, and decodes them as `deserialize` does. Items that are not valid
bytes raise `InvalidBitmapError`.

## Building from a little-endian bit array

`from_lsb0_bytes(offset, data)` treats `data` as an array of bits, least
significant bit first within each byte, and returns the positions of the set
bits, with bit 0 of the first byte at position `offset`:

```python
from roaringcodec.serialization import from_lsb0_bytes

bits = bytes([0b00000101, 0b00000010, 0b00000000, 0b10000000])
assert from_lsb0_bytes(0, bits) == [0, 2, 9, 31]
assert from_lsb0_bytes(3, bits) == [3, 5, 12, 34]
```

A `ValueError` is raised if `offset` is outside `0 .. 2**32 - 1`, or if the
bits would reach past `2**32`.

## Statistics

`roaringcodec.statistics.statistics(values)` describes how the values would be
laid out in containers and returns a frozen `Statistics` dataclass:

```python
from roaringcodec.statistics import statistics

stats = statistics(range(1, 100))
assert stats.n_containers == 1
assert stats.n_array_containers == 1
assert stats.n_values_array_containers == 99
assert stats.n_bytes_array_containers == 512
assert stats.cardinality == 99
assert stats.min_value == 1 and stats.max_value == 99
```

Its fields count array and bitset containers, the values each kind holds and
the bytes each kind uses, together with the minimum and maximum values (`None`
for an empty bitmap) and the total cardinality. Array bytes are an estimate of
a growable buffer of 4-byte entries; each bitset counts 8192 bytes. The
run-container fields are always zero, since no run containers are built.

## What this package does not do

There is no in-memory bitmap type: no set operations such as union or
intersection, no insertion or removal, no rank, select or iteration helpers.
The package only converts between plain collections of integers and the
serialized format, and reports container statistics. It never writes run
containers, and it offers no command-line tool.