"""Summaries of how a set of 32-bit integers is laid out in Roaring containers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from roaringcodec.serialization import ARRAY_LIMIT, BITMAP_BYTES, _containers

__all__ = ["Statistics", "statistics"]

_ARRAY_ENTRY_BYTES = 4
_MIN_ARRAY_CAPACITY = 4


@dataclass(frozen=True)
class Statistics:
    """Detailed statistics on the composition of a bitmap."""

    n_containers: int = 0
    n_array_containers: int = 0
    n_run_containers: int = 0
    n_bitset_containers: int = 0
    n_values_array_containers: int = 0
    n_values_run_containers: int = 0
    n_values_bitset_containers: int = 0
    n_bytes_array_containers: int = 0
    n_bytes_run_containers: int = 0
    n_bytes_bitset_containers: int = 0
    max_value: Optional[int] = None
    min_value: Optional[int] = None
    cardinality: int = 0


def _array_capacity(length: int) -> int:
    """Capacity reached by a growable array filled one value at a time."""
    if length == 0:
        return 0
    return max(_MIN_ARRAY_CAPACITY, 1 << (length - 1).bit_length())


def statistics(values: Iterable[int]) -> Statistics:
    """Return statistics about the container layout of these values."""
    n_array = n_bitset = 0
    values_array = values_bitset = 0
    bytes_array = bytes_bitset = 0
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    containers = _containers(values)
    for key, lows in containers:
        count = len(lows)
        if count <= ARRAY_LIMIT:
            n_array += 1
            values_array += count
            bytes_array += _array_capacity(count) * _ARRAY_ENTRY_BYTES
        else:
            n_bitset += 1
            values_bitset += count
            bytes_bitset += BITMAP_BYTES
        base = key << 16
        if minimum is None:
            minimum = base + lows[0]
        maximum = base + lows[-1]

    return Statistics(
        n_containers=len(containers),
        n_array_containers=n_array,
        n_run_containers=0,
        n_bitset_containers=n_bitset,
        n_values_array_containers=values_array,
        n_values_run_containers=0,
        n_values_bitset_containers=values_bitset,
        n_bytes_array_containers=bytes_array,
        n_bytes_run_containers=0,
        n_bytes_bitset_containers=bytes_bitset,
        max_value=maximum,
        min_value=minimum,
        cardinality=values_array + values_bitset,
    )