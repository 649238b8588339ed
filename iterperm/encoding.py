"""Frequency-map encoding of permutation input.

The general engine works on a ``dict`` mapping each distinct value to
the number of times it may still be used.  The compact engine goes one
step further: every distinct value receives a dense integer id and the
frequency map becomes a small ``numpy`` array indexed by id, which can
be copied as a single block when a job branches.

Example for ``values = ("a", "b", "a")``::

    encode(values)    -> {"a": 2, "b": 1}
    compress(...)     -> counts = [2, 1], index_map.values = ("a", "b")
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Generic, Iterable, TypeAlias

import numpy as np

from iterperm import _config
from iterperm.errors import EncodingError, InputTooLarge
from iterperm.mptypes import FrequencyMap, HashableT

CompressedArray: TypeAlias = np.ndarray


def encode(values: Iterable[HashableT]) -> FrequencyMap:
    """Count the occurrences of each distinct value.

    Keys keep the order in which values are first seen.

    Raises:
        TypeError: If a value is not hashable.
        EncodingError: If the counted total disagrees with the input
            length.
    """
    values = tuple(values)
    frequencies = dict(Counter(values))
    if sum(frequencies.values()) != len(values):
        raise EncodingError(
            f"Counted {sum(frequencies.values())} values but the input "
            f"has {len(values)}"
        )
    return frequencies


def multinomial(frequencies: FrequencyMap) -> int:
    """Return the number of distinct permutations of a multiset.

    That is ``N! / (m_1! * ... * m_D!)``; the empty multiset has exactly
    one (empty) permutation.
    """
    counts = [count for count in frequencies.values() if count > 0]
    result = math.factorial(sum(counts))
    for count in counts:
        result //= math.factorial(count)
    return result


def id_dtype(capacity: int) -> np.dtype:
    """Smallest unsigned integer type able to hold counts up to *capacity*."""
    return np.min_scalar_type(capacity)


@dataclass(frozen=True, slots=True)
class IndexMap(Generic[HashableT]):
    """Dense ids ``0..D-1`` and the values they stand for."""

    values: tuple[HashableT, ...]

    def __len__(self) -> int:
        return len(self.values)

    def decode(self, ids: Iterable[int]) -> tuple[HashableT, ...]:
        if isinstance(ids, np.ndarray):
            ids = ids.tolist()
        return tuple(self.values[i] for i in ids)


def compress(
    frequencies: FrequencyMap, capacity: int | None = None
) -> tuple[CompressedArray, IndexMap]:
    """Turn a frequency map into a count array plus its :class:`IndexMap`.

    Ids follow the iteration order of *frequencies*; entries with a zero
    count are skipped.

    Args:
        frequencies: Output of :func:`encode`.
        capacity: Longest permutation accepted.  Defaults to the
            configured capacity (see :func:`iterperm.get_capacity`).

    Returns:
        ``(counts, index_map)`` where ``counts[i]`` is the multiplicity of
        ``index_map.values[i]``.

    Raises:
        InputTooLarge: If the total count exceeds *capacity*.
    """
    if capacity is None:
        capacity = _config.get_capacity()
    capacity = _config.positive_int(capacity, "capacity")
    present = [(value, count) for value, count in frequencies.items() if count > 0]
    length = sum(count for _, count in present)
    if length > capacity:
        raise InputTooLarge(length, capacity)
    counts = np.array(
        [count for _, count in present], dtype=id_dtype(capacity)
    )
    return counts, IndexMap(tuple(value for value, _ in present))
