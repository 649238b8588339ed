"""Iterative enumeration of distinct multiset permutations.

Both engines share one worklist loop.  A *job* pairs the values still
available (a frequency map) with the permutation built so far.  The loop
pops the most recently pushed job; a job whose permutation is complete
is emitted, any other job is replaced by one child per value that is
still available::

    queue = [root]
    while queue:
        job = queue.pop()
        if len(job.permutation) == N:
            emit(job.permutation)
        else:
            queue.extend(job.with_new_value(v) for v in available(job))

A value whose count has dropped to zero never branches, so no two
branches can produce the same permutation and the output needs no
deduplication.  There is no recursion: the Python call stack stays flat
however long the input is.  The price is the queue itself, which keeps
the unexpanded siblings of every level on the current path, so its peak
size grows as O(N^2) rather than the O(N) stack depth of a recursive
enumeration.

:class:`Permutations` stores the frequency map as a ``dict`` copied per
branch.  :class:`CompactPermutations` maps values to dense ids and
copies a small fixed-size ``numpy`` block instead, which bounds the
allocation per job but only accepts inputs up to the configured
capacity.

Branch order follows the iteration order of the frequency map, which
callers must treat as unspecified.  With ``deterministic=True`` the map
is sorted once up front (optionally by *key*) and permutations come out
in lexicographic order of the sorted values.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Collection, Generic, Iterator

import numpy as np

from iterperm.encoding import (
    CompressedArray, IndexMap, compress, encode, id_dtype, multinomial
)
from iterperm.errors import InputTooLarge
from iterperm import _config
from iterperm.mptypes import FrequencyMap, HashableT, Permutation, SortKey

logger = logging.getLogger(__name__)


class State(enum.Enum):
    RUNNING = "running"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True, slots=True)
class Job(Generic[HashableT]):
    """A frontier node of the general engine.

    ``frequencies`` only holds values with a positive count.  Each job
    owns its own ``dict``; children receive a copy.
    """

    frequencies: FrequencyMap
    permutation: Permutation

    @property
    def depth(self) -> int:
        return len(self.permutation)

    def remaining(self) -> int:
        return sum(self.frequencies.values())

    def branches(self) -> Iterator[HashableT]:
        # reversed so the first key of the map is popped first
        return reversed(self.frequencies)

    def with_new_value(self, value: HashableT) -> Job:
        """Child job with *value* appended and its count decreased.

        The value is dropped from the child's map once its count
        reaches zero.
        """
        frequencies = self.frequencies.copy()
        if frequencies[value] == 1:
            del frequencies[value]
        else:
            frequencies[value] -= 1
        return Job(frequencies, self.permutation + (value,))


@dataclass(frozen=True, slots=True)
class CompactJob:
    """A frontier node of the compact engine.

    ``counts[i]`` is the remaining multiplicity of id ``i``; ``ids`` has
    room for the whole permutation and only its first ``depth`` entries
    are meaningful.
    """

    counts: CompressedArray
    ids: np.ndarray
    depth: int

    @property
    def permutation(self) -> tuple[int, ...]:
        return tuple(self.ids[:self.depth].tolist())

    def remaining(self) -> int:
        return int(self.counts.sum())

    def branches(self) -> Iterator[int]:
        return reversed(np.flatnonzero(self.counts).tolist())

    def with_new_value(self, index: int) -> CompactJob:
        counts = self.counts.copy()
        counts[index] -= 1
        ids = self.ids.copy()
        ids[self.depth] = index
        return CompactJob(counts, ids, self.depth + 1)


class PermutationIterator(Iterator[Permutation], Generic[HashableT]):
    """Lazy, single-pass iterator over the permutations of one engine.

    The iterator owns its job queue and drops it once exhausted; it
    cannot be restarted.  Ask the engine for a new iterator instead.

    ``jobs_pushed`` and ``max_queue_size`` record how much work the
    enumeration has done so far, and :meth:`live_jobs` exposes the
    pending jobs.
    """

    def __init__(self, root, length: int):
        self.length = length
        self.state = State.RUNNING
        self.jobs_pushed = 1
        self.max_queue_size = 1
        self._queue = [root]

    def __iter__(self) -> PermutationIterator:
        return self

    def __next__(self) -> Permutation:
        queue = self._queue
        while queue:
            job = queue.pop()
            if job.depth == self.length:
                return self._emit(job)
            before = len(queue)
            queue.extend(job.with_new_value(value) for value in job.branches())
            self.jobs_pushed += len(queue) - before
            if len(queue) > self.max_queue_size:
                self.max_queue_size = len(queue)
        self.state = State.EXHAUSTED
        self._queue = []
        raise StopIteration

    def live_jobs(self) -> tuple:
        return tuple(self._queue)

    def _emit(self, job) -> Permutation:
        return job.permutation


class CompactPermutationIterator(PermutationIterator):
    def __init__(self, root: CompactJob, length: int, index_map: IndexMap):
        super().__init__(root, length)
        self.index_map = index_map

    def _emit(self, job: CompactJob) -> Permutation:
        return self.index_map.decode(job.ids[:job.depth])


def _as_tuple(values: Collection[HashableT]) -> tuple[HashableT, ...]:
    try:
        return tuple(values)
    except TypeError:
        raise TypeError("Elements must be iterable") from None


def _sorted_frequencies(
    frequencies: FrequencyMap, key: SortKey | None
) -> FrequencyMap:
    if key is None:
        return dict(sorted(frequencies.items(), key=lambda item: item[0]))
    return dict(sorted(frequencies.items(), key=lambda item: key(item[0])))


class Permutations(Generic[HashableT]):
    """General engine: no length limit, ``dict`` frequency maps.

    Args:
        values: The multiset to permute.  Values must be hashable.
        deterministic: Sort the distinct values before enumerating so the
            emission order is reproducible.
        key: Sort key used when *deterministic* is set.
    """

    compact = False

    def __init__(
        self,
        values: Collection[HashableT],
        deterministic: bool = False,
        key: SortKey | None = None,
    ):
        self.values = _as_tuple(values)
        self.deterministic = deterministic
        frequencies = encode(self.values)
        if deterministic:
            frequencies = _sorted_frequencies(frequencies, key)
        self.frequencies = frequencies

    @property
    def length(self) -> int:
        return len(self.values)

    def count(self) -> int:
        """Number of permutations a full enumeration will emit."""
        return multinomial(self.frequencies)

    def iterate(self) -> PermutationIterator:
        return PermutationIterator(Job(dict(self.frequencies), ()), self.length)

    def __iter__(self) -> Iterator[Permutation]:
        return self.iterate()


class CompactPermutations(Permutations):
    """Compact engine: dense ids and fixed-size ``numpy`` blocks.

    Args:
        values: The multiset to permute.
        capacity: Longest input accepted; defaults to the configured
            capacity.
        deterministic: As for :class:`Permutations`.
        key: As for :class:`Permutations`.

    Raises:
        InputTooLarge: If ``len(values)`` exceeds *capacity*.
    """

    compact = True

    def __init__(
        self,
        values: Collection[HashableT],
        capacity: int | None = None,
        deterministic: bool = False,
        key: SortKey | None = None,
    ):
        super().__init__(values, deterministic, key)
        if capacity is None:
            capacity = _config.get_capacity()
        self.capacity = capacity
        self.counts, self.index_map = compress(self.frequencies, capacity)

    def iterate(self) -> CompactPermutationIterator:
        root = CompactJob(
            self.counts.copy(),
            np.zeros(self.length, dtype=id_dtype(self.capacity)),
            0,
        )
        return CompactPermutationIterator(root, self.length, self.index_map)


def engine_for(
    values: Collection[HashableT],
    capacity: int | None = None,
    deterministic: bool = False,
    key: SortKey | None = None,
) -> Permutations:
    """Return the compact engine when the input fits, else the general one."""
    values = _as_tuple(values)
    try:
        engine = CompactPermutations(values, capacity, deterministic, key)
    except InputTooLarge as exc:
        logger.info("Using general engine: %s", exc)
        return Permutations(values, deterministic, key)
    logger.info("Using compact engine for %d values", len(values))
    return engine
