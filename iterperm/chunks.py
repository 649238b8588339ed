"""Batching of a permutation stream into fixed-size chunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import islice
from typing import Iterable, Iterator, Sequence

from iterperm import _config
from iterperm.encoding import multinomial
from iterperm.mptypes import Formatter, FrequencyMap, Permutation
from iterperm.textio import format_permutation

# The chunk size targets roughly this many writer tasks per enumeration.
TARGET_CHUNKS = 256
MIN_CHUNK_SIZE = 16


@dataclass(slots=True)
class Chunk(Sequence[Permutation]):
    """Consecutive permutations of one enumeration, in emission order."""

    position: int
    permutations: list[Permutation] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.permutations)

    def __getitem__(self, item):
        return self.permutations[item]

    def __iter__(self) -> Iterator[Permutation]:
        return iter(self.permutations)

    def format(self, formatter: Formatter = format_permutation) -> str:
        return "".join(formatter(permutation) for permutation in self.permutations)


def chunk(
    permutations: Iterable[Permutation], chunk_size: int
) -> Iterator[Chunk]:
    """Split *permutations* into chunks of at most *chunk_size* items.

    The size is validated immediately, before anything is pulled from
    *permutations*.  Only the last chunk may be shorter.

    Raises:
        ConfigError: If *chunk_size* is not a positive integer.
    """
    chunk_size = _config.positive_int(chunk_size, "chunk_size")
    return _chunks(iter(permutations), chunk_size)


def _chunks(permutations: Iterator[Permutation], chunk_size: int) -> Iterator[Chunk]:
    position = 0
    while batch := list(islice(permutations, chunk_size)):
        yield Chunk(position, batch)
        position += 1


def default_chunk_size(frequencies: FrequencyMap) -> int:
    """Pick a chunk size that spreads the output over about 256 chunks.

    Never smaller than 16 permutations, never larger than the configured
    chunk size limit.
    """
    size = max(MIN_CHUNK_SIZE, multinomial(frequencies) // TARGET_CHUNKS)
    return min(size, _config.get_chunk_size_limit())
