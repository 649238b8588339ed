from typing import Collection

from iterperm._config import (
    get_capacity, get_chunk_size_limit, get_max_workers,
    set_capacity, set_chunk_size_limit, set_max_workers
)
from iterperm.chunks import Chunk, chunk, default_chunk_size
from iterperm.dispatch import Dispatcher, dispatch
from iterperm.encoding import IndexMap, compress, encode, multinomial
from iterperm.engine import (
    CompactPermutations, PermutationIterator, Permutations, State, engine_for
)
from iterperm.errors import (
    ConfigError, EncodingError, InputTooLarge, PermutationError
)
from iterperm.mptypes import HashableT, Permutation


def mperms(elements: Collection[HashableT]) -> PermutationIterator:
    return engine_for(elements).iterate()


def mpermute(elements: Collection[HashableT]) -> tuple[Permutation, ...]:
    return tuple(mperms(elements))
