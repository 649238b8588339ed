"""Concurrent output of permutation chunks.

The caller's thread generates chunks; each chunk is handed to a writer
task running in a ``ThreadPoolExecutor`` that formats it and writes it
to the sink, so slow output overlaps with the generation of the next
chunk.  The executor is used as a scope: every writer has finished
before :meth:`Dispatcher.run` returns, so writers can read the chunk
they were given without copying it.

Formatting runs in parallel, writing does not.  Writers take turns on a
condition variable and, unless ``ordered=False``, write in the order the
chunks were generated.  At most ``max_workers`` writers are in flight;
the producer blocks on the oldest one before submitting another.

The first write failure stops the run.  Writers still waiting for their
turn skip their write, no further chunk is pulled from the generator,
and the original exception is re-raised to the caller.  Chunks written
before the failure stay written.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, Protocol

from iterperm import _config
from iterperm.chunks import Chunk, chunk, default_chunk_size
from iterperm.engine import Permutations
from iterperm.mptypes import Formatter
from iterperm.textio import format_permutation

logger = logging.getLogger(__name__)


class Sink(Protocol):
    def write(self, text: str) -> object:
        pass


class Dispatcher:
    """Write chunks to *sink* from a bounded pool of writer threads.

    Args:
        sink: Any object with a ``write(str)`` method.  ``flush()`` is
            called after a successful run if the sink has one.
        max_workers: Writers allowed in flight; defaults to the
            configured value (see :func:`iterperm.get_max_workers`).
        formatter: Turns one permutation into text.
        ordered: Write chunks in generation order.  With ``False`` writes
            are still serialized but land in the order writers finish
            formatting.

    Raises:
        ConfigError: If *max_workers* is not a positive integer.
    """

    def __init__(
        self,
        sink: Sink,
        max_workers: int | None = None,
        formatter: Formatter = format_permutation,
        ordered: bool = True,
    ):
        if max_workers is None:
            max_workers = _config.get_max_workers()
        self.max_workers = _config.positive_int(max_workers, "max_workers")
        self.sink = sink
        self.formatter = formatter
        self.ordered = ordered
        self.chunks_written = 0
        self._turn = threading.Condition()
        self._next_position = 0
        self._failed = False

    def run(self, chunks: Iterable[Chunk]) -> None:
        """Write every chunk, joining all writers before returning.

        Raises:
            OSError: The first failure reported by the sink, unchanged.
        """
        self.chunks_written = 0
        self._next_position = 0
        self._failed = False
        in_flight: deque[Future] = deque()
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="iterperm-writer"
        ) as scope:
            try:
                for position, current in enumerate(chunks):
                    while len(in_flight) >= self.max_workers:
                        in_flight.popleft().result()
                    if self._failed:
                        break
                    in_flight.append(scope.submit(self._write, position, current))
                    logger.debug(
                        "Dispatched chunk %d (%d permutations)", position, len(current)
                    )
                    # checked again before pulling the next chunk
                    if self._failed:
                        break
                while in_flight:
                    in_flight.popleft().result()
            except BaseException:
                self._abort()
                for pending in in_flight:
                    pending.cancel()
                raise
        flush = getattr(self.sink, "flush", None)
        if flush is not None:
            flush()

    def _write(self, position: int, current: Chunk) -> bool:
        try:
            text = current.format(self.formatter)
        except BaseException:
            self._abort()
            raise
        with self._turn:
            while (
                self.ordered
                and self._next_position != position
                and not self._failed
            ):
                self._turn.wait()
            if self._failed:
                logger.debug("Skipping chunk %d after a failed write", position)
                return False
            try:
                self.sink.write(text)
            except BaseException as exc:
                logger.debug("Writing chunk %d failed: %s", position, exc)
                self._abort()
                raise
            self._next_position += 1
            self.chunks_written += 1
            self._turn.notify_all()
        return True

    def _abort(self) -> None:
        with self._turn:
            self._failed = True
            self._turn.notify_all()


def dispatch(
    engine: Permutations,
    chunk_size: int | None,
    sink: Sink,
    max_workers: int | None = None,
    formatter: Formatter = format_permutation,
    ordered: bool = True,
) -> None:
    """Enumerate *engine* and write its permutations to *sink* in chunks.

    Configuration is validated before any permutation is generated.
    ``chunk_size=None`` picks :func:`default_chunk_size` for the input.

    Raises:
        ConfigError: On an invalid chunk size or worker count.
        OSError: The first write failure, unchanged.
    """
    dispatcher = Dispatcher(sink, max_workers, formatter, ordered)
    if chunk_size is None:
        chunk_size = default_chunk_size(engine.frequencies)
    chunk_size = _config.positive_int(chunk_size, "chunk_size")
    chunks = chunk(engine.iterate(), chunk_size)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Writing %d permutations in chunks of %d with %d writers",
            engine.count(), chunk_size, dispatcher.max_workers,
        )
    dispatcher.run(chunks)
