"""Tests for concurrent chunk output."""

import io
import threading
import time

import numpy as np
import pytest

from iterperm import _config
from iterperm.chunks import Chunk, chunk
from iterperm.dispatch import Dispatcher, dispatch
from iterperm.engine import CompactPermutations, Permutations
from iterperm.errors import ConfigError
from iterperm.textio import format_permutation


class RecordingSink:
    def __init__(self, fail_on=None, error=None):
        self.writes = []
        self.flushed = False
        self.fail_on = fail_on
        self.error = error

    def write(self, text):
        if len(self.writes) == self.fail_on:
            raise self.error
        self.writes.append(text)

    def flush(self):
        self.flushed = True


def expected_text(values):
    return "".join(
        format_permutation(p) for p in Permutations(values, deterministic=True)
    )


def writer_threads():
    return [t for t in threading.enumerate() if t.name.startswith("iterperm-writer")]


@pytest.mark.parametrize("engine", (Permutations, CompactPermutations))
@pytest.mark.parametrize("workers", (1, 2, 8))
def test_output_matches_generation_order(engine, workers):
    values = (1, 2, 2, 3, 4)
    sink = io.StringIO()
    dispatch(engine(values, deterministic=True), 5, sink, max_workers=workers)
    assert sink.getvalue() == expected_text(values)


def test_later_chunks_formatting_first_still_write_in_order():
    values = (1, 2, 3, 4)

    def slow_for_early_chunks(permutation):
        # the first permutations take the longest to format
        if permutation[0] == 1:
            time.sleep(0.01)
        return format_permutation(permutation)

    sink = RecordingSink()
    dispatch(
        Permutations(values, deterministic=True), 6, sink,
        max_workers=4, formatter=slow_for_early_chunks,
    )
    assert "".join(sink.writes) == expected_text(values)
    assert len(sink.writes) == 4
    assert sink.flushed


def test_in_flight_writers_are_bounded():
    lock = threading.Lock()
    active = [0]
    peak = [0]

    def tracking(permutation):
        with lock:
            active[0] += 1
            peak[0] = max(peak[0], active[0])
        time.sleep(0.002)
        with lock:
            active[0] -= 1
        return format_permutation(permutation)

    sink = io.StringIO()
    dispatch(Permutations(range(5)), 4, sink, max_workers=3, formatter=tracking)
    assert peak[0] <= 3
    assert len(sink.getvalue().splitlines()) == 120


@pytest.mark.parametrize("workers", (1, 3))
def test_producer_waits_while_writers_are_outstanding(workers):
    release = threading.Event()
    pulled = []

    class BlockingSink:
        def __init__(self):
            self.writes = []

        def write(self, text):
            release.wait(timeout=10)
            self.writes.append(text)

    def counted(chunks):
        for c in chunks:
            pulled.append(c.position)
            yield c

    sink = BlockingSink()
    dispatcher = Dispatcher(sink, max_workers=workers)
    runner = threading.Thread(
        target=dispatcher.run,
        args=(counted(chunk(Permutations(range(5)).iterate(), 4)),),
    )
    runner.start()
    time.sleep(0.2)
    # every writer is stuck; the producer may hold one more chunk waiting for a slot
    assert len(pulled) <= workers + 1
    release.set()
    runner.join(timeout=10)
    assert not runner.is_alive()
    assert len(pulled) == 30
    assert len("".join(sink.writes).splitlines()) == 120


def test_engine_count_skipped_without_debug_logging(caplog):
    class CountingEngine(SpyEngine):
        def count(self):
            raise AssertionError("count() computed with debug logging off")

    engine = CountingEngine()
    with caplog.at_level("INFO", logger="iterperm.dispatch"):
        dispatch(engine, 2, io.StringIO())
    assert engine.iterated


def test_numpy_integer_configuration():
    sink = io.StringIO()
    dispatch(Permutations([1, 2, 3]), np.int64(2), sink, max_workers=np.int32(2))
    assert len(sink.getvalue().splitlines()) == 6


def test_write_failure_stops_generation_and_is_reraised():
    boom = OSError("disk full")
    sink = RecordingSink(fail_on=2, error=boom)
    pulled = []

    def counted(chunks):
        for c in chunks:
            pulled.append(c.position)
            yield c

    dispatcher = Dispatcher(sink, max_workers=2)
    permutations = list(Permutations(range(6), deterministic=True))
    with pytest.raises(OSError) as info:
        dispatcher.run(counted(chunk(iter(permutations), 10)))
    assert info.value is boom
    # chunks written before the failure are kept
    assert sink.writes == [
        "".join(format_permutation(p) for p in permutations[:10]),
        "".join(format_permutation(p) for p in permutations[10:20]),
    ]
    assert dispatcher.chunks_written == 2
    assert len(pulled) <= 5
    assert not sink.flushed
    assert writer_threads() == []


def test_unordered_failure_is_reraised():
    boom = OSError("broken pipe")
    sink = RecordingSink(fail_on=0, error=boom)
    with pytest.raises(OSError) as info:
        dispatch(Permutations(range(5)), 3, sink, max_workers=4, ordered=False)
    assert info.value is boom
    assert sink.writes == []


def test_generation_error_joins_writers():
    def failing():
        yield Chunk(0, [(1,)])
        raise RuntimeError("generator broke")

    sink = RecordingSink()
    with pytest.raises(RuntimeError, match="generator broke"):
        Dispatcher(sink, max_workers=2).run(failing())
    assert writer_threads() == []


def test_unordered_writes_everything():
    sink = RecordingSink()
    dispatch(Permutations((1, 1, 2, 3, 3)), 2, sink, max_workers=4, ordered=False)
    lines = "".join(sink.writes).splitlines()
    assert len(lines) == 30
    assert len(set(lines)) == 30


def test_writers_joined_before_return():
    sink = io.StringIO()
    dispatch(Permutations(range(4)), 1, sink, max_workers=4)
    assert writer_threads() == []
    assert len(sink.getvalue().splitlines()) == 24


def test_empty_input_writes_one_empty_line():
    sink = io.StringIO()
    dispatch(Permutations([]), 4, sink)
    assert sink.getvalue() == "\n"


def test_default_chunk_size():
    sink = io.StringIO()
    dispatch(CompactPermutations("abcde"), None, sink)
    assert len(sink.getvalue().splitlines()) == 120


class SpyEngine:
    def __init__(self):
        self.iterated = False
        self.frequencies = {1: 1}

    def iterate(self):
        self.iterated = True
        return iter([(1,)])

    def count(self):
        return 1


@pytest.mark.parametrize(
    "kwargs", ({"chunk_size": 0}, {"chunk_size": 2, "max_workers": 0})
)
def test_config_errors_before_generation(kwargs):
    engine = SpyEngine()
    chunk_size = kwargs.pop("chunk_size")
    with pytest.raises(ConfigError):
        dispatch(engine, chunk_size, io.StringIO(), **kwargs)
    assert not engine.iterated


def test_max_workers_from_config():
    _config.set_max_workers(1)
    assert Dispatcher(io.StringIO()).max_workers == 1
