"""Tests for the session nonce sequencer."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from infrastructure.networking.http.auth import MAX_NONCE, NonceSequencer


class TestNonceSequencer:

    def test_first_value_is_seed(self):
        sequencer = NonceSequencer(seed=1000)
        assert sequencer.current is None
        assert sequencer.next() == 1000
        assert sequencer.current == 1000

    def test_increments_by_one(self):
        sequencer = NonceSequencer(seed=5)
        assert [sequencer.next() for _ in range(4)] == [5, 6, 7, 8]

    def test_seeds_from_clock_seconds(self):
        sequencer = NonceSequencer(clock=lambda: 1_700_000_000.987)
        assert sequencer.next() == 1_700_000_000
        assert sequencer.next() == 1_700_000_001

    def test_clock_read_only_once(self):
        readings = iter([100.0, 5000.0])
        sequencer = NonceSequencer(clock=lambda: next(readings))
        sequencer.next()
        assert sequencer.next() == 101

    def test_overflow_raises(self):
        sequencer = NonceSequencer(seed=MAX_NONCE)
        assert sequencer.next() == MAX_NONCE
        with pytest.raises(OverflowError):
            sequencer.next()

    def test_concurrent_threads_get_distinct_contiguous_values(self):
        sequencer = NonceSequencer(seed=1)
        threads = 8
        per_thread = 500
        barrier = threading.Barrier(threads)

        def worker():
            barrier.wait()
            return [sequencer.next() for _ in range(per_thread)]

        with ThreadPoolExecutor(max_workers=threads) as pool:
            results = [future.result() for future in [pool.submit(worker) for _ in range(threads)]]

        values = [value for chunk in results for value in chunk]
        assert len(set(values)) == threads * per_thread
        assert sorted(values) == list(range(1, threads * per_thread + 1))
        # Each thread observes its own values in increasing order
        for chunk in results:
            assert chunk == sorted(chunk)
