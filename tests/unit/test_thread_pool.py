"""
Unit tests for the worker pool.
"""

import threading

import pytest

from easywww.core.thread_pool import ThreadPool


@pytest.fixture
def pool():
    pool = ThreadPool(max_workers=2, queue_size=2)
    pool.start()
    yield pool
    pool.shutdown(wait=True, timeout=2.0)


class TestThreadPool:

    def test_submitted_task_runs(self, pool):
        done = threading.Event()
        results = []

        def task(value, scale=1):
            results.append(value * scale)
            done.set()

        assert pool.submit(task, 21, scale=2) is True
        assert done.wait(2.0)
        assert results == [42]

    def test_full_queue_rejects_without_blocking(self, pool):
        release = threading.Event()
        started = threading.Semaphore(0)

        def blocker():
            started.release()
            release.wait(5.0)

        # Occupy both workers, then fill the queue
        assert pool.submit(blocker)
        assert pool.submit(blocker)
        assert started.acquire(timeout=2.0)
        assert started.acquire(timeout=2.0)
        assert pool.submit(blocker)
        assert pool.submit(blocker)

        try:
            assert pool.submit(blocker) is False
        finally:
            release.set()

    def test_failing_task_keeps_worker_alive(self, pool):
        done = threading.Event()

        def broken():
            raise RuntimeError("boom")

        assert pool.submit(broken)
        assert pool.submit(done.set)
        assert done.wait(2.0)

    def test_submit_after_shutdown(self, pool):
        pool.shutdown(wait=True, timeout=2.0)

        assert pool.is_running is False
        assert pool.submit(lambda: None) is False

    def test_not_started(self):
        assert ThreadPool(max_workers=1).submit(lambda: None) is False

    def test_restart(self, pool):
        pool.shutdown(wait=True, timeout=2.0)
        pool.start()
        done = threading.Event()

        assert pool.submit(done.set)
        assert done.wait(2.0)

    def test_stats(self, pool):
        assert pool.stats["workers"]["total"] == 2

    @pytest.mark.parametrize("kwargs", [{"max_workers": 0}, {"queue_size": 0}])
    def test_invalid_sizes(self, kwargs):
        with pytest.raises(ValueError):
            ThreadPool(**kwargs)
