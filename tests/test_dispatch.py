"""
Tests for the sample queue and main queue.
"""

import logging
import threading

import pytest

from pipeline.dispatch import DispatchQueue, MainQueue


@pytest.fixture
def sample_queue():
    q = DispatchQueue("test.queue")
    yield q
    q.shutdown(wait=True)


class TestDispatchQueue:
    def test_runs_in_submission_order(self, sample_queue):
        seen = []
        futures = [sample_queue.submit(seen.append, i) for i in range(20)]
        futures[-1].result(timeout=5)

        assert seen == list(range(20))

    def test_runs_off_the_calling_thread(self, sample_queue):
        name = sample_queue.submit(lambda: threading.current_thread().name).result(timeout=5)

        assert name.startswith("test.queue")
        assert name != threading.current_thread().name

    def test_pending_tracks_unfinished_work(self, sample_queue):
        gate = threading.Event()
        sample_queue.submit(gate.wait, 5)
        sample_queue.submit(lambda: None)

        assert not sample_queue.is_idle
        assert sample_queue.pending >= 1

        gate.set()
        sample_queue.submit(lambda: None).result(timeout=5)
        assert sample_queue.is_idle

    def test_failing_task_is_logged_and_queue_continues(self, sample_queue, caplog):
        def explode():
            raise ValueError("bad frame")

        with caplog.at_level(logging.ERROR):
            assert sample_queue.submit(explode).result(timeout=5) is None
            assert sample_queue.submit(lambda: 42).result(timeout=5) == 42

        assert "bad frame" in caplog.text
        assert sample_queue.is_idle

    def test_submit_after_shutdown_leaves_queue_idle(self, sample_queue):
        sample_queue.shutdown(wait=True)

        with pytest.raises(RuntimeError):
            sample_queue.submit(lambda: None)

        assert sample_queue.pending == 0
        assert sample_queue.is_idle


class TestMainQueue:
    def test_drain_runs_posted_work_in_order(self):
        main = MainQueue()
        seen = []
        main.submit(seen.append, "a")
        main.submit(seen.append, "b")

        assert len(main) == 2
        assert main.drain() == 2
        assert seen == ["a", "b"]
        assert len(main) == 0

    def test_drain_on_empty_queue(self):
        assert MainQueue().drain() == 0

    def test_failing_item_does_not_stop_drain(self, caplog):
        main = MainQueue()
        seen = []

        def explode():
            raise RuntimeError("view gone")

        main.submit(explode)
        main.submit(seen.append, 1)

        with caplog.at_level(logging.ERROR):
            assert main.drain() == 2

        assert seen == [1]
        assert "view gone" in caplog.text
