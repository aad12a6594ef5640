"""Tests for the serialized mutation queue."""

from __future__ import annotations

import threading
import time

import pytest

from setrack.storage.queue import MutationQueue


@pytest.fixture
def queue():
    mutation_queue = MutationQueue(lambda: "ready")
    yield mutation_queue
    mutation_queue.close()


class TestOrdering:
    """FIFO, one action at a time."""

    def test_results_returned_through_futures(self, queue):
        assert queue.enqueue(lambda: 41 + 1).result(timeout=5) == 42

    def test_actions_run_in_submission_order(self, queue):
        seen: list[int] = []
        futures = [queue.enqueue(lambda i=i: seen.append(i)) for i in range(50)]
        for future in futures:
            future.result(timeout=5)
        assert seen == list(range(50))

    def test_never_more_than_one_action_in_flight(self, queue):
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        def action():
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.002)
            with lock:
                state["active"] -= 1

        futures: list = []
        futures_lock = threading.Lock()

        def submitter():
            for _ in range(10):
                future = queue.enqueue(action)
                with futures_lock:
                    futures.append(future)

        threads = [threading.Thread(target=submitter) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        for future in futures:
            future.result(timeout=10)

        assert len(futures) == 60
        assert state["peak"] == 1


class TestFailures:
    """Errors reach their caller and nothing else."""

    def test_failure_propagates_to_its_future(self, queue):
        def boom():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            queue.enqueue(boom).result(timeout=5)

    def test_failure_does_not_block_later_actions(self, queue):
        def boom():
            raise ValueError("boom")

        failed = queue.enqueue(boom)
        after = queue.enqueue(lambda: "still running")

        assert after.result(timeout=5) == "still running"
        assert isinstance(failed.exception(timeout=5), ValueError)


class TestInitialization:
    """The initializer gates every action."""

    def test_initializer_runs_before_actions(self):
        state = {"initialized": False}

        def initializer():
            time.sleep(0.05)
            state["initialized"] = True

        with MutationQueue(initializer) as queue:
            assert queue.enqueue(lambda: state["initialized"]).result(timeout=5) is True

    def test_wait_ready_returns_initializer_result(self, queue):
        assert queue.wait_ready(timeout=5) == "ready"
        assert queue.initialization.done()

    def test_failed_initialization_fails_every_action(self):
        ran: list[str] = []

        def initializer():
            raise PermissionError("storage not writable")

        with MutationQueue(initializer) as queue:
            with pytest.raises(PermissionError):
                queue.wait_ready(timeout=5)
            with pytest.raises(PermissionError):
                queue.enqueue(lambda: ran.append("x")).result(timeout=5)

        assert ran == []


class TestClose:
    def test_close_drains_pending_actions(self):
        seen: list[int] = []
        queue = MutationQueue(lambda: None)
        for i in range(5):
            queue.enqueue(lambda i=i: (time.sleep(0.001), seen.append(i)))
        queue.close()
        assert seen == [0, 1, 2, 3, 4]

    def test_enqueue_after_close_raises(self):
        queue = MutationQueue(lambda: None)
        queue.close()
        with pytest.raises(RuntimeError):
            queue.enqueue(lambda: None)
