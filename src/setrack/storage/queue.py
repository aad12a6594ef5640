"""Serialized mutation queue.

All writes to a repository go through one single-worker executor, so at
most one read-modify-write runs at a time and they run in submission
order. The store initializer is always the first task, which makes every
later action observe an initialized store.

A failing action only fails its own future; the worker moves on to the
next task. Actions must not wait on other queued actions (the single
worker would deadlock).
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class MutationQueue:
    """FIFO, one-at-a-time executor for repository mutations.

    Example:
        >>> queue = MutationQueue(lambda: None)
        >>> queue.enqueue(lambda: 41 + 1).result()
        42
        >>> queue.close()
    """

    def __init__(
        self,
        initializer: Callable[[], Any],
        thread_name_prefix: str = "setrack-mutations",
    ) -> None:
        """Start the worker and schedule ``initializer`` as its first task."""
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=thread_name_prefix,
        )
        self._ready: Future[Any] = self._executor.submit(initializer)

    def enqueue(self, action: Callable[[], T]) -> Future[T]:
        """Schedule ``action`` after every previously enqueued action.

        Returns:
            Future resolving to the action's return value, or carrying
            its exception. If initialization failed, the future carries
            the initialization error instead and ``action`` never runs.

        Raises:
            RuntimeError: If the queue has been closed.
        """
        return self._executor.submit(self._run, action)

    def _run(self, action: Callable[[], T]) -> T:
        self._ready.result()
        return action()

    def wait_ready(self, timeout: float | None = None) -> Any:
        """Block until initialization finished, re-raising its failure."""
        return self._ready.result(timeout)

    @property
    def initialization(self) -> Future[Any]:
        """Future of the initializer task."""
        return self._ready

    def close(self, wait: bool = True) -> None:
        """Stop accepting actions; by default wait for queued ones to finish."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> MutationQueue:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
