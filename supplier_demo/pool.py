"""Fixed-size worker pool with future chaining and bounded waits.

The pool owns a FIFO task queue consumed by ``size`` worker threads. Work is
submitted as plain callables and observed through
:class:`concurrent.futures.Future` objects, which can be chained on the pool
(:meth:`WorkerPool.then_apply`), mapped through an :class:`Outcome`
(:meth:`WorkerPool.handle`, :meth:`WorkerPool.recover`) or joined
(:meth:`WorkerPool.then_combine`).

Python threads cannot be interrupted from the outside, so shutdown sets the
:attr:`WorkerPool.interrupted` event instead. Long-running work is expected to
block on that event rather than on :func:`time.sleep` so that
:meth:`WorkerPool.shutdown_now` can cut it short.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeoutError
import logging
import queue
import threading
import time
from typing import Any, TypeVar

from .outcome import Outcome

__all__ = [
    "PoolError",
    "PoolShutdownError",
    "TaskTimeoutError",
    "WorkerPool",
    "await_result",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")

DEFAULT_SHUTDOWN_TIMEOUT = 1.0


class PoolError(RuntimeError):
    """Base class for worker pool failures."""


class PoolShutdownError(PoolError):
    """Raised when work is submitted to a pool that has been shut down."""


class TaskTimeoutError(PoolError, TimeoutError):
    """Raised when a bounded wait on a task result elapses."""


def await_result(future: Future, timeout: float | None) -> Any:
    """Block until ``future`` completes or ``timeout`` seconds elapse.

    Errors raised by the task propagate unchanged. An elapsed wait raises
    :class:`TaskTimeoutError`; the task itself keeps running.
    """

    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError as exc:
        if future.done():
            raise
        raise TaskTimeoutError(
            f"Task did not complete within {timeout:.2f}s"
        ) from exc


def _copy_state(source: Future, target: Future) -> None:
    if source.cancelled():
        target.cancel()
        return
    error = source.exception()
    if error is not None:
        target.set_exception(error)
    else:
        target.set_result(source.result())


class WorkerPool:
    """A bounded set of worker threads draining a shared task queue."""

    def __init__(
        self,
        size: int,
        *,
        name: str = "pool",
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        if not isinstance(size, int):
            raise TypeError("Pool size must be an integer")
        if size < 1:
            raise ValueError("Pool size must be at least 1")
        self.name = name
        self.size = size
        self.shutdown_timeout = shutdown_timeout
        self.interrupted = threading.Event()
        self._tasks: queue.SimpleQueue = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._shutdown = False
        self._threads = [
            threading.Thread(
                target=self._work,
                name=f"{name}-worker-{index}",
                daemon=True,
            )
            for index in range(1, size + 1)
        ]
        for thread in self._threads:
            thread.start()
        logger.debug("Started %s with %d workers", name, size)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def _work(self) -> None:
        while True:
            item = self._tasks.get()
            if item is None:
                return
            future, func, args, kwargs = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = func(*args, **kwargs)
            except BaseException as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

    def submit(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> Future:
        """Queue ``func(*args, **kwargs)`` and return its future."""

        future: Future = Future()
        with self._lock:
            if self._shutdown:
                raise PoolShutdownError(f"{self.name} has been shut down")
            self._tasks.put((future, func, args, kwargs))
        return future

    def then_apply(self, source: Future, func: Callable[[T], U]) -> Future:
        """Run ``func`` on the pool with the result of ``source``.

        The returned future fails with the error of ``source`` without
        calling ``func`` when ``source`` fails.
        """

        derived: Future = Future()

        def _relay(done: Future) -> None:
            if done.cancelled() or done.exception() is not None:
                _copy_state(done, derived)
                return
            try:
                chained = self.submit(func, done.result())
            except PoolShutdownError as exc:
                derived.set_exception(exc)
                return
            chained.add_done_callback(lambda finished: _copy_state(finished, derived))

        source.add_done_callback(_relay)
        return derived

    def handle(self, source: Future, func: Callable[[Outcome[Any]], R]) -> Future:
        """Map the outcome of ``source``, whether it succeeded or failed."""

        derived: Future = Future()

        def _relay(done: Future) -> None:
            outcome = Outcome.capture(func, Outcome.from_future(done))
            if outcome.ok:
                derived.set_result(outcome.value)
            else:
                derived.set_exception(outcome.error)

        source.add_done_callback(_relay)
        return derived

    def recover(self, source: Future, fallback: T) -> Future:
        """Return a future that yields ``fallback`` when ``source`` fails."""

        def _fallback(outcome: Outcome[T]) -> T:
            if not outcome.ok:
                logger.warning(
                    "Task failed with %r; using fallback %r", outcome.error, fallback
                )
            return outcome.recover(fallback)

        return self.handle(source, _fallback)

    def then_combine(
        self, left: Future, right: Future, func: Callable[[T, U], R]
    ) -> Future:
        """Join two futures with ``func`` once both have completed.

        The combined future fails when either input fails.
        """

        derived: Future = Future()

        def _after_both(_done: Future) -> None:
            for done in (left, right):
                if done.cancelled() or done.exception() is not None:
                    _copy_state(done, derived)
                    return
            outcome = Outcome.capture(func, left.result(), right.result())
            if outcome.ok:
                derived.set_result(outcome.value)
            else:
                derived.set_exception(outcome.error)

        left.add_done_callback(lambda _done: right.add_done_callback(_after_both))
        return derived

    def shutdown_now(self) -> int:
        """Stop accepting work, interrupt running work and drop queued tasks.

        Returns the number of queued tasks that were cancelled.
        """

        with self._lock:
            if self._shutdown:
                return 0
            self._shutdown = True
            self.interrupted.set()
            cancelled = 0
            while True:
                try:
                    item = self._tasks.get_nowait()
                except queue.Empty:
                    break
                if item is not None and item[0].cancel():
                    cancelled += 1
            for _ in self._threads:
                self._tasks.put(None)
        logger.debug("%s shut down, %d queued tasks cancelled", self.name, cancelled)
        return cancelled

    def await_termination(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for every worker to exit."""

        deadline = time.monotonic() + timeout
        current = threading.current_thread()
        for thread in self._threads:
            if thread is current:
                continue
            thread.join(max(0.0, deadline - time.monotonic()))
        return not any(
            thread.is_alive() for thread in self._threads if thread is not current
        )

    def close(self) -> bool:
        """Shut down and wait for the workers; a timeout is only logged."""

        self.shutdown_now()
        terminated = self.await_termination(self.shutdown_timeout)
        if not terminated:
            logger.warning("Executor did not terminate in time")
        return terminated
