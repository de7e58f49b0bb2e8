"""Explicit value-or-error results for asynchronous tasks."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

__all__ = ["Outcome"]

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a unit of work: either a value or the error it raised."""

    value: T | None = None
    error: BaseException | None = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Outcome[T]":
        if error is None:
            raise ValueError("failure outcomes require an error")
        return cls(error=error)

    @classmethod
    def capture(cls, func: Callable[..., T], *args: Any, **kwargs: Any) -> "Outcome[T]":
        """Call ``func`` and wrap whatever it returns or raises."""

        try:
            return cls.success(func(*args, **kwargs))
        except Exception as exc:
            return cls.failure(exc)

    @classmethod
    def from_future(cls, future: Future) -> "Outcome[Any]":
        """Convert a completed future into an outcome.

        Cancelled futures become failures carrying ``CancelledError``.
        """

        if not future.done():
            raise ValueError("future has not completed yet")
        if future.cancelled():
            return cls.failure(CancelledError())
        error = future.exception()
        if error is not None:
            return cls.failure(error)
        return cls.success(future.result())

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or re-raise the captured error."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def recover(self, fallback: T) -> T:
        """Return the value, or ``fallback`` when the work failed."""

        return self.value if self.ok else fallback  # type: ignore[return-value]

    def map(self, func: Callable[[T], U]) -> "Outcome[U]":
        if not self.ok:
            return Outcome(error=self.error)
        return Outcome.capture(func, self.value)
