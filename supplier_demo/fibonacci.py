"""Memoized Fibonacci sequences with compute-once caching.

Sequences are generated iteratively and stored as immutable tuples keyed by
their length. Arithmetic follows signed 64-bit integers: values past index 92
wrap around instead of growing without bound, matching fixed-width integer
arithmetic.

Concurrent first requests for the same length share a single in-flight
computation, so every caller receives the very same tuple instance.
"""

from __future__ import annotations

from concurrent.futures import Future
import logging
import threading

__all__ = [
    "DEFAULT_SEQUENCE_LENGTH",
    "FibonacciCache",
    "Sequence",
    "fibonacci_sequence",
    "wrap_int64",
]

logger = logging.getLogger(__name__)

DEFAULT_SEQUENCE_LENGTH = 50

_INT64_MODULUS = 1 << 64
_INT64_MIN = -(1 << 63)

Sequence = tuple[int, ...]


def wrap_int64(value: int) -> int:
    """Reduce ``value`` to the signed 64-bit range with two's complement wrap."""

    return (value - _INT64_MIN) % _INT64_MODULUS + _INT64_MIN


def _validate_count(n: int) -> None:
    if not isinstance(n, int) or isinstance(n, bool):
        raise TypeError("n must be an integer")
    if n < 0:
        raise ValueError("n must be non-negative")


def fibonacci_sequence(n: int) -> Sequence:
    """Return the first *n* Fibonacci numbers as an immutable tuple."""

    _validate_count(n)
    if n == 0:
        return ()
    if n == 1:
        return (0,)
    sequence = [0, 1]
    for _ in range(2, n):
        sequence.append(wrap_int64(sequence[-1] + sequence[-2]))
    return tuple(sequence)


class FibonacciCache:
    """Length-keyed store of generated Fibonacci sequences.

    Parameters
    ----------
    default_length:
        Sequence length used by :meth:`generate_default`. Adjust it later with
        :meth:`set_length`.
    """

    def __init__(self, default_length: int = DEFAULT_SEQUENCE_LENGTH) -> None:
        _validate_count(default_length)
        self._default_length = default_length
        self._entries: dict[int, Sequence] = {}
        self._pending: dict[int, Future] = {}
        self._generation = 0
        self._computations = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, n: object) -> bool:
        with self._lock:
            return n in self._entries

    @property
    def default_length(self) -> int:
        return self._default_length

    @property
    def computations(self) -> int:
        """Number of sequences actually computed, excluding cache hits."""

        return self._computations

    def cached_lengths(self) -> tuple[int, ...]:
        with self._lock:
            return tuple(sorted(self._entries))

    def generate(self, n: int) -> Sequence:
        """Return the first *n* Fibonacci numbers, computing them at most once."""

        _validate_count(n)
        with self._lock:
            cached = self._entries.get(n)
            if cached is not None:
                logger.debug("Fibonacci cache hit for length %d", n)
                return cached
            pending = self._pending.get(n)
            owner = pending is None
            if owner:
                pending = Future()
                self._pending[n] = pending
                generation = self._generation
                self._computations += 1

        if not owner:
            logger.debug("Waiting for in-flight Fibonacci computation of length %d", n)
            return pending.result()

        logger.debug("Fibonacci cache miss for length %d", n)
        try:
            sequence = fibonacci_sequence(n)
        except BaseException as exc:
            with self._lock:
                self._pending.pop(n, None)
            pending.set_exception(exc)
            raise

        with self._lock:
            self._pending.pop(n, None)
            if generation == self._generation:
                self._entries[n] = sequence
        pending.set_result(sequence)
        return sequence

    def generate_default(self) -> Sequence:
        """Return the sequence for the configured default length."""

        return self.generate(self._default_length)

    def clear(self) -> None:
        """Drop every cached sequence."""

        with self._lock:
            self._entries.clear()
            self._generation += 1
        logger.info("Fibonacci cache cleared.")

    def set_length(self, n: int) -> None:
        """Change the default length without touching cached entries."""

        _validate_count(n)
        self._default_length = n
        logger.info("Fibonacci sequence length set to %d", n)
