"""Odd/even partitioning of Fibonacci sequences."""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pool import WorkerPool

__all__ = [
    "FibonacciReport",
    "Partition",
    "even_values",
    "odd_values",
    "partition_and_sort",
    "partition_and_sort_async",
]


@dataclass(frozen=True)
class Partition:
    """Odd and even values of a sequence, each sorted ascending."""

    odds: tuple[int, ...]
    evens: tuple[int, ...]

    def to_dict(self) -> dict[str, list[int]]:
        return {"odds": list(self.odds), "evens": list(self.evens)}


@dataclass(frozen=True)
class FibonacciReport:
    """Structured result containing the sequence and its partitions."""

    sequence: tuple[int, ...]
    partition: Partition

    def to_dict(self) -> dict[str, list[int]]:
        """Return a serialisable representation of the report."""

        return {"sequence": list(self.sequence), **self.partition.to_dict()}


def odd_values(sequence: Iterable[int]) -> tuple[int, ...]:
    return tuple(sorted(value for value in sequence if value % 2 != 0))


def even_values(sequence: Iterable[int]) -> tuple[int, ...]:
    return tuple(sorted(value for value in sequence if value % 2 == 0))


def partition_and_sort(sequence: Iterable[int]) -> Partition:
    """Split ``sequence`` by parity without modifying it."""

    values = tuple(sequence)
    return Partition(odds=odd_values(values), evens=even_values(values))


def partition_and_sort_async(
    pool: "WorkerPool", source: Future
) -> tuple[Future, Future]:
    """Derive the odd and even partitions of ``source`` on ``pool``.

    Both derivations start once ``source`` completes and run independently of
    each other. A failing ``source`` fails both returned futures.
    """

    return pool.then_apply(source, odd_values), pool.then_apply(source, even_values)
