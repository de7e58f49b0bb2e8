"""Asynchronous supplier demos with a memoized Fibonacci pipeline."""

from .config import ConfigError, DemoConfig, load_config
from .fibonacci import (
    DEFAULT_SEQUENCE_LENGTH,
    FibonacciCache,
    Sequence,
    fibonacci_sequence,
    wrap_int64,
)
from .outcome import Outcome
from .partition import (
    FibonacciReport,
    Partition,
    even_values,
    odd_values,
    partition_and_sort,
    partition_and_sort_async,
)
from .pool import (
    PoolError,
    PoolShutdownError,
    TaskTimeoutError,
    WorkerPool,
    await_result,
)

__all__ = [
    "ConfigError",
    "DEFAULT_SEQUENCE_LENGTH",
    "DemoConfig",
    "FibonacciCache",
    "FibonacciReport",
    "Outcome",
    "Partition",
    "PoolError",
    "PoolShutdownError",
    "Sequence",
    "TaskTimeoutError",
    "WorkerPool",
    "await_result",
    "even_values",
    "fibonacci_sequence",
    "load_config",
    "odd_values",
    "partition_and_sort",
    "partition_and_sort_async",
    "wrap_int64",
]
