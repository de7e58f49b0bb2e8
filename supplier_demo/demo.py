"""Walk-through of asynchronous suppliers on a bounded worker pool.

The demo runs a fixed sequence of steps:

1. a slow supplier on a one-off common pool while the caller keeps working;
2. the same kind of supplier on the demo's own pool;
3. a failing supplier recovered to a fallback value;
4. two suppliers joined into a single result;
5. a cached Fibonacci sequence partitioned into sorted odd and even values;
6. a second request for the sequence, served from the cache.

Every line is logged with the name of the thread that produced it, which
makes the hand-off between the caller and the pool workers visible.

Running the module as a script executes the demo once::

    python -m supplier_demo.demo --pool-size 3 --length 50
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import argparse
import json
import logging
import sys
import threading
from typing import TextIO

from .config import ConfigError, DemoConfig, load_config
from .fibonacci import FibonacciCache
from .partition import FibonacciReport, Partition, partition_and_sort_async
from .pool import WorkerPool, await_result

__all__ = ["SupplierDemo", "failing_supplier", "main", "slow_supplier"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(message)s [Thread: %(threadName)s]"
FALLBACK_VALUE = "fallback"


def slow_supplier(
    name: str, delay: float, interrupted: threading.Event
) -> Callable[[], str]:
    """Build a supplier that blocks for ``delay`` seconds before answering.

    The wait ends early when ``interrupted`` is set, in which case the
    supplier reports ``"<name>-interrupted"`` instead of raising.
    """

    def _supply() -> str:
        logger.info("%s started", name)
        if interrupted.wait(delay):
            logger.info("%s interrupted", name)
            return f"{name}-interrupted"
        logger.info("%s finished", name)
        return f"{name}-result"

    return _supply


def failing_supplier() -> str:
    logger.info("Bad supplier running")
    raise RuntimeError("boom")


class SupplierDemo:
    """Owns the worker pool and Fibonacci cache for one demo run."""

    def __init__(
        self,
        config: DemoConfig | None = None,
        *,
        cache: FibonacciCache | None = None,
    ) -> None:
        self.config = (config or DemoConfig()).validate()
        self.pool = WorkerPool(
            self.config.pool_size,
            name="demo-pool",
            shutdown_timeout=self.config.shutdown_timeout,
        )
        self.cache = cache if cache is not None else FibonacciCache(
            self.config.sequence_length
        )
        self.report: FibonacciReport | None = None

    def demo_basic_supply(self) -> str:
        logger.info("--- basic supply ---")
        with WorkerPool(
            1, name="common-pool", shutdown_timeout=self.config.shutdown_timeout
        ) as common:
            future = common.submit(
                slow_supplier("BasicSupplier", self.config.basic_delay, common.interrupted)
            )
            logger.info("Doing other work while supplier runs...")
            result = await_result(future, self.config.await_timeout)
        logger.info("Result: %s", result)
        return result

    def demo_supply_with_executor(self) -> str:
        logger.info("--- supply on the demo pool ---")
        future = self.pool.submit(
            slow_supplier(
                "ExecutorSupplier", self.config.executor_delay, self.pool.interrupted
            )
        )
        result = await_result(future, self.config.await_timeout)
        logger.info("Result from custom executor: %s", result)
        return result

    def demo_exception_handling(self) -> str:
        logger.info("--- exception handling ---")
        future = self.pool.recover(self.pool.submit(failing_supplier), FALLBACK_VALUE)
        result = await_result(future, self.config.await_timeout)
        logger.info("Handled result: %s", result)
        return result

    def demo_combine(self) -> str:
        logger.info("--- combine two suppliers ---")
        left = self.pool.submit(
            slow_supplier("Left", self.config.left_delay, self.pool.interrupted)
        )
        right = self.pool.submit(
            slow_supplier("Right", self.config.right_delay, self.pool.interrupted)
        )
        combined = self.pool.then_combine(left, right, lambda a, b: f"{a}+{b}")
        result = await_result(combined, self.config.await_timeout)
        logger.info("Combined result: %s", result)
        return result

    def _generate_sequence(self) -> tuple[int, ...]:
        logger.info("Generating Fibonacci sequence...")
        return self.cache.generate_default()

    def demo_fibonacci_partition(self) -> FibonacciReport:
        logger.info("--- Fibonacci partition and sort ---")
        source = self.pool.submit(self._generate_sequence)
        odd_future, even_future = partition_and_sort_async(self.pool, source)

        odds = await_result(odd_future, self.config.partition_timeout)
        logger.info("Odd (sorted): %s", list(odds))
        evens = await_result(even_future, self.config.partition_timeout)
        logger.info("Even (sorted): %s", list(evens))

        self.report = FibonacciReport(
            sequence=source.result(), partition=Partition(odds=odds, evens=evens)
        )
        return self.report

    def demo_cache_reuse(self) -> tuple[int, ...]:
        logger.info("Requesting Fibonacci sequence again to demonstrate cache reuse...")
        cached = self.cache.generate_default()
        logger.info("Cached Fibonacci: %s", list(cached))
        return cached

    def steps(self) -> list[Callable[[], object]]:
        return [
            self.demo_basic_supply,
            self.demo_supply_with_executor,
            self.demo_exception_handling,
            self.demo_combine,
            self.demo_fibonacci_partition,
            self.demo_cache_reuse,
        ]

    def run(self) -> bool:
        """Execute every step, stopping at the first failure.

        The pool is always released. Returns ``True`` when all steps succeed.
        """

        try:
            for step in self.steps():
                step()
        except Exception as error:
            logger.error("Demo run error: %s", error, exc_info=True)
            return False
        finally:
            self.pool.close()
        return True


def _positive_int(value: str) -> int:
    try:
        parsed = int(value, 10)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Value must be an integer") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("Value must be positive")
    return parsed


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value, 10)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Value must be an integer") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("Value must be non-negative")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Run asynchronous supplier demos and partition a cached Fibonacci "
            "sequence on a fixed-size worker pool."
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional JSON or YAML file with demo settings.",
    )
    parser.add_argument(
        "--pool-size",
        type=_positive_int,
        default=None,
        help="Number of worker threads (default: 3).",
    )
    parser.add_argument(
        "--length",
        type=_non_negative_int,
        default=None,
        help="Fibonacci sequence length (default: 50).",
    )
    parser.add_argument(
        "--output-format",
        choices={"json", "text"},
        default="text",
        help="Print the Fibonacci report as JSON after the run.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices={"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"},
        help="Configure logging verbosity.",
    )
    return parser


class _BelowLevelFilter(logging.Filter):
    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def _configure_logging(level: str, *, info_stream: TextIO | None = None) -> None:
    """Send records below WARNING to stdout and the rest to stderr."""

    info_handler = logging.StreamHandler(info_stream or sys.stdout)
    info_handler.addFilter(_BelowLevelFilter(logging.WARNING))
    error_handler = logging.StreamHandler(sys.stderr)
    error_handler.setLevel(logging.WARNING)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[info_handler, error_handler],
        force=True,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    # Keep stdout clean for the JSON document.
    _configure_logging(
        args.log_level,
        info_stream=sys.stderr if args.output_format == "json" else None,
    )

    try:
        config = load_config(args.config).with_overrides(
            pool_size=args.pool_size, sequence_length=args.length
        )
    except ConfigError as error:
        logger.error("%s", error)
        return 2

    demo = SupplierDemo(config)
    # A failed step is reported on stderr; the run still ends normally.
    completed = demo.run()
    if completed and args.output_format == "json" and demo.report is not None:
        print(json.dumps(demo.report.to_dict()))
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via CLI
    sys.exit(main())
