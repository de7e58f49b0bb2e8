from __future__ import annotations

import threading
import time

import pytest

from supplier_demo import fibonacci
from supplier_demo.fibonacci import FibonacciCache, fibonacci_sequence, wrap_int64


def test_fibonacci_sequence_matches_expected() -> None:
    assert fibonacci_sequence(0) == ()
    assert fibonacci_sequence(1) == (0,)
    assert fibonacci_sequence(2) == (0, 1)
    assert fibonacci_sequence(7) == (0, 1, 1, 2, 3, 5, 8)


@pytest.mark.parametrize("n", [3, 10, 50, 92])
def test_fibonacci_sequence_follows_recurrence(n: int) -> None:
    sequence = fibonacci_sequence(n)
    assert len(sequence) == n
    assert sequence[0] == 0
    assert sequence[1] == 1
    for index in range(2, n):
        assert sequence[index] == sequence[index - 1] + sequence[index - 2]


def test_fibonacci_sequence_wraps_past_int64() -> None:
    sequence = fibonacci_sequence(94)
    assert sequence[92] == 7540113804746346429
    assert sequence[93] == -6246583658587674878
    assert sequence[93] == wrap_int64(sequence[92] + sequence[91])


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, 0),
        (2**63 - 1, 2**63 - 1),
        (2**63, -(2**63)),
        (-(2**63) - 1, 2**63 - 1),
    ],
)
def test_wrap_int64(value: int, expected: int) -> None:
    assert wrap_int64(value) == expected


@pytest.mark.parametrize("bad, error", [(-1, ValueError), (2.5, TypeError), ("3", TypeError)])
def test_generate_rejects_invalid_lengths(bad: object, error: type[Exception]) -> None:
    cache = FibonacciCache()
    with pytest.raises(error):
        cache.generate(bad)  # type: ignore[arg-type]


def test_generate_reuses_cached_instance() -> None:
    cache = FibonacciCache()
    first = cache.generate(12)
    second = cache.generate(12)

    assert first is second
    assert cache.computations == 1
    assert 12 in cache
    assert len(cache) == 1


def test_concurrent_first_access_computes_once(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []
    original = fibonacci.fibonacci_sequence
    release = threading.Event()

    def _slow_sequence(n: int) -> tuple[int, ...]:
        calls.append(n)
        release.wait(1.0)
        return original(n)

    monkeypatch.setattr(fibonacci, "fibonacci_sequence", _slow_sequence)
    cache = FibonacciCache()
    barrier = threading.Barrier(8)
    results: list[tuple[int, ...]] = []
    lock = threading.Lock()

    def _request() -> None:
        barrier.wait()
        sequence = cache.generate(30)
        with lock:
            results.append(sequence)

    threads = [threading.Thread(target=_request) for _ in range(8)]
    for thread in threads:
        thread.start()
    release.set()
    for thread in threads:
        thread.join(2.0)

    assert calls == [30]
    assert cache.computations == 1
    assert len(results) == 8
    assert all(result is results[0] for result in results)
    assert results[0] == original(30)


def test_failed_computation_is_not_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    original = fibonacci.fibonacci_sequence

    def _broken(n: int) -> tuple[int, ...]:
        raise RuntimeError("computation failed")

    cache = FibonacciCache()
    monkeypatch.setattr(fibonacci, "fibonacci_sequence", _broken)
    with pytest.raises(RuntimeError):
        cache.generate(5)
    assert 5 not in cache

    monkeypatch.setattr(fibonacci, "fibonacci_sequence", original)
    assert cache.generate(5) == (0, 1, 1, 2, 3)


def test_clear_forces_recomputation(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("INFO", logger="supplier_demo.fibonacci")
    cache = FibonacciCache()
    first = cache.generate(10)

    cache.clear()
    assert len(cache) == 0
    second = cache.generate(10)

    assert second == first
    assert second is not first
    assert cache.computations == 2
    assert "Fibonacci cache cleared." in caplog.messages


def test_clear_on_empty_cache_is_harmless() -> None:
    cache = FibonacciCache()
    cache.clear()
    cache.clear()
    assert cache.cached_lengths() == ()


def test_clear_during_computation_skips_insert(monkeypatch: pytest.MonkeyPatch) -> None:
    original = fibonacci.fibonacci_sequence
    started = threading.Event()
    release = threading.Event()

    def _blocking(n: int) -> tuple[int, ...]:
        started.set()
        release.wait(1.0)
        return original(n)

    monkeypatch.setattr(fibonacci, "fibonacci_sequence", _blocking)
    cache = FibonacciCache()
    results: list[tuple[int, ...]] = []
    worker = threading.Thread(target=lambda: results.append(cache.generate(6)))
    worker.start()
    assert started.wait(1.0)

    cache.clear()
    release.set()
    worker.join(1.0)

    assert results == [(0, 1, 1, 2, 3, 5)]
    assert 6 not in cache


def test_set_length_changes_default_without_dropping_entries() -> None:
    cache = FibonacciCache(default_length=5)
    five = cache.generate_default()
    assert five == (0, 1, 1, 2, 3)

    cache.set_length(8)
    assert cache.default_length == 8
    assert 5 in cache
    assert cache.generate_default() == (0, 1, 1, 2, 3, 5, 8, 13)
    assert cache.generate(5) is five
    assert cache.cached_lengths() == (5, 8)


def test_set_length_rejects_negative_values() -> None:
    cache = FibonacciCache()
    with pytest.raises(ValueError):
        cache.set_length(-3)
    assert cache.default_length == fibonacci.DEFAULT_SEQUENCE_LENGTH


@pytest.mark.parametrize("error", [RuntimeError("computation failed"), KeyboardInterrupt()])
def test_failed_computation_reaches_every_waiter(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
    error: BaseException,
) -> None:
    caplog.set_level("DEBUG", logger="supplier_demo.fibonacci")
    started = threading.Event()
    release = threading.Event()

    def _failing(n: int) -> tuple[int, ...]:
        started.set()
        release.wait(1.0)
        raise error

    monkeypatch.setattr(fibonacci, "fibonacci_sequence", _failing)
    cache = FibonacciCache()
    raised: list[BaseException] = []
    lock = threading.Lock()

    def _request() -> None:
        try:
            cache.generate(5)
        except BaseException as exc:
            with lock:
                raised.append(exc)

    owner = threading.Thread(target=_request)
    owner.start()
    assert started.wait(1.0)
    waiter = threading.Thread(target=_request)
    waiter.start()

    deadline = time.monotonic() + 1.0
    while time.monotonic() < deadline and not any(
        message.startswith("Waiting for in-flight") for message in caplog.messages
    ):
        time.sleep(0.01)
    release.set()
    owner.join(1.0)
    waiter.join(1.0)

    assert not owner.is_alive() and not waiter.is_alive()
    assert len(raised) == 2
    assert all(exc is error for exc in raised)
    assert 5 not in cache
    assert cache._pending == {}
