from __future__ import annotations

from concurrent.futures import CancelledError, Future

import pytest

from supplier_demo.outcome import Outcome


def _explode() -> int:
    raise RuntimeError("boom")


def test_capture_success_and_failure() -> None:
    good = Outcome.capture(lambda x: x * 2, 21)
    bad = Outcome.capture(_explode)

    assert good.ok and good.value == 42
    assert not bad.ok
    assert isinstance(bad.error, RuntimeError)


def test_recover_returns_fallback_only_on_failure() -> None:
    assert Outcome.success("value").recover("fallback") == "value"
    assert Outcome.capture(_explode).recover("fallback") == "fallback"


def test_unwrap_reraises_captured_error() -> None:
    with pytest.raises(RuntimeError, match="boom"):
        Outcome.capture(_explode).unwrap()


def test_map_skips_failures() -> None:
    assert Outcome.success(3).map(lambda x: x + 1).value == 4
    failed = Outcome.capture(_explode).map(lambda x: x + 1)
    assert isinstance(failed.error, RuntimeError)


def test_from_future_states() -> None:
    done: Future = Future()
    done.set_result(5)
    failed: Future = Future()
    failed.set_exception(KeyError("missing"))
    cancelled: Future = Future()
    cancelled.cancel()

    assert Outcome.from_future(done) == Outcome.success(5)
    assert isinstance(Outcome.from_future(failed).error, KeyError)
    assert isinstance(Outcome.from_future(cancelled).error, CancelledError)
    with pytest.raises(ValueError):
        Outcome.from_future(Future())
