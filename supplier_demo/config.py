"""Runtime configuration for the supplier demo.

Settings default to three workers and a sequence of fifty Fibonacci
numbers, and can be overridden from a JSON or YAML document::

    pool_size: 4
    sequence_length: 20
    await_timeout: 2.5
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
import json
import math
from pathlib import Path
from typing import Any, Mapping

import yaml

from .fibonacci import DEFAULT_SEQUENCE_LENGTH

__all__ = ["ConfigError", "DemoConfig", "load_config"]

DEFAULT_POOL_SIZE = 3

_YAML_SUFFIXES = {".yaml", ".yml"}


class ConfigError(ValueError):
    """Raised when a configuration document or value is invalid."""


@dataclass(frozen=True)
class DemoConfig:
    """Pool sizing, sequence length, wait bounds and simulated work delays.

    All durations are expressed in seconds.
    """

    pool_size: int = DEFAULT_POOL_SIZE
    sequence_length: int = DEFAULT_SEQUENCE_LENGTH
    await_timeout: float = 2.0
    partition_timeout: float = 1.0
    shutdown_timeout: float = 1.0
    basic_delay: float = 0.8
    executor_delay: float = 0.6
    left_delay: float = 0.7
    right_delay: float = 0.5

    def validate(self) -> "DemoConfig":
        if not isinstance(self.pool_size, int) or isinstance(self.pool_size, bool):
            raise ConfigError("pool_size must be an integer")
        if self.pool_size < 1:
            raise ConfigError("pool_size must be at least 1")
        if not isinstance(self.sequence_length, int) or isinstance(
            self.sequence_length, bool
        ):
            raise ConfigError("sequence_length must be an integer")
        if self.sequence_length < 0:
            raise ConfigError("sequence_length must be non-negative")
        for name in ("await_timeout", "partition_timeout", "shutdown_timeout"):
            value = getattr(self, name)
            if not _is_finite_number(value) or value <= 0:
                raise ConfigError(f"{name} must be a positive number")
        for name in ("basic_delay", "executor_delay", "left_delay", "right_delay"):
            value = getattr(self, name)
            if not _is_finite_number(value) or value < 0:
                raise ConfigError(f"{name} must be a non-negative number")
        return self

    def with_overrides(self, **values: Any) -> "DemoConfig":
        """Return a validated copy with every non-``None`` value applied."""

        applied = {key: value for key, value in values.items() if value is not None}
        _reject_unknown(applied)
        return replace(self, **applied).validate()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _reject_unknown(values: Mapping[str, Any]) -> None:
    known = {field.name for field in fields(DemoConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")


def _parse_document(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file {path}: {exc}") from exc

    if path.suffix.lower() in _YAML_SUFFIXES:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc


def load_config(path: str | Path | None) -> DemoConfig:
    """Load a :class:`DemoConfig` from ``path`` or return the defaults."""

    if path is None:
        return DemoConfig()

    document = _parse_document(Path(path))
    if document is None:
        document = {}
    if not isinstance(document, Mapping):
        raise ConfigError("Configuration document must be a mapping")
    _reject_unknown(document)
    return DemoConfig(**dict(document)).validate()
