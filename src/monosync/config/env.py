"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

ROOT_ENV_VAR = "MONOSYNC_ROOT"
CONFIG_ENV_VAR = "MONOSYNC_CONFIG"
MAX_WORKERS_ENV_VAR = "MONOSYNC_MAX_WORKERS"


@dataclass(frozen=True, slots=True)
class EnvironmentOverrides:
    root: Path | None = None
    config_path: Path | None = None
    max_workers: int | None = None


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def parse_max_workers(value: str, *, source: str) -> int:
    try:
        workers = int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{source} must be an integer, got {value!r}") from exc
    if workers < 1:
        raise ConfigurationError(f"{source} must be at least 1, got {workers}")
    return workers


def get_environment_overrides() -> EnvironmentOverrides:
    """Read the ``MONOSYNC_*`` variables; blank values count as unset."""

    root = _optional_env(ROOT_ENV_VAR)
    config_path = _optional_env(CONFIG_ENV_VAR)
    max_workers = _optional_env(MAX_WORKERS_ENV_VAR)
    return EnvironmentOverrides(
        root=Path(root) if root else None,
        config_path=Path(config_path) if config_path else None,
        max_workers=(
            parse_max_workers(max_workers, source=MAX_WORKERS_ENV_VAR) if max_workers else None
        ),
    )
