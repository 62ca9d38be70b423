"""Application configuration helpers."""

from __future__ import annotations

from .env import (
    CONFIG_ENV_VAR,
    MAX_WORKERS_ENV_VAR,
    ROOT_ENV_VAR,
    EnvironmentOverrides,
    get_environment_overrides,
    parse_max_workers,
)
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .schema import BuildReferencesModel, SyncConfigModel, WorkspaceTypeModel
from .sync import CONFIG_FILENAME, load_config, parse_config, to_sync_options

__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "MAX_WORKERS_ENV_VAR",
    "ROOT_ENV_VAR",
    "BuildReferencesModel",
    "ConfigurationError",
    "EnvironmentOverrides",
    "MissingConfigurationError",
    "SyncConfigModel",
    "WorkspaceTypeModel",
    "configure_logging",
    "get_environment_overrides",
    "load_config",
    "parse_config",
    "parse_max_workers",
    "to_sync_options",
]
