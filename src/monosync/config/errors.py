"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when the configuration file or an environment override is invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when an explicitly requested configuration file is absent."""
