"""Concrete adapters for the domain ports."""

from __future__ import annotations

from .local_fs import LocalFileSystem
from .reporting import LoggingReporter

__all__ = ["LocalFileSystem", "LoggingReporter"]
