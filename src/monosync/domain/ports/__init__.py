"""Domain port definitions for adapters."""

from __future__ import annotations

from .filesystem import FileSystem, PathPredicate
from .reporting import SyncReporter

__all__ = [
    "FileSystem",
    "PathPredicate",
    "SyncReporter",
]
