"""Observability port for the sync pipeline.

Reporter calls never influence control flow; the pipeline only reads
``warnings`` back to attach them to the run outcome.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SyncReporter(Protocol):
    def phase(self, name: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    @property
    def warnings(self) -> tuple[str, ...]:
        """All warnings recorded so far, oldest first."""
        ...


__all__ = ["SyncReporter"]
