"""Filesystem port used by the loader, scanner and write planner."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

PathPredicate: TypeAlias = "Callable[[str], bool]"
"""Receives a POSIX path relative to the listing root."""


@runtime_checkable
class FileSystem(Protocol):
    """Minimal storage surface the sync core depends on."""

    def list_files(
        self,
        root: Path,
        predicate: PathPredicate,
        *,
        prune: PathPredicate | None = None,
    ) -> list[Path]:
        """Return files below ``root`` accepted by ``predicate``, sorted.

        Directories accepted by ``prune`` are not descended into.
        """
        ...

    def is_dir(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str:
        """Return file contents; raises ``FileNotFoundError`` or ``OSError``."""
        ...

    def write_text(self, path: Path, text: str) -> None:
        """Replace file contents; raises ``OSError`` on failure."""
        ...


__all__ = ["FileSystem", "PathPredicate"]
