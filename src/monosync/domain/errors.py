"""Fatal error taxonomy for a sync run.

Every error raised here aborts the run before the write stage, except
``WriteFailedError`` which is raised by the write stage itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class WorkspaceSyncError(RuntimeError):
    """Base class for failures that end a sync run."""


class WorkspaceRootNotFoundError(WorkspaceSyncError):
    """Raised when the workspace root or its root manifest cannot be read."""

    def __init__(self, root: Path, *, reason: str) -> None:
        self.root = root
        super().__init__(f"Workspace root {root} is unusable: {reason}")


class ManifestParseError(WorkspaceSyncError):
    """Raised when a manifest or build-reference file is not a JSON object."""

    def __init__(self, path: Path, *, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot parse {path}: {reason}")


class WorkspaceLayoutError(WorkspaceSyncError):
    """Raised when package identities or roots collide."""


class CyclicDependencyError(WorkspaceSyncError):
    """Raised when the import graph contains a cycle.

    ``cycle`` lists the identities along the cycle and repeats the first one
    at the end, e.g. ``("a", "b", "a")``.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.cycle)}")


class WriteFailedError(WorkspaceSyncError):
    """Raised when a planned file write fails.

    Files listed in ``written`` were already updated and are left as they are.
    """

    def __init__(self, path: Path, *, written: Sequence[Path], cause: OSError) -> None:
        self.path = path
        self.written = tuple(written)
        super().__init__(
            f"Failed to write {path} ({cause}); {len(self.written)} file(s) already written"
        )


__all__ = [
    "CyclicDependencyError",
    "ManifestParseError",
    "WorkspaceLayoutError",
    "WorkspaceRootNotFoundError",
    "WorkspaceSyncError",
    "WriteFailedError",
]
