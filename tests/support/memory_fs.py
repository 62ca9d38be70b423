"""In-memory filesystem fake and workspace builders for sync tests."""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from monosync.domain.ports import PathPredicate

ROOT = Path("/repo")


class MemoryFileSystem:
    """``FileSystem`` fake keyed by absolute path.

    ``unreadable`` paths raise ``PermissionError`` on read; ``failing_writes``
    paths raise ``OSError`` on write. Every successful write is recorded in
    ``writes`` in call order.
    """

    def __init__(self, files: Mapping[Path, str] | None = None) -> None:
        self.files: dict[Path, str] = dict(files or {})
        self.unreadable: set[Path] = set()
        self.failing_writes: set[Path] = set()
        self.writes: list[Path] = []

    def list_files(
        self,
        root: Path,
        predicate: PathPredicate,
        *,
        prune: PathPredicate | None = None,
    ) -> list[Path]:
        found: list[Path] = []
        for path in self.files:
            try:
                relative = PurePosixPath(path.relative_to(root).as_posix())
            except ValueError:
                continue
            parents = [str(parent) for parent in reversed(relative.parents) if str(parent) != "."]
            if prune is not None and any(prune(parent) for parent in parents):
                continue
            if predicate(str(relative)):
                found.append(path)
        return sorted(found)

    def is_dir(self, path: Path) -> bool:
        return any(path in candidate.parents for candidate in self.files)

    def read_text(self, path: Path) -> str:
        if path in self.unreadable:
            raise PermissionError(f"Permission denied: {path}")
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(str(path)) from None

    def write_text(self, path: Path, text: str) -> None:
        if path in self.failing_writes:
            raise OSError(f"Disk full: {path}")
        self.files[path] = text
        self.writes.append(path)

    def json(self, relative: str) -> dict[str, object]:
        return json.loads(self.files[ROOT / relative])


class RecordingReporter:
    """``SyncReporter`` fake that keeps every message by level."""

    def __init__(self) -> None:
        self.phases: list[str] = []
        self.messages: list[tuple[str, str]] = []
        self._warnings: list[str] = []

    def phase(self, name: str) -> None:
        self.phases.append(name)

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warn(self, message: str) -> None:
        self._warnings.append(message)
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def debug(self, message: str) -> None:
        self.messages.append(("debug", message))

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(self._warnings)

    def lines(self, level: str) -> list[str]:
        return [message for kind, message in self.messages if kind == level]


def dump(document: Mapping[str, object]) -> str:
    return json.dumps(document, indent=2) + "\n"


def manifest(
    name: str | None,
    *,
    dependencies: Mapping[str, str] | None = None,
    **extra: object,
) -> str:
    document: dict[str, object] = {}
    if name is not None:
        document["name"] = name
    document.update(extra)
    if dependencies is not None:
        document["dependencies"] = dict(dependencies)
    return dump(document)


def build_workspace_files(
    packages: Mapping[str, tuple[str, Mapping[str, str]]],
    *,
    workspaces: Iterable[str] = ("packages/*", "apps/*"),
    tsconfig: Mapping[str, object] | None = None,
) -> dict[Path, str]:
    """Build file contents for a workspace.

    ``packages`` maps a relative root to ``(name, {relative source path: text})``.
    """

    files: dict[Path, str] = {
        ROOT / "package.json": dump(
            {"name": "root", "private": True, "workspaces": list(workspaces)}
        )
    }
    if tsconfig is not None:
        files[ROOT / "tsconfig.json"] = dump(tsconfig)
    for relative_root, (name, sources) in packages.items():
        files[ROOT / relative_root / "package.json"] = manifest(name)
        for source_path, text in sources.items():
            files[ROOT / relative_root / source_path] = text
    return files
