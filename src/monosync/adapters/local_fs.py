"""Filesystem adapter over the local disk."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from monosync.domain.ports import PathPredicate


class LocalFileSystem:
    """``FileSystem`` implementation using ``os.walk`` and atomic replaces."""

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def list_files(
        self,
        root: Path,
        predicate: PathPredicate,
        *,
        prune: PathPredicate | None = None,
    ) -> list[Path]:
        found: list[Path] = []
        for directory, subdirectories, filenames in os.walk(root):
            base = Path(directory)
            relative_dir = base.relative_to(root).as_posix()
            prefix = "" if relative_dir == "." else f"{relative_dir}/"
            if prune is not None:
                subdirectories[:] = [
                    name for name in subdirectories if not prune(f"{prefix}{name}")
                ]
            found.extend(base / name for name in filenames if predicate(f"{prefix}{name}"))
        return sorted(found)

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding=self._encoding)

    def write_text(self, path: Path, text: str) -> None:
        """Write through a sibling temp file so readers never see a partial file."""

        path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(handle, "w", encoding=self._encoding, newline="") as stream:
                stream.write(text)
            os.replace(temp_name, path)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
