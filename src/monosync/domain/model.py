"""In-memory workspace model shared by every pipeline stage.

The model is created by the loader, filled in by the scanner merge step and
read by the later stages. Nothing here touches the filesystem.
"""

from __future__ import annotations

import posixpath
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias, cast

from .errors import WorkspaceLayoutError

if TYPE_CHECKING:
    from pathlib import Path

WORKSPACE_PROTOCOL = "workspace:*"
"""Version marker for dependencies resolved inside the workspace."""

JsonObject: TypeAlias = dict[str, object]
ReferenceEntry: TypeAlias = tuple[str, JsonObject]


class WorkspaceKind(StrEnum):
    APP = "app"
    SHARED_PACKAGE = "shared-package"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True, order=True)
class ImportEdge:
    """``source`` imports a module that resolves to ``target``."""

    source: str
    target: str

    @property
    def is_self_edge(self) -> bool:
        return self.source == self.target


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportUsage:
    """One resolved workspace import, kept for reporting."""

    specifier: str
    target: str
    source_file: str
    type_only: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class WorkspaceType:
    """Settings of the workspace-type pattern a member matched."""

    pattern: str
    kind: WorkspaceKind
    sub_type: str | None = None
    name_prefix: str | None = None
    manifest_template: Mapping[str, object] = field(default_factory=dict["str", "object"])
    project_config_template: Mapping[str, object] = field(
        default_factory=dict["str", "object"]
    )


def dependency_versions(manifest: Mapping[str, object]) -> dict[str, str]:
    raw = manifest.get("dependencies")
    if not isinstance(raw, Mapping):
        return {}
    entries = cast(Mapping[str, object], raw)
    return {name: str(version) for name, version in entries.items()}


@dataclass(slots=True, kw_only=True)
class Package:
    """One workspace member and everything the run learns about it.

    ``project_config`` is the parsed ``tsconfig.json`` beside the manifest,
    or ``None`` when the package has none (or it could not be parsed).
    """

    name: str
    root: Path
    relative_root: str
    manifest_path: Path
    manifest: JsonObject
    manifest_text: str = ""
    kind: WorkspaceKind = WorkspaceKind.UNKNOWN
    workspace_type: WorkspaceType | None = None
    project_config_path: Path | None = None
    project_config: JsonObject | None = None
    project_config_text: str | None = None
    source_files: tuple[str, ...] | None = None
    import_edges: frozenset[ImportEdge] = frozenset()
    usages: tuple[ImportUsage, ...] = ()

    @property
    def dependency_versions(self) -> dict[str, str]:
        return dependency_versions(self.manifest)

    @property
    def declared_dependencies(self) -> frozenset[str]:
        return frozenset(self.dependency_versions)

    @property
    def directory_name(self) -> str:
        return self.relative_root.rsplit("/", 1)[-1]

    @property
    def is_scanned(self) -> bool:
        return self.source_files is not None


def normalize_reference_path(value: str) -> str:
    """Normalise a build-reference path for comparison with package roots."""

    normalized = value.replace("\\", "/").strip()
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.rstrip("/") or "."


def resolve_reference_path(directory: str, reference: str) -> str:
    """Workspace-relative target of ``reference`` written in a file under ``directory``.

    >>> resolve_reference_path("config", "../packages/ui")
    'packages/ui'
    """

    return posixpath.normpath(posixpath.join(directory, normalize_reference_path(reference)))


def relative_reference_path(directory: str, target: str) -> str:
    """Path from ``directory`` to the workspace-relative ``target``.

    >>> relative_reference_path("packages/ui", "packages/utils")
    '../utils'
    """

    return posixpath.relpath(target, directory)


def reference_entries(document: Mapping[str, object]) -> tuple[ReferenceEntry, ...]:
    """``(path, entry)`` pairs of a tsconfig ``references`` list, in file order."""

    raw = document.get("references")
    if not isinstance(raw, list):
        return ()
    entries: list[ReferenceEntry] = []
    for entry in cast(list[object], raw):
        if isinstance(entry, Mapping):
            mapping = cast(Mapping[str, object], entry)
            path = mapping.get("path")
            if isinstance(path, str):
                entries.append((path, dict(mapping)))
    return tuple(entries)


@dataclass(slots=True, kw_only=True)
class BuildReferenceState:
    """Current content of the workspace build-reference file.

    ``directory`` is the workspace-relative directory holding the file;
    reference paths inside it are relative to that directory.
    """

    path: Path
    exists: bool
    directory: str = "."
    document: JsonObject = field(default_factory=dict["str", "object"])
    text: str | None = None

    @property
    def reference_entries(self) -> tuple[ReferenceEntry, ...]:
        return reference_entries(self.document)

    @property
    def reference_paths(self) -> tuple[str, ...]:
        return tuple(normalize_reference_path(path) for path, _ in self.reference_entries)


@dataclass(slots=True)
class Workspace:
    """All members of one workspace, keyed by package identity."""

    root: Path
    packages: dict[str, Package] = field(default_factory=dict["str", "Package"])
    references: BuildReferenceState | None = None

    @property
    def identities(self) -> frozenset[str]:
        return frozenset(self.packages)

    @property
    def edges(self) -> frozenset[ImportEdge]:
        return frozenset(
            edge for package in self.packages.values() for edge in package.import_edges
        )

    @property
    def reference_directory(self) -> str:
        return self.references.directory if self.references is not None else "."

    def add(self, package: Package) -> None:
        existing = self.packages.get(package.name)
        if existing is not None:
            raise WorkspaceLayoutError(
                f"Package name {package.name} is declared by both "
                f"{existing.relative_root} and {package.relative_root}"
            )
        for other in self.packages.values():
            if _roots_overlap(other.relative_root, package.relative_root):
                raise WorkspaceLayoutError(
                    f"Package roots overlap: {other.relative_root} ({other.name}) "
                    f"and {package.relative_root} ({package.name})"
                )
        self.packages[package.name] = package

    def get(self, name: str) -> Package | None:
        return self.packages.get(name)

    def package_at(self, relative_root: str) -> Package | None:
        for package in self.packages.values():
            if package.relative_root == relative_root:
                return package
        return None

    def package_for_reference(
        self, reference_path: str, *, directory: str | None = None
    ) -> Package | None:
        """Package a reference points at, read relative to ``directory``.

        ``directory`` defaults to the directory of the build-reference file.
        """

        base = directory if directory is not None else self.reference_directory
        return self.package_at(resolve_reference_path(base, reference_path))

    def reference_path_for(self, package: Package, *, directory: str | None = None) -> str:
        base = directory if directory is not None else self.reference_directory
        return relative_reference_path(base, package.relative_root)

    def sorted_packages(self) -> list[Package]:
        return [self.packages[name] for name in sorted(self.packages)]


def _roots_overlap(first: str, second: str) -> bool:
    first_parts = first.split("/")
    second_parts = second.split("/")
    shortest = min(len(first_parts), len(second_parts))
    return first_parts[:shortest] == second_parts[:shortest]


__all__ = [
    "WORKSPACE_PROTOCOL",
    "BuildReferenceState",
    "ImportEdge",
    "ImportUsage",
    "JsonObject",
    "Package",
    "ReferenceEntry",
    "Workspace",
    "WorkspaceKind",
    "WorkspaceType",
    "dependency_versions",
    "normalize_reference_path",
    "reference_entries",
    "relative_reference_path",
    "resolve_reference_path",
]
