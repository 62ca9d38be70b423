"""Workspace loader: enumerate members and the build-reference file."""

from __future__ import annotations

import json
import posixpath
from collections.abc import Mapping
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, cast

from .errors import ManifestParseError, WorkspaceRootNotFoundError
from .model import BuildReferenceState, Package, Workspace, WorkspaceKind
from .scanning.exclude import match_segments, split_segments

if TYPE_CHECKING:
    from pathlib import Path

    from .model import JsonObject, WorkspaceType
    from .ports import FileSystem, SyncReporter

log = getLogger(__name__)

MANIFEST_FILENAME = "package.json"
DEFAULT_BUILD_REFERENCE_FILENAME = "tsconfig.json"
PROJECT_CONFIG_FILENAME = "tsconfig.json"

# Directories never searched for member manifests.
SKIPPED_DIRECTORIES: frozenset[str] = frozenset(
    {"node_modules", ".git", "dist", "build", "out", "coverage", ".turbo", ".moon", ".next"}
)


@dataclass(frozen=True, slots=True, kw_only=True)
class DiscoverySettings:
    """Loader inputs derived from the configuration file.

    An empty ``workspace_types`` accepts every member as ``unknown``.
    ``build_reference_filename`` is ``None`` when the build-reference file is
    not managed.
    """

    workspace_types: tuple[WorkspaceType, ...] = ()
    ignore_projects: frozenset[str] = frozenset()
    build_reference_filename: str | None = DEFAULT_BUILD_REFERENCE_FILENAME


def parse_json_object(path: Path, text: str) -> JsonObject:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(path, reason=str(exc)) from exc
    if not isinstance(document, dict):
        raise ManifestParseError(path, reason="top-level value is not an object")
    return cast("JsonObject", document)


def _read_document(path: Path, fs: FileSystem) -> str:
    try:
        return fs.read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(path, reason=f"unreadable ({exc})") from exc


def workspace_patterns(root_manifest: Mapping[str, object]) -> tuple[str, ...]:
    """Return the member globs declared by the root manifest, negations dropped."""

    raw = root_manifest.get("workspaces")
    if isinstance(raw, Mapping):
        raw = cast(Mapping[str, object], raw).get("packages")
    if not isinstance(raw, list):
        return ()
    return tuple(
        entry.strip()
        for entry in cast(list[object], raw)
        if isinstance(entry, str) and entry.strip() and not entry.startswith("!")
    )


def compile_member_patterns(patterns: tuple[str, ...]) -> tuple[tuple[str, ...], ...]:
    """Compile member globs; a literal directory also admits its direct children."""

    compiled: list[tuple[str, ...]] = []
    for pattern in patterns:
        segments = split_segments(pattern)
        if not segments:
            continue
        compiled.append(segments)
        if not any(char in pattern for char in "*?["):
            compiled.append((*segments, "*"))
    return tuple(compiled)


def match_workspace_type(
    relative_root: str, workspace_types: tuple[WorkspaceType, ...]
) -> WorkspaceType | None:
    """First configured type whose pattern matches ``relative_root``, in config order."""

    parts = split_segments(relative_root)
    for workspace_type in workspace_types:
        if match_segments(split_segments(workspace_type.pattern), parts):
            return workspace_type
    return None


def _prunes(relative_dir: str) -> bool:
    return relative_dir.rsplit("/", 1)[-1] in SKIPPED_DIRECTORIES


def _member_manifests(
    root: Path, member_patterns: tuple[tuple[str, ...], ...], fs: FileSystem
) -> list[Path]:
    def accepts(relative_path: str) -> bool:
        parts = split_segments(relative_path)
        if len(parts) < 2 or parts[-1] != MANIFEST_FILENAME:
            return False
        directory = parts[:-1]
        return any(match_segments(pattern, directory) for pattern in member_patterns)

    return fs.list_files(root, accepts, prune=_prunes)


def _load_project_config(
    package_root: Path, name: str, fs: FileSystem, reporter: SyncReporter
) -> tuple[Path | None, JsonObject | None, str | None]:
    """Read the package's own ``tsconfig.json``.

    A missing file is normal. A file that cannot be read or parsed is left
    unmanaged with a warning instead of failing the run.
    """

    path = package_root / PROJECT_CONFIG_FILENAME
    try:
        text = fs.read_text(path)
    except FileNotFoundError:
        reporter.debug(f"Project {name} has no {PROJECT_CONFIG_FILENAME}")
        return None, None, None
    except (OSError, UnicodeDecodeError) as exc:
        reporter.warn(f"Skipping {PROJECT_CONFIG_FILENAME} of {name}: unreadable ({exc})")
        return None, None, None
    try:
        document = parse_json_object(path, text)
    except ManifestParseError as exc:
        reporter.warn(f"Skipping {PROJECT_CONFIG_FILENAME} of {name}: {exc.reason}")
        return None, None, None
    return path, document, text


def _load_package(
    root: Path,
    manifest_path: Path,
    settings: DiscoverySettings,
    fs: FileSystem,
    reporter: SyncReporter,
) -> Package | None:
    relative_root = manifest_path.parent.relative_to(root).as_posix()
    text = _read_document(manifest_path, fs)
    manifest = parse_json_object(manifest_path, text)

    name = manifest.get("name")
    if not isinstance(name, str) or not name.strip():
        reporter.warn(f"Skipping project at {relative_root} with missing package name")
        return None
    if name in settings.ignore_projects:
        reporter.debug(f"Ignoring project {name} at {relative_root}")
        return None

    workspace_type = None
    kind = WorkspaceKind.UNKNOWN
    if settings.workspace_types:
        workspace_type = match_workspace_type(relative_root, settings.workspace_types)
        if workspace_type is None:
            reporter.warn(
                f"Project {name} at {relative_root} does not match any configured "
                "workspace type patterns"
            )
            return None
        kind = workspace_type.kind
        prefix = workspace_type.name_prefix
        if prefix and not name.startswith(prefix):
            reporter.warn(
                f'Package {name} at {relative_root} should start with "{prefix}" '
                "based on workspace configuration"
            )

    project_config_path, project_config, project_config_text = _load_project_config(
        manifest_path.parent, name, fs, reporter
    )
    return Package(
        name=name,
        root=manifest_path.parent,
        relative_root=relative_root,
        manifest_path=manifest_path,
        manifest=manifest,
        manifest_text=text,
        kind=kind,
        workspace_type=workspace_type,
        project_config_path=project_config_path,
        project_config=project_config,
        project_config_text=project_config_text,
    )


def load_build_references(
    root: Path, filename: str | None, fs: FileSystem
) -> BuildReferenceState | None:
    if filename is None:
        return None
    path = root / filename
    directory = posixpath.dirname(filename) or "."
    try:
        text = fs.read_text(path)
    except FileNotFoundError:
        return BuildReferenceState(path=path, exists=False, directory=directory)
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(path, reason=f"unreadable ({exc})") from exc
    return BuildReferenceState(
        path=path,
        exists=True,
        directory=directory,
        document=parse_json_object(path, text),
        text=text,
    )


def discover_workspace(
    root: Path,
    settings: DiscoverySettings,
    fs: FileSystem,
    reporter: SyncReporter,
) -> Workspace:
    """Load every workspace member declared by the root manifest under ``root``."""

    if not fs.is_dir(root):
        raise WorkspaceRootNotFoundError(root, reason="not a directory")
    root_manifest_path = root / MANIFEST_FILENAME
    try:
        root_text = fs.read_text(root_manifest_path)
    except FileNotFoundError as exc:
        raise WorkspaceRootNotFoundError(root, reason=f"no {MANIFEST_FILENAME} found") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise WorkspaceRootNotFoundError(
            root, reason=f"cannot read {MANIFEST_FILENAME} ({exc})"
        ) from exc
    root_manifest = parse_json_object(root_manifest_path, root_text)

    workspace = Workspace(root=root)
    workspace.references = load_build_references(root, settings.build_reference_filename, fs)

    patterns = workspace_patterns(root_manifest)
    if not patterns:
        reporter.warn(f"No workspaces configured in {MANIFEST_FILENAME}")
        return workspace
    log.debug("Workspace member patterns: %s", ", ".join(patterns))

    member_patterns = compile_member_patterns(patterns)
    for manifest_path in _member_manifests(root, member_patterns, fs):
        package = _load_package(root, manifest_path, settings, fs, reporter)
        if package is not None:
            workspace.add(package)

    reporter.info(f"Discovered {len(workspace.packages)} workspace package(s)")
    return workspace


__all__ = [
    "DEFAULT_BUILD_REFERENCE_FILENAME",
    "MANIFEST_FILENAME",
    "PROJECT_CONFIG_FILENAME",
    "DiscoverySettings",
    "compile_member_patterns",
    "discover_workspace",
    "load_build_references",
    "match_workspace_type",
    "parse_json_object",
    "workspace_patterns",
]
