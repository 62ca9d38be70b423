"""Workspace entries of each package's own ``tsconfig.json``.

A package's tsconfig gets one ``references`` entry and two
``compilerOptions.paths`` keys (``name`` and ``name/*``) per workspace
dependency. Only entries that point at workspace packages are managed;
anything else in the file is preserved.
"""

from __future__ import annotations

import posixpath
from collections.abc import Mapping
from typing import TYPE_CHECKING, cast

from monosync.domain.model import reference_entries

from .plan import ProjectConfigPlan

if TYPE_CHECKING:
    from monosync.domain.graph import DependencyGraph
    from monosync.domain.model import Package, Workspace

ENTRY_POINT_CANDIDATES: tuple[str, ...] = ("src/index.ts", "src/index.tsx")
FALLBACK_ENTRY_POINT = "src/index.ts"
EXPORT_CONDITIONS: tuple[str, ...] = ("import", "require", "default", "types")


def _clean(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


def _export_target(exports: object) -> str | None:
    if isinstance(exports, str):
        return exports
    if not isinstance(exports, Mapping):
        return None
    mapping = cast(Mapping[str, object], exports)
    root_export = next(
        (mapping[key] for key in (".", "default", "import") if mapping.get(key) is not None),
        None,
    )
    if isinstance(root_export, str):
        return root_export
    if isinstance(root_export, Mapping):
        conditions = cast(Mapping[str, object], root_export)
        for condition in EXPORT_CONDITIONS:
            target = conditions.get(condition)
            if isinstance(target, str):
                return target
    return None


def resolve_entry_point(package: Package) -> str:
    """Package-relative module that ``import "<package>"`` should map to.

    TypeScript sources win, then the manifest's ``types``/``typings``,
    ``exports``, ``module`` and ``main`` fields, then ``src/index.ts``.
    """

    sources = set(package.source_files or ())
    for candidate in ENTRY_POINT_CANDIDATES:
        if candidate in sources:
            return candidate

    manifest = package.manifest
    for key in ("types", "typings"):
        value = manifest.get(key)
        if isinstance(value, str) and value:
            return _clean(value)
    exported = _export_target(manifest.get("exports"))
    if exported:
        return _clean(exported)
    for key in ("module", "main"):
        value = manifest.get(key)
        if isinstance(value, str) and value:
            return _clean(value)
    return FALLBACK_ENTRY_POINT


def dependency_path_targets(package: Package, dependency: Package) -> dict[str, tuple[str, ...]]:
    """``compilerOptions.paths`` entries that map ``dependency`` for ``package``.

    For ``packages/ui`` depending on ``utils`` at ``packages/utils`` with a
    ``src/index.ts`` entry point this is ``utils -> ../utils/src/index.ts``
    and ``utils/* -> ../utils/src/*``.
    """

    relative = posixpath.relpath(dependency.relative_root, package.relative_root)
    entry_point = resolve_entry_point(dependency)
    subpaths = "src/*" if entry_point.startswith("src/") else "*"
    return {
        dependency.name: (posixpath.join(relative, entry_point),),
        f"{dependency.name}/*": (posixpath.join(relative, subpaths),),
    }


def path_key_base(key: str) -> str:
    return key.removesuffix("/*")


def current_path_keys(document: Mapping[str, object]) -> tuple[str, ...]:
    options = document.get("compilerOptions")
    if not isinstance(options, Mapping):
        return ()
    paths = cast(Mapping[str, object], options).get("paths")
    if not isinstance(paths, Mapping):
        return ()
    return tuple(cast(Mapping[str, object], paths))


def reconcile_project_config(
    workspace: Workspace,
    package: Package,
    graph: DependencyGraph,
    document: Mapping[str, object],
) -> ProjectConfigPlan:
    """Compute the managed tsconfig entries of ``package`` from the graph.

    ``document`` is the package tsconfig with its template already merged.
    """

    directory = package.relative_root
    dependencies = [workspace.packages[name] for name in graph.dependencies_of(package.name)]
    wanted = {dependency.name for dependency in dependencies}

    paths: dict[str, tuple[str, ...]] = {}
    for dependency in dependencies:
        paths.update(dependency_path_targets(package, dependency))

    stale_paths = tuple(
        key
        for key in current_path_keys(document)
        if (base := path_key_base(key)) in workspace.identities
        and base != package.name
        and base not in wanted
    )

    preserved: list[str] = []
    stale_references: list[str] = []
    for path, _ in reference_entries(document):
        target = workspace.package_for_reference(path, directory=directory)
        if target is None:
            if path not in preserved:
                preserved.append(path)
        elif target.name not in wanted:
            stale_references.append(path)

    return ProjectConfigPlan(
        references=tuple(
            sorted(
                workspace.reference_path_for(dependency, directory=directory)
                for dependency in dependencies
            )
        ),
        preserved_references=tuple(preserved),
        paths=paths,
        stale_paths=stale_paths,
        stale_references=tuple(stale_references),
    )


__all__ = [
    "ENTRY_POINT_CANDIDATES",
    "FALLBACK_ENTRY_POINT",
    "current_path_keys",
    "dependency_path_targets",
    "path_key_base",
    "reconcile_project_config",
    "resolve_entry_point",
]
