"""Turn a reconciliation plan into file mutations and commit them.

Dry runs and real runs share everything up to ``commit``: both build the same
``WritePlan`` and the same diff report, and only a real run writes.
"""

from __future__ import annotations

import copy
import difflib
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

from .errors import WriteFailedError
from .model import WORKSPACE_PROTOCOL, reference_entries, resolve_reference_path
from .templates import apply_build_reference_defaults

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from .model import JsonObject, Package, ReferenceEntry, Workspace
    from .ports import FileSystem
    from .reconciliation import (
        DependencyDiff,
        ProjectConfigPlan,
        ReconciliationPlan,
        ReferencePlan,
    )
    from .templates import TemplateMerge

DEFAULT_INDENT = 2


@dataclass(frozen=True, slots=True, kw_only=True)
class FileMutation:
    """Replacement content for one file; ``original`` is ``None`` for new files."""

    path: Path
    original: str | None
    updated: str
    reasons: tuple[str, ...] = ()

    @property
    def created(self) -> bool:
        return self.original is None

    def unified_diff(self, *, root: Path | None = None) -> str:
        label = self.path.relative_to(root).as_posix() if root else str(self.path)
        lines = difflib.unified_diff(
            (self.original or "").splitlines(keepends=True),
            self.updated.splitlines(keepends=True),
            fromfile=f"a/{label}" if not self.created else "/dev/null",
            tofile=f"b/{label}",
        )
        return "".join(lines)


@dataclass(slots=True)
class WritePlan:
    mutations: list[FileMutation] = field(default_factory=list["FileMutation"])

    @property
    def is_empty(self) -> bool:
        return not self.mutations

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(mutation.path for mutation in self.mutations)

    def render_report(self, *, root: Path | None = None) -> str:
        return "".join(mutation.unified_diff(root=root) for mutation in self.mutations)


def detect_indent(text: str | None) -> int | str:
    """Guess the indentation unit of a JSON document (spaces or a tab)."""

    for line in (text or "").splitlines():
        stripped = line.lstrip(" \t")
        if not stripped or stripped == line:
            continue
        prefix = line[: len(line) - len(stripped)]
        if prefix.startswith("\t"):
            return "\t"
        return len(prefix)
    return DEFAULT_INDENT


def render_json(document: Mapping[str, object], *, indent: int | str = DEFAULT_INDENT) -> str:
    return json.dumps(document, indent=indent, ensure_ascii=False) + "\n"


def update_dependencies(document: JsonObject, diff: DependencyDiff) -> JsonObject:
    """Apply ``diff`` to the ``dependencies`` mapping of ``document`` in place.

    Kept entries keep their version and position. Additions use the
    workspace marker and are inserted in sorted position when the existing
    mapping is sorted, appended otherwise.
    """

    raw = document.get("dependencies")
    current: dict[str, object] = (
        dict(cast(Mapping[str, object], raw)) if isinstance(raw, Mapping) else {}
    )
    for name in diff.to_remove:
        current.pop(name, None)

    keys = list(current)
    was_sorted = keys == sorted(keys)
    for name in sorted(diff.to_add):
        current[name] = WORKSPACE_PROTOCOL
    if was_sorted:
        current = dict(sorted(current.items()))

    if "dependencies" in document or current:
        document["dependencies"] = current
    return document


def plan_manifest(
    package: Package,
    diff: DependencyDiff,
    merge: TemplateMerge | None,
) -> FileMutation | None:
    document = copy.deepcopy(merge.document if merge is not None else package.manifest)
    reasons: list[str] = []
    if merge is not None and merge.changed:
        reasons.append("template")
    if not diff.is_empty:
        update_dependencies(document, diff)
        reasons.append("dependencies")
    if document == package.manifest:
        return None
    return FileMutation(
        path=package.manifest_path,
        original=package.manifest_text,
        updated=render_json(document, indent=detect_indent(package.manifest_text)),
        reasons=tuple(reasons),
    )


def reuse_reference_entries(
    current: Sequence[ReferenceEntry], wanted: Sequence[str], *, directory: str
) -> list[JsonObject]:
    """Build a ``references`` list for ``wanted``, keeping matching entries as written.

    An existing entry pointing at the same target as a wanted path is reused
    unchanged, including its spelling and extra keys such as ``prepend``.
    """

    by_target: dict[str, JsonObject] = {}
    for path, entry in current:
        by_target.setdefault(resolve_reference_path(directory, path), entry)
    return [
        copy.deepcopy(by_target.get(resolve_reference_path(directory, path), {"path": path}))
        for path in wanted
    ]


def order_path_keys(paths: Mapping[str, object]) -> dict[str, object]:
    """Group ``name`` and ``name/*`` keys, bases sorted, the bare key first."""

    groups: dict[str, list[str]] = {}
    for key in paths:
        groups.setdefault(key.removesuffix("/*"), []).append(key)
    ordered: dict[str, object] = {}
    for base in sorted(groups):
        for key in sorted(groups[base], key=lambda item: (item != base, item)):
            ordered[key] = paths[key]
    return ordered


def update_compiler_paths(document: JsonObject, plan: ProjectConfigPlan) -> JsonObject:
    """Rewrite the workspace entries of ``compilerOptions.paths`` in place.

    Stale workspace keys are dropped, dependency keys are set from ``plan``
    and every other key is kept. An emptied ``paths`` object is removed.
    """

    raw_options = document.get("compilerOptions")
    options = cast(dict[str, object], raw_options) if isinstance(raw_options, dict) else None
    raw_paths = options.get("paths") if options is not None else None
    current = cast(Mapping[str, object], raw_paths) if isinstance(raw_paths, Mapping) else {}

    stale = set(plan.stale_paths)
    combined: dict[str, object] = {
        key: value for key, value in current.items() if key not in stale and key not in plan.paths
    }
    combined.update({key: list(targets) for key, targets in plan.paths.items()})

    if combined:
        if options is None:
            if raw_options is not None:
                return document
            options = {}
            document["compilerOptions"] = options
        options["paths"] = order_path_keys(combined)
    elif options is not None and "paths" in options:
        del options["paths"]
    return document


def plan_project_config(
    package: Package,
    plan: ProjectConfigPlan,
    merge: TemplateMerge | None,
) -> FileMutation | None:
    """Mutation of the package's own tsconfig, or ``None`` when it is current."""

    if package.project_config is None or package.project_config_path is None:
        return None
    if merge is not None and merge.project_config is not None:
        document = copy.deepcopy(merge.project_config)
    else:
        document = copy.deepcopy(package.project_config)

    reasons: list[str] = []
    if merge is not None and merge.project_config_changed:
        reasons.append("template")
    before = copy.deepcopy(document)
    update_compiler_paths(document, plan)
    if plan.wanted_references or "references" in document:
        document["references"] = reuse_reference_entries(
            reference_entries(document), plan.wanted_references, directory=package.relative_root
        )
    if document != before:
        reasons.append("references")

    if document == package.project_config:
        return None
    return FileMutation(
        path=package.project_config_path,
        original=package.project_config_text,
        updated=render_json(document, indent=detect_indent(package.project_config_text)),
        reasons=tuple(reasons),
    )


def plan_build_references(workspace: Workspace, references: ReferencePlan) -> FileMutation | None:
    state = workspace.references
    if state is None:
        return None
    if not state.exists and not references.ordered_paths:
        return None

    document = apply_build_reference_defaults(state.document)
    reasons = ["defaults"] if document != state.document else []
    if references.changed:
        document["references"] = reuse_reference_entries(
            state.reference_entries, references.ordered_paths, directory=state.directory
        )
        reasons.append("references")
    elif "references" not in document:
        document["references"] = []

    if state.exists and document == state.document:
        return None
    return FileMutation(
        path=state.path,
        original=state.text if state.exists else None,
        updated=render_json(document, indent=detect_indent(state.text)),
        reasons=tuple(reasons),
    )


def plan_writes(
    workspace: Workspace,
    plan: ReconciliationPlan,
    merges: Mapping[str, TemplateMerge] | None = None,
) -> WritePlan:
    """Build one mutation per file whose parsed content would change."""

    mutations: list[FileMutation] = []
    for package in workspace.sorted_packages():
        merge = merges.get(package.name) if merges is not None else None
        mutation = plan_manifest(package, plan.diff_for(package.name), merge)
        if mutation is not None:
            mutations.append(mutation)
        project_plan = plan.project_configs.get(package.name)
        if project_plan is not None:
            mutation = plan_project_config(package, project_plan, merge)
            if mutation is not None:
                mutations.append(mutation)

    if plan.references is not None:
        mutation = plan_build_references(workspace, plan.references)
        if mutation is not None:
            mutations.append(mutation)

    mutations.sort(key=lambda item: str(item.path))
    return WritePlan(mutations=mutations)


def commit(write_plan: WritePlan, fs: FileSystem, *, dry_run: bool) -> tuple[Path, ...]:
    """Write every mutation unless ``dry_run``; return the paths written."""

    if dry_run:
        return ()
    written: list[Path] = []
    for mutation in write_plan.mutations:
        try:
            fs.write_text(mutation.path, mutation.updated)
        except OSError as exc:
            raise WriteFailedError(mutation.path, written=written, cause=exc) from exc
        written.append(mutation.path)
    return tuple(written)


__all__ = [
    "FileMutation",
    "WritePlan",
    "commit",
    "detect_indent",
    "order_path_keys",
    "plan_build_references",
    "plan_manifest",
    "plan_project_config",
    "plan_writes",
    "render_json",
    "reuse_reference_entries",
    "update_compiler_paths",
    "update_dependencies",
]
