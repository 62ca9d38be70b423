"""Diff the validated graph against declared manifests and references.

Only workspace-managed entries are ever proposed for removal: a manifest
dependency is workspace-managed when its name is a workspace package
identity. Everything else in a manifest is left alone.

Manifests and tsconfigs are diffed after their templates were merged in, so
a template that declares a workspace dependency is reconciled like any
other declaration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from monosync.domain.model import dependency_versions

from .plan import DependencyDiff, ProjectConfigPlan, ReconciliationPlan, ReferencePlan
from .project_config import reconcile_project_config

if TYPE_CHECKING:
    from collections.abc import Mapping

    from monosync.domain.graph import DependencyGraph
    from monosync.domain.model import Package, Workspace
    from monosync.domain.ports import SyncReporter
    from monosync.domain.templates import TemplateMerge


class ReconcileWorkspace(Protocol):
    """Turn a workspace and its graph into a reconciliation plan."""

    def __call__(
        self,
        workspace: Workspace,
        graph: DependencyGraph,
        *,
        merges: Mapping[str, TemplateMerge] | None = None,
        reporter: SyncReporter | None = None,
    ) -> ReconciliationPlan: ...


def diff_package(
    package: Package,
    graph: DependencyGraph,
    identities: frozenset[str],
    *,
    manifest: Mapping[str, object] | None = None,
) -> DependencyDiff:
    """Diff ``manifest`` (default: the package's own) against the graph."""

    wanted = frozenset(graph.dependencies_of(package.name))
    document = manifest if manifest is not None else package.manifest
    declared = frozenset(dependency_versions(document))
    managed = declared & identities
    return DependencyDiff(to_add=wanted - declared, to_remove=managed - wanted)


def plan_references(workspace: Workspace, graph: DependencyGraph) -> ReferencePlan | None:
    """Order the build-reference entries, or ``None`` when the file is not managed.

    Paths are relative to the directory holding the build-reference file.
    """

    state = workspace.references
    if state is None:
        return None

    current = state.reference_paths
    listed: set[str] = set()
    foreign: list[str] = []
    for path in current:
        package = workspace.package_for_reference(path)
        if package is None:
            if path not in foreign:
                foreign.append(path)
        else:
            listed.add(package.name)

    included = graph.participants | listed
    ordered = tuple(name for name in graph.topological_order() if name in included)
    ordered_paths = tuple(
        workspace.reference_path_for(workspace.packages[name]) for name in ordered
    )
    return ReferencePlan(
        ordered_packages=ordered,
        ordered_paths=ordered_paths + tuple(foreign),
        preserved_paths=tuple(foreign),
        current_paths=current,
    )


def _report_diff(
    reporter: SyncReporter, package: Package, graph: DependencyGraph, diff: DependencyDiff
) -> None:
    imported = sorted(graph.dependencies_of(package.name))
    reporter.info(f"{package.name}:")
    reporter.info(f"  imported: {', '.join(imported) or 'none'}")
    if diff.to_add:
        reporter.info(f"  to add: {', '.join(sorted(diff.to_add))}")
    if diff.to_remove:
        reporter.info(f"  to remove: {', '.join(sorted(diff.to_remove))}")


def _report_stale(reporter: SyncReporter, package: Package, plan: ProjectConfigPlan) -> None:
    if plan.stale_paths:
        reporter.info(f"{package.name}: stale tsconfig paths: {', '.join(plan.stale_paths)}")
    if plan.stale_references:
        reporter.info(
            f"{package.name}: stale tsconfig references: {', '.join(plan.stale_references)}"
        )


def reconcile(
    workspace: Workspace,
    graph: DependencyGraph,
    *,
    merges: Mapping[str, TemplateMerge] | None = None,
    reporter: SyncReporter | None = None,
) -> ReconciliationPlan:
    """Compute the minimal set of dependency and reference changes."""

    identities = workspace.identities
    plan = ReconciliationPlan()
    for package in workspace.sorted_packages():
        merge = merges.get(package.name) if merges is not None else None
        manifest = merge.document if merge is not None else None
        diff = diff_package(package, graph, identities, manifest=manifest)
        plan.diffs[package.name] = diff
        if reporter is not None and not diff.is_empty:
            _report_diff(reporter, package, graph, diff)

        project_config = package.project_config
        if merge is not None and merge.project_config is not None:
            project_config = merge.project_config
        if project_config is not None:
            project_plan = reconcile_project_config(workspace, package, graph, project_config)
            plan.project_configs[package.name] = project_plan
            if reporter is not None and project_plan.has_stale_entries:
                _report_stale(reporter, package, project_plan)

    plan.references = plan_references(workspace, graph)

    if reporter is not None:
        if plan.references is not None and plan.references.changed:
            reporter.info(
                f"Build references: {len(plan.references.current_paths)} -> "
                f"{len(plan.references.ordered_paths)} entries"
            )
        for path in plan.references.preserved_paths if plan.references else ():
            reporter.debug(f"Keeping build reference {path} (not a workspace package)")
        if plan.is_empty:
            reporter.info("All dependencies already in sync")

    return plan


__all__ = ["ReconcileWorkspace", "diff_package", "plan_references", "reconcile"]
