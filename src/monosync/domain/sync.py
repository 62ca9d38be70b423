"""Domain service running one workspace sync from discovery to commit."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from .discovery import DiscoverySettings, discover_workspace
from .errors import WorkspaceSyncError, WriteFailedError
from .graph import build_dependency_graph, find_diamonds, most_dependencies, most_depended_upon
from .reconciliation import reconcile
from .scanning import ScanSettings, SpecifierResolver, compile_exclude_rules, scan_workspace
from .templates import WorkspaceTypeTemplates, apply_templates
from .writes import WritePlan, commit, plan_writes

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from .graph import DependencyGraph
    from .model import Workspace
    from .ports import FileSystem, SyncReporter
    from .reconciliation import ReconciliationPlan
    from .templates import TemplateCatalog


class SyncStatus(StrEnum):
    CLEAN = "clean"
    APPLIED = "applied"
    CHANGES_NEEDED = "changes-needed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncOptions:
    """Everything a sync run needs besides the adapters."""

    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    exclude_patterns: tuple[str, ...] = ()
    ignore_imports: tuple[str, ...] = ()
    import_aliases: Mapping[str, str] = field(default_factory=dict["str", "str"])
    default_dependencies: tuple[str, ...] = ()
    universal_utilities: tuple[str, ...] = ()
    dry_run: bool = False
    max_workers: int | None = None


@dataclass(slots=True, kw_only=True)
class SyncOutcome:
    """Result of a sync run.

    ``written`` lists the files a real run updated; it stays empty for dry
    runs and for runs that failed before the write stage.
    """

    status: SyncStatus
    root: Path | None = None
    plan: ReconciliationPlan | None = None
    write_plan: WritePlan = field(default_factory=WritePlan)
    written: tuple[Path, ...] = ()
    warnings: tuple[str, ...] = ()
    error: WorkspaceSyncError | None = None

    @property
    def ok(self) -> bool:
        return self.status is not SyncStatus.FAILED


def _scan_settings(workspace: Workspace, options: SyncOptions) -> ScanSettings:
    resolver = SpecifierResolver.for_packages(
        workspace.identities,
        aliases=options.import_aliases,
        ignore_patterns=options.ignore_imports,
    )
    return ScanSettings(
        exclude_rules=compile_exclude_rules(options.exclude_patterns),
        resolver=resolver,
        default_dependencies=options.default_dependencies,
    )


def _report_analysis(
    graph: DependencyGraph, reporter: SyncReporter, *, universal_utilities: tuple[str, ...]
) -> None:
    for name, count in most_depended_upon(graph):
        reporter.debug(f"Most depended upon: {name} ({count} dependent(s))")
    for name, count in most_dependencies(graph):
        reporter.debug(f"Most dependencies: {name} ({count})")
    for diamond in find_diamonds(graph, universal_utilities=universal_utilities):
        message = (
            f"Diamond dependency in {diamond.package}: {diamond.dependency} imported "
            f"directly and through {', '.join(diamond.through)}"
        )
        if diamond.expected:
            message += " (universal utility, expected)"
        reporter.debug(message)


def run_sync(
    root: Path,
    *,
    fs: FileSystem,
    reporter: SyncReporter,
    options: SyncOptions | None = None,
    templates: TemplateCatalog | None = None,
) -> SyncOutcome:
    """Discover, scan, validate, reconcile and (unless dry-run) write.

    Fatal errors are returned as a ``failed`` outcome rather than raised.
    Nothing is written unless every earlier stage succeeded.
    """

    effective = options or SyncOptions()
    catalog = templates or WorkspaceTypeTemplates()
    plan: ReconciliationPlan | None = None
    write_plan = WritePlan()

    try:
        reporter.phase("discover")
        workspace = discover_workspace(root, effective.discovery, fs, reporter)

        reporter.phase("scan")
        scan_workspace(
            workspace,
            _scan_settings(workspace, effective),
            fs,
            reporter,
            max_workers=effective.max_workers,
        )

        reporter.phase("graph")
        graph = build_dependency_graph(workspace.identities, workspace.edges)
        _report_analysis(graph, reporter, universal_utilities=effective.universal_utilities)

        reporter.phase("reconcile")
        merges = apply_templates(workspace, catalog)
        plan = reconcile(workspace, graph, merges=merges, reporter=reporter)

        reporter.phase("write")
        write_plan = plan_writes(workspace, plan, merges)
        written = commit(write_plan, fs, dry_run=effective.dry_run)
    except WorkspaceSyncError as exc:
        reporter.error(str(exc))
        return SyncOutcome(
            status=SyncStatus.FAILED,
            root=root,
            plan=plan,
            write_plan=write_plan,
            written=exc.written if isinstance(exc, WriteFailedError) else (),
            warnings=reporter.warnings,
            error=exc,
        )

    if write_plan.is_empty:
        status = SyncStatus.CLEAN
    elif effective.dry_run:
        status = SyncStatus.CHANGES_NEEDED
    else:
        status = SyncStatus.APPLIED
    return SyncOutcome(
        status=status,
        root=root,
        plan=plan,
        write_plan=write_plan,
        written=written,
        warnings=reporter.warnings,
    )


__all__ = ["SyncOptions", "SyncOutcome", "SyncStatus", "run_sync"]
