"""Per-package import scanning.

Each package is scanned into its own ``PackageScan`` accumulator. Scans share
no mutable state, so they may run on a thread pool; the workspace only sees
their results once every scan has finished (see ``merge_scans``).
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from monosync.domain.model import ImportEdge, ImportUsage

from .exclude import excludes_directory, is_excluded
from .imports import SOURCE_EXTENSIONS, extract_specifiers

if TYPE_CHECKING:
    from collections.abc import Sequence

    from monosync.domain.model import Package, Workspace
    from monosync.domain.ports import FileSystem, SyncReporter

    from .exclude import ExcludeRule
    from .imports import SpecifierResolver

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class ScanSettings:
    exclude_rules: tuple[ExcludeRule, ...]
    resolver: SpecifierResolver
    extensions: tuple[str, ...] = SOURCE_EXTENSIONS
    default_dependencies: tuple[str, ...] = ()

    def accepts(self, relative_path: str) -> bool:
        return relative_path.endswith(self.extensions) and not is_excluded(
            relative_path, self.exclude_rules
        )

    def prunes(self, relative_dir: str) -> bool:
        return excludes_directory(relative_dir, self.exclude_rules)


@dataclass(slots=True)
class PackageScan:
    """Scan results owned by a single package until the merge step."""

    package: str
    source_files: list[str] = field(default_factory=list["str"])
    edges: set[ImportEdge] = field(default_factory=set["ImportEdge"])
    usages: list[ImportUsage] = field(default_factory=list["ImportUsage"])
    warnings: list[str] = field(default_factory=list["str"])

    def record(self, *, specifier: str, target: str, source_file: str, type_only: bool) -> None:
        edge = ImportEdge(self.package, target)
        if edge.is_self_edge:
            return
        self.edges.add(edge)
        self.usages.append(
            ImportUsage(
                specifier=specifier,
                target=target,
                source_file=source_file,
                type_only=type_only,
            )
        )


def scan_package(package: Package, settings: ScanSettings, fs: FileSystem) -> PackageScan:
    """Extract workspace import edges from the sources of ``package``."""

    scan = PackageScan(package=package.name)
    paths = fs.list_files(package.root, settings.accepts, prune=settings.prunes)

    for path in paths:
        relative_file = path.relative_to(package.root).as_posix()
        scan.source_files.append(relative_file)
        try:
            source = fs.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            scan.warnings.append(f"Failed to read {relative_file} in {package.name}: {exc}")
            continue

        for found in extract_specifiers(source):
            target = settings.resolver.resolve(found.specifier)
            if target is None:
                continue
            scan.record(
                specifier=found.specifier,
                target=target,
                source_file=relative_file,
                type_only=found.type_only,
            )

    for dependency in settings.default_dependencies:
        if dependency in settings.resolver.identities and dependency != package.name:
            scan.edges.add(ImportEdge(package.name, dependency))

    return scan


def merge_scans(workspace: Workspace, scans: Sequence[PackageScan], reporter: SyncReporter) -> None:
    """Publish finished scans onto the workspace packages, in identity order."""

    for scan in sorted(scans, key=lambda item: item.package):
        package = workspace.packages[scan.package]
        package.source_files = tuple(scan.source_files)
        package.import_edges = frozenset(scan.edges)
        package.usages = tuple(scan.usages)
        for warning in scan.warnings:
            reporter.warn(warning)
        if not scan.source_files:
            reporter.debug(f"{scan.package}: no source files found")
            continue
        targets = ", ".join(sorted(edge.target for edge in scan.edges)) or "none"
        reporter.debug(
            f"{scan.package}: {len(scan.source_files)} source file(s), "
            f"workspace imports: {targets}"
        )


def scan_workspace(
    workspace: Workspace,
    settings: ScanSettings,
    fs: FileSystem,
    reporter: SyncReporter,
    *,
    max_workers: int | None = None,
) -> list[PackageScan]:
    """Scan every package and merge the results into ``workspace``."""

    packages = workspace.sorted_packages()
    if max_workers == 1 or len(packages) <= 1:
        scans = [scan_package(package, settings, fs) for package in packages]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            scans = list(pool.map(lambda package: scan_package(package, settings, fs), packages))
    log.debug("Scanned %s package(s)", len(scans))

    merge_scans(workspace, scans, reporter)
    reporter.info(f"Scanned imports for {len(scans)} package(s)")
    return scans


__all__ = ["PackageScan", "ScanSettings", "merge_scans", "scan_package", "scan_workspace"]
