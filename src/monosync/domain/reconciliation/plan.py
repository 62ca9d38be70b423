"""Reconciliation plan types.

The plan is the contract between the reconciler and the write planner. It
only names identities and paths; rendering file contents is left to the
write stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class DependencyDiff:
    """Workspace dependencies to add to and remove from one manifest."""

    to_add: frozenset[str] = frozenset()
    to_remove: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass(frozen=True, slots=True, kw_only=True)
class ReferencePlan:
    """Target content of the build-reference list.

    ``ordered_packages`` is the topological order restricted to the packages
    that belong in the file. ``preserved_paths`` are existing entries that
    name no workspace package; they are kept after the managed entries.
    """

    ordered_packages: tuple[str, ...]
    ordered_paths: tuple[str, ...]
    preserved_paths: tuple[str, ...] = ()
    current_paths: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return self.ordered_paths != self.current_paths


@dataclass(frozen=True, slots=True, kw_only=True)
class ProjectConfigPlan:
    """Workspace entries one package's own tsconfig should carry.

    Paths are relative to the package root. ``references`` point at the
    package's dependencies, sorted; ``preserved_references`` are existing
    entries naming no workspace package and stay after them. ``paths`` maps
    each dependency (and its ``/*`` subpath key) to its
    ``compilerOptions.paths`` targets. The ``stale_*`` fields name existing
    entries that point at workspace packages the sources no longer import.
    """

    references: tuple[str, ...] = ()
    preserved_references: tuple[str, ...] = ()
    paths: Mapping[str, tuple[str, ...]] = field(default_factory=dict["str", "tuple[str, ...]"])
    stale_paths: tuple[str, ...] = ()
    stale_references: tuple[str, ...] = ()

    @property
    def wanted_references(self) -> tuple[str, ...]:
        return self.references + self.preserved_references

    @property
    def has_stale_entries(self) -> bool:
        return bool(self.stale_paths or self.stale_references)


EMPTY_DIFF = DependencyDiff()


@dataclass(slots=True)
class ReconciliationPlan:
    """Aggregate plan for one sync run."""

    diffs: dict[str, DependencyDiff] = field(default_factory=dict["str", "DependencyDiff"])
    references: ReferencePlan | None = None
    project_configs: dict[str, ProjectConfigPlan] = field(
        default_factory=dict["str", "ProjectConfigPlan"]
    )

    def diff_for(self, name: str) -> DependencyDiff:
        return self.diffs.get(name, EMPTY_DIFF)

    @property
    def changed_packages(self) -> tuple[str, ...]:
        return tuple(sorted(name for name, diff in self.diffs.items() if not diff.is_empty))

    @property
    def is_empty(self) -> bool:
        references_changed = self.references is not None and self.references.changed
        return not self.changed_packages and not references_changed


__all__ = [
    "EMPTY_DIFF",
    "DependencyDiff",
    "ProjectConfigPlan",
    "ReconciliationPlan",
    "ReferencePlan",
]
