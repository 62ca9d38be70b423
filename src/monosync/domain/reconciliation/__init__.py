"""Reference reconciliation: graph versus declared manifests and references."""

from __future__ import annotations

from .plan import (
    EMPTY_DIFF,
    DependencyDiff,
    ProjectConfigPlan,
    ReconciliationPlan,
    ReferencePlan,
)
from .project_config import (
    dependency_path_targets,
    reconcile_project_config,
    resolve_entry_point,
)
from .reconcile import ReconcileWorkspace, diff_package, plan_references, reconcile

__all__ = [
    "EMPTY_DIFF",
    "DependencyDiff",
    "ProjectConfigPlan",
    "ReconcileWorkspace",
    "ReconciliationPlan",
    "ReferencePlan",
    "dependency_path_targets",
    "diff_package",
    "plan_references",
    "reconcile",
    "reconcile_project_config",
    "resolve_entry_point",
]
