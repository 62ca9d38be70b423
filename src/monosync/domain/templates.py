"""Default-shape templates for manifests and the build-reference file.

Templates only ever fill gaps: a value already present in a document is
never replaced, whatever the template says.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, cast

if TYPE_CHECKING:
    from .model import JsonObject, Package, Workspace

BUILD_REFERENCE_DEFAULTS: Mapping[str, object] = {
    "compilerOptions": {"composite": True, "incremental": True},
    "files": [],
}

_TEMPLATE_VARIABLE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def merge_defaults(existing: Mapping[str, object], defaults: Mapping[str, object]) -> JsonObject:
    """Deep, key-level merge in which ``existing`` always wins.

    Nested objects are merged recursively. Arrays and scalars from
    ``defaults`` are only used when the key is absent. Existing keys keep
    their order; new keys are appended in template order. Neither input is
    modified.
    """

    merged: JsonObject = {key: copy.deepcopy(value) for key, value in existing.items()}
    for key, default in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(default)
            continue
        current = merged[key]
        if isinstance(current, Mapping) and isinstance(default, Mapping):
            merged[key] = merge_defaults(
                cast(Mapping[str, object], current),
                cast(Mapping[str, object], default),
            )
    return merged


def substitute_variables(template: object, variables: Mapping[str, str]) -> object:
    """Replace ``{{name}}`` placeholders in every string of ``template``."""

    if isinstance(template, str):
        return _TEMPLATE_VARIABLE.sub(
            lambda match: variables.get(match.group(1), match.group(0)), template
        )
    if isinstance(template, list):
        return [substitute_variables(item, variables) for item in cast(list[object], template)]
    if isinstance(template, Mapping):
        mapping = cast(Mapping[str, object], template)
        return {key: substitute_variables(value, variables) for key, value in mapping.items()}
    return template


class TemplateCatalog(Protocol):
    """Source of default manifest and tsconfig shapes per workspace member."""

    def manifest_defaults(self, package: Package) -> Mapping[str, object]: ...

    def project_config_defaults(self, package: Package) -> Mapping[str, object]: ...


class WorkspaceTypeTemplates:
    """Catalog backed by the workspace-type settings each package matched."""

    def manifest_defaults(self, package: Package) -> Mapping[str, object]:
        if package.workspace_type is None:
            return {}
        return package.workspace_type.manifest_template

    def project_config_defaults(self, package: Package) -> Mapping[str, object]:
        if package.workspace_type is None:
            return {}
        return package.workspace_type.project_config_template


@dataclass(frozen=True, slots=True)
class TemplateMerge:
    """A package's manifest and tsconfig after their templates were merged in.

    ``project_config`` is ``None`` when the package has no managed tsconfig.
    """

    package: str
    document: JsonObject
    changed: bool
    project_config: JsonObject | None = None
    project_config_changed: bool = False


def template_variables(package: Package) -> dict[str, str]:
    return {"projectDir": package.directory_name, "packageName": package.name}


def _merge_template(
    package: Package, document: Mapping[str, object], defaults: Mapping[str, object]
) -> JsonObject:
    if not defaults:
        return copy.deepcopy(dict(document))
    substituted = cast(
        Mapping[str, object], substitute_variables(defaults, template_variables(package))
    )
    return merge_defaults(document, substituted)


def apply_manifest_template(package: Package, catalog: TemplateCatalog) -> TemplateMerge:
    merged = _merge_template(package, package.manifest, catalog.manifest_defaults(package))
    project_config = None
    if package.project_config is not None:
        project_config = _merge_template(
            package, package.project_config, catalog.project_config_defaults(package)
        )
    return TemplateMerge(
        package=package.name,
        document=merged,
        changed=merged != package.manifest,
        project_config=project_config,
        project_config_changed=(
            project_config is not None and project_config != package.project_config
        ),
    )


def apply_templates(workspace: Workspace, catalog: TemplateCatalog) -> dict[str, TemplateMerge]:
    """Merge each package's templates into copies of its manifest and tsconfig."""

    return {
        package.name: apply_manifest_template(package, catalog)
        for package in workspace.sorted_packages()
    }


def apply_build_reference_defaults(document: Mapping[str, object]) -> JsonObject:
    return merge_defaults(document, BUILD_REFERENCE_DEFAULTS)


__all__ = [
    "BUILD_REFERENCE_DEFAULTS",
    "TemplateCatalog",
    "TemplateMerge",
    "WorkspaceTypeTemplates",
    "apply_build_reference_defaults",
    "apply_manifest_template",
    "apply_templates",
    "merge_defaults",
    "substitute_variables",
    "template_variables",
]
