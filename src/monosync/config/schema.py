"""Pydantic models describing ``monosync.config.json``."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from monosync.domain.discovery import DEFAULT_BUILD_REFERENCE_FILENAME

WorkspaceTypeName = Literal["app", "shared-package"]


def _strip_entries(values: list[str]) -> list[str]:
    stripped = [value.strip() for value in values]
    if any(not value for value in stripped):
        raise ValueError("entries must be non-empty strings")
    return stripped


class ConfigBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class WorkspaceTypeModel(ConfigBaseModel):
    type: WorkspaceTypeName
    sub_type: str | None = Field(default=None, alias="subType")
    enforce_name_prefix: str | Literal[False] | None = Field(
        default=None, alias="enforceNamePrefix"
    )
    manifest_template: dict[str, object] = Field(
        default_factory=dict["str", "object"],
        validation_alias=AliasChoices("manifestTemplate", "packageJsonTemplate"),
        serialization_alias="manifestTemplate",
    )
    project_config_template: dict[str, object] = Field(
        default_factory=dict["str", "object"], alias="tsconfigTemplate"
    )

    @property
    def name_prefix(self) -> str | None:
        return self.enforce_name_prefix or None


class BuildReferencesModel(ConfigBaseModel):
    enabled: bool = True
    filename: str = DEFAULT_BUILD_REFERENCE_FILENAME

    @field_validator("filename")
    @classmethod
    def _relative_filename(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped or stripped.startswith("/") or ".." in stripped.split("/"):
            raise ValueError("filename must be a path relative to the workspace root")
        return stripped


class SyncConfigModel(ConfigBaseModel):
    """Top-level configuration document.

    Every key is optional; an empty document means "all members are
    ``unknown`` packages, default exclusions, manage ``tsconfig.json``".
    """

    workspace_types: dict[str, WorkspaceTypeModel] = Field(
        default_factory=dict["str", "WorkspaceTypeModel"], alias="workspaceTypes"
    )
    default_dependencies: list[str] = Field(
        default_factory=list["str"], alias="defaultDependencies"
    )
    ignore_projects: list[str] = Field(default_factory=list["str"], alias="ignoreProjects")
    universal_utilities: list[str] = Field(
        default_factory=list["str"], alias="universalUtilities"
    )
    ignore_imports: list[str] = Field(default_factory=list["str"], alias="ignoreImports")
    exclude_patterns: list[str] = Field(default_factory=list["str"], alias="excludePatterns")
    import_aliases: dict[str, str] = Field(
        default_factory=dict["str", "str"], alias="importAliases"
    )
    build_references: BuildReferencesModel = Field(
        default_factory=BuildReferencesModel, alias="buildReferences"
    )

    _strip_lists = field_validator(
        "default_dependencies",
        "ignore_projects",
        "universal_utilities",
        "ignore_imports",
        "exclude_patterns",
    )(_strip_entries)

    @field_validator("workspace_types")
    @classmethod
    def _non_blank_patterns(
        cls, value: dict[str, WorkspaceTypeModel]
    ) -> dict[str, WorkspaceTypeModel]:
        if any(not pattern.strip() for pattern in value):
            raise ValueError("workspace type patterns must be non-empty")
        return value


__all__ = [
    "BuildReferencesModel",
    "SyncConfigModel",
    "WorkspaceTypeModel",
]
