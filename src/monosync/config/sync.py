"""Loading the workspace configuration file into sync options."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from monosync.domain.discovery import DiscoverySettings
from monosync.domain.model import WorkspaceKind, WorkspaceType
from monosync.domain.sync import SyncOptions

from .errors import ConfigurationError, MissingConfigurationError
from .schema import SyncConfigModel

if TYPE_CHECKING:
    from pathlib import Path

CONFIG_FILENAME: Final[str] = "monosync.config.json"


def _format_validation_error(path: Path, exc: ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in exc.errors()
    ]
    return f"Invalid configuration in {path}: " + "; ".join(problems)


def parse_config(document: object, *, source: Path) -> SyncConfigModel:
    try:
        return SyncConfigModel.model_validate(document)
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_error(source, exc)) from exc


def load_config(root: Path, path: Path | None = None) -> SyncConfigModel:
    """Read and validate the configuration for the workspace at ``root``.

    Without an explicit ``path`` the file is optional and an absent
    ``monosync.config.json`` yields the defaults.
    """

    config_path = path if path is not None else root / CONFIG_FILENAME
    if not config_path.is_absolute():
        config_path = root / config_path
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        if path is not None:
            raise MissingConfigurationError(
                f"Configuration file not found: {config_path}"
            ) from exc
        return SyncConfigModel()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration {config_path}: {exc}") from exc

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Configuration {config_path} is not valid JSON: {exc}") from exc
    return parse_config(document, source=config_path)


def workspace_types(config: SyncConfigModel) -> tuple[WorkspaceType, ...]:
    return tuple(
        WorkspaceType(
            pattern=pattern,
            kind=WorkspaceKind(settings.type),
            sub_type=settings.sub_type,
            name_prefix=settings.name_prefix,
            manifest_template=settings.manifest_template,
            project_config_template=settings.project_config_template,
        )
        for pattern, settings in config.workspace_types.items()
    )


def to_sync_options(
    config: SyncConfigModel,
    *,
    dry_run: bool = False,
    max_workers: int | None = None,
) -> SyncOptions:
    """Translate the validated config document into domain options."""

    discovery = DiscoverySettings(
        workspace_types=workspace_types(config),
        ignore_projects=frozenset(config.ignore_projects),
        build_reference_filename=(
            config.build_references.filename if config.build_references.enabled else None
        ),
    )
    return SyncOptions(
        discovery=discovery,
        exclude_patterns=tuple(config.exclude_patterns),
        ignore_imports=tuple(config.ignore_imports),
        import_aliases=dict(config.import_aliases),
        default_dependencies=tuple(config.default_dependencies),
        universal_utilities=tuple(config.universal_utilities),
        dry_run=dry_run,
        max_workers=max_workers,
    )


__all__ = ["CONFIG_FILENAME", "load_config", "parse_config", "to_sync_options", "workspace_types"]
