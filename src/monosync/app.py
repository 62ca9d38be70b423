"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from monosync.adapters import LocalFileSystem, LoggingReporter
from monosync.config import get_environment_overrides, load_config, to_sync_options
from monosync.domain.sync import SyncStatus, run_sync

if TYPE_CHECKING:
    from monosync.domain.ports import FileSystem, SyncReporter
    from monosync.domain.sync import SyncOutcome

log = getLogger(__name__)


def sync_workspace(
    *,
    root: Path | None = None,
    config_path: Path | None = None,
    dry_run: bool = False,
    max_workers: int | None = None,
    fs: FileSystem | None = None,
    reporter: SyncReporter | None = None,
) -> SyncOutcome:
    """Synchronise one workspace using the configured adapters.

    Explicit arguments win over ``MONOSYNC_*`` environment variables; the
    workspace root falls back to the current directory. Configuration
    problems raise ``ConfigurationError`` before anything is read from the
    workspace itself.
    """

    env = get_environment_overrides()
    effective_root = (root or env.root or Path.cwd()).resolve()
    config = load_config(effective_root, config_path or env.config_path)
    options = to_sync_options(
        config,
        dry_run=dry_run,
        max_workers=max_workers if max_workers is not None else env.max_workers,
    )
    log.info(
        "Starting workspace sync: root=%s, dry_run=%s, max_workers=%s",
        effective_root,
        options.dry_run,
        options.max_workers,
    )

    outcome = run_sync(
        effective_root,
        fs=fs or LocalFileSystem(),
        reporter=reporter or LoggingReporter(),
        options=options,
    )

    if outcome.status is SyncStatus.FAILED:
        log.info("Workspace sync failed: %s", outcome.error)
    else:
        log.info(
            "Finished workspace sync: status=%s, files=%s, written=%s, warnings=%s",
            outcome.status,
            len(outcome.write_plan.mutations),
            len(outcome.written),
            len(outcome.warnings),
        )
    return outcome
