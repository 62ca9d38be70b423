from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from monosync.app import sync_workspace
from monosync.config import ConfigurationError
from monosync.domain.sync import SyncStatus
from tests.support.memory_fs import RecordingReporter
from tests.support.workspace_dir import EXAMPLE_WORKSPACE, read_json, write_workspace

if TYPE_CHECKING:
    from pathlib import Path


def test_sync_workspace_on_disk(tmp_path: Path) -> None:
    write_workspace(tmp_path, EXAMPLE_WORKSPACE)

    outcome = sync_workspace(root=tmp_path, reporter=RecordingReporter())

    assert outcome.status is SyncStatus.APPLIED
    assert read_json(tmp_path, "apps/web/package.json")["dependencies"] == {
        "react": "^18.2.0",
        "@example/ui": "workspace:*",
        "@example/utils": "workspace:*",
    }
    assert read_json(tmp_path, "tsconfig.json") == {
        "compilerOptions": {"composite": True, "incremental": True},
        "references": [
            {"path": "packages/utils"},
            {"path": "packages/ui"},
            {"path": "apps/web"},
        ],
        "files": [],
    }

    again = sync_workspace(root=tmp_path, reporter=RecordingReporter())

    assert again.status is SyncStatus.CLEAN


def test_root_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_workspace(tmp_path, EXAMPLE_WORKSPACE)
    monkeypatch.setenv("MONOSYNC_ROOT", str(tmp_path))
    monkeypatch.setenv("MONOSYNC_MAX_WORKERS", "1")

    outcome = sync_workspace(dry_run=True, reporter=RecordingReporter())

    assert outcome.status is SyncStatus.CHANGES_NEEDED
    assert outcome.root == tmp_path.resolve()
    assert "dependencies" not in read_json(tmp_path, "packages/ui/package.json")


def test_invalid_config_raises_before_scanning(
    tmp_path: Path, reporter: RecordingReporter
) -> None:
    write_workspace(
        tmp_path,
        {**EXAMPLE_WORKSPACE, "monosync.config.json": {"workspaceTypes": {"apps/*": {}}}},
    )

    with pytest.raises(ConfigurationError):
        sync_workspace(root=tmp_path, reporter=reporter)

    assert reporter.phases == []


def test_missing_workspace_root_is_a_failed_outcome(
    tmp_path: Path, reporter: RecordingReporter
) -> None:
    outcome = sync_workspace(root=tmp_path / "nowhere", reporter=reporter)

    assert outcome.status is SyncStatus.FAILED
    assert "not a directory" in str(outcome.error)
    assert reporter.phases == ["discover"]


def test_finished_sync_is_logged_with_lazy_arguments(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    write_workspace(tmp_path, EXAMPLE_WORKSPACE)

    with caplog.at_level(logging.INFO, logger="monosync.app"):
        outcome = sync_workspace(root=tmp_path, reporter=RecordingReporter())

    [record] = [
        record
        for record in caplog.records
        if record.name == "monosync.app" and str(record.msg).startswith("Finished workspace sync")
    ]
    assert record.args == (
        SyncStatus.APPLIED,
        len(outcome.write_plan.mutations),
        len(outcome.written),
        0,
    )
    assert record.getMessage() == (
        f"Finished workspace sync: status=applied, files={len(outcome.write_plan.mutations)}, "
        f"written={len(outcome.written)}, warnings=0"
    )
