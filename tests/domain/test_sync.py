from __future__ import annotations

import pytest

from monosync.domain.discovery import DiscoverySettings
from monosync.domain.errors import CyclicDependencyError, WriteFailedError
from monosync.domain.model import WorkspaceKind, WorkspaceType
from monosync.domain.sync import SyncOptions, SyncStatus, run_sync
from tests.support.memory_fs import (
    ROOT,
    MemoryFileSystem,
    RecordingReporter,
    build_workspace_files,
    manifest,
)

EXAMPLE_SOURCES = {
    "packages/utils": (
        "@example/utils",
        {"src/index.ts": "export function capitalize(value: string) { return value; }\n"},
    ),
    "packages/ui": (
        "@example/ui",
        {"src/index.ts": 'import { capitalize, formatDate } from "@example/utils";\n'},
    ),
    "packages/api-client": (
        "@example/api-client",
        {
            "src/index.ts": 'import { debounce } from "@example/utils";\n',
            "dist/index.js": 'const x = require("@example/ui");\n',
        },
    ),
    "apps/web": (
        "@example/web",
        {
            "src/index.ts": (
                "// Web app that uses ui, api-client, and utils\n"
                "import { Button, DateDisplay } from '@example/ui';\n"
                "import { ApiClient } from '@example/api-client';\n"
                "import { capitalize } from '@example/utils';\n"
            )
        },
    ),
    "apps/mobile": (
        "@example/mobile",
        {
            "src/index.ts": (
                'import { ApiClient } from "@example/api-client";\n'
                'import { Button } from "@example/ui";\n'
            ),
            "src/index.test.ts": 'import "@example/web";\n',
        },
    ),
}

OPTIONS = SyncOptions(
    discovery=DiscoverySettings(
        workspace_types=(
            WorkspaceType(pattern="apps/*", kind=WorkspaceKind.APP),
            WorkspaceType(pattern="packages/*", kind=WorkspaceKind.SHARED_PACKAGE),
        )
    ),
    max_workers=1,
)


def _example_fs() -> MemoryFileSystem:
    return MemoryFileSystem(build_workspace_files(EXAMPLE_SOURCES, tsconfig={}))


def test_example_workspace_is_synced() -> None:
    fs = _example_fs()

    outcome = run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=OPTIONS)

    assert outcome.status is SyncStatus.APPLIED
    assert fs.json("apps/web/package.json")["dependencies"] == {
        "@example/api-client": "workspace:*",
        "@example/ui": "workspace:*",
        "@example/utils": "workspace:*",
    }
    assert fs.json("apps/mobile/package.json")["dependencies"] == {
        "@example/api-client": "workspace:*",
        "@example/ui": "workspace:*",
    }
    assert fs.json("packages/ui/package.json")["dependencies"] == {
        "@example/utils": "workspace:*"
    }
    assert "dependencies" not in fs.json("packages/utils/package.json")
    assert fs.json("tsconfig.json") == {
        "compilerOptions": {"composite": True, "incremental": True},
        "files": [],
        "references": [
            {"path": "packages/utils"},
            {"path": "packages/api-client"},
            {"path": "packages/ui"},
            {"path": "apps/mobile"},
            {"path": "apps/web"},
        ],
    }
    assert outcome.written == tuple(sorted(outcome.written, key=str))
    assert len(outcome.written) == 5


def test_second_run_is_clean() -> None:
    fs = _example_fs()
    run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=OPTIONS)
    fs.writes.clear()

    outcome = run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=OPTIONS)

    assert outcome.status is SyncStatus.CLEAN
    assert outcome.plan is not None
    assert outcome.plan.is_empty
    assert fs.writes == []


def test_dry_run_reports_changes_without_writing() -> None:
    fs = _example_fs()
    before = dict(fs.files)
    options = SyncOptions(discovery=OPTIONS.discovery, dry_run=True)

    outcome = run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=options)

    assert outcome.status is SyncStatus.CHANGES_NEEDED
    assert fs.files == before
    assert outcome.written == ()
    report = outcome.write_plan.render_report(root=ROOT)
    assert "+++ b/apps/web/package.json" in report
    assert '+    "@example/utils": "workspace:*"' in report


def test_cycle_fails_before_any_write() -> None:
    files = build_workspace_files(
        {
            "packages/a": ("a", {"index.ts": 'import "b";\n'}),
            "packages/b": ("b", {"index.ts": 'import "a";\n'}),
        },
        tsconfig={},
    )
    fs = MemoryFileSystem(files)
    reporter = RecordingReporter()

    outcome = run_sync(ROOT, fs=fs, reporter=reporter, options=SyncOptions())

    assert outcome.status is SyncStatus.FAILED
    assert isinstance(outcome.error, CyclicDependencyError)
    assert outcome.error.cycle == ("a", "b", "a")
    assert outcome.plan is None
    assert fs.writes == []
    assert reporter.lines("error") == ["Circular dependency detected: a -> b -> a"]


def test_write_failure_is_a_failed_outcome() -> None:
    fs = _example_fs()
    fs.failing_writes.add(ROOT / "packages/ui/package.json")

    outcome = run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=OPTIONS)

    assert outcome.status is SyncStatus.FAILED
    assert isinstance(outcome.error, WriteFailedError)
    assert outcome.written == (
        ROOT / "apps/mobile/package.json",
        ROOT / "apps/web/package.json",
        ROOT / "packages/api-client/package.json",
    )


def test_warnings_are_collected_on_the_outcome() -> None:
    files = build_workspace_files({"packages/ui": ("@example/ui", {})})
    files[ROOT / "packages/nameless/package.json"] = manifest(None)

    outcome = run_sync(ROOT, fs=MemoryFileSystem(files), reporter=RecordingReporter())

    assert outcome.status is SyncStatus.CLEAN
    assert outcome.warnings == (
        "Skipping project at packages/nameless with missing package name",
    )


def test_external_dependencies_and_foreign_references_survive() -> None:
    files = build_workspace_files(
        {
            "packages/utils": ("utils", {}),
            "apps/web": ("web", {"src/main.ts": 'import "utils";\nimport "react";\n'}),
        },
        tsconfig={
            "compilerOptions": {"composite": True, "incremental": True},
            "files": [],
            "references": [{"path": "tools/scripts"}],
        },
    )
    files[ROOT / "apps/web/package.json"] = manifest(
        "web", dependencies={"react": "^18.2.0", "ghost": "workspace:*"}
    )
    fs = MemoryFileSystem(files)

    outcome = run_sync(ROOT, fs=fs, reporter=RecordingReporter())

    assert outcome.status is SyncStatus.APPLIED
    # "ghost" is not a workspace package, so it is left alone
    assert fs.json("apps/web/package.json")["dependencies"] == {
        "react": "^18.2.0",
        "ghost": "workspace:*",
        "utils": "workspace:*",
    }
    assert fs.json("tsconfig.json")["references"] == [
        {"path": "packages/utils"},
        {"path": "apps/web"},
        {"path": "tools/scripts"},
    ]


@pytest.mark.parametrize("workers", [1, 3])
def test_results_do_not_depend_on_worker_count(workers: int) -> None:
    fs = _example_fs()
    options = SyncOptions(discovery=OPTIONS.discovery, dry_run=True, max_workers=workers)

    outcome = run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=options)

    assert outcome.plan is not None
    assert outcome.plan.references is not None
    assert outcome.plan.references.ordered_packages == (
        "@example/utils",
        "@example/api-client",
        "@example/ui",
        "@example/mobile",
        "@example/web",
    )


def test_template_dependencies_reach_a_fixed_point() -> None:
    files = build_workspace_files(
        {
            "packages/utils": ("@s/utils", {"src/index.ts": "export const x = 1;\n"}),
            "packages/ui": ("@s/ui", {"src/index.ts": "export const y = 2;\n"}),
        },
        workspaces=("packages/*",),
        tsconfig={},
    )
    options = SyncOptions(
        discovery=DiscoverySettings(
            workspace_types=(
                WorkspaceType(
                    pattern="packages/*",
                    kind=WorkspaceKind.SHARED_PACKAGE,
                    manifest_template={"dependencies": {"@s/utils": "workspace:*"}},
                ),
            )
        ),
        max_workers=1,
    )
    fs = MemoryFileSystem(files)

    first = run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=options)
    fs.writes.clear()
    second = run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=options)
    third = run_sync(ROOT, fs=fs, reporter=RecordingReporter(), options=options)

    assert first.status is SyncStatus.APPLIED
    # the template entry is reconciled away in the same run it is merged
    assert fs.json("packages/ui/package.json").get("dependencies", {}) == {}
    assert second.status is SyncStatus.CLEAN
    assert second.write_plan.is_empty
    assert third.write_plan.is_empty
    assert fs.writes == []


def test_diamond_dependencies_are_logged_at_debug_level() -> None:
    files = build_workspace_files(
        {
            "packages/utils": ("utils", {}),
            "packages/ui": ("ui", {"index.ts": 'import "utils";\n'}),
            "apps/web": ("web", {"index.ts": 'import "ui";\nimport "utils";\n'}),
        },
        tsconfig={},
    )
    reporter = RecordingReporter()
    options = SyncOptions(dry_run=True, universal_utilities=("utils",))

    run_sync(ROOT, fs=MemoryFileSystem(files), reporter=reporter, options=options)

    assert (
        "Diamond dependency in web: utils imported directly and through ui "
        "(universal utility, expected)"
    ) in reporter.lines("debug")
