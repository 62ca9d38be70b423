from __future__ import annotations

import pytest

from monosync.config.env import CONFIG_ENV_VAR, MAX_WORKERS_ENV_VAR, ROOT_ENV_VAR
from tests.support.memory_fs import RecordingReporter


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (ROOT_ENV_VAR, CONFIG_ENV_VAR, MAX_WORKERS_ENV_VAR):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
