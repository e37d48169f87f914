# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasktrack.cli.bootstrap import create_initial_state
from tasktrack.core.state import AppState
from tasktrack.tasks.task_store import TaskStore

from .fakes import CountingIds, FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ids() -> CountingIds:
    return CountingIds()


@pytest.fixture()
def store(tmp_path: Path, clock: FakeClock, ids: CountingIds) -> TaskStore:
    """Real file store in a per-test directory with deterministic time and ids."""
    return TaskStore(tmp_path / "tasks", clock=clock, new_id=ids)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the console.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasktrack-test",
        log_level="DEBUG",
        log_to_file=False,
        data_dir=tmp_path,
        tasks_dir=tmp_path / "tasks",
        log_dir=tmp_path,
        queue_size=0,
        default_user_id="console-user",
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired by the real composition root (service not started yet)."""
    return create_initial_state(settings=settings)
