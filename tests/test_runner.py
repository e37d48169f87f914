# tests/test_runner.py

from __future__ import annotations

import threading
from dataclasses import fields

from tasktrack.cli.runner import ServiceRunner
from tasktrack.core.state import AppState
from tasktrack.tasks.task_models import Task


def test_runner_serves_blocking_callers(state: AppState) -> None:
    runner = ServiceRunner(state.service)
    runner.start()
    try:
        assert runner.service.running

        results: list[object] = []

        def worker(i: int) -> None:
            results.append(
                runner.call(
                    state.service.create_task(
                        "u1", {"title": f"t{i}", "priority": "low", "status": "pending"}
                    )
                )
            )

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        listed = runner.call(state.service.list_tasks("u1"))
    finally:
        runner.stop()

    assert all(isinstance(r, Task) for r in results)
    assert len(listed) == 8
    assert not state.service.running


def test_state_reaches_storage_only_through_the_service(state: AppState) -> None:
    assert {f.name for f in fields(state)} == {"settings", "service", "user_id"}
    assert state.user_id == "console-user"
