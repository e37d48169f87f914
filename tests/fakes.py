# tests/fakes.py

from __future__ import annotations

import threading
import time
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from tasktrack.tasks.task_errors import ImportSummary, NotFound
from tasktrack.tasks.task_models import Priority, Task, TaskStatus


class FakeClock:
    """
    Deterministic clock: each call returns the current instant, then advances by `step`.

    step=timedelta(0) freezes time (useful for "clock did not move" cases).
    """

    def __init__(
        self,
        start: datetime = datetime(2024, 1, 1, tzinfo=UTC),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.now = start
        self.step = step
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            current = self.now
            self.now = current + self.step
            return current


class CountingIds:
    """Id source yielding task-1, task-2, ... (or a fixed sequence first)."""

    def __init__(self, preset: Sequence[str] = ()) -> None:
        self._preset = list(preset)
        self._n = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            if self._preset:
                return self._preset.pop(0)
            self._n += 1
            return f"task-{self._n}"


def make_task(task_id: str = "t1", **overrides: Any) -> Task:
    fields: dict[str, Any] = {
        "id": task_id,
        "title": "Write report",
        "priority": Priority.MEDIUM,
        "status": TaskStatus.PENDING,
        "created_at": "2024-01-01T00:00:00.000000Z",
        "updated_at": "2024-01-01T00:00:00.000000Z",
    }
    fields.update(overrides)
    return Task(**fields)


class SlowRepo:
    """
    TaskRepo double that records call order and overlapping calls.

    Each call sleeps in the calling thread, so any lack of serialization in
    TaskService shows up as max_active > 1.
    """

    def __init__(self, delay: float = 0.01) -> None:
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self.fail_next = False
        self._lock = threading.Lock()

    def _enter(self, name: str, user_id: str) -> None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.calls.append((name, user_id))
            fail, self.fail_next = self.fail_next, False
        try:
            time.sleep(self.delay)
            if fail:
                raise RuntimeError("boom")
        finally:
            with self._lock:
                self.active -= 1

    def list_tasks(self, user_id: str) -> list[Task]:
        self._enter("list_tasks", user_id)
        return []

    def get_task(self, user_id: str, task_id: str) -> Task | NotFound:
        self._enter("get_task", user_id)
        return NotFound(task_id)

    def create_task(self, user_id: str, raw_attrs: Mapping[str, Any]) -> Task:
        self._enter("create_task", user_id)
        return make_task(str(raw_attrs.get("id") or "t1"), title=str(raw_attrs.get("title")))

    def update_task(self, user_id: str, task_id: str, raw_attrs: Mapping[str, Any]) -> NotFound:
        self._enter("update_task", user_id)
        return NotFound(task_id)

    def delete_task(self, user_id: str, task_id: str) -> NotFound:
        self._enter("delete_task", user_id)
        return NotFound(task_id)

    def import_tasks(self, user_id: str, raw_tasks: Sequence[Any]) -> ImportSummary:
        self._enter("import_tasks", user_id)
        return ImportSummary(added=len(raw_tasks), replaced=0)

    def export_tasks(self, user_id: str) -> dict[str, list[dict[str, Any]]]:
        self._enter("export_tasks", user_id)
        return {"tasks": []}
