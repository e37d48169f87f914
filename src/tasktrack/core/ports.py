# src/tasktrack/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

TaskService depends on this Protocol rather than on TaskStore directly,
which keeps the storage swappable and lets tests plug in a fake repo.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from ..tasks.task_errors import (
    ImportSummary,
    InvalidTasks,
    NotFound,
    StorageError,
    ValidationErrors,
)
from ..tasks.task_models import Task


class TaskRepo(Protocol):
    """Synchronous per-user task storage. Each call is one load/mutate/persist cycle."""

    def list_tasks(self, user_id: str) -> list[Task]: ...

    def get_task(self, user_id: str, task_id: str) -> Task | NotFound: ...

    def create_task(
            self, user_id: str, raw_attrs: Mapping[str, Any]
    ) -> Task | ValidationErrors | StorageError: ...

    def update_task(
            self, user_id: str, task_id: str, raw_attrs: Mapping[str, Any]
    ) -> Task | NotFound | ValidationErrors | StorageError: ...

    def delete_task(self, user_id: str, task_id: str) -> Task | NotFound | StorageError: ...

    def import_tasks(
            self, user_id: str, raw_tasks: Sequence[Any]
    ) -> ImportSummary | InvalidTasks | StorageError: ...

    def export_tasks(self, user_id: str) -> dict[str, list[dict[str, Any]]]: ...
