# src/tasktrack/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_service import TaskService


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    service: TaskService

    # Console session identity (the opaque user_id passed to every task call).
    user_id: str
