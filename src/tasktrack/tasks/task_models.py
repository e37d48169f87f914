# src/tasktrack/tasks/task_models.py

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Fields a caller may set on update (id / createdAt are never settable).
PATCHABLE_FIELDS: tuple[str, ...] = ("title", "description", "priority", "status", "dueDate")


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_task_id() -> str:
    """128-bit random identifier (32 hex chars)."""
    return uuid.uuid4().hex


def format_ts(dt: datetime) -> str:
    """ISO-8601 UTC with microseconds and a trailing Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    dt = dt.astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_ts(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    priority: Priority
    status: TaskStatus
    created_at: str
    updated_at: str
    description: str | None = None
    due_date: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "dueDate": self.due_date,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> Task | None:
        """
        Rebuild a task that is already on disk.

        Returns None for an entry that could not have been written by the
        store (missing id, title or timestamps, unknown priority/status, or
        non-string optional fields). Nothing is filled in with defaults, so
        rewriting the file never changes a record that was not touched.
        """
        task_id = payload.get("id")
        title = payload.get("title")
        created_at = payload.get("createdAt")
        updated_at = payload.get("updatedAt")
        if not all(_non_blank(v) for v in (task_id, title, created_at, updated_at)):
            return None

        description = payload.get("description")
        due_date = payload.get("dueDate")
        if not all(v is None or isinstance(v, str) for v in (description, due_date)):
            return None

        priority = _enum_or_none(Priority, payload.get("priority"))
        status = _enum_or_none(TaskStatus, payload.get("status"))
        if priority is None or status is None:
            return None

        return cls(
            id=task_id,
            title=title,
            description=description,
            priority=priority,
            status=status,
            due_date=due_date,
            created_at=created_at,
            updated_at=updated_at,
        )


@dataclass(frozen=True, slots=True)
class TaskPatch:
    """
    Fields a caller supplied for an update.

    `values` holds only keys that were present in the request (JSON names),
    so an explicit null is distinguishable from an omitted field.
    """

    values: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw_attrs: Any) -> TaskPatch:
        if not isinstance(raw_attrs, Mapping):
            return cls()
        return cls({k: raw_attrs[k] for k in PATCHABLE_FIELDS if k in raw_attrs})

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def get(self, key: str) -> Any:
        return self.values.get(key)


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _enum_or_none(enum_cls, raw: Any):
    try:
        return enum_cls(raw)
    except (TypeError, ValueError):
        return None
