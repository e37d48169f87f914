# src/tasktrack/tasks/task_validation.py

"""
Validation / normalization of raw task attributes.

Two entry points share the same field rules:
- validate_for_create: builds a brand-new Task (id + timestamps stamped here)
- validate_for_update: applies a partial patch on top of an existing Task

Both are pure: the clock and the id source are parameters, nothing is persisted.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

from .task_errors import ErrorKind, FieldError, ValidationErrors
from .task_models import (
    Priority,
    Task,
    TaskPatch,
    TaskStatus,
    format_ts,
    new_task_id,
    parse_ts,
    utc_now,
)

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _required_str(name: str, value: Any, errors: list[FieldError]) -> str | None:
    if _is_blank(value):
        errors.append(FieldError(name, ErrorKind.REQUIRED))
        return None
    if not isinstance(value, str):
        errors.append(FieldError(name, ErrorKind.INVALID))
        return None
    return value


def _optional_str(name: str, value: Any, errors: list[FieldError]) -> str | None:
    if _is_blank(value):
        return None
    if not isinstance(value, str):
        errors.append(FieldError(name, ErrorKind.INVALID))
        return None
    return value


def _required_enum(name: str, value: Any, enum_cls: type[StrEnum], errors: list[FieldError]):
    raw = _required_str(name, value, errors)
    if raw is None:
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        errors.append(FieldError(name, ErrorKind.INVALID))
        return None


def validate_for_create(
    raw_attrs: Any,
    *,
    clock: Clock = utc_now,
    new_id: IdFactory = new_task_id,
) -> Task | ValidationErrors:
    """
    Build a new Task from untrusted attributes.

    A non-blank string "id" in raw_attrs is kept (import / restore flows);
    otherwise a fresh id is generated. createdAt == updatedAt == now.
    """
    attrs: Mapping[str, Any] = raw_attrs if isinstance(raw_attrs, Mapping) else {}
    errors: list[FieldError] = []

    # Checked in schema order so errors come out in that order.
    task_id = _optional_str("id", attrs.get("id"), errors)
    title = _required_str("title", attrs.get("title"), errors)
    description = _optional_str("description", attrs.get("description"), errors)
    priority = _required_enum("priority", attrs.get("priority"), Priority, errors)
    status = _required_enum("status", attrs.get("status"), TaskStatus, errors)
    due_date = _optional_str("dueDate", attrs.get("dueDate"), errors)

    if errors:
        return ValidationErrors(tuple(errors))

    now = format_ts(clock())
    return Task(
        id=task_id or new_id(),
        title=title,
        description=description,
        priority=priority,
        status=status,
        due_date=due_date,
        created_at=now,
        updated_at=now,
    )


def validate_for_update(
    existing: Task,
    raw_attrs: Any,
    *,
    clock: Clock = utc_now,
) -> Task | ValidationErrors:
    """
    Apply the supplied fields on top of `existing`.

    Omitted fields keep their value; an explicit null is applied (and fails for
    required fields). id / createdAt are never taken from raw_attrs.
    updatedAt always moves forward, even when nothing visible changed.
    """
    patch = TaskPatch.from_raw(raw_attrs)
    errors: list[FieldError] = []

    title = existing.title
    if "title" in patch:
        title = _required_str("title", patch.get("title"), errors)

    description = existing.description
    if "description" in patch:
        description = _optional_str("description", patch.get("description"), errors)

    priority = existing.priority
    if "priority" in patch:
        priority = _required_enum("priority", patch.get("priority"), Priority, errors)

    status = existing.status
    if "status" in patch:
        status = _required_enum("status", patch.get("status"), TaskStatus, errors)

    due_date = existing.due_date
    if "dueDate" in patch:
        due_date = _optional_str("dueDate", patch.get("dueDate"), errors)

    if errors:
        return ValidationErrors(tuple(errors))

    return replace(
        existing,
        title=title,
        description=description,
        priority=priority,
        status=status,
        due_date=due_date,
        updated_at=_next_updated_at(existing, clock()),
    )


def _next_updated_at(existing: Task, now: datetime) -> str:
    # Strictly after the previous updatedAt and never before createdAt,
    # even with a coarse or non-monotonic clock.
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    floors = [ts for ts in (parse_ts(existing.updated_at), parse_ts(existing.created_at)) if ts]
    if floors:
        floor = max(floors)
        if now <= floor:
            now = floor + timedelta(microseconds=1)
    return format_ts(now)
