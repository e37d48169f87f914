# src/tasktrack/tasks/task_errors.py

"""
Typed results returned by the validation engine, the store and the service.

Validation failures, misses and write failures are values, not exceptions:
callers branch with isinstance() and render them as they see fit.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ErrorKind(StrEnum):
    REQUIRED = "required"
    INVALID = "invalid"


_MESSAGES = {
    ErrorKind.REQUIRED: "can't be blank",
    ErrorKind.INVALID: "is invalid",
}


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    kind: ErrorKind

    @property
    def message(self) -> str:
        return _MESSAGES[self.kind]


@dataclass(frozen=True, slots=True)
class ValidationErrors:
    errors: tuple[FieldError, ...]

    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    def kind_of(self, field: str) -> ErrorKind | None:
        for e in self.errors:
            if e.field == field:
                return e.kind
        return None

    def as_dict(self) -> dict[str, list[str]]:
        """{field: [human message, ...]} for display."""
        out: dict[str, list[str]] = {}
        for e in self.errors:
            out.setdefault(e.field, []).append(e.message)
        return out


@dataclass(frozen=True, slots=True)
class NotFound:
    task_id: str


@dataclass(frozen=True, slots=True)
class StorageError:
    """A user file could not be written."""

    path: str
    reason: str


@dataclass(frozen=True, slots=True)
class InvalidTasks:
    """At least one element of an import batch failed validation."""

    failures: tuple[tuple[int, ValidationErrors], ...]

    @property
    def count(self) -> int:
        return len(self.failures)


@dataclass(frozen=True, slots=True)
class ImportSummary:
    added: int
    replaced: int

    @property
    def imported(self) -> int:
        return self.added + self.replaced
