# src/tasktrack/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any
from urllib.parse import quote

from .task_errors import (
    ErrorKind,
    FieldError,
    ImportSummary,
    InvalidTasks,
    NotFound,
    StorageError,
    ValidationErrors,
)
from .task_models import Task, new_task_id, utc_now
from .task_validation import Clock, IdFactory, validate_for_create, validate_for_update

logger = logging.getLogger(__name__)


class TaskStore:
    """
    JSON-file task store, one file per user: {base_dir}/{user_id}.json.

    File shape: {"tasks": [ ... ]}, pretty-printed, newest task first.
    A bare top-level array is accepted on read (legacy files).

    Every call re-reads the user's file, mutates the list in memory and writes
    the whole list back. Writes go through a temp file + os.replace, so a
    reader sees either the previous or the new content.

    Not safe for concurrent mutation on its own: route calls through
    TaskService, which serializes them.
    """

    def __init__(
        self,
        base_dir: str | Path = "tasks",
        *,
        clock: Clock = utc_now,
        new_id: IdFactory = new_task_id,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._new_id = new_id
        logger.info("TaskStore ready dir=%s", self._base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def user_path(self, user_id: str) -> Path:
        # Percent-encode so an opaque id can never point outside base_dir.
        return self._base_dir / f"{quote(str(user_id), safe='')}.json"

    # ---- low-level helpers ----

    def _read(self, user_id: str) -> list[Task]:
        """Parse the user's file. Raises OSError (except a missing file)."""
        path = self.user_path(user_id)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return []

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Corrupt task file %s (%s); treating as empty", path, exc)
            return []

        if isinstance(data, dict) and isinstance(data.get("tasks"), list):
            entries = data["tasks"]
        elif isinstance(data, list):
            entries = data
        else:
            logger.warning("Invalid JSON format in %s; treating as empty", path)
            return []

        tasks: list[Task] = []
        skipped = 0
        for entry in entries:
            task = Task.from_json(entry) if isinstance(entry, dict) else None
            if task is None:
                skipped += 1
                continue
            tasks.append(task)

        if skipped:
            logger.warning("Skipped %d malformed entries in %s", skipped, path)
        return tasks

    def _load(self, user_id: str) -> list[Task]:
        # Read-only callers see an unreadable file as empty.
        try:
            return self._read(user_id)
        except OSError:
            logger.exception("Failed to read %s", self.user_path(user_id))
            return []

    def _load_for_write(self, user_id: str) -> list[Task] | StorageError:
        # A mutation must never replace a file it could not read.
        path = self.user_path(user_id)
        try:
            return self._read(user_id)
        except OSError as exc:
            logger.error("Refusing to rewrite unreadable %s: %s", path, exc)
            return StorageError(path=str(path), reason=str(exc) or type(exc).__name__)

    def _write(self, user_id: str, tasks: Sequence[Task]) -> StorageError | None:
        path = self.user_path(user_id)
        payload = json.dumps(
            {"tasks": [t.to_json() for t in tasks]},
            ensure_ascii=False,
            indent=2,
        )

        tmp_name: str | None = None
        try:
            data = (payload + "\n").encode("utf-8")
            self._base_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=self._base_dir,
                prefix=f".{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, UnicodeError) as exc:
            logger.error("Failed to write %s: %s", path, exc)
            return StorageError(path=str(path), reason=str(exc) or type(exc).__name__)
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

        return None

    @staticmethod
    def _index_of(tasks: Sequence[Task], task_id: str) -> int | None:
        for i, t in enumerate(tasks):
            if t.id == task_id:
                return i
        return None

    # ---- public API ----

    def list_tasks(self, user_id: str) -> list[Task]:
        return self._load(user_id)

    def count_tasks(self, user_id: str) -> int:
        return len(self._load(user_id))

    def get_task(self, user_id: str, task_id: str) -> Task | NotFound:
        tasks = self._load(user_id)
        idx = self._index_of(tasks, task_id)
        if idx is None:
            return NotFound(task_id)
        return tasks[idx]

    def create_task(
        self, user_id: str, raw_attrs: Mapping[str, Any]
    ) -> Task | ValidationErrors | StorageError:
        result = validate_for_create(raw_attrs, clock=self._clock, new_id=self._new_id)
        if isinstance(result, ValidationErrors):
            logger.warning("Invalid task data user=%s fields=%s", user_id, result.fields())
            return result

        tasks = self._load_for_write(user_id)
        if isinstance(tasks, StorageError):
            return tasks
        if self._index_of(tasks, result.id) is not None:
            if _supplied_id(raw_attrs) == result.id:
                logger.warning("Rejected duplicate task id=%s user=%s", result.id, user_id)
                return ValidationErrors((FieldError("id", ErrorKind.INVALID),))
            while self._index_of(tasks, result.id) is not None:
                result = replace(result, id=self._new_id())

        err = self._write(user_id, [result, *tasks])
        if err is not None:
            return err

        logger.info(
            "Created task id=%s user=%s priority=%s status=%s",
            result.id,
            user_id,
            result.priority.value,
            result.status.value,
        )
        return result

    def update_task(
        self, user_id: str, task_id: str, raw_attrs: Mapping[str, Any]
    ) -> Task | NotFound | ValidationErrors | StorageError:
        tasks = self._load_for_write(user_id)
        if isinstance(tasks, StorageError):
            return tasks
        idx = self._index_of(tasks, task_id)
        if idx is None:
            return NotFound(task_id)

        result = validate_for_update(tasks[idx], raw_attrs, clock=self._clock)
        if isinstance(result, ValidationErrors):
            logger.warning(
                "Invalid update task id=%s user=%s fields=%s", task_id, user_id, result.fields()
            )
            return result

        tasks[idx] = result
        err = self._write(user_id, tasks)
        if err is not None:
            return err

        logger.info("Updated task id=%s user=%s", task_id, user_id)
        return result

    def delete_task(self, user_id: str, task_id: str) -> Task | NotFound | StorageError:
        tasks = self._load_for_write(user_id)
        if isinstance(tasks, StorageError):
            return tasks
        idx = self._index_of(tasks, task_id)
        if idx is None:
            return NotFound(task_id)

        removed = tasks.pop(idx)
        err = self._write(user_id, tasks)
        if err is not None:
            return err

        logger.info("Deleted task id=%s user=%s", task_id, user_id)
        return removed

    def import_tasks(
        self, user_id: str, raw_tasks: Sequence[Any]
    ) -> ImportSummary | InvalidTasks | StorageError:
        """
        Merge a batch of raw tasks into the user's collection.

        All-or-nothing: every element is validated (create rules) before the
        file is touched. Imported ids that already exist replace the stored
        record in place; the rest are added at the front in batch order.
        Within one batch a repeated id keeps its last occurrence.
        """
        validated: list[Task] = []
        failures: list[tuple[int, ValidationErrors]] = []
        for i, raw in enumerate(raw_tasks):
            result = validate_for_create(raw, clock=self._clock, new_id=self._new_id)
            if isinstance(result, ValidationErrors):
                failures.append((i, result))
            else:
                validated.append(result)

        if failures:
            logger.warning(
                "Rejected import user=%s: %d of %d tasks invalid",
                user_id,
                len(failures),
                len(failures) + len(validated),
            )
            return InvalidTasks(tuple(failures))

        incoming: dict[str, Task] = {}
        for task in validated:
            incoming[task.id] = task

        existing = self._load_for_write(user_id)
        if isinstance(existing, StorageError):
            return existing
        existing_ids = {t.id for t in existing}

        added = [t for tid, t in incoming.items() if tid not in existing_ids]
        kept = [incoming.get(t.id, t) for t in existing]
        summary = ImportSummary(added=len(added), replaced=len(incoming) - len(added))

        err = self._write(user_id, [*added, *kept])
        if err is not None:
            return err

        logger.info(
            "Imported %d tasks user=%s added=%d replaced=%d",
            summary.imported,
            user_id,
            summary.added,
            summary.replaced,
        )
        return summary

    def export_tasks(self, user_id: str) -> dict[str, list[dict[str, Any]]]:
        """Same shape as the user file: {"tasks": [...]}."""
        return {"tasks": [t.to_json() for t in self._load(user_id)]}


def _supplied_id(raw_attrs: Any) -> str | None:
    if not isinstance(raw_attrs, Mapping):
        return None
    value = raw_attrs.get("id")
    return value if isinstance(value, str) and value.strip() else None
