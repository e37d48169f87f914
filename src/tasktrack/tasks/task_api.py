# src/tasktrack/tasks/task_api.py

"""
Transport-neutral helpers for the outer layers (console today, HTTP routes
elsewhere): import payload parsing and JSON-ready renderings of results.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .task_errors import ImportSummary, InvalidTasks, ValidationErrors

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "tasks.json"


def parse_import_payload(payload: Any) -> list[Any] | None:
    """
    Accept {"tasks": [...]} or a bare [...].

    Returns None when nothing usable was supplied (the caller reports a bad
    request). Element-level validation is the store's job.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("tasks"), list):
        return payload["tasks"]
    return None


def load_import_file(path: str | Path) -> list[Any] | None:
    """Read an export/import file from disk; unreadable or non-JSON -> None."""
    p = Path(path).expanduser()
    try:
        data = json.loads(p.read_text("utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Import file %s is missing or not valid JSON", p, exc_info=True)
        return None
    return parse_import_payload(data)


def render_errors(errors: ValidationErrors) -> dict[str, Any]:
    return {"errors": errors.as_dict()}


def render_invalid_tasks(invalid: InvalidTasks) -> dict[str, Any]:
    return {
        "errors": [
            {"index": index, "errors": errors.as_dict()} for index, errors in invalid.failures
        ]
    }


def import_message(summary: ImportSummary) -> dict[str, Any]:
    return {
        "message": f"Successfully imported {summary.imported} tasks",
        "imported": summary.imported,
        "added": summary.added,
        "replaced": summary.replaced,
    }


def dump_export(document: dict[str, Any]) -> str:
    """Serialize an export document the way user files are written."""
    return json.dumps(document, ensure_ascii=False, indent=2) + "\n"
