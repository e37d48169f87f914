# src/tasktrack/cli/commands.py

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Awaitable, Callable
from pathlib import Path

from ..core.state import AppState
from ..tasks.task_api import EXPORT_FILENAME, dump_export, import_message, load_import_file
from ..tasks.task_errors import (
    ImportSummary,
    InvalidTasks,
    NotFound,
    StorageError,
    ValidationErrors,
)
from ..tasks.task_models import Task

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /list, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as exc:
            return f"Could not parse command: {exc}."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def format_task(task: Task) -> str:
    line = f"[{task.id}] {task.title} ({task.priority.value}, {task.status.value})"
    if task.due_date:
        line += f" due {task.due_date}"
    return line


def format_task_detail(task: Task) -> str:
    return "\n".join(
        [
            f"Task {task.id}",
            f"  title:       {task.title}",
            f"  description: {task.description or '-'}",
            f"  priority:    {task.priority.value}",
            f"  status:      {task.status.value}",
            f"  due:         {task.due_date or '-'}",
            f"  created:     {task.created_at}",
            f"  updated:     {task.updated_at}",
        ]
    )


def format_errors(errors: ValidationErrors) -> str:
    parts = [f"{name} {', '.join(msgs)}" for name, msgs in errors.as_dict().items()]
    return "Invalid task: " + "; ".join(parts) + "."


def _failure_text(result: object) -> str:
    if isinstance(result, NotFound):
        return f"Task not found: {result.task_id}."
    if isinstance(result, ValidationErrors):
        return format_errors(result)
    if isinstance(result, StorageError):
        return f"Could not save tasks ({result.reason})."
    return f"Unexpected result: {result!r}"


def parse_fields(args: list[str]) -> tuple[dict[str, str], list[str]]:
    """Split key=value tokens; returns (fields, tokens that are not key=value)."""
    fields: dict[str, str] = {}
    bad: list[str] = []
    for token in args:
        key, sep, value = token.partition("=")
        if not sep or not key:
            bad.append(token)
            continue
        fields[key] = value
    return fields, bad


# ---- commands ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_user(state: AppState, args: list[str]) -> str:
    """
    /user       -> show current user id
    /user <id>  -> switch to another user's task file
    """
    if args:
        state.user_id = args[0]
        logger.debug("Switched console user to %s", state.user_id)
        return f"Now acting as user {state.user_id}."
    return f"Current user: {state.user_id}"


async def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = await state.service.list_tasks(state.user_id)
    if not tasks:
        return "No tasks yet. Add one with /add title=... priority=... status=..."
    lines = [f"Tasks for {state.user_id} ({len(tasks)}):"]
    lines.extend(f"{i}. {format_task(t)}" for i, t in enumerate(tasks, start=1))
    return "\n".join(lines)


async def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    result = await state.service.get_task(state.user_id, args[0])
    if isinstance(result, Task):
        return format_task_detail(result)
    return _failure_text(result)


async def cmd_add(state: AppState, args: list[str]) -> str:
    fields, bad = parse_fields(args)
    if bad:
        return f"Expected key=value arguments, got: {' '.join(bad)}"
    result = await state.service.create_task(state.user_id, fields)
    if isinstance(result, Task):
        return f"Created {format_task(result)}"
    return _failure_text(result)


async def cmd_edit(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /edit <id> key=value ..."
    fields, bad = parse_fields(args[1:])
    if bad:
        return f"Expected key=value arguments, got: {' '.join(bad)}"
    result = await state.service.update_task(state.user_id, args[0], fields)
    if isinstance(result, Task):
        return f"Updated {format_task(result)}"
    return _failure_text(result)


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <id>"
    result = await state.service.delete_task(state.user_id, args[0])
    if isinstance(result, Task):
        return f"Deleted {format_task(result)}"
    return _failure_text(result)


async def cmd_export(state: AppState, args: list[str]) -> str:
    """
    /export         -> print the export document
    /export <path>  -> write it to a file (a directory gets tasks.json inside it)
    """
    text = dump_export(await state.service.export_tasks(state.user_id))
    if not args:
        return text.rstrip("\n")

    path = Path(args[0]).expanduser()
    if path.is_dir():
        path = path / EXPORT_FILENAME
    try:
        await asyncio.to_thread(path.write_text, text, "utf-8")
    except OSError as exc:
        logger.error("Export to %s failed: %s", path, exc)
        return f"Could not write {path} ({exc})."
    return f"Exported tasks to {path}."


async def cmd_import(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /import <path>"
    raw_tasks = await asyncio.to_thread(load_import_file, args[0])
    if raw_tasks is None:
        return f'No tasks found in {args[0]} (expected {{"tasks": [...]}} or a JSON array).'

    result = await state.service.import_tasks(state.user_id, raw_tasks)
    if isinstance(result, ImportSummary):
        msg = import_message(result)
        return f"{msg['message']} (added {msg['added']}, replaced {msg['replaced']})."
    if isinstance(result, InvalidTasks):
        lines = [f"Import rejected: {result.count} invalid task(s), nothing was saved."]
        for index, errors in result.failures:
            lines.append(f"  #{index}: {format_errors(errors)}")
        return "\n".join(lines)
    return _failure_text(result)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("user", cmd_user, help_text="Show or switch the current user: /user [id].")
registry.register("list", cmd_list, help_text="List tasks (newest first).", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register(
    "add",
    cmd_add,
    help_text='Create a task: /add title="..." priority=low|medium|high '
    "status=pending|in_progress|completed [description=...] [dueDate=YYYY-MM-DD].",
)
registry.register("edit", cmd_edit, help_text="Update fields: /edit <id> key=value ...")
registry.register("del", cmd_delete, help_text="Delete a task: /del <id>.", aliases=["rm"])
registry.register("export", cmd_export, help_text="Export tasks as JSON: /export [path].")
registry.register("import", cmd_import, help_text="Merge tasks from a JSON file: /import <path>.")
