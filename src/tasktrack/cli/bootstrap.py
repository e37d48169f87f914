# src/tasktrack/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the store behind the service and puts the service into AppState,
- picks the console session's user id.
"""

from __future__ import annotations

import logging
import uuid

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(settings.tasks_dir)
    service = TaskService(store, queue_size=getattr(settings, "queue_size", 0))

    # No session layer here: use the configured id, else a fresh one per run.
    user_id = getattr(settings, "default_user_id", None) or str(uuid.uuid4())
    logger.info("Console user_id=%s tasks=%d", user_id, store.count_tasks(user_id))

    return AppState(
        settings=settings,
        service=service,
        user_id=user_id,
    )
