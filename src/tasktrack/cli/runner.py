# src/tasktrack/cli/runner.py

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

from ..tasks.task_service import TaskService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceRunner:
    """
    Hosts the TaskService event loop in a background thread so a blocking
    console (input()) can stay in the main thread.
    """

    def __init__(self, service: TaskService) -> None:
        self._service = service
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="task-service-loop", daemon=True
        )

    @property
    def service(self) -> TaskService:
        return self._service

    def start(self) -> None:
        self._thread.start()
        self.call(self._service.start())
        logger.debug("Service loop thread started")

    def call(self, coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
        """Run a coroutine on the service loop and block for its result."""
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result(timeout)

    def stop(self, timeout: float = 10.0) -> None:
        if not self._thread.is_alive():
            return
        try:
            self.call(self._service.stop(), timeout=timeout)
        except Exception:
            logger.exception("TaskService stop failed")
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        if not self._thread.is_alive():
            self._loop.close()
