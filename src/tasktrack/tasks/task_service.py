# src/tasktrack/tasks/task_service.py

from __future__ import annotations

"""
Task service.

The single entry point for task operations. One asyncio worker drains a FIFO
queue and runs each request (load -> mutate -> persist) to completion before
picking up the next one, whatever user it targets. Reads use the same queue,
so they never observe a half-applied mutation.

Blocking file I/O runs in a thread (asyncio.to_thread) but the worker awaits
it, so at most one store call is in flight per service instance.

To stop the worker, call stop() (queued requests are drained first) or use
the service as an async context manager.
"""

import asyncio
import functools
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..core.ports import TaskRepo
from .task_errors import (
    ImportSummary,
    InvalidTasks,
    NotFound,
    StorageError,
    ValidationErrors,
)
from .task_models import Task

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Request:
    name: str
    call: Callable[[], Any]
    future: asyncio.Future[Any]


class TaskService:
    def __init__(self, repo: TaskRepo, *, queue_size: int = 0) -> None:
        self._repo = repo
        self._queue_size = max(0, int(queue_size))
        self._queue: asyncio.Queue[_Request | None] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._closing = False

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done() and not self._closing

    async def start(self) -> None:
        if self.running:
            return
        self._closing = False
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._worker = asyncio.create_task(self._run(self._queue), name="task-service-worker")
        logger.info("TaskService started (queue_size=%s)", self._queue_size or "unbounded")

    async def stop(self) -> None:
        worker, queue = self._worker, self._queue
        if worker is None or queue is None:
            return

        self._closing = True
        if not worker.done():
            await queue.put(None)
            await worker

        # Anything that slipped in behind the stop marker gets a definite outcome.
        while not queue.empty():
            req = queue.get_nowait()
            if req is not None and not req.future.done():
                req.future.set_exception(RuntimeError("TaskService stopped"))

        self._worker = None
        self._queue = None
        logger.info("TaskService stopped")

    async def __aenter__(self) -> TaskService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _run(self, queue: asyncio.Queue[_Request | None]) -> None:
        while True:
            req = await queue.get()
            try:
                if req is None:
                    return

                if req.future.cancelled():
                    logger.debug("Skipping cancelled request %s", req.name)
                    continue

                try:
                    result = await asyncio.to_thread(req.call)
                except asyncio.CancelledError:
                    req.future.cancel()
                    raise
                except Exception as exc:
                    logger.exception("Task operation %s failed", req.name)
                    if not req.future.done():
                        req.future.set_exception(exc)
                else:
                    if not req.future.done():
                        req.future.set_result(result)
            finally:
                queue.task_done()

    async def _submit(self, name: str, fn: Callable[..., Any], *args: Any) -> Any:
        if not self.running or self._queue is None:
            raise RuntimeError("TaskService is not running")

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        await self._queue.put(_Request(name, functools.partial(fn, *args), future))
        logger.debug("Queued %s", name)
        return await future

    # ---- public API ----

    async def list_tasks(self, user_id: str) -> list[Task]:
        return await self._submit("list_tasks", self._repo.list_tasks, user_id)

    async def get_task(self, user_id: str, task_id: str) -> Task | NotFound:
        return await self._submit("get_task", self._repo.get_task, user_id, task_id)

    async def create_task(
        self, user_id: str, raw_attrs: Mapping[str, Any]
    ) -> Task | ValidationErrors | StorageError:
        return await self._submit("create_task", self._repo.create_task, user_id, raw_attrs)

    async def update_task(
        self, user_id: str, task_id: str, raw_attrs: Mapping[str, Any]
    ) -> Task | NotFound | ValidationErrors | StorageError:
        return await self._submit(
            "update_task", self._repo.update_task, user_id, task_id, raw_attrs
        )

    async def delete_task(self, user_id: str, task_id: str) -> Task | NotFound | StorageError:
        return await self._submit("delete_task", self._repo.delete_task, user_id, task_id)

    async def import_tasks(
        self, user_id: str, raw_tasks: Sequence[Any]
    ) -> ImportSummary | InvalidTasks | StorageError:
        return await self._submit("import_tasks", self._repo.import_tasks, user_id, raw_tasks)

    async def export_tasks(self, user_id: str) -> dict[str, list[dict[str, Any]]]:
        return await self._submit("export_tasks", self._repo.export_tasks, user_id)
