# tests/test_task_service.py

from __future__ import annotations

import asyncio

import pytest

from tasktrack.tasks.task_errors import ImportSummary, NotFound, ValidationErrors
from tasktrack.tasks.task_models import Task
from tasktrack.tasks.task_service import TaskService
from tasktrack.tasks.task_store import TaskStore

from .fakes import SlowRepo


def _attrs(title: str) -> dict:
    return {"title": title, "priority": "high", "status": "pending"}


@pytest.mark.asyncio
async def test_calls_before_start_raise(store: TaskStore) -> None:
    service = TaskService(store)

    with pytest.raises(RuntimeError):
        await service.list_tasks("u1")


@pytest.mark.asyncio
async def test_crud_round_trip_through_service(store: TaskStore) -> None:
    async with TaskService(store) as service:
        created = await service.create_task("u1", _attrs("Buy milk"))
        assert isinstance(created, Task)

        assert await service.get_task("u1", created.id) == created
        assert await service.list_tasks("u1") == [created]

        updated = await service.update_task("u1", created.id, {"status": "completed"})
        assert isinstance(updated, Task)
        assert updated.status.value == "completed"

        invalid = await service.create_task("u1", {})
        assert isinstance(invalid, ValidationErrors)

        assert await service.delete_task("u1", created.id) == updated
        assert await service.delete_task("u1", created.id) == NotFound(created.id)
        assert await service.list_tasks("u1") == []

    assert not service.running


@pytest.mark.asyncio
async def test_concurrent_creates_lose_no_writes(store: TaskStore) -> None:
    n = 25
    async with TaskService(store) as service:
        results = await asyncio.gather(
            *(service.create_task("u1", _attrs(f"task {i}")) for i in range(n))
        )
        listed = await service.list_tasks("u1")

    assert all(isinstance(r, Task) for r in results)
    assert len({r.id for r in results}) == n
    assert len(listed) == n
    assert {t.id for t in listed} == {r.id for r in results}


@pytest.mark.asyncio
async def test_requests_never_overlap_and_run_in_order() -> None:
    repo = SlowRepo(delay=0.005)

    async with TaskService(repo) as service:
        await asyncio.gather(
            service.create_task("a", {"title": "1"}),
            service.list_tasks("b"),
            service.update_task("a", "x", {}),
            service.delete_task("b", "y"),
            service.get_task("a", "z"),
            service.import_tasks("b", [{}]),
            service.export_tasks("a"),
        )

    assert repo.max_active == 1
    assert repo.calls == [
        ("create_task", "a"),
        ("list_tasks", "b"),
        ("update_task", "a"),
        ("delete_task", "b"),
        ("get_task", "a"),
        ("import_tasks", "b"),
        ("export_tasks", "a"),
    ]


@pytest.mark.asyncio
async def test_unexpected_error_reaches_caller_and_worker_survives() -> None:
    repo = SlowRepo(delay=0)
    repo.fail_next = True

    async with TaskService(repo) as service:
        with pytest.raises(RuntimeError, match="boom"):
            await service.list_tasks("u1")

        assert await service.list_tasks("u1") == []


@pytest.mark.asyncio
async def test_stop_drains_queued_requests() -> None:
    repo = SlowRepo(delay=0.005)
    service = TaskService(repo)
    await service.start()

    pending = [asyncio.create_task(service.import_tasks("u1", [{}] * i)) for i in range(1, 5)]
    await asyncio.sleep(0)  # let every request reach the queue
    await service.stop()

    results = await asyncio.gather(*pending)
    assert results == [ImportSummary(added=i, replaced=0) for i in range(1, 5)]

    with pytest.raises(RuntimeError):
        await service.export_tasks("u1")


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_stop_the_queue() -> None:
    repo = SlowRepo(delay=0.02)

    async with TaskService(repo) as service:
        first = asyncio.create_task(service.list_tasks("u1"))
        second = asyncio.create_task(service.list_tasks("u2"))
        await asyncio.sleep(0)
        second.cancel()

        assert await first == []
        with pytest.raises(asyncio.CancelledError):
            await second

        assert await service.export_tasks("u3") == {"tasks": []}

    assert ("list_tasks", "u2") not in repo.calls


@pytest.mark.asyncio
async def test_import_and_export_through_service(store: TaskStore) -> None:
    async with TaskService(store, queue_size=2) as service:
        summary = await service.import_tasks(
            "u1", [_attrs("one") | {"id": "A"}, _attrs("two") | {"id": "B"}]
        )
        assert summary == ImportSummary(added=2, replaced=0)

        again = await service.import_tasks("u1", [_attrs("one again") | {"id": "A"}])
        assert again == ImportSummary(added=0, replaced=1)

        doc = await service.export_tasks("u1")

    assert [t["id"] for t in doc["tasks"]] == ["A", "B"]
    assert doc["tasks"][0]["title"] == "one again"
