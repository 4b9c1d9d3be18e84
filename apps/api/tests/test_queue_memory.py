"""
Tests for the in-memory queue backend.
"""

import pytest

from gatekeeper.core.interfaces.queue import TaskOptions, TaskStatus
from gatekeeper.implementations.queue.memory import MemoryQueueBackend


@pytest.mark.asyncio
async def test_executes_immediately():
    queue = MemoryQueueBackend()

    @queue.register("add")
    async def add(a, b):
        return a + b

    task_id = await queue.enqueue("add", args=(2, 3))

    assert await queue.get_status(task_id) == TaskStatus.SUCCESS
    assert queue.tasks()[0].result == 5


@pytest.mark.asyncio
async def test_deferred_tasks_run_on_drain():
    queue = MemoryQueueBackend(execute_immediately=False)
    seen = []

    @queue.register("collect")
    def collect(value):
        seen.append(value)

    await queue.enqueue("collect", kwargs={"value": 1}, options=TaskOptions(queue="audit"))
    await queue.enqueue("collect", kwargs={"value": 2})

    assert seen == []
    assert await queue.queue_length("audit") == 1

    assert await queue.drain("audit") == 1
    assert seen == [1]
    assert await queue.drain() == 1
    assert seen == [1, 2]


@pytest.mark.asyncio
async def test_failures_are_recorded():
    queue = MemoryQueueBackend()

    @queue.register("boom")
    async def boom():
        raise RuntimeError("nope")

    failed = await queue.enqueue("boom")
    unknown = await queue.enqueue("missing")

    assert await queue.get_status(failed) == TaskStatus.FAILURE
    assert queue.tasks()[0].error == "nope"
    assert await queue.get_status(unknown) == TaskStatus.FAILURE


@pytest.mark.asyncio
async def test_clear():
    queue = MemoryQueueBackend(execute_immediately=False)
    await queue.enqueue("anything")

    queue.clear()

    assert queue.tasks() == []
    assert await queue.queue_length() == 0
