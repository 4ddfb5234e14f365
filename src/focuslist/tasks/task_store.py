# src/focuslist/tasks/task_store.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

from ..core.clock import SystemClock
from ..core.ports import Clock, KeyValueStore
from .task_models import Task, tasks_from_records, tasks_to_records

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"

T = TypeVar("T")


class TaskStore:
    """
    Task collection persisted under one key of a KeyValueStore.

    Every mutation is a full read-modify-write of the `tasks` value, executed
    while holding one asyncio.Lock. Overlapping calls (e.g. add + toggle fired
    back to back) are therefore serialized: the second one always reads the
    first one's write.

    Storage errors (StorageError) propagate to the caller; nothing is retried here.
    """

    def __init__(self, kv: KeyValueStore, *, clock: Clock | None = None) -> None:
        self._kv = kv
        self._clock = clock or SystemClock()
        self._write_lock = asyncio.Lock()

    # ---- low-level helpers ----

    async def _read(self) -> list[Task]:
        data = await self._kv.get([TASKS_KEY])
        return tasks_from_records(data.get(TASKS_KEY))

    async def _write(self, tasks: list[Task]) -> None:
        await self._kv.set({TASKS_KEY: tasks_to_records(tasks)})

    async def _mutate(self, fn: Callable[[list[Task]], tuple[bool, T]]) -> T:
        """
        Run fn(tasks) under the write lock.

        fn edits the list in place and returns (changed, result);
        the list is written back only when changed is True.
        """
        async with self._write_lock:
            tasks = await self._read()
            changed, result = fn(tasks)
            if changed:
                await self._write(tasks)
            return result

    def _next_id(self, tasks: list[Task]) -> int:
        candidate = int(self._clock.now().timestamp() * 1000)
        if tasks:
            candidate = max(candidate, max(t.id for t in tasks) + 1)
        return candidate

    @staticmethod
    def _find(tasks: list[Task], task_id: int) -> Task | None:
        for t in tasks:
            if t.id == task_id:
                return t
        return None

    # ---- public API ----

    async def list_tasks(self) -> list[Task]:
        async with self._write_lock:
            return await self._read()

    async def add_task(self, text: str, *, due_date: datetime | None = None) -> Task:
        clean = (text or "").strip()
        if not clean:
            raise ValueError("text is required")

        def apply(tasks: list[Task]) -> tuple[bool, Task]:
            task = Task(
                id=self._next_id(tasks),
                text=clean,
                created_at=self._clock.now(),
                due_date=due_date,
            )
            # Position is irrelevant: display order is recomputed on every read.
            tasks.insert(0, task)
            return True, task

        task = await self._mutate(apply)
        logger.info("Task added id=%s due=%s", task.id, task.due_date)
        return task

    async def toggle_task(self, task_id: int) -> Task | None:
        def apply(tasks: list[Task]) -> tuple[bool, Task | None]:
            task = self._find(tasks, task_id)
            if task is None:
                return False, None
            task.completed = not task.completed
            return True, task

        task = await self._mutate(apply)
        if task is not None:
            logger.info("Task %s -> completed=%s", task_id, task.completed)
        return task

    async def update_text(self, task_id: int, text: str) -> Task | None:
        """Set new text. Blank text is rejected silently: nothing is written, None is returned."""
        clean = (text or "").strip()
        if not clean:
            logger.debug("Ignoring blank text edit for task %s", task_id)
            return None

        def apply(tasks: list[Task]) -> tuple[bool, Task | None]:
            task = self._find(tasks, task_id)
            if task is None:
                return False, None
            task.text = clean
            return True, task

        return await self._mutate(apply)

    async def set_due_date(self, task_id: int, due_date: datetime | None) -> Task | None:
        def apply(tasks: list[Task]) -> tuple[bool, Task | None]:
            task = self._find(tasks, task_id)
            if task is None:
                return False, None
            task.due_date = due_date
            return True, task

        task = await self._mutate(apply)
        if task is not None:
            logger.info("Task %s due date -> %s", task_id, due_date)
        return task

    async def delete_task(self, task_id: int) -> bool:
        def apply(tasks: list[Task]) -> tuple[bool, bool]:
            before = len(tasks)
            tasks[:] = [t for t in tasks if t.id != task_id]
            removed = len(tasks) != before
            return removed, removed

        removed = await self._mutate(apply)
        if removed:
            logger.info("Task %s deleted", task_id)
        return removed

    async def clear_completed(self) -> int:
        def apply(tasks: list[Task]) -> tuple[bool, int]:
            before = len(tasks)
            tasks[:] = [t for t in tasks if not t.completed]
            removed = before - len(tasks)
            return removed > 0, removed

        removed = await self._mutate(apply)
        logger.info("Cleared %d completed task(s)", removed)
        return removed
