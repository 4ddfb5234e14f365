# src/focuslist/tasks/task_api.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .task_models import Task
from .task_order import due_date_preset, filter_tasks, order_tasks
from .task_store import TaskStore

# Quick-pick due dates offered next to each task.
DUE_PRESETS: dict[str, int] = {
    "today": 0,
    "tomorrow": 1,
    "week": 7,
}


@dataclass(slots=True, frozen=True)
class TaskBoard:
    """Everything a renderer needs to draw both task lists."""

    active: list[Task]
    completed: list[Task]
    now: datetime
    term: str = ""

    @property
    def active_count(self) -> int:
        return len(self.active)

    @property
    def completed_count(self) -> int:
        return len(self.completed)


async def load_board(store: TaskStore, now: datetime, term: str = "") -> TaskBoard:
    """
    Read the collection and build the ordered board.

    A non-blank search term filters by text before ordering.
    """
    tasks = await store.list_tasks()
    matching = filter_tasks(tasks, term)
    active, completed = order_tasks(matching, now)
    return TaskBoard(active=active, completed=completed, now=now, term=(term or "").strip())


def resolve_due_preset(name: str, now: datetime) -> datetime | None:
    """
    Map a preset name to a due date.

    Returns None for "clear"; raises KeyError for unknown names.
    """
    key = (name or "").strip().lower()
    if key in ("clear", "none"):
        return None
    return due_date_preset(DUE_PRESETS[key], now)


async def add_task_due_today(store: TaskStore, text: str, now: datetime) -> Task:
    """New tasks default to being due today."""
    return await store.add_task(text, due_date=due_date_preset(0, now))
