# src/focuslist/tasks/task_order.py

from __future__ import annotations

"""
Task ordering.

Pure functions used by whatever draws the task lists:
- order_tasks splits the collection into (active, completed) display order
- classify_due / due_label describe a due date relative to "today"
- due_date_preset / filter_tasks back the quick-date buttons and the search box

"Today" is always the calendar day of the `now` argument, in `now`'s timezone.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta
from typing import Any

from .task_models import DueClass, Task


def _day_of(value: datetime, now: datetime) -> date:
    """
    Calendar day of a due date.

    Naive values are wall-clock days and are used as-is. Aware values (older
    records) are read in `now`'s timezone.
    """
    if value.tzinfo is None:
        return value.date()
    if now.tzinfo is None:
        return value.astimezone().date()
    return value.astimezone(now.tzinfo).date()


def _due_day(due: Any, now: datetime) -> date | None:
    # Anything that is not a real datetime counts as "no due date".
    if not isinstance(due, datetime):
        return None
    try:
        return _day_of(due, now)
    except (OverflowError, ValueError, OSError):
        return None


def _created_ts(task: Task) -> float:
    try:
        return task.created_at.timestamp()
    except (AttributeError, OverflowError, ValueError, OSError):
        return 0.0


def _classify_day(due: date | None, now: datetime) -> DueClass:
    if due is None:
        return DueClass.NO_DATE
    today = now.date()
    if due < today:
        return DueClass.OVERDUE
    if due == today:
        return DueClass.DUE_TODAY
    return DueClass.UPCOMING


def classify_due(due_date: datetime | None, now: datetime) -> DueClass:
    return _classify_day(_due_day(due_date, now), now)


def _active_sort_key(task: Task, now: datetime) -> tuple[int, float]:
    due = _due_day(task.due_date, now)
    cls = _classify_day(due, now)
    if due is not None and cls is not DueClass.DUE_TODAY:
        # Earliest due day first (longest overdue / soonest upcoming).
        return cls.rank, float(due.toordinal())
    # Due today / no date: most recently created first.
    return cls.rank, -_created_ts(task)


def order_tasks(tasks: Iterable[Task], now: datetime) -> tuple[list[Task], list[Task]]:
    """
    Return (active, completed) in display order.

    Active tasks: overdue < due today < upcoming < no date, each class with its
    own tie-break. Completed tasks: newest created first, due date ignored.
    Both sorts are stable, so exact ties keep their input order.
    """
    active: list[Task] = []
    completed: list[Task] = []
    for task in tasks:
        (completed if task.completed else active).append(task)

    active.sort(key=lambda t: _active_sort_key(t, now))
    completed.sort(key=_created_ts, reverse=True)
    return active, completed


def due_label(due_date: datetime | None, now: datetime) -> str:
    """Short human label: 'Today', 'Tomorrow', 'Oct 19' or 'Set date'."""
    due = _due_day(due_date, now)
    if due is None:
        return "Set date"
    today = now.date()
    if due == today:
        return "Today"
    if due == today + timedelta(days=1):
        return "Tomorrow"
    return f"{due.strftime('%b')} {due.day}"


def due_date_preset(days_from_now: int, now: datetime) -> datetime:
    """
    Local midnight `days_from_now` calendar days after today.

    The result is naive: a due date names a calendar day, not an instant.
    """
    day = now.date() + timedelta(days=int(days_from_now))
    return datetime.combine(day, time.min)


def filter_tasks(tasks: Sequence[Task], term: str) -> list[Task]:
    """Case-insensitive substring search over task text. Blank term keeps all."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(tasks)
    return [t for t in tasks if needle in t.text.lower()]
