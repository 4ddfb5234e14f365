# src/focuslist/tasks/task_models.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DueClass(StrEnum):
    """
    Urgency class of an active task, in display order.

    The order of members is the sort precedence used by the task orderer.
    """

    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    UPCOMING = "upcoming"
    NO_DATE = "no_date"

    @property
    def rank(self) -> int:
        return _DUE_CLASS_RANK[self]


_DUE_CLASS_RANK = {cls: i for i, cls in enumerate(DueClass)}


def parse_instant(raw: Any) -> datetime | None:
    """Parse a stored ISO-8601 instant. Anything unparsable is None."""
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return datetime.fromisoformat(raw.strip())
    except ValueError:
        return None


def format_instant(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(slots=True)
class Task:
    id: int
    text: str
    created_at: datetime
    completed: bool = False
    due_date: datetime | None = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "createdAt": format_instant(self.created_at),
            "dueDate": format_instant(self.due_date),
        }

    @classmethod
    def from_record(cls, raw: Any) -> Task | None:
        """
        Build a Task from a stored record.

        Tolerant by design of the stored format:
        - records without a usable id or text are dropped (None)
        - an unparsable dueDate means "no due date"
        - an unparsable createdAt falls back to the epoch
        - a non-boolean completed flag means "not completed"
        """
        if not isinstance(raw, dict):
            return None
        try:
            task_id = int(raw["id"])
        except (KeyError, TypeError, ValueError):
            return None
        text = raw.get("text")
        if not isinstance(text, str) or not text.strip():
            return None

        created_at = parse_instant(raw.get("createdAt")) or EPOCH
        return cls(
            id=task_id,
            text=text.strip(),
            created_at=created_at,
            # Only a real boolean counts.
            completed=raw.get("completed") is True,
            due_date=parse_instant(raw.get("dueDate")),
        )


def tasks_from_records(raw: Any) -> list[Task]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Stored tasks value is not a list (%s); treating as empty.", type(raw).__name__)
        return []
    out: list[Task] = []
    for item in raw:
        task = Task.from_record(item)
        if task is None:
            logger.warning("Skipping malformed task record: %r", item)
            continue
        out.append(task)
    return out


def tasks_to_records(tasks: list[Task]) -> list[dict[str, Any]]:
    return [t.to_record() for t in tasks]
