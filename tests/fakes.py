# tests/fakes.py

from __future__ import annotations

import asyncio
import copy
import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from focuslist.core.ports import StoreRecord
from focuslist.storage.kv_store import StorageError
from focuslist.timer.timer_machine import TICK_TASK_NAME


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, seconds: float) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now


class InMemoryStore:
    """
    In-memory KeyValueStore used by unit tests.

    - values are JSON round-tripped, like the SQLite store does
    - every read/write yields to the event loop, so overlapping calls interleave
    - write_delays (popped per write) and fail_writes simulate slow or broken storage
    """

    def __init__(self, data: StoreRecord | None = None) -> None:
        self.data: StoreRecord = copy.deepcopy(data or {})
        self.writes: list[StoreRecord] = []
        self.write_delays: list[float] = []
        self.fail_writes = False
        self.fail_reads = False

    async def get(self, keys: Iterable[str]) -> StoreRecord:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise StorageError("read failed (fake)")
        return {k: copy.deepcopy(self.data[k]) for k in keys if k in self.data}

    async def set(self, record: StoreRecord) -> None:
        delay = self.write_delays.pop(0) if self.write_delays else 0.0
        await asyncio.sleep(delay)
        if self.fail_writes:
            raise StorageError("write failed (fake)")
        decoded = json.loads(json.dumps(record))
        self.data.update(decoded)
        self.writes.append(decoded)


@dataclass(slots=True)
class RecordingNotifier:
    calls: list[tuple[str, str]] = field(default_factory=list)

    def notify(self, title: str, message: str) -> None:
        self.calls.append((title, message))


@dataclass(slots=True)
class RecordingAudio:
    plays: int = 0

    def play(self) -> None:
        self.plays += 1


class BrokenNotifier:
    def notify(self, title: str, message: str) -> None:
        raise RuntimeError("notification service down")


class BrokenAudio:
    def play(self) -> None:
        raise OSError("no audio device")


def tick_tasks() -> list[asyncio.Task[Any]]:
    return [t for t in asyncio.all_tasks() if t.get_name() == TICK_TASK_NAME and not t.done()]
