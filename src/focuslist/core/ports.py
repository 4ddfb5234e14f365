# src/focuslist/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task and timer logic depend on Protocols instead of concrete implementations.
This keeps the clock/storage/alert backends swappable and makes testing easier.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Protocol

StoreRecord = dict[str, Any]
# JSON-compatible values keyed by store key: {"tasks": [...], "timeLeft": 1500, ...}.


class Clock(Protocol):
    """Wall-clock source. Returned datetimes should be timezone-aware."""

    def now(self) -> datetime: ...


class KeyValueStore(Protocol):
    """
    Async key-value persistence.

    - get(keys) returns only the keys that exist
    - set(record) overwrites each given key with the full new value
    Read-after-write is consistent within one process.
    """

    async def get(self, keys: Iterable[str]) -> StoreRecord: ...

    async def set(self, record: StoreRecord) -> None: ...


class Notifier(Protocol):
    """Fire-and-forget user notification (failures are ignored by callers)."""

    def notify(self, title: str, message: str) -> None: ...


class AudioCue(Protocol):
    """Fire-and-forget audible cue (failures are ignored by callers)."""

    def play(self) -> None: ...
