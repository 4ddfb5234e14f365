# src/focuslist/timer/timer_models.py

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, StrEnum
from typing import Any

from ..config import MAX_TIMER_SECONDS
from ..tasks.task_models import format_instant, parse_instant

logger = logging.getLogger(__name__)

DEFAULT_WORK_SECONDS = 25 * 60
DEFAULT_BREAK_SECONDS = 5 * 60

# Persisted keys (one row each in the key-value store).
KEY_TIME_LEFT = "timeLeft"
KEY_IS_WORK_MODE = "isWorkMode"
KEY_IS_RUNNING = "isRunning"
KEY_START_TIME = "startTime"
KEY_TOTAL_TIME = "totalTime"

SNAPSHOT_KEYS = (KEY_TIME_LEFT, KEY_IS_WORK_MODE, KEY_IS_RUNNING, KEY_START_TIME, KEY_TOTAL_TIME)

_MANUAL_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{1,2})\s*$")


class TimerMode(StrEnum):
    WORK = "work"
    BREAK = "break"

    def other(self) -> TimerMode:
        return TimerMode.BREAK if self is TimerMode.WORK else TimerMode.WORK


class TimerPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


@dataclass(slots=True, frozen=True)
class TimerDurations:
    work_seconds: int = DEFAULT_WORK_SECONDS
    break_seconds: int = DEFAULT_BREAK_SECONDS

    def for_mode(self, mode: TimerMode) -> int:
        return self.work_seconds if mode is TimerMode.WORK else self.break_seconds


@dataclass(slots=True, frozen=True)
class TimerSnapshot:
    """
    Persisted timer state.

    start_timestamp is the instant at which remaining_seconds was measured;
    it only means something while running is True.
    total_time is the remaining value when the current run started (informational).
    """

    mode: TimerMode
    remaining_seconds: int
    running: bool
    start_timestamp: datetime | None
    total_time: int

    def to_record(self) -> dict[str, Any]:
        return {
            KEY_TIME_LEFT: int(self.remaining_seconds),
            KEY_IS_WORK_MODE: self.mode is TimerMode.WORK,
            KEY_IS_RUNNING: bool(self.running),
            KEY_START_TIME: format_instant(self.start_timestamp) if self.running else None,
            KEY_TOTAL_TIME: int(self.total_time),
        }

    @classmethod
    def from_record(cls, raw: Any) -> TimerSnapshot | None:
        """
        Rebuild a snapshot from stored keys.

        Returns None when nothing was stored or when the record is partial or
        malformed (e.g. the process died between writes of an older format).
        """
        if not isinstance(raw, dict) or not raw:
            return None

        time_left = raw.get(KEY_TIME_LEFT)
        is_work = raw.get(KEY_IS_WORK_MODE)
        is_running = raw.get(KEY_IS_RUNNING)
        # bool is an int subclass; a boolean timeLeft is not a duration.
        if not isinstance(time_left, int) or isinstance(time_left, bool):
            logger.warning("Timer snapshot has invalid %s=%r; ignoring snapshot.", KEY_TIME_LEFT, time_left)
            return None
        if not isinstance(is_work, bool) or not isinstance(is_running, bool):
            logger.warning("Timer snapshot is missing mode/running flags; ignoring snapshot.")
            return None

        start = parse_instant(raw.get(KEY_START_TIME))
        if is_running and start is None:
            logger.warning("Running timer snapshot has no usable %s; ignoring snapshot.", KEY_START_TIME)
            return None

        total_raw = raw.get(KEY_TOTAL_TIME, time_left)
        total = total_raw if isinstance(total_raw, int) and not isinstance(total_raw, bool) else time_left

        return cls(
            mode=TimerMode.WORK if is_work else TimerMode.BREAK,
            remaining_seconds=max(0, min(MAX_TIMER_SECONDS, time_left)),
            running=is_running,
            start_timestamp=start if is_running else None,
            total_time=max(0, total),
        )


@dataclass(slots=True, frozen=True)
class TimerView:
    """What a renderer shows on every tick."""

    mode: TimerMode
    phase: TimerPhase
    remaining_seconds: int

    @property
    def running(self) -> bool:
        return self.phase is TimerPhase.RUNNING

    @property
    def text(self) -> str:
        return format_mmss(self.remaining_seconds)


def format_mmss(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def parse_mmss(text: str) -> int | None:
    """
    Parse manual timer input 'M:SS' / 'MM:SS'.

    Minutes must be 0..99 and seconds 0..59; anything else is None.
    """
    m = _MANUAL_TIME_RE.match(text or "")
    if not m:
        return None
    minutes, seconds = int(m.group(1)), int(m.group(2))
    if not (0 <= minutes <= 99 and 0 <= seconds < 60):
        return None
    return minutes * 60 + seconds
