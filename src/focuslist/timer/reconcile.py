# src/focuslist/timer/reconcile.py

from __future__ import annotations

"""
Timer restore after a restart.

reconcile() is pure: given the last persisted snapshot and the current wall
clock it decides what the timer should look like now. restore_timer() does the
I/O around it: load the snapshot, build the machine, resume the tick if the
countdown is still live and write the reconciled state back.

An interval that ran out while the process was gone is not replayed: the timer
comes back idle with the same mode's full duration, and no alert is sent.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from ..core.clock import SystemClock
from ..core.ports import AudioCue, Clock, KeyValueStore, Notifier
from ..storage.kv_store import StorageError
from .timer_machine import TimerStateMachine
from .timer_models import (
    SNAPSHOT_KEYS,
    TimerDurations,
    TimerMode,
    TimerPhase,
    TimerSnapshot,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TimerInit:
    """Initial timer state produced by reconcile()."""

    mode: TimerMode
    phase: TimerPhase
    remaining_seconds: int
    total_time: int
    start_timestamp: datetime | None = None
    expired_while_away: bool = False


def _elapsed_whole_seconds(now: datetime, start: datetime) -> int:
    # Mixed naive/aware values: read the naive one in the other's timezone.
    if (now.tzinfo is None) != (start.tzinfo is None):
        if start.tzinfo is None:
            start = start.replace(tzinfo=now.tzinfo)
        else:
            now = now.replace(tzinfo=start.tzinfo)
    elapsed = math.floor((now - start).total_seconds())
    # A clock that moved backwards does not add time.
    return max(0, elapsed)


def reconcile(
    snapshot: TimerSnapshot | None,
    now: datetime,
    *,
    durations: TimerDurations | None = None,
) -> TimerInit:
    durations = durations or TimerDurations()

    if snapshot is None:
        default = durations.for_mode(TimerMode.WORK)
        return TimerInit(
            mode=TimerMode.WORK,
            phase=TimerPhase.IDLE,
            remaining_seconds=default,
            total_time=default,
        )

    mode = snapshot.mode
    default = durations.for_mode(mode)

    if not snapshot.running or snapshot.start_timestamp is None:
        # At rest: show the stored value; the user presses start to continue.
        phase = TimerPhase.IDLE if snapshot.remaining_seconds == default else TimerPhase.PAUSED
        return TimerInit(
            mode=mode,
            phase=phase,
            remaining_seconds=snapshot.remaining_seconds,
            total_time=snapshot.total_time,
        )

    elapsed = _elapsed_whole_seconds(now, snapshot.start_timestamp)
    adjusted = max(0, snapshot.remaining_seconds - elapsed)

    if adjusted > 0:
        return TimerInit(
            mode=mode,
            phase=TimerPhase.RUNNING,
            remaining_seconds=adjusted,
            total_time=snapshot.total_time,
            # Re-anchored: the elapsed time is already folded into `adjusted`.
            start_timestamp=now,
        )

    return TimerInit(
        mode=mode,
        phase=TimerPhase.IDLE,
        remaining_seconds=default,
        total_time=default,
        expired_while_away=True,
    )


async def load_snapshot(store: KeyValueStore) -> TimerSnapshot | None:
    data = await store.get(SNAPSHOT_KEYS)
    return TimerSnapshot.from_record(data)


async def restore_timer(
    store: KeyValueStore,
    *,
    clock: Clock | None = None,
    durations: TimerDurations | None = None,
    tick_seconds: float = 1.0,
    persist_every_ticks: int = 1,
    notifier: Notifier | None = None,
    audio: AudioCue | None = None,
) -> TimerStateMachine:
    """
    Build the startup TimerStateMachine from whatever was persisted.

    A snapshot that cannot be read or parsed is treated as absent.
    Returns a machine that is already ticking if the countdown survived the restart.
    """
    clock = clock or SystemClock()
    durations = durations or TimerDurations()

    try:
        snapshot = await load_snapshot(store)
    except StorageError:
        logger.warning("Could not read timer snapshot; starting from defaults.")
        snapshot = None

    init = reconcile(snapshot, clock.now(), durations=durations)
    logger.info(
        "Timer restored mode=%s phase=%s remaining=%ss expired_while_away=%s",
        init.mode.value,
        init.phase.value,
        init.remaining_seconds,
        init.expired_while_away,
    )

    machine = TimerStateMachine(
        store,
        clock=clock,
        durations=durations,
        tick_seconds=tick_seconds,
        persist_every_ticks=persist_every_ticks,
        notifier=notifier,
        audio=audio,
        mode=init.mode,
        phase=TimerPhase.PAUSED if init.phase is TimerPhase.RUNNING else init.phase,
        remaining_seconds=init.remaining_seconds,
        total_time=init.total_time,
    )

    try:
        if init.phase is TimerPhase.RUNNING:
            # start() re-anchors at clock.now() and persists the adjusted remaining time.
            await machine.start(total_time=init.total_time)
        elif init.expired_while_away:
            # Clear the stale running flag so the next restart does not re-expire.
            await machine.reset()
    except StorageError:
        logger.warning("Could not persist restored timer state; continuing in memory.")

    return machine
