# src/focuslist/timer/timer_machine.py

from __future__ import annotations

"""
Work/Break countdown state machine.

Phases: idle -> running <-> paused. Expiration is an event, not a phase:
when a running countdown hits zero the machine alerts, flips the mode and
lands in idle (the next interval is started manually).

The machine owns the only tick handle (an asyncio.Task). Every transition
that leaves or re-enters "running" cancels the previous handle first, so at
most one tick loop is alive per machine.

Persistence:
- every transition writes a full snapshot
- while running, every `persist_every_ticks` ticks write one as well
Writes are chained in call order, so a slow tick write can never land after a
later pause/reset write.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import datetime

from ..config import MAX_TIMER_SECONDS
from ..core.clock import SystemClock
from ..core.ports import AudioCue, Clock, KeyValueStore, Notifier
from ..storage.kv_store import StorageError
from .timer_models import (
    TimerDurations,
    TimerMode,
    TimerPhase,
    TimerSnapshot,
    TimerView,
    parse_mmss,
)

logger = logging.getLogger(__name__)

TICK_TASK_NAME = "focuslist-timer-tick"

TimerListener = Callable[[TimerView], None]
ExpiredListener = Callable[[TimerMode], None]

_EXPIRED_MESSAGES: dict[TimerMode, tuple[str, str]] = {
    TimerMode.WORK: ("Work session complete", "Time for a break!"),
    TimerMode.BREAK: ("Break is over", "Time to get back to work!"),
}


class TimerStateMachine:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Clock | None = None,
        durations: TimerDurations | None = None,
        tick_seconds: float = 1.0,
        persist_every_ticks: int = 1,
        notifier: Notifier | None = None,
        audio: AudioCue | None = None,
        mode: TimerMode = TimerMode.WORK,
        phase: TimerPhase = TimerPhase.IDLE,
        remaining_seconds: int | None = None,
        total_time: int | None = None,
    ) -> None:
        if phase is TimerPhase.RUNNING:
            raise ValueError("construct the machine at rest and call start() to run it")

        self._store = store
        self._clock = clock or SystemClock()
        self._durations = durations or TimerDurations()
        self._tick_seconds = max(0.001, float(tick_seconds))
        self._persist_every = max(1, int(persist_every_ticks))
        self._notifier = notifier
        self._audio = audio

        self._mode = mode
        self._phase = phase
        if remaining_seconds is None:
            remaining_seconds = self._durations.for_mode(mode)
        self._remaining = max(0, min(MAX_TIMER_SECONDS, int(remaining_seconds)))
        self._start_ts: datetime | None = None
        self._total_time = self._remaining if total_time is None else max(0, int(total_time))
        self._ticks_since_persist = 0

        self._tick_handle: asyncio.Task[None] | None = None
        self._pending_write: asyncio.Future[None] | None = None
        self._listeners: list[TimerListener] = []
        self._expired_listeners: list[ExpiredListener] = []

    # ---- read side ----

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def running(self) -> bool:
        return self._phase is TimerPhase.RUNNING

    @property
    def has_pending_tick(self) -> bool:
        return self._tick_handle is not None and not self._tick_handle.done()

    def default_for(self, mode: TimerMode) -> int:
        return self._durations.for_mode(mode)

    def view(self) -> TimerView:
        return TimerView(mode=self._mode, phase=self._phase, remaining_seconds=self._remaining)

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            mode=self._mode,
            remaining_seconds=self._remaining,
            running=self.running,
            start_timestamp=self._start_ts if self.running else None,
            total_time=self._total_time,
        )

    def subscribe(self, listener: TimerListener) -> Callable[[], None]:
        """Call listener(view) after every tick and transition. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def on_expired(self, listener: ExpiredListener) -> None:
        self._expired_listeners.append(listener)

    # ---- transitions ----

    async def start(self, *, total_time: int | None = None) -> bool:
        """
        idle/paused -> running.

        Returns False (and changes nothing) if already running.
        total_time overrides the recorded run length (used when resuming after a restart).
        """
        if self._phase is TimerPhase.RUNNING:
            logger.debug("start() ignored: timer already running")
            return False

        self._cancel_tick()
        self._phase = TimerPhase.RUNNING
        self._start_ts = self._clock.now()
        self._total_time = self._remaining if total_time is None else max(0, int(total_time))
        self._ticks_since_persist = 0
        self._tick_handle = asyncio.create_task(self._run_ticks(), name=TICK_TASK_NAME)

        logger.info("Timer started mode=%s remaining=%ss", self._mode.value, self._remaining)
        self._notify_listeners()
        await self._persist()
        return True

    async def pause(self) -> bool:
        """running -> paused, keeping the remaining time. False if not running."""
        if self._phase is not TimerPhase.RUNNING:
            logger.debug("pause() ignored: timer is %s", self._phase.value)
            return False

        self._cancel_tick()
        self._phase = TimerPhase.PAUSED
        logger.info("Timer paused mode=%s remaining=%ss", self._mode.value, self._remaining)
        self._notify_listeners()
        await self._persist()
        return True

    async def reset(self) -> None:
        """Any phase -> idle with the current mode's full duration."""
        self._cancel_tick()
        self._phase = TimerPhase.IDLE
        self._remaining = self._durations.for_mode(self._mode)
        self._total_time = self._remaining
        logger.info("Timer reset mode=%s remaining=%ss", self._mode.value, self._remaining)
        self._notify_listeners()
        await self._persist()

    async def switch_mode(self, mode: TimerMode) -> None:
        """Any phase -> idle in `mode` with that mode's full duration."""
        self._cancel_tick()
        self._mode = TimerMode(mode)
        self._phase = TimerPhase.IDLE
        self._remaining = self._durations.for_mode(self._mode)
        self._total_time = self._remaining
        logger.info("Timer switched to mode=%s remaining=%ss", self._mode.value, self._remaining)
        self._notify_listeners()
        await self._persist()

    async def set_remaining_manually(self, value: str | int) -> bool:
        """
        Set the remaining time from 'MM:SS' input (or plain seconds).

        Rejected while running. Invalid input changes nothing; callers keep
        showing the previous value. Returns True when the value was applied.
        """
        if self._phase is TimerPhase.RUNNING:
            logger.info("Manual time edit rejected: timer is running")
            return False

        if isinstance(value, int) and not isinstance(value, bool):
            seconds = value if 0 <= value <= MAX_TIMER_SECONDS else None
        else:
            seconds = parse_mmss(str(value))
        if seconds is None:
            logger.info("Manual time edit rejected: invalid value %r", value)
            return False

        self._remaining = seconds
        self._total_time = seconds
        logger.info("Timer set manually to %ss (mode=%s)", seconds, self._mode.value)
        self._notify_listeners()
        await self._persist()
        return True

    async def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns True when the countdown is no longer running (expired or not
        running to begin with), which ends the tick loop.
        """
        if self._phase is not TimerPhase.RUNNING:
            return True

        self._remaining = max(0, self._remaining - 1)
        self._start_ts = self._clock.now()

        if self._remaining > 0:
            self._notify_listeners()
            self._ticks_since_persist += 1
            if self._ticks_since_persist >= self._persist_every:
                self._ticks_since_persist = 0
                try:
                    await self._persist()
                except StorageError:
                    # The next tick retries with a fresher snapshot.
                    logger.warning("Periodic timer persist failed; will retry on next tick.")
            return False

        await self._expire()
        return True

    async def close(self) -> None:
        """Stop ticking (without changing state) and wait for queued writes."""
        self._cancel_tick()
        pending = self._pending_write
        if pending is not None:
            with contextlib.suppress(Exception):
                await pending

    # ---- internals ----

    async def _run_ticks(self) -> None:
        while True:
            await asyncio.sleep(self._tick_seconds)
            if await self.tick():
                return

    def _cancel_tick(self) -> None:
        handle = self._tick_handle
        self._tick_handle = None
        if handle is None or handle.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # The tick loop itself may trigger a transition (expiration); it exits on its own.
        if handle is current:
            return
        handle.cancel()

    async def _expire(self) -> None:
        expired = self._mode
        self._cancel_tick()
        logger.info("Timer expired mode=%s", expired.value)

        self._alert(expired)
        for listener in list(self._expired_listeners):
            try:
                listener(expired)
            except Exception:
                logger.exception("Timer expired listener failed")

        try:
            await self.switch_mode(expired.other())
        except StorageError:
            logger.error("Could not persist mode switch after expiration; in-memory state is current.")

    def _alert(self, mode: TimerMode) -> None:
        title, message = _EXPIRED_MESSAGES[mode]
        if self._notifier is not None:
            try:
                self._notifier.notify(title, message)
            except Exception:
                logger.warning("Notification failed (ignored).", exc_info=True)
        if self._audio is not None:
            try:
                self._audio.play()
            except Exception:
                logger.warning("Audio cue failed (ignored).", exc_info=True)

    def _notify_listeners(self) -> None:
        if not self._listeners:
            return
        view = self.view()
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("Timer listener failed")

    async def _persist(self) -> None:
        record = self.snapshot().to_record()
        previous = self._pending_write
        write = asyncio.ensure_future(self._write_after(previous, record))
        self._pending_write = write
        # Shielded: cancelling the caller (e.g. the tick loop) must not abort a queued write.
        await asyncio.shield(write)
        logger.debug("Timer snapshot persisted: %s", record)

    async def _write_after(self, previous: asyncio.Future[None] | None, record: dict) -> None:
        if previous is not None and not previous.done():
            # Its failure is reported to its own caller.
            with contextlib.suppress(Exception):
                await previous
        await self._store.set(record)
