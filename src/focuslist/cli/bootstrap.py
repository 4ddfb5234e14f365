# src/focuslist/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/tasks/timer/alerts),
- restores the timer from its last snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import get_settings
from ..core.clock import SystemClock
from ..core.state import AppState
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_store import TaskStore
from ..timer.alerts import LogNotifier, SoundCue
from ..timer.reconcile import restore_timer
from ..timer.timer_models import TimerDurations

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)


async def create_initial_state(
    *,
    settings=None,
    emit: Callable[[str], None] | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    emit receives user-facing alert lines (timer notifications).
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = SystemClock()
    store = SqliteKeyValueStore(settings.store_db_path)
    notifier = LogNotifier(emit) if settings.notifications_enabled else None

    timer = await restore_timer(
        store,
        clock=clock,
        durations=TimerDurations(
            work_seconds=settings.work_seconds,
            break_seconds=settings.break_seconds,
        ),
        persist_every_ticks=settings.persist_every_ticks,
        notifier=notifier,
        audio=SoundCue(enabled=settings.sound_enabled),
    )

    state = AppState(
        settings=settings,
        clock=clock,
        store=store,
        tasks=TaskStore(store, clock=clock),
        timer=timer,
        notifier=notifier,
    )
    logger.info("State ready (store=%s, notifications=%s)", settings.store_db_path, notifier is not None)
    return state
