# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from focuslist.core.state import AppState
from focuslist.tasks.task_store import TaskStore
from focuslist.timer.timer_machine import TimerStateMachine

from .fakes import FakeClock, InMemoryStore, RecordingAudio, RecordingNotifier


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment/.env.
    """
    return SimpleNamespace(
        app_name="focuslist-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        store_db_path=tmp_path / "store.sqlite3",
        work_seconds=1500,
        break_seconds=300,
        persist_every_ticks=1,
        sound_enabled=False,
        notifications_enabled=True,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def audio() -> RecordingAudio:
    return RecordingAudio()


@pytest.fixture()
def task_store(store: InMemoryStore, clock: FakeClock) -> TaskStore:
    return TaskStore(store, clock=clock)


@pytest.fixture()
def timer(
    store: InMemoryStore,
    clock: FakeClock,
    notifier: RecordingNotifier,
    audio: RecordingAudio,
) -> TimerStateMachine:
    return TimerStateMachine(
        store,
        clock=clock,
        # Long tick so background loops never fire during unit tests.
        tick_seconds=3600.0,
        notifier=notifier,
        audio=audio,
    )


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    clock: FakeClock,
    store: InMemoryStore,
    task_store: TaskStore,
    timer: TimerStateMachine,
    notifier: RecordingNotifier,
) -> AppState:
    """AppState wired with deterministic fakes (in-memory store, fixed clock)."""
    return AppState(
        settings=settings,
        clock=clock,
        store=store,
        tasks=task_store,
        timer=timer,
        notifier=notifier,
    )
