# src/focuslist/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_store import TaskStore
from ..timer.timer_machine import TimerStateMachine
from .ports import Clock, KeyValueStore, Notifier


@dataclass
class AppState:
    # Store Settings on the state for easy access in command handlers.
    settings: object

    clock: Clock
    store: KeyValueStore
    tasks: TaskStore
    timer: TimerStateMachine
    notifier: Notifier | None = None
