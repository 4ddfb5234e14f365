# tests/test_timer_machine.py

from __future__ import annotations

import asyncio

import pytest

from focuslist.storage.kv_store import StorageError
from focuslist.timer.timer_machine import TimerStateMachine
from focuslist.timer.timer_models import TimerMode, TimerPhase, TimerView

from .fakes import (
    BrokenAudio,
    BrokenNotifier,
    FakeClock,
    InMemoryStore,
    RecordingAudio,
    RecordingNotifier,
    tick_tasks,
)


async def _settle() -> None:
    """Let cancelled tick tasks finish unwinding."""
    for _ in range(5):
        await asyncio.sleep(0)


def test_initial_state_is_idle_work_default(timer: TimerStateMachine) -> None:
    view = timer.view()
    assert (view.mode, view.phase, view.remaining_seconds) == (TimerMode.WORK, TimerPhase.IDLE, 1500)
    assert view.text == "25:00"
    assert view.running is False
    assert timer.has_pending_tick is False


def test_cannot_construct_running() -> None:
    with pytest.raises(ValueError):
        TimerStateMachine(InMemoryStore(), phase=TimerPhase.RUNNING)


@pytest.mark.asyncio
async def test_start_persists_and_never_double_schedules(
    timer: TimerStateMachine, store: InMemoryStore, clock: FakeClock
) -> None:
    assert await timer.start() is True
    handle = timer._tick_handle

    assert timer.running and timer.has_pending_tick
    assert store.data["isRunning"] is True
    assert store.data["isWorkMode"] is True
    assert store.data["timeLeft"] == 1500
    assert store.data["totalTime"] == 1500
    assert store.data["startTime"] == clock.now().isoformat()

    assert await timer.start() is False
    assert timer._tick_handle is handle
    await _settle()
    assert len(tick_tasks()) == 1

    await timer.close()


@pytest.mark.asyncio
async def test_tick_decrements_and_reanchors_snapshot(
    timer: TimerStateMachine, store: InMemoryStore, clock: FakeClock
) -> None:
    await timer.start()
    clock.advance(1)

    assert await timer.tick() is False

    assert timer.remaining_seconds == 1499
    assert store.data["timeLeft"] == 1499
    assert store.data["startTime"] == clock.now().isoformat()
    assert store.data["totalTime"] == 1500

    await timer.close()


@pytest.mark.asyncio
async def test_pause_keeps_remaining_and_cancels_tick(timer: TimerStateMachine, store: InMemoryStore) -> None:
    await timer.start()
    await timer.tick()
    await timer.tick()

    assert await timer.pause() is True
    assert timer.phase is TimerPhase.PAUSED
    assert timer.remaining_seconds == 1498
    assert timer.has_pending_tick is False
    assert store.data["isRunning"] is False
    assert store.data["startTime"] is None
    assert store.data["timeLeft"] == 1498

    assert await timer.pause() is False
    await _settle()
    assert tick_tasks() == []

    # A tick arriving after pause changes nothing.
    assert await timer.tick() is True
    assert timer.remaining_seconds == 1498


@pytest.mark.asyncio
async def test_reset_and_switch_mode(timer: TimerStateMachine, store: InMemoryStore) -> None:
    await timer.start()
    await timer.tick()

    await timer.reset()
    assert (timer.phase, timer.mode, timer.remaining_seconds) == (TimerPhase.IDLE, TimerMode.WORK, 1500)
    assert timer.has_pending_tick is False

    await timer.start()
    await timer.switch_mode(TimerMode.BREAK)
    assert (timer.phase, timer.mode, timer.remaining_seconds) == (TimerPhase.IDLE, TimerMode.BREAK, 300)
    assert timer.has_pending_tick is False
    assert store.data["isWorkMode"] is False
    assert store.data["timeLeft"] == 300

    # Reset from idle is harmless and idempotent.
    await timer.reset()
    await timer.reset()
    assert timer.remaining_seconds == 300


@pytest.mark.asyncio
async def test_at_most_one_tick_across_transitions(timer: TimerStateMachine) -> None:
    steps = [
        timer.start,
        timer.pause,
        timer.start,
        timer.start,
        timer.reset,
        timer.start,
        lambda: timer.switch_mode(TimerMode.BREAK),
        timer.start,
        timer.pause,
        timer.pause,
        timer.start,
    ]
    for step in steps:
        await step()
        assert timer.has_pending_tick is timer.running
        await _settle()
        assert len(tick_tasks()) <= 1
        assert len(tick_tasks()) == (1 if timer.running else 0)

    await timer.close()
    await _settle()
    assert tick_tasks() == []


@pytest.mark.asyncio
async def test_manual_edit_rejected_while_running(timer: TimerStateMachine, store: InMemoryStore) -> None:
    await timer.start()
    writes = len(store.writes)

    assert await timer.set_remaining_manually("10:00") is False

    assert timer.remaining_seconds == 1500
    assert timer.mode is TimerMode.WORK
    assert len(store.writes) == writes

    await timer.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("10:30", 630),
        ("0:05", 5),
        ("99:59", 5999),
        (" 7:00 ", 420),
        (59, 59),
    ],
)
async def test_manual_edit_accepts_valid_input(
    timer: TimerStateMachine, store: InMemoryStore, raw, expected: int
) -> None:
    assert await timer.set_remaining_manually(raw) is True
    assert timer.remaining_seconds == expected
    assert store.data["timeLeft"] == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["100:00", "5:60", "abc", "12", "", "-1:00", "1:2:3", -1, 6000])
async def test_manual_edit_invalid_input_keeps_previous_value(
    timer: TimerStateMachine, store: InMemoryStore, raw
) -> None:
    await timer.set_remaining_manually("12:34")
    writes = len(store.writes)

    assert await timer.set_remaining_manually(raw) is False

    assert timer.remaining_seconds == 754
    assert len(store.writes) == writes


@pytest.mark.asyncio
async def test_expiration_alerts_and_switches_mode(
    timer: TimerStateMachine,
    store: InMemoryStore,
    notifier: RecordingNotifier,
    audio: RecordingAudio,
) -> None:
    expired: list[TimerMode] = []
    timer.on_expired(expired.append)
    await timer.set_remaining_manually("0:02")
    await timer.start()

    assert await timer.tick() is False
    assert notifier.calls == []

    assert await timer.tick() is True

    assert expired == [TimerMode.WORK]
    assert notifier.calls == [("Work session complete", "Time for a break!")]
    assert audio.plays == 1
    assert (timer.phase, timer.mode, timer.remaining_seconds) == (TimerPhase.IDLE, TimerMode.BREAK, 300)
    assert timer.has_pending_tick is False
    assert store.data["isRunning"] is False
    assert store.data["isWorkMode"] is False
    assert store.data["timeLeft"] == 300


@pytest.mark.asyncio
async def test_break_expiration_flips_back_to_work(
    timer: TimerStateMachine, notifier: RecordingNotifier
) -> None:
    await timer.switch_mode(TimerMode.BREAK)
    await timer.set_remaining_manually("0:01")
    await timer.start()

    assert await timer.tick() is True

    assert notifier.calls == [("Break is over", "Time to get back to work!")]
    assert (timer.mode, timer.remaining_seconds) == (TimerMode.WORK, 1500)


@pytest.mark.asyncio
async def test_alert_failures_do_not_break_expiration(store: InMemoryStore, clock: FakeClock) -> None:
    timer = TimerStateMachine(
        store,
        clock=clock,
        tick_seconds=3600,
        notifier=BrokenNotifier(),
        audio=BrokenAudio(),
    )
    await timer.set_remaining_manually("0:01")
    await timer.start()

    assert await timer.tick() is True
    assert (timer.phase, timer.mode) == (TimerPhase.IDLE, TimerMode.BREAK)


@pytest.mark.asyncio
async def test_background_loop_counts_down_and_expires(
    store: InMemoryStore, clock: FakeClock, notifier: RecordingNotifier
) -> None:
    timer = TimerStateMachine(store, clock=clock, tick_seconds=0.01, notifier=notifier)
    expired: list[TimerMode] = []
    timer.on_expired(expired.append)
    await timer.set_remaining_manually("0:03")
    await timer.start()

    for _ in range(300):
        if timer.mode is TimerMode.BREAK:
            break
        await asyncio.sleep(0.01)

    assert expired == [TimerMode.WORK]
    assert len(notifier.calls) == 1
    assert timer.phase is TimerPhase.IDLE
    assert [w["timeLeft"] for w in store.writes if w["isRunning"]] == [3, 2, 1]
    await _settle()
    assert tick_tasks() == []


@pytest.mark.asyncio
async def test_transition_storage_failure_surfaces_after_state_change(
    timer: TimerStateMachine, store: InMemoryStore
) -> None:
    await timer.start()
    store.fail_writes = True

    with pytest.raises(StorageError):
        await timer.pause()

    assert timer.phase is TimerPhase.PAUSED
    assert timer.has_pending_tick is False


@pytest.mark.asyncio
async def test_periodic_persist_failure_keeps_ticking(timer: TimerStateMachine, store: InMemoryStore) -> None:
    await timer.start()
    store.fail_writes = True

    assert await timer.tick() is False
    assert timer.remaining_seconds == 1499

    store.fail_writes = False
    assert await timer.tick() is False
    assert store.data["timeLeft"] == 1498

    await timer.close()


@pytest.mark.asyncio
async def test_slow_tick_write_cannot_overwrite_later_pause(timer: TimerStateMachine, store: InMemoryStore) -> None:
    await timer.start()
    # The tick's write is slow, the pause's write is instant.
    store.write_delays = [0.05, 0.0]

    ticking = asyncio.create_task(timer.tick())
    await asyncio.sleep(0.01)
    await timer.pause()
    await ticking

    assert store.data["isRunning"] is False
    assert store.data["timeLeft"] == 1499
    assert [w["isRunning"] for w in store.writes] == [True, True, False]


@pytest.mark.asyncio
async def test_listeners_receive_views(timer: TimerStateMachine) -> None:
    seen: list[TimerView] = []
    unsubscribe = timer.subscribe(seen.append)

    def broken(_view: TimerView) -> None:
        raise RuntimeError("renderer crashed")

    timer.subscribe(broken)

    await timer.start()
    await timer.tick()
    await timer.pause()
    unsubscribe()
    await timer.reset()

    assert [(v.phase, v.text) for v in seen] == [
        (TimerPhase.RUNNING, "25:00"),
        (TimerPhase.RUNNING, "24:59"),
        (TimerPhase.PAUSED, "24:59"),
    ]
