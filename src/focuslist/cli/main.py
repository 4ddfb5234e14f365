# src/focuslist/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (restoring the timer), then runs the
console REPL on the asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import emit, run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # The timer is not paused: its last snapshot keeps it "running" so the next
    # start reconciles the time spent while the app was closed.
    try:
        await state.timer.close()
    except Exception:
        logger.exception("Timer close failed.")


async def _run(settings) -> None:
    state = await create_initial_state(settings=settings, emit=emit)
    view = state.timer.view()
    emit(f"[TIMER] {view.text} [{view.mode.value}, {view.phase.value}]")
    try:
        await run_console_loop(state)
    finally:
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
