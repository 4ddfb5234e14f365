# src/focuslist/timer/alerts.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class LogNotifier:
    """
    Notifier that logs the alert and echoes it to an optional emitter
    (the console connector passes its print function).
    """

    def __init__(self, emit: Callable[[str], None] | None = None) -> None:
        self._emit = emit

    def notify(self, title: str, message: str) -> None:
        logger.info("Notification: %s - %s", title, message)
        if self._emit is not None:
            self._emit(f"[TIMER] {title}: {message}")


class SoundCue:
    """
    Best-effort audible cue: a short sine beep through sounddevice.

    Notes:
    - sounddevice/numpy are optional; if missing, the cue disables itself.
    - playback happens in a daemon thread so the event loop never waits on audio.
    """

    def __init__(
        self,
        enabled: bool,
        *,
        frequency_hz: float = 880.0,
        duration_s: float = 0.35,
        sample_rate: int = 44100,
    ) -> None:
        self.enabled = bool(enabled)
        self._sd: Any = None
        self._tone: Any = None
        self._sample_rate = int(sample_rate)

        if not self.enabled:
            logger.debug("Sound cue disabled.")
            return

        try:
            import numpy as np  # type: ignore
            import sounddevice as sd  # type: ignore
        except Exception as e:
            self.enabled = False
            logger.warning(
                "Sound is enabled, but sounddevice/numpy failed to import. "
                "Install the 'sound' extra to hear timer alerts. Error: %s",
                repr(e),
            )
            return

        self._sd = sd
        t = np.linspace(0.0, duration_s, int(self._sample_rate * duration_s), endpoint=False)
        # Short fade in/out avoids clicks at the edges.
        envelope = np.minimum(1.0, np.minimum(t, duration_s - t) * 40.0)
        self._tone = (0.3 * np.sin(2.0 * np.pi * frequency_hz * t) * envelope).astype(np.float32)
        logger.info("Sound cue ready (sample_rate=%s).", self._sample_rate)

    def play(self) -> None:
        if not self.enabled or self._sd is None:
            return

        def _worker() -> None:
            try:
                self._sd.play(self._tone, self._sample_rate)
                self._sd.wait()
            except Exception as e:
                logger.error("Sound playback failed: %s", repr(e))

        threading.Thread(target=_worker, name="focuslist-sound", daemon=True).start()
