from __future__ import annotations

"""Ticker: delivers one-second tick events to a running session from a daemon timer."""

import threading
from typing import Optional

from ..engine.session import SessionPhase, TrainingSession


class Ticker:
    def __init__(self, session: TrainingSession, interval_s: float = 1.0) -> None:
        self.session = session
        self.interval_s = float(interval_s)
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._running = False

    def _arm(self) -> None:
        self._timer = threading.Timer(self.interval_s, self._on_tick)
        self._timer.daemon = True
        self._timer.start()

    def _on_tick(self) -> None:
        with self._lock:
            if not self._running:
                return
        self.session.tick(int(self.interval_s * 1000))
        with self._lock:
            if self._running and self.session.phase is SessionPhase.ACTIVE:
                self._arm()
            else:
                self._running = False

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._arm()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            if self._timer:
                self._timer.cancel()
                self._timer = None

    def is_running(self) -> bool:
        return self._running
