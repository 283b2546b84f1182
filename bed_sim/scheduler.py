import logging
import math
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class TickScheduler:
    """
    Calls engine.tick(delta_hours) every `interval_seconds` on a daemon timer.
    Lives outside the engine; the engine itself never starts threads.

    Defaults match the dashboard: one minute of waiting time per minute.
    """

    def __init__(self, engine, interval_seconds: float = 60.0, delta_hours: float = 1 / 60):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        if not math.isfinite(delta_hours) or delta_hours < 0:
            raise ValueError("delta_hours must be a finite number >= 0")
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.delta_hours = delta_hours
        self.ticks = 0
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def _schedule(self):
        self._timer = threading.Timer(self.interval_seconds, self._fire)
        self._timer.daemon = True
        self._timer.start()

    def _fire(self):
        with self._lock:
            if not self._running:
                return
        # engine lock is taken outside our own, so stop() never waits on it
        self.engine.tick(self.delta_hours)
        with self._lock:
            self.ticks += 1
            if self._running:
                self._schedule()

    def start(self):
        with self._lock:
            if self._running:
                return
            self._running = True
            self._schedule()
        logger.info("Tick scheduler started (every %ss, +%.4fh)", self.interval_seconds, self.delta_hours)

    def stop(self):
        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        logger.info("Tick scheduler stopped after %d ticks", self.ticks)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
