"""Tick sources driving the layout loop.

A scheduler repeatedly invokes one callback until stopped. Pausing keeps the
callback registered but fires nothing, which is how an idle layout stops
ticking until something reheats it.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], object]


class TickScheduler:
    """Base class holding the start/stop/pause state shared by all tick sources."""

    def __init__(self) -> None:
        self._callback: Optional[TickCallback] = None
        self._running = False
        self._paused = False
        self.fired = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def active(self) -> bool:
        return self._running and not self._paused

    def start(self, callback: TickCallback) -> None:
        if self._running:
            raise RuntimeError(f"{type(self).__name__} is already running")
        self._callback = callback
        self._running = True
        self._paused = False
        logger.debug("%s started", type(self).__name__)

    def stop(self) -> None:
        """Halt ticking for good; the callback reference is dropped."""

        if self._running:
            logger.debug("%s stopped after %d tick(s)", type(self).__name__, self.fired)
        self._running = False
        self._paused = False
        self._callback = None

    def pause(self) -> None:
        if self._running:
            self._paused = True

    def resume(self) -> None:
        if self._running:
            self._paused = False

    def _fire(self) -> bool:
        """Invoke the callback once if active; returns whether it ran."""

        if not self.active or self._callback is None:
            return False
        self.fired += 1
        self._callback()
        return True


class ManualScheduler(TickScheduler):
    """Deterministic tick source advanced explicitly, e.g. from tests."""

    def advance(self, ticks: int = 1) -> int:
        """Fire up to ``ticks`` callbacks, stopping early if paused or stopped."""

        fired = 0
        for _ in range(max(0, ticks)):
            if not self._fire():
                break
            fired += 1
        return fired


class IntervalScheduler(TickScheduler):
    """Blocking fixed-rate loop for headless hosts such as the CLI."""

    def __init__(self, fps: float = 60.0, *, sleep: Callable[[float], None] = time.sleep) -> None:
        super().__init__()
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.interval = 1.0 / fps
        self._sleep = sleep

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Tick until stopped, paused or ``max_ticks``; returns ticks fired."""

        fired = 0
        while self.active and (max_ticks is None or fired < max_ticks):
            started = time.monotonic()
            if not self._fire():
                break
            fired += 1
            remaining = self.interval - (time.monotonic() - started)
            if remaining > 0 and self.active:
                self._sleep(remaining)
        return fired


__all__ = ["IntervalScheduler", "ManualScheduler", "TickCallback", "TickScheduler"]
