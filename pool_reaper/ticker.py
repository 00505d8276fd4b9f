"""Fixed-interval scheduling for sweeps.

The ticker fires once per interval and runs the task to completion before
waiting for the next tick, so sweeps never overlap. A task that overruns the
interval pushes the next tick to the following point on the interval grid;
missed ticks are dropped, not queued.
"""

import logging
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """Runs a task once per interval until stopped."""

    def __init__(
        self,
        interval: timedelta,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize ticker.

        Args:
            interval: Time between ticks; must be positive
            stop_event: Event that ends the loop when set
            clock: Monotonic clock in seconds
        """
        seconds = interval.total_seconds()
        if seconds <= 0:
            raise ValueError("Ticker interval must be positive")
        self.interval_seconds = seconds
        self._stop_event = stop_event or threading.Event()
        self._clock = clock

    def stop(self) -> None:
        """Stop after the current tick, or immediately if waiting."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self, task: Callable[[], Any], max_ticks: Optional[int] = None) -> int:
        """
        Run ``task`` on every tick. The first tick fires one interval after start.

        Exceptions raised by the task are logged and the ticker keeps going.

        Args:
            task: Callable run once per tick
            max_ticks: Stop after this many ticks; None runs until stopped

        Returns:
            Number of ticks that ran the task
        """
        ticks = 0
        next_tick = self._clock() + self.interval_seconds

        while not self._stop_event.is_set():
            delay = next_tick - self._clock()
            if delay > 0 and self._stop_event.wait(delay):
                break

            ticks += 1
            try:
                task()
            except Exception:
                logger.exception(f"Tick {ticks} failed with an unexpected error")

            if max_ticks is not None and ticks >= max_ticks:
                break

            next_tick += self.interval_seconds
            now = self._clock()
            if next_tick < now:
                missed = int((now - next_tick) // self.interval_seconds) + 1
                logger.warning(
                    f"Tick {ticks} overran the {self.interval_seconds:g}s interval, "
                    f"dropping {missed} tick(s)"
                )
                next_tick += missed * self.interval_seconds

        return ticks
