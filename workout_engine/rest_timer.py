"""Single-slot rest countdown scheduled on the Kivy clock.

The countdown never decrements a counter.  It stores the wall-clock time at
which the rest ends and derives the remaining seconds from ``time_func`` on
every read, so a suspended event loop neither loses nor repeats seconds.
The interval event only exists to notice that the target time has passed.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from functools import partial
from typing import Callable

from kivy.clock import Clock

from workout_engine import REST_TICK_INTERVAL


class RestCountdown:
    """Handle returned by :meth:`RestTimer.start`.

    A handle stays valid after it has been replaced or finished; it then
    simply reports ``active == False`` and its ``cancel`` is a no-op.
    """

    def __init__(self, timer: "RestTimer", seconds: int, target_time: float):
        self._timer = timer
        self.seconds = seconds
        self.target_time = target_time
        self.event = None

    @property
    def remaining(self) -> int:
        return self._timer.remaining if self._timer.current is self else 0

    @property
    def active(self) -> bool:
        return self._timer.current is self and self._timer.active

    def cancel(self) -> bool:
        return self._timer.cancel(self)


class RestTimer:
    """Cancellable countdown between sets.  Only one may run at a time."""

    def __init__(
        self,
        clock=None,
        time_func: Callable[[], float] = time.time,
        interval: float = REST_TICK_INTERVAL,
        on_finished: Callable[[RestCountdown], None] | None = None,
    ):
        self._clock = clock if clock is not None else Clock
        self._time = time_func
        self.interval = interval
        self.on_finished = on_finished
        self._lock = threading.Lock()
        self._countdown: RestCountdown | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current(self) -> RestCountdown | None:
        return self._countdown

    @property
    def remaining(self) -> int:
        """Whole seconds left, rounded up and never negative."""

        countdown = self._countdown
        if countdown is None:
            return 0
        return math.ceil(max(0.0, countdown.target_time - self._time()))

    @property
    def active(self) -> bool:
        return self.remaining > 0

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def start(self, seconds: int) -> RestCountdown | None:
        """Start a countdown of ``seconds``, replacing any running one.

        A zero duration only clears the slot and returns ``None``.
        """

        if seconds < 0:
            raise ValueError("Rest duration cannot be negative")
        with self._lock:
            self._clear()
            if seconds == 0:
                return None
            countdown = RestCountdown(self, seconds, self._time() + seconds)
            self._countdown = countdown
            countdown.event = self._clock.schedule_interval(
                partial(self.update_timer, countdown), self.interval
            )
        logging.debug("Rest timer started for %s seconds", seconds)
        return countdown

    def cancel(self, countdown: RestCountdown | None = None) -> bool:
        """Stop the running countdown.

        When ``countdown`` is given, only that countdown is cancelled; a handle
        that has already been replaced leaves the current one alone.
        """

        with self._lock:
            if self._countdown is None:
                return False
            if countdown is not None and countdown is not self._countdown:
                return False
            self._clear()
        logging.debug("Rest timer cancelled")
        return True

    def adjust(self, seconds: int) -> bool:
        """Move the end of the running countdown by ``seconds``.

        The target time is never moved before the current time.
        """

        with self._lock:
            countdown = self._countdown
            if countdown is None:
                return False
            now = self._time()
            target = max(countdown.target_time, now) + seconds
            countdown.target_time = max(target, now)
        return True

    def update_timer(self, countdown: RestCountdown, dt: float = 0) -> bool:
        """Clock callback; returns ``False`` once the countdown is over."""

        with self._lock:
            if countdown is not self._countdown:
                return False
            if countdown.target_time - self._time() > 0:
                return True
            self._clear()
        logging.debug("Rest timer finished")
        if self.on_finished is not None:
            self.on_finished(countdown)
        return False

    def _clear(self) -> None:
        countdown = self._countdown
        self._countdown = None
        if countdown is not None and countdown.event is not None:
            countdown.event.cancel()
