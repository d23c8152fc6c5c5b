"""
Call spacing for rate-limited external endpoints.

A Throttle runs calls one at a time and blocks the caller so that at least
`interval` seconds pass between the end of one call and the start of the
next. Clock and sleep functions are injectable for tests.
"""

from __future__ import annotations

import time
from typing import Callable, TypeVar

T = TypeVar("T")


class Throttle:
    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval < 0:
            raise ValueError("Throttle interval must not be negative")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_finished: float | None = None
        self.calls = 0

    def wait(self) -> None:
        """Block until the next call is allowed to start."""
        if self._last_finished is None:
            return
        remaining = self.interval - (self._clock() - self._last_finished)
        if remaining > 0:
            self._sleep(remaining)

    def call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """Run `fn` once the interval since the previous call has elapsed.

        The interval is measured from the end of the previous call whether it
        returned or raised.
        """
        self.wait()
        try:
            return fn(*args, **kwargs)
        finally:
            self.calls += 1
            self._last_finished = self._clock()
