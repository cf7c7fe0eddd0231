"""Frame timing and time-based interpolation between transforms."""

from __future__ import annotations

import time
from typing import Callable

from .transform import Transform, lerp


class DeltaTimer:
    """Measures the seconds elapsed between successive ticks."""

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._last: float | None = None

    def tick(self) -> float:
        """Seconds since the previous tick; the first tick returns 0."""
        now = self._clock()
        if self._last is None:
            self._last = now
            return 0.0
        dt = now - self._last
        self._last = now
        return dt


class SmoothTransform:
    """Moves between two transforms over a fixed duration."""

    def __init__(self, start: Transform, end: Transform, duration: float) -> None:
        if duration <= 0:
            raise ValueError("duration must be positive")
        self.start = start
        self.end = end
        self.duration = duration
        self.time = 0.0

    def reset(self) -> None:
        self.time = 0.0

    def update(self, dt: float) -> None:
        """Advance (or, with negative ``dt``, rewind) clamped to [0, duration]."""
        self.time = min(max(self.time + dt, 0.0), self.duration)

    def current(self) -> Transform:
        return lerp(self.start, self.end, self.time / self.duration)