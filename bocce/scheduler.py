"""Simulated-time scheduler: fixed physics tick, variable frame tick, deferred callbacks.

Nothing here sleeps. Time only moves when tick() is called, so a whole match
can run head-less in milliseconds and tests are exactly reproducible.
"""

import heapq
import itertools
import math
from typing import Callable, Optional

# Floating-point slack when comparing accumulated simulated time
_TIME_EPSILON = 1e-9

DEFAULT_FIXED_DT = 0.02  # 50 Hz physics
DEFAULT_FRAME_DT = 1 / 60


class Scheduler:
    """Drives fixed-tick subscribers, frame-tick subscribers and timed callbacks."""

    def __init__(self, fixed_dt: float = DEFAULT_FIXED_DT):
        if fixed_dt <= 0:
            raise ValueError(f"fixed_dt must be positive, got {fixed_dt}")
        self.fixed_dt = fixed_dt
        self.time = 0.0
        self._fixed_steps = 0
        self._fixed: list[Callable[[float], None]] = []
        self._frame: list[Callable[[float], None]] = []
        self._timers: list = []  # heap of (due, seq, callback)
        self._seq = itertools.count()

    def subscribe_fixed(self, callback: Callable[[float], None]) -> None:
        """Call callback(fixed_dt) on every physics step, in subscription order."""
        self._fixed.append(callback)

    def subscribe_frame(self, callback: Callable[[float], None]) -> None:
        """Call callback(frame_dt) once per tick() after the physics steps."""
        self._frame.append(callback)

    def after(self, seconds: float, callback: Callable[[], None]) -> float:
        """Run callback once, `seconds` of simulated time from now. Returns the due time."""
        due = self.time + max(0.0, seconds)
        heapq.heappush(self._timers, (due, next(self._seq), callback))
        return due

    @property
    def pending(self) -> int:
        return len(self._timers)

    def tick(self, frame_dt: float) -> None:
        """Advance simulated time by one frame."""
        new_time = self.time + frame_dt
        due_steps = int(math.floor(new_time / self.fixed_dt + _TIME_EPSILON))
        while self._fixed_steps < due_steps:
            self._fixed_steps += 1
            for callback in list(self._fixed):
                callback(self.fixed_dt)

        self.time = new_time
        for callback in list(self._frame):
            callback(frame_dt)

        while self._timers and self._timers[0][0] <= self.time + _TIME_EPSILON:
            _, _, callback = heapq.heappop(self._timers)
            callback()

    def run(
        self,
        seconds: float,
        frame_dt: float = DEFAULT_FRAME_DT,
        until: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """Tick for up to `seconds`. Stops early once until() is true.

        Returns True if the until() condition was met.
        """
        steps = int(math.ceil(seconds / frame_dt - _TIME_EPSILON))
        for _ in range(steps):
            if until is not None and until():
                return True
            self.tick(frame_dt)
        return until is not None and until()
