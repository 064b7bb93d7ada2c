"""
CHIP-8 Virtual Machine — Clock and Countdown Timers

The VM has no clock of its own. The host reports how much wall-clock time
has passed and the Clock turns that into:

  - an instruction budget:  floor(cycles_per_second × elapsed)
  - timer ticks:            floor(elapsed × 60)

Both are floored per call, so fractional remainders are dropped rather than
carried. Hosts should call often (the CLI defaults to 30 frames per second) so
that per-call batches stay small.

DT and ST are two independent 8-bit countdown timers. Decay clamps at zero.
ST > 0 means the buzzer is on; the transition to zero is reported exactly
once so the host can switch the sound off.
"""

import math
from typing import Optional


TIMER_HZ = 60


class CountdownTimer:
    """One 8-bit countdown register (DT or ST)."""

    def __init__(self, name: str):
        self.name = name
        self.value = 0

    @property
    def active(self) -> bool:
        return self.value > 0

    def set(self, value: int):
        self.value = value & 0xFF

    def decay(self, ticks: int) -> bool:
        """Count down by ticks, clamped at zero.

        Returns True only when this call took the timer from nonzero to zero.
        """
        if self.value == 0 or ticks <= 0:
            return False
        self.value -= min(self.value, ticks)
        return self.value == 0

    def reset(self):
        self.value = 0


class Clock:
    """Converts elapsed host time into instruction budgets and timer ticks."""

    def __init__(self, cycles_per_second: int, timer_hz: int = TIMER_HZ):
        if cycles_per_second <= 0:
            raise ValueError(f"cycles_per_second must be positive, got {cycles_per_second}")
        self.cycles_per_second = int(cycles_per_second)
        self.timer_hz = timer_hz
        self._last_time: Optional[float] = None

    def cycles_due(self, elapsed: float) -> int:
        if not elapsed > 0:     # also catches NaN
            return 0
        return math.floor(self.cycles_per_second * elapsed)

    def timer_ticks(self, elapsed: float) -> int:
        if not elapsed > 0:
            return 0
        return math.floor(elapsed * self.timer_hz)

    def elapsed_since(self, now: float) -> float:
        """Seconds since the previous timestamp.

        The first call after construction or reset() reports 0.0 so a fresh
        program does not start with a huge catch-up batch.
        """
        if self._last_time is None:
            elapsed = 0.0
        else:
            elapsed = max(0.0, now - self._last_time)
        self._last_time = now
        return elapsed

    def reset(self):
        self._last_time = None
