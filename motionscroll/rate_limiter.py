"""
Emission rate limiting.

A single timestamp is shared by both axes. Emissions closer together than the
minimum interval are refused; the caller drops the pending motion instead of
queueing it, so a fast flick can't build up a backlog of synthetic wheel events.
"""

import time
from typing import Callable, Optional


class RateLimiter:
    def __init__(self, min_interval_ms: float = 30.0, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            min_interval_ms: Minimum time between two successful emissions
            clock: Monotonic clock returning seconds
        """
        self.min_interval = float(min_interval_ms) / 1000.0
        self.clock = clock
        self.last_emission: Optional[float] = None
        self.window_emissions = 0

    def allows(self, now: Optional[float] = None) -> bool:
        """Return True if an emission may fire at ``now``."""
        if self.last_emission is None:
            return True
        if now is None:
            now = self.clock()
        return (now - self.last_emission) >= self.min_interval

    def record(self, now: Optional[float] = None):
        """Mark a successful emission."""
        self.last_emission = self.clock() if now is None else now
        self.window_emissions += 1

    @property
    def first_in_window(self) -> bool:
        return self.window_emissions == 0

    def reset_window(self):
        """Start a new activation window. The shared timestamp is kept."""
        self.window_emissions = 0
