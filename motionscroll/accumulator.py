"""
Per-axis motion accumulation.

Raw deltas are summed per axis. Whenever the sum reaches the threshold the whole
number of thresholds it contains becomes a scroll request and only that part is
subtracted, so sub-threshold travel carries over to the next report.

Example: threshold 10, sum 22 -> 2 ticks, 20 consumed, 2 left over.
"""

import logging
from typing import Dict, List, Optional

from motionscroll.events import ScrollDirection, ScrollEmissionRequest

logger = logging.getLogger(__name__)


class MotionAccumulator:
    def __init__(self, threshold: float, allow_horizontal: bool = False, allow_repeated_ticks: bool = False):
        self.threshold = float(threshold)
        self.allow_repeated_ticks = allow_repeated_ticks
        self.totals: Dict[ScrollDirection, float] = {ScrollDirection.VERTICAL: 0.0}
        if allow_horizontal:
            self.totals[ScrollDirection.HORIZONTAL] = 0.0

    @property
    def axes(self):
        return tuple(self.totals)

    def value(self, direction: ScrollDirection) -> float:
        return self.totals.get(direction, 0.0)

    def reset(self, direction: Optional[ScrollDirection] = None):
        """Zero one axis, or all of them when no direction is given."""
        if direction is None:
            for axis in self.totals:
                self.totals[axis] = 0.0
        elif direction in self.totals:
            self.totals[direction] = 0.0

    def add(self, direction: ScrollDirection, delta: float) -> Optional[ScrollEmissionRequest]:
        """Accumulate one delta; return a request if the threshold was crossed."""
        if direction not in self.totals:
            return None

        total = self.totals[direction] + delta
        # Reaching the threshold already counts, so |remainder| < threshold always holds
        if abs(total) < self.threshold:
            self.totals[direction] = total
            return None

        # int() truncates toward zero, which keeps the remainder's sign
        ticks = int(total / self.threshold)
        self.totals[direction] = total - ticks * self.threshold

        emitted = ticks
        if not self.allow_repeated_ticks and abs(ticks) > 1:
            emitted = 1 if ticks > 0 else -1

        logger.debug(f"{direction.value}: {ticks} threshold(s) crossed, emitting {emitted}, "
                     f"remainder {self.totals[direction]:.2f}")
        return ScrollEmissionRequest(direction, emitted)

    def add_motion(self, dx: float, dy: float) -> List[ScrollEmissionRequest]:
        """Accumulate one motion report, vertical axis first."""
        requests = []
        request = self.add(ScrollDirection.VERTICAL, dy)
        if request is not None:
            requests.append(request)
        request = self.add(ScrollDirection.HORIZONTAL, dx)
        if request is not None:
            requests.append(request)
        return requests
