"""
Event and value types shared between the backends and the scroll core.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

# Device id that never matches a real device; used when the synthetic
# input device cannot be identified.
UNMATCHED_DEVICE_ID = -1


class ScrollDirection(Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class ActivationState(Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


@dataclass(frozen=True)
class Position:
    x: int
    y: int


@dataclass(frozen=True)
class KeyPress:
    code: int
    modifiers: int = 0
    is_repeat: bool = False
    source_device: int = UNMATCHED_DEVICE_ID


@dataclass(frozen=True)
class KeyRelease:
    code: int
    modifiers: int = 0
    source_device: int = UNMATCHED_DEVICE_ID


@dataclass(frozen=True)
class RawMotion:
    dx: float
    dy: float


InputEvent = Union[KeyPress, KeyRelease, RawMotion]


@dataclass(frozen=True)
class ScrollEmissionRequest:
    """Ticks to emit on one axis. ``ticks`` carries the sign."""
    direction: ScrollDirection
    ticks: int

    @property
    def sign(self) -> int:
        return 1 if self.ticks > 0 else -1

    @property
    def count(self) -> int:
        return abs(self.ticks)
