"""
Backend contract for platform input access, plus backend selection.

The scroll core only talks to a Backend: it reads events from it, queries and
warps the pointer, toggles cursor visibility and emits synthetic wheel ticks.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from motionscroll.errors import ConfigurationError
from motionscroll.events import InputEvent, Position, ScrollDirection, UNMATCHED_DEVICE_ID


class BackendKind(Enum):
    XINPUT = "xinput"     # XInput2 raw motion via python-xlib (preferred)
    PYNPUT = "pynput"     # pynput listeners, absolute-position deltas


# X11 models wheel input as button presses
SCROLL_BUTTONS = {
    (ScrollDirection.VERTICAL, -1): 4,     # up
    (ScrollDirection.VERTICAL, 1): 5,      # down
    (ScrollDirection.HORIZONTAL, -1): 6,   # left
    (ScrollDirection.HORIZONTAL, 1): 7,    # right
}


def scroll_button(direction: ScrollDirection, sign: int) -> int:
    """Map a scroll direction and sign to the X11 wheel button number."""
    return SCROLL_BUTTONS[(direction, 1 if sign > 0 else -1)]


class Backend(ABC):
    """
    Abstract platform input backend.

    Implementations raise EmissionFailure from the output methods when a single
    request fails, and TransientEventReadFailure from next_event() when one
    event can't be decoded. Neither is fatal.
    """

    @property
    def synthetic_device_id(self) -> int:
        """Device id our own synthetic events arrive from."""
        return UNMATCHED_DEVICE_ID

    # --- INPUT ---
    @abstractmethod
    def subscribe_raw_motion(self) -> None: pass
    @abstractmethod
    def subscribe_key_events(self) -> None: pass
    @abstractmethod
    def next_event(self) -> Optional[InputEvent]:
        """Block for the next event. Returns None for events the core ignores."""

    # --- POINTER ---
    @abstractmethod
    def query_pointer_position(self) -> Position: pass
    @abstractmethod
    def warp_pointer_to(self, position: Position) -> None: pass
    @abstractmethod
    def set_cursor_visible(self, visible: bool) -> None: pass

    # --- OUTPUT ---
    @abstractmethod
    def emit_scroll_tick(self, direction: ScrollDirection, sign: int) -> None: pass
    @abstractmethod
    def release_key(self, key_code: int) -> None: pass

    def close(self) -> None:
        """Release display resources."""


def create_backend(name: str) -> Backend:
    """Instantiate a backend by name. Library imports happen lazily here."""
    try:
        kind = BackendKind(name.lower())
    except ValueError:
        raise ConfigurationError(f"Unknown backend {name!r}") from None

    if kind == BackendKind.XINPUT:
        from motionscroll.xlib_backend import XInputBackend
        return XInputBackend()

    from motionscroll.pynput_backend import PynputBackend
    return PynputBackend()
