"""
Trigger chord detection and the Inactive/Active scroll state.

Momentary mode: scrolling is active while the trigger key is held.
Toggle mode: each chord press flips scrolling on or off; releases are ignored.
"""

import logging
from typing import Optional

from motionscroll.accumulator import MotionAccumulator
from motionscroll.backend import Backend
from motionscroll.errors import EmissionFailure
from motionscroll.events import ActivationState, KeyPress, KeyRelease, Position
from motionscroll.rate_limiter import RateLimiter
from motionscroll.settings import Settings

logger = logging.getLogger(__name__)


class ActivationController:
    def __init__(self, settings: Settings, backend: Backend,
                 accumulator: MotionAccumulator, rate_limiter: RateLimiter):
        self.settings = settings
        self.backend = backend
        self.accumulator = accumulator
        self.rate_limiter = rate_limiter
        self.state = ActivationState.INACTIVE
        self.anchor: Optional[Position] = None

    @property
    def active(self) -> bool:
        return self.state == ActivationState.ACTIVE

    def _is_synthetic(self, source_device: int) -> bool:
        # Our own XTEST events must not drive the state machine
        return source_device == self.backend.synthetic_device_id

    def matches_chord(self, event: KeyPress) -> bool:
        """Return True if a key press is a fresh press of the trigger chord."""
        if event.is_repeat or self._is_synthetic(event.source_device):
            return False
        if event.code != self.settings.trigger_key_code:
            return False
        mask = self.settings.trigger_modifiers
        # Extra modifiers beyond the configured mask are tolerated
        return mask == 0 or (event.modifiers & mask) == mask

    def on_key_press(self, event: KeyPress) -> bool:
        """Handle a key press. Returns True if the state changed."""
        if not self.matches_chord(event):
            return False
        if self.settings.toggle_mode:
            if self.active:
                self.deactivate()
            else:
                self.activate()
            return True
        if self.active:
            return False
        self.activate()
        return True

    def on_key_release(self, event: KeyRelease) -> bool:
        """Handle a key release. Returns True if the state changed."""
        if self.settings.toggle_mode or not self.active:
            return False
        if self._is_synthetic(event.source_device):
            return False
        if event.code != self.settings.trigger_key_code:
            return False
        self.deactivate()
        return True

    def activate(self):
        """Enter Active: clear accumulators, pin the cursor and hide it."""
        self.accumulator.reset()
        self.rate_limiter.reset_window()
        try:
            self.anchor = self.backend.query_pointer_position()
        except EmissionFailure as e:
            # Scroll anyway, just without pinning the cursor
            logger.warning(f"Could not read pointer position: {e}")
            self.anchor = None
        self.state = ActivationState.ACTIVE
        self._set_cursor_visible(False)
        logger.debug(f"Scroll mode: ON (anchor {self.anchor})")

    def deactivate(self):
        """Enter Inactive and show the cursor again. Accumulators are kept."""
        self.state = ActivationState.INACTIVE
        self._set_cursor_visible(True)
        logger.debug("Scroll mode: OFF")

    def _set_cursor_visible(self, visible: bool):
        try:
            self.backend.set_cursor_visible(visible)
        except EmissionFailure as e:
            logger.warning(f"Could not {'show' if visible else 'hide'} cursor: {e}")
