"""
Scroll engine: the single event loop that ties the pieces together.

Events are read one at a time from the backend and fully processed before the
next read. Key events drive the activation state; motion events, while active,
feed the accumulator, and any resulting scroll requests pass the rate limiter
before being emitted. The pointer is warped back to its anchor after every
active motion event so the cursor stays put while the user scrolls.
"""

import logging
import time
from typing import Callable, Optional

from motionscroll.accumulator import MotionAccumulator
from motionscroll.activation import ActivationController
from motionscroll.backend import Backend
from motionscroll.errors import EmissionFailure, TransientEventReadFailure
from motionscroll.events import (InputEvent, KeyPress, KeyRelease, RawMotion,
                                 ScrollEmissionRequest)
from motionscroll.rate_limiter import RateLimiter
from motionscroll.settings import Settings

logger = logging.getLogger(__name__)


class ScrollEngine:
    def __init__(self, settings: Settings, backend: Backend, clock: Callable[[], float] = time.monotonic):
        self.settings = settings
        self.backend = backend
        self.clock = clock
        self.running = False

        self.accumulator = MotionAccumulator(
            settings.threshold,
            allow_horizontal=settings.allow_horizontal,
            allow_repeated_ticks=settings.allow_repeated_ticks,
        )
        self.rate_limiter = RateLimiter(settings.min_interval_ms, clock=clock)
        self.activation = ActivationController(settings, backend, self.accumulator, self.rate_limiter)

        self._handlers = {
            KeyPress: self.activation.on_key_press,
            KeyRelease: self.activation.on_key_release,
            RawMotion: self._on_motion,
        }

    @property
    def active(self) -> bool:
        return self.activation.active

    def dispatch(self, event: Optional[InputEvent]):
        """Route one event to its handler. Unknown events are ignored."""
        if event is None:
            return
        handler = self._handlers.get(type(event))
        if handler is not None:
            handler(event)

    def _on_motion(self, event: RawMotion):
        if not self.active:
            return

        for request in self.accumulator.add_motion(event.dx, event.dy):
            self._emit(request)

        # Pin the cursor: travel is only ever seen as accumulated delta
        anchor = self.activation.anchor
        if anchor is not None:
            try:
                self.backend.warp_pointer_to(anchor)
            except EmissionFailure as e:
                logger.debug(f"Pointer warp failed: {e}")

    def _emit(self, request: ScrollEmissionRequest):
        now = self.clock()
        if not self.rate_limiter.allows(now):
            # Drop the pending motion rather than queue it
            self.accumulator.reset(request.direction)
            logger.debug(f"Rate limited {request.direction.value} scroll, dropped {request.count} tick(s)")
            return

        if self.rate_limiter.first_in_window and self.settings.release_trigger_before_scroll:
            try:
                self.backend.release_key(self.settings.trigger_key_code)
            except EmissionFailure as e:
                logger.warning(f"Could not release trigger key: {e}")

        for _ in range(request.count):
            try:
                self.backend.emit_scroll_tick(request.direction, request.sign)
            except EmissionFailure as e:
                logger.debug(f"Skipped scroll tick: {e}")
        self.rate_limiter.record(now)

    def stop(self):
        self.running = False

    def run(self):
        """Main event loop. Returns when stop() is called or on Ctrl+C."""
        self.backend.subscribe_raw_motion()
        self.backend.subscribe_key_events()
        self.running = True
        logger.info("Listening for pointer motion...")

        try:
            while self.running:
                try:
                    event = self.backend.next_event()
                except TransientEventReadFailure as e:
                    logger.debug(f"Skipped unreadable event: {e}")
                    continue
                self.dispatch(event)
        except KeyboardInterrupt:
            logger.info("Stopping (interrupted)")
        finally:
            self.running = False
            # Cleanup must not mask the error that ended the loop
            if self.active:
                try:
                    self.activation.deactivate()
                except Exception as e:
                    logger.debug(f"Could not leave scroll mode cleanly: {e}")
            try:
                self.backend.close()
            except Exception as e:
                logger.debug(f"Backend close failed: {e}")
            logger.info("motionscroll stopped.")
