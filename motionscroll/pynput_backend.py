"""
pynput backend.

Keyboard and mouse listeners run on pynput's own threads and only enqueue what
they saw; translation into core events happens in next_event() on the engine
thread. Motion deltas are derived from absolute pointer positions, so they
include pointer acceleration and stop at screen edges. Cursor hiding is not
available through pynput.
"""

import logging
import queue
from typing import Optional, Set

from motionscroll.backend import Backend
from motionscroll.errors import BackendUnavailable, EmissionFailure
from motionscroll.events import (InputEvent, KeyPress, KeyRelease, Position, RawMotion,
                                 ScrollDirection)

logger = logging.getLogger(__name__)

# Source id stamped on echoes of our own synthesized key releases
PYNPUT_SYNTHETIC_DEVICE_ID = 0
PYNPUT_PHYSICAL_DEVICE_ID = 1

# X modifier masks for the keys pynput reports as modifiers
SHIFT_MASK = 1 << 0
LOCK_MASK = 1 << 1
CONTROL_MASK = 1 << 2
MOD1_MASK = 1 << 3
MOD4_MASK = 1 << 6


class PynputBackend(Backend):
    def __init__(self):
        try:
            from pynput import keyboard, mouse
            from Xlib.display import Display
            from Xlib.error import DisplayError
        except ImportError as e:
            raise BackendUnavailable(f"pynput backend not available: {e}") from e

        self._keyboard = keyboard
        self._mouse = mouse
        try:
            # Only used to translate between keysyms and keycodes
            self.display = Display()
        except DisplayError as e:
            raise BackendUnavailable(f"Cannot open display: {e}") from e

        self.events = queue.Queue()
        self.mouse_controller = mouse.Controller()
        self.keyboard_controller = keyboard.Controller()
        self.keyboard_listener = None
        self.mouse_listener = None

        self.pressed_codes: Set[int] = set()
        self.pending_echoes: Set[int] = set()
        self.last_position: Optional[Position] = None
        self._warned_cursor = False

        key = keyboard.Key
        self.modifier_masks = {
            key.shift: SHIFT_MASK, key.shift_l: SHIFT_MASK, key.shift_r: SHIFT_MASK,
            key.caps_lock: LOCK_MASK,
            key.ctrl: CONTROL_MASK, key.ctrl_l: CONTROL_MASK, key.ctrl_r: CONTROL_MASK,
            key.alt: MOD1_MASK, key.alt_l: MOD1_MASK, key.alt_r: MOD1_MASK,
            key.cmd: MOD4_MASK, key.cmd_l: MOD4_MASK, key.cmd_r: MOD4_MASK,
        }
        self.held_modifiers = 0
        logger.info("✓ Using pynput backend")

    @property
    def synthetic_device_id(self) -> int:
        return PYNPUT_SYNTHETIC_DEVICE_ID

    # --- LISTENER CALLBACKS (pynput threads) ---
    def _on_press(self, key):
        self.events.put(('press', key))

    def _on_release(self, key):
        self.events.put(('release', key))

    def _on_move(self, x, y):
        self.events.put(('move', (int(x), int(y))))

    # --- INPUT ---
    def subscribe_raw_motion(self):
        if self.mouse_listener is None:
            self.last_position = self.query_pointer_position()
            self.mouse_listener = self._mouse.Listener(on_move=self._on_move)
            self.mouse_listener.start()

    def subscribe_key_events(self):
        if self.keyboard_listener is None:
            self.keyboard_listener = self._keyboard.Listener(
                on_press=self._on_press,
                on_release=self._on_release,
                suppress=False
            )
            self.keyboard_listener.start()

    def _keycode(self, key) -> Optional[int]:
        """Translate a pynput key to an X keycode (pynput reports keysyms)."""
        key_code = getattr(key, 'value', key)
        vk = getattr(key_code, 'vk', None)
        if vk is None:
            return None
        code = self.display.keysym_to_keycode(vk)
        return code or None

    def next_event(self) -> Optional[InputEvent]:
        kind, payload = self.events.get()

        if kind == 'warp':
            # Moves queued after this marker are measured from the warp target
            self.last_position = payload
            return None

        if kind == 'move':
            x, y = payload
            last = self.last_position or Position(x, y)
            self.last_position = Position(x, y)
            dx, dy = x - last.x, y - last.y
            # Our own warps come back as moves to the anchor
            if dx == 0 and dy == 0:
                return None
            return RawMotion(float(dx), float(dy))

        code = self._keycode(payload)
        mask = self.modifier_masks.get(payload, 0)

        if kind == 'press':
            # Modifier state as seen before this key went down, as X reports it
            modifiers = self.held_modifiers
            self.held_modifiers |= mask
            if code is None:
                return None
            is_repeat = code in self.pressed_codes
            self.pressed_codes.add(code)
            return KeyPress(code, modifiers, is_repeat, PYNPUT_PHYSICAL_DEVICE_ID)

        modifiers = self.held_modifiers
        self.held_modifiers &= ~mask
        if code is None:
            return None
        self.pressed_codes.discard(code)
        source = PYNPUT_PHYSICAL_DEVICE_ID
        if code in self.pending_echoes:
            self.pending_echoes.discard(code)
            source = PYNPUT_SYNTHETIC_DEVICE_ID
        return KeyRelease(code, modifiers, source)

    # --- POINTER ---
    def query_pointer_position(self) -> Position:
        x, y = self.mouse_controller.position
        return Position(int(x), int(y))

    def warp_pointer_to(self, position: Position):
        # Queued ahead of the warp so its echo is measured from the anchor,
        # while moves already waiting keep their physical baseline
        self.events.put(('warp', position))
        try:
            self.mouse_controller.position = (position.x, position.y)
        except Exception as e:
            # Unknown cursor position: rebase on the next reported move
            self.events.put(('warp', None))
            raise EmissionFailure(f"warp to {position.x},{position.y}: {e}") from e

    def set_cursor_visible(self, visible: bool):
        if not self._warned_cursor:
            logger.debug("Cursor hiding is not supported by the pynput backend")
            self._warned_cursor = True

    # --- OUTPUT ---
    def emit_scroll_tick(self, direction: ScrollDirection, sign: int):
        # pynput: positive dy scrolls up, positive dx scrolls right
        if direction == ScrollDirection.VERTICAL:
            dx, dy = 0, -sign
        else:
            dx, dy = sign, 0
        try:
            self.mouse_controller.scroll(dx, dy)
        except Exception as e:
            raise EmissionFailure(f"scroll {dx},{dy}: {e}") from e

    def release_key(self, key_code: int):
        keysym = self.display.keycode_to_keysym(key_code, 0)
        if not keysym:
            raise EmissionFailure(f"No keysym for keycode {key_code}")
        self.pending_echoes.add(key_code)
        try:
            self.keyboard_controller.release(self._keyboard.KeyCode.from_vk(keysym))
        except Exception as e:
            self.pending_echoes.discard(key_code)
            raise EmissionFailure(f"key release {key_code}: {e}") from e
        self.pressed_codes.discard(key_code)

    def close(self):
        for listener in (self.keyboard_listener, self.mouse_listener):
            if listener:
                listener.stop()
        self.keyboard_listener = None
        self.mouse_listener = None
        self.display.close()
