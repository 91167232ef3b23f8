import queue
import unittest
from types import SimpleNamespace

from motionscroll.errors import EmissionFailure
from motionscroll.events import KeyPress, KeyRelease, Position, RawMotion
from motionscroll.pynput_backend import (CONTROL_MASK, MOD1_MASK, PYNPUT_PHYSICAL_DEVICE_ID,
                                         PYNPUT_SYNTHETIC_DEVICE_ID, PynputBackend)

XK_CONTROL_L = 0xffe3
XK_ALT_L = 0xffe9
XK_A = 0x61

KEYCODES = {XK_CONTROL_L: 37, XK_ALT_L: 64, XK_A: 38}


class FakeKey:
    """Stands in for a pynput KeyCode: only the keysym is used."""

    def __init__(self, vk):
        self.vk = vk


CTRL = FakeKey(XK_CONTROL_L)
ALT = FakeKey(XK_ALT_L)
A = FakeKey(XK_A)


class FakeKeymap:
    def keysym_to_keycode(self, keysym):
        return KEYCODES.get(keysym, 0)

    def keycode_to_keysym(self, keycode, index):
        for keysym, code in KEYCODES.items():
            if code == keycode:
                return keysym
        return 0


class FakeKeyboardController:
    def __init__(self):
        self.released = []

    def release(self, key):
        self.released.append(key.vk)


class StuckMouse:
    """Mouse controller whose warps always fail."""

    @property
    def position(self):
        return (100, 100)

    @position.setter
    def position(self, value):
        raise RuntimeError("XTEST unavailable")


def make_backend():
    """Backend without listeners or a display; events are queued by hand."""
    backend = object.__new__(PynputBackend)
    backend.events = queue.Queue()
    backend.display = FakeKeymap()
    backend.mouse_controller = SimpleNamespace(position=(100, 100))
    backend.keyboard_controller = FakeKeyboardController()
    backend._keyboard = SimpleNamespace(KeyCode=SimpleNamespace(from_vk=FakeKey))
    backend.pressed_codes = set()
    backend.pending_echoes = set()
    backend.last_position = Position(100, 100)
    backend._warned_cursor = False
    backend.modifier_masks = {CTRL: CONTROL_MASK, ALT: MOD1_MASK}
    backend.held_modifiers = 0
    return backend


class TestPynputKeyTranslation(unittest.TestCase):
    def setUp(self):
        self.backend = make_backend()

    def feed(self, kind, payload):
        self.backend.events.put((kind, payload))
        return self.backend.next_event()

    def test_key_press_maps_keysym_to_keycode(self):
        self.assertEqual(self.feed('press', A), KeyPress(38, 0, False, PYNPUT_PHYSICAL_DEVICE_ID))

    def test_repeat_detection(self):
        self.assertFalse(self.feed('press', A).is_repeat)
        self.assertTrue(self.feed('press', A).is_repeat)
        self.feed('release', A)
        self.assertFalse(self.feed('press', A).is_repeat)

    def test_held_modifier_mask(self):
        # The modifier's own press does not include itself
        self.assertEqual(self.feed('press', CTRL).modifiers, 0)
        self.assertEqual(self.feed('press', A).modifiers, CONTROL_MASK)
        self.feed('release', A)
        self.assertEqual(self.feed('release', CTRL).modifiers, CONTROL_MASK)
        self.assertEqual(self.feed('press', A).modifiers, 0)

    def test_own_release_tagged_synthetic(self):
        self.feed('press', ALT)
        self.backend.release_key(64)
        self.assertEqual(self.backend.keyboard_controller.released, [XK_ALT_L])

        echo = self.feed('release', ALT)
        self.assertEqual(echo, KeyRelease(64, MOD1_MASK, PYNPUT_SYNTHETIC_DEVICE_ID))

        # The user's real release later on is physical again
        physical = self.feed('release', ALT)
        self.assertEqual(physical.source_device, PYNPUT_PHYSICAL_DEVICE_ID)

    def test_release_unknown_keycode(self):
        with self.assertRaises(EmissionFailure):
            self.backend.release_key(200)
        self.assertEqual(self.backend.pending_echoes, set())

    def test_unmapped_key_ignored(self):
        self.assertIsNone(self.feed('press', FakeKey(0x1234)))
        self.assertIsNone(self.feed('press', FakeKey(None)))


class TestPynputMotion(unittest.TestCase):
    def setUp(self):
        self.backend = make_backend()

    def drain(self, warp_to=None):
        """Process every queued entry, warping after each motion like the engine does."""
        total = [0.0, 0.0]
        while not self.backend.events.empty():
            event = self.backend.next_event()
            if isinstance(event, RawMotion):
                total[0] += event.dx
                total[1] += event.dy
                if warp_to is not None:
                    self.backend.warp_pointer_to(warp_to)
        return total

    def test_delta_from_previous_position(self):
        self.backend.events.put(('move', (103, 96)))
        self.assertEqual(self.backend.next_event(), RawMotion(3.0, -4.0))

    def test_backlog_counted_once(self):
        """Moves queued before a warp keep their physical baseline."""
        anchor = Position(100, 100)
        self.backend.events.put(('move', (100, 105)))
        self.backend.events.put(('move', (100, 110)))
        self.assertEqual(self.drain(warp_to=anchor), [0.0, 10.0])

    def test_warp_echo_is_silent(self):
        anchor = Position(100, 100)
        self.backend.events.put(('move', (100, 120)))
        self.assertEqual(self.backend.next_event(), RawMotion(0.0, 20.0))
        self.backend.warp_pointer_to(anchor)
        self.assertEqual(self.backend.mouse_controller.position, (100, 100))
        # pynput reports the warp itself as a move back to the anchor
        self.backend.events.put(('move', (100, 100)))
        self.backend.events.put(('move', (100, 104)))
        self.assertEqual(self.drain(), [0.0, 4.0])

    def test_failed_warp_rebases_on_next_move(self):
        self.backend.mouse_controller = StuckMouse()
        self.backend.events.put(('move', (100, 130)))
        self.backend.next_event()
        with self.assertRaises(EmissionFailure):
            self.backend.warp_pointer_to(Position(100, 100))
        self.backend.events.put(('move', (100, 131)))
        self.backend.events.put(('move', (100, 135)))
        self.assertEqual(self.drain(), [0.0, 4.0])


if __name__ == '__main__':
    unittest.main()
