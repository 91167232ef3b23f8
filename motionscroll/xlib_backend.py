"""
XInput2 backend built on python-xlib.

Reads raw (unaccelerated) pointer motion and key events on the root window,
injects wheel buttons and key releases through XTEST, and hides the cursor
with XFIXES while scrolling.
"""

import logging
import struct
from typing import Optional, Tuple

from motionscroll.backend import Backend, scroll_button
from motionscroll.errors import (BackendUnavailable, DeviceIdentificationFailure,
                                 EmissionFailure, TransientEventReadFailure)
from motionscroll.events import (InputEvent, KeyPress, KeyRelease, Position, RawMotion,
                                 ScrollDirection, UNMATCHED_DEVICE_ID)

logger = logging.getLogger(__name__)

# XIKeyRepeat flag on XI_KeyPress events
XI_KEY_REPEAT = 1 << 16

# Slave device that carries XTEST key events
XTEST_KEYBOARD_NAME = "XTEST keyboard"

# Fixed part of an XIRawEvent after the generic event header:
# deviceid, time, detail, sourceid, valuators_len, flags, pad
_RAW_HEADER = struct.Struct("=HIIHHI4x")
_FP3232 = struct.Struct("=iI")


def _fp3232(data: bytes, offset: int) -> float:
    integral, frac = _FP3232.unpack_from(data, offset)
    return integral + frac / 4294967296.0


def _output_errors():
    """Xlib errors that only cost us one request."""
    from Xlib.error import ConnectionClosedError, XError
    return (XError, ConnectionClosedError)


def decode_raw_valuators(data) -> Tuple[float, float]:
    """
    Return the raw (dx, dy) of an XI_RawMotion payload.

    python-xlib leaves RawMotion payloads undecoded, so the valuator mask and
    FP3232 values are unpacked by hand. Axes missing from the mask count as 0.
    """
    if not isinstance(data, (bytes, bytearray)):
        raise TransientEventReadFailure(f"Unexpected raw motion payload {type(data).__name__}")
    try:
        _, _, _, _, mask_len, _ = _RAW_HEADER.unpack_from(data, 0)
        offset = _RAW_HEADER.size
        mask = int.from_bytes(data[offset:offset + mask_len * 4], 'little')
        offset += mask_len * 4

        axes = [bit for bit in range(mask_len * 32) if mask & (1 << bit)]
        # Accelerated values first, then the raw ones
        raw_offset = offset + len(axes) * _FP3232.size
        values = {}
        for i, axis in enumerate(axes):
            values[axis] = _fp3232(data, raw_offset + i * _FP3232.size)
    except struct.error as e:
        raise TransientEventReadFailure(f"Truncated raw motion event: {e}") from e
    return values.get(0, 0.0), values.get(1, 0.0)


class XInputBackend(Backend):
    def __init__(self, display_name: Optional[str] = None):
        try:
            from Xlib import X
            from Xlib.display import Display
            from Xlib.error import DisplayError
            from Xlib.ext import xinput, xtest
        except ImportError as e:
            raise BackendUnavailable(f"python-xlib not available: {e}") from e

        self._X = X
        self._xinput = xinput
        self._xtest = xtest

        try:
            self.display = Display(display_name)
        except DisplayError as e:
            raise BackendUnavailable(f"Cannot open display: {e}") from e

        self.screen = self.display.screen()
        self.root = self.screen.root

        for extension in ('XInputExtension', 'XTEST', 'XFIXES'):
            if not self.display.has_extension(extension):
                self.display.close()
                raise BackendUnavailable(f"X server lacks the {extension} extension")

        version = self.display.xinput_query_version()
        if version.major_version < 2:
            self.display.close()
            raise BackendUnavailable(
                f"XInput 2 required, server has {version.major_version}.{version.minor_version}")
        self.xi_opcode = self.display.query_extension('XInputExtension').major_opcode

        # XFIXES must be version-negotiated before cursor requests
        self.display.xfixes_query_version()

        self._event_mask = 0
        self._synthetic_device_id = self._find_synthetic_device()
        logger.info("✓ Using python-xlib backend (XInput2 raw motion)")

    @property
    def synthetic_device_id(self) -> int:
        return self._synthetic_device_id

    def _find_synthetic_device(self) -> int:
        try:
            return self._lookup_device_id(XTEST_KEYBOARD_NAME)
        except DeviceIdentificationFailure as e:
            logger.warning(f"{e}; synthetic key events will not be filtered")
            return UNMATCHED_DEVICE_ID

    def _lookup_device_id(self, name_fragment: str) -> int:
        reply = self.display.xinput_query_device(self._xinput.AllDevices)
        for device in reply.devices:
            name = device.name
            if isinstance(name, bytes):
                name = name.decode('utf-8', 'replace')
            if name_fragment in name:
                logger.debug(f"Synthetic input device: {name} (id {device.deviceid})")
                return device.deviceid
        raise DeviceIdentificationFailure(f"No input device named '*{name_fragment}*'")

    # --- INPUT ---
    def _select(self, mask: int):
        self._event_mask |= mask
        self.root.xinput_select_events([(self._xinput.AllMasterDevices, self._event_mask)])
        self.display.flush()

    def subscribe_raw_motion(self):
        self._select(self._xinput.RawMotionMask)

    def subscribe_key_events(self):
        self._select(self._xinput.KeyPressMask | self._xinput.KeyReleaseMask)

    def next_event(self) -> Optional[InputEvent]:
        from Xlib.error import ConnectionClosedError

        try:
            event = self.display.next_event()
        except ConnectionClosedError as e:
            raise BackendUnavailable(f"Display connection lost: {e}") from e

        if event.type != self._X.GenericEvent or event.extension != self.xi_opcode:
            return None

        xinput = self._xinput
        if event.evtype == xinput.RawMotion:
            dx, dy = decode_raw_valuators(event.data)
            return RawMotion(dx, dy)

        if event.evtype in (xinput.KeyPress, xinput.KeyRelease):
            try:
                data = event.data
                code = int(data.detail)
                modifiers = int(data.mods.effective_mods)
                source = int(data.sourceid)
                flags = int(data.flags)
            except (AttributeError, TypeError, ValueError) as e:
                raise TransientEventReadFailure(f"Unreadable key event: {e}") from e
            if event.evtype == xinput.KeyPress:
                return KeyPress(code, modifiers, bool(flags & XI_KEY_REPEAT), source)
            return KeyRelease(code, modifiers, source)

        return None

    # --- POINTER ---
    def query_pointer_position(self) -> Position:
        try:
            coord = self.root.query_pointer()._data
        except _output_errors() as e:
            raise EmissionFailure(f"pointer query: {e}") from e
        return Position(coord["root_x"], coord["root_y"])

    def warp_pointer_to(self, position: Position):
        try:
            self.root.warp_pointer(position.x, position.y)
            self.display.flush()
        except _output_errors() as e:
            raise EmissionFailure(f"warp to {position.x},{position.y}: {e}") from e

    def set_cursor_visible(self, visible: bool):
        try:
            if visible:
                self.root.xfixes_show_cursor()
            else:
                self.root.xfixes_hide_cursor()
            self.display.flush()
        except _output_errors() as e:
            raise EmissionFailure(str(e)) from e

    # --- OUTPUT ---
    def emit_scroll_tick(self, direction: ScrollDirection, sign: int):
        button = scroll_button(direction, sign)
        logger.debug(f"scroll_button {button}")
        try:
            self._xtest.fake_input(self.display, self._X.ButtonPress, button)
            self._xtest.fake_input(self.display, self._X.ButtonRelease, button)
            self.display.flush()
        except _output_errors() as e:
            raise EmissionFailure(f"button {button}: {e}") from e

    def release_key(self, key_code: int):
        try:
            self._xtest.fake_input(self.display, self._X.KeyRelease, key_code)
            self.display.flush()
        except _output_errors() as e:
            raise EmissionFailure(f"key release {key_code}: {e}") from e

    def close(self):
        try:
            self.root.xfixes_show_cursor()
            self.display.close()
        except Exception as e:
            logger.debug(f"Display close failed: {e}")
