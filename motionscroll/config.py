"""
motionscroll - Configuration

Edit these values to tune scrolling behavior. Changes are picked up on next run.
Command-line flags override them.

Notes:
- SCROLL_THRESHOLD is the pointer travel (raw motion units) needed for one scroll tick.
  Lower = faster scrolling.
- ALLOW_REPEATED_TICKS lets one fast motion report emit several ticks at once instead
  of at most one.
- TOGGLE_MODE makes the trigger latch: press once to start scrolling, again to stop.
  When off, scrolling lasts only while the trigger key is held.
- RELEASE_TRIGGER_BEFORE_SCROLL sends a fake release of the trigger key before the
  first tick, so e.g. Alt+wheel shortcuts in the focused app don't fire.
- TRIGGER_KEY_CODE is an X keycode (see `xev` or `xinput test-xi2`).
- TRIGGER_MODIFIERS is an X modifier mask (Shift=1, Lock=2, Control=4, Mod1/Alt=8,
  Mod4/Super=64) that must be held together with the trigger key. 0 = none required.
"""

# Backend to use by default: "xinput" (XInput2 via python-xlib, raw motion) or "pynput"
DEFAULT_BACKEND = "xinput"

# Raw motion units per scroll tick
SCROLL_THRESHOLD = 20

# Also convert sideways motion into horizontal scrolling
ALLOW_HORIZONTAL = False

# Emit more than one tick when a single report crosses the threshold several times
ALLOW_REPEATED_TICKS = False

# Latch scrolling on/off with the trigger instead of holding it
TOGGLE_MODE = False

# Fake a trigger key release before the first tick of each scroll session
RELEASE_TRIGGER_BEFORE_SCROLL = False

# Trigger key (64 = Alt_L with the usual evdev keymap)
TRIGGER_KEY_CODE = 64

# Modifier mask required together with the trigger key
TRIGGER_MODIFIERS = 0

# Minimum time between two scroll emissions (milliseconds). Motion arriving
# faster than this is dropped instead of queued.
MIN_SCROLL_INTERVAL_MS = 30

# 0 = warnings only, 1 = normal, 2 = debug
VERBOSITY = 1
