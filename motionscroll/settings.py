"""
Runtime settings built once at startup from the config module and CLI flags.
"""

import logging
from dataclasses import dataclass, fields
from enum import IntEnum

from motionscroll import config
from motionscroll.errors import ConfigurationError

BACKEND_NAMES = ("xinput", "pynput")

# X keycodes are 8..255 by protocol
MIN_KEYCODE = 8
MAX_KEYCODE = 255


class Verbosity(IntEnum):
    QUIET = 0
    NORMAL = 1
    DEBUG = 2

    @property
    def log_level(self) -> int:
        return {
            Verbosity.QUIET: logging.WARNING,
            Verbosity.NORMAL: logging.INFO,
            Verbosity.DEBUG: logging.DEBUG,
        }[self]


@dataclass(frozen=True)
class Settings:
    threshold: float = 20.0
    allow_horizontal: bool = False
    allow_repeated_ticks: bool = False
    toggle_mode: bool = False
    release_trigger_before_scroll: bool = False
    trigger_key_code: int = 64
    trigger_modifiers: int = 0
    verbosity: Verbosity = Verbosity.NORMAL
    min_interval_ms: float = 30.0
    backend: str = "xinput"

    def __post_init__(self):
        try:
            threshold = float(self.threshold)
            min_interval = float(self.min_interval_ms)
            key_code = int(self.trigger_key_code)
            modifiers = int(self.trigger_modifiers)
            verbosity = Verbosity(int(self.verbosity))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid setting: {e}") from e

        if not threshold > 0:
            raise ConfigurationError(f"Scroll threshold must be positive, got {self.threshold!r}")
        if min_interval < 0:
            raise ConfigurationError(f"Minimum scroll interval must not be negative, got {self.min_interval_ms!r}")
        if not MIN_KEYCODE <= key_code <= MAX_KEYCODE:
            raise ConfigurationError(
                f"Trigger key code must be between {MIN_KEYCODE} and {MAX_KEYCODE}, got {self.trigger_key_code!r}")
        if modifiers < 0:
            raise ConfigurationError(f"Trigger modifier mask must not be negative, got {self.trigger_modifiers!r}")
        if self.backend not in BACKEND_NAMES:
            raise ConfigurationError(
                f"Unknown backend {self.backend!r} (choose from {', '.join(BACKEND_NAMES)})")

        # Normalise after validation; frozen, so go through object.__setattr__
        object.__setattr__(self, 'threshold', threshold)
        object.__setattr__(self, 'min_interval_ms', min_interval)
        object.__setattr__(self, 'trigger_key_code', key_code)
        object.__setattr__(self, 'trigger_modifiers', modifiers)
        object.__setattr__(self, 'verbosity', verbosity)
        for flag in ('allow_horizontal', 'allow_repeated_ticks', 'toggle_mode', 'release_trigger_before_scroll'):
            object.__setattr__(self, flag, bool(getattr(self, flag)))

    @classmethod
    def from_config(cls, **overrides) -> "Settings":
        """
        Build settings from the config module, then apply overrides.

        Overrides whose value is None are ignored so CLI flags that were not
        given fall through to the config defaults.
        """
        values = {
            'threshold': getattr(config, 'SCROLL_THRESHOLD', 20),
            'allow_horizontal': getattr(config, 'ALLOW_HORIZONTAL', False),
            'allow_repeated_ticks': getattr(config, 'ALLOW_REPEATED_TICKS', False),
            'toggle_mode': getattr(config, 'TOGGLE_MODE', False),
            'release_trigger_before_scroll': getattr(config, 'RELEASE_TRIGGER_BEFORE_SCROLL', False),
            'trigger_key_code': getattr(config, 'TRIGGER_KEY_CODE', 64),
            'trigger_modifiers': getattr(config, 'TRIGGER_MODIFIERS', 0),
            'verbosity': getattr(config, 'VERBOSITY', Verbosity.NORMAL),
            'min_interval_ms': getattr(config, 'MIN_SCROLL_INTERVAL_MS', 30),
            'backend': str(getattr(config, 'DEFAULT_BACKEND', 'xinput')).lower(),
        }
        known = {f.name for f in fields(cls)}
        for name, value in overrides.items():
            if name not in known:
                raise ConfigurationError(f"Unknown setting {name!r}")
            if value is not None:
                values[name] = value
        return cls(**values)
