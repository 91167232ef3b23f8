"""
Error types raised by motionscroll.

Configuration and backend start-up failures are fatal and reported by the CLI.
Device identification and per-event failures are handled where they occur.
"""


class MotionScrollError(Exception):
    """Base class for all motionscroll errors."""


class ConfigurationError(MotionScrollError):
    """A setting is malformed or out of range."""


class BackendUnavailable(MotionScrollError):
    """The display, input library or a required extension is missing."""


class DeviceIdentificationFailure(MotionScrollError):
    """The synthetic-input source device could not be located."""


class TransientEventReadFailure(MotionScrollError):
    """A single event's payload could not be read; skip it."""


class EmissionFailure(MotionScrollError):
    """A synthetic scroll tick, key release or pointer warp failed."""
