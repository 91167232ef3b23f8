"""motionscroll - convert pointer motion into scroll wheel events."""

__version__ = "1.0.0"
