#!/usr/bin/env python3
"""
motionscroll - turn pointer movement into scroll wheel events.

Hold the trigger key (Alt by default) and move the mouse, touchpad, trackpoint
or trackball: the cursor stays put and the movement scrolls instead.
"""

import argparse
import logging
import signal
import sys

from motionscroll.backend import create_backend
from motionscroll.engine import ScrollEngine
from motionscroll.errors import BackendUnavailable, ConfigurationError
from motionscroll.settings import BACKEND_NAMES, Settings, Verbosity

logger = logging.getLogger(__name__)


def _number(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None


def _integer(text: str) -> int:
    # Accept 0x.. masks as well as decimal
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None


class _ConfigErrorParser(argparse.ArgumentParser):
    """Argument parser that reports bad values as ConfigurationError."""

    def error(self, message):
        raise ConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ConfigErrorParser(
        prog="motionscroll",
        description="Converts X pointer movement (mouse, touchpad, trackpoint, trackball) "
                    "to scroll wheel events while a trigger key is held.",
    )
    parser.add_argument("-s", "--threshold", type=_number, metavar="SCROLL_SPEED_VALUE",
                        help="pointer travel per scroll tick (lower = faster)")
    parser.add_argument("-H", "--horizontal", dest="allow_horizontal", action="store_true", default=None,
                        help="allow horizontal scrolling")
    parser.add_argument("-r", "--repeat-ticks", dest="allow_repeated_ticks", action="store_true", default=None,
                        help="emit several ticks when one report crosses the threshold several times")
    parser.add_argument("-t", "--toggle", dest="toggle_mode", action="store_true", default=None,
                        help="press the trigger once to start scrolling and again to stop")
    parser.add_argument("-R", "--release-trigger", dest="release_trigger_before_scroll",
                        action="store_true", default=None,
                        help="send a fake trigger key release before the first tick")
    parser.add_argument("-k", "--key", dest="trigger_key_code", type=_integer, metavar="KEYCODE",
                        help="X keycode of the trigger key")
    parser.add_argument("-m", "--modifiers", dest="trigger_modifiers", type=_integer, metavar="MASK",
                        help="X modifier mask that must be held with the trigger key")
    parser.add_argument("-i", "--interval", dest="min_interval_ms", type=_number, metavar="MS",
                        help="minimum milliseconds between scroll emissions")
    parser.add_argument("-b", "--backend", choices=BACKEND_NAMES,
                        help="input backend")
    parser.add_argument("-v", "--verbose", dest="verbosity", action="store_const", const=Verbosity.DEBUG,
                        help="debug output")
    parser.add_argument("-q", "--quiet", dest="verbosity", action="store_const", const=Verbosity.QUIET,
                        help="warnings only")
    return parser


def parse_settings(argv=None) -> Settings:
    """Parse command-line flags into Settings, falling back to the config module."""
    args = build_parser().parse_args(argv)
    return Settings.from_config(**vars(args))


def setup_logging(verbosity: Verbosity):
    logging.basicConfig(format='%(levelname)s:%(message)s', level=verbosity.log_level)


def main(argv=None) -> int:
    """Main entry point"""
    def _handle_signal(signum, frame):
        raise KeyboardInterrupt()

    try:
        settings = parse_settings(argv)
    except ConfigurationError as e:
        print(f"motionscroll: {e}", file=sys.stderr)
        return 1

    setup_logging(settings.verbosity)

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        backend = create_backend(settings.backend)
    except BackendUnavailable as e:
        logger.error(f"✗ {e}")
        return 1

    mode = "press to toggle" if settings.toggle_mode else "hold"
    logger.info("motionscroll started!")
    logger.info(f"  Trigger: keycode {settings.trigger_key_code} "
                f"(modifiers 0x{settings.trigger_modifiers:x}), {mode}")
    logger.info(f"  Threshold: {settings.threshold:g}, min interval {settings.min_interval_ms:g}ms")
    logger.info(f"  Horizontal scrolling: {'ON' if settings.allow_horizontal else 'OFF'}")

    engine = ScrollEngine(settings, backend)
    try:
        engine.run()
    except BackendUnavailable as e:
        logger.error(f"✗ {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
