"""Duration string parsing for CLI timeouts."""

import math
import re

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a duration string into seconds.

    Accepts compound unit strings ("30m", "1h30m", "1.5h", "250ms") and bare
    numbers, which are taken as seconds.

    Args:
        value: Duration text

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the text is not a valid positive duration
    """
    text = value.strip()
    if not text:
        raise ValueError("Empty duration")

    try:
        seconds = float(text)
    except ValueError:
        seconds = None

    if seconds is None:
        pos = 0
        seconds = 0.0
        for match in _COMPONENT.finditer(text):
            if match.start() != pos:
                break
            number, unit = match.groups()
            seconds += float(number) * _UNITS[unit]
            pos = match.end()
        if pos != len(text):
            raise ValueError(f"Invalid duration: {value!r}")

    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")

    return seconds
