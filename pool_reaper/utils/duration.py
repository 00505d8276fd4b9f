"""Duration parsing and formatting in the pool service's wire format.

The pool service accepts durations written the way Go's ``time.Duration``
prints them (``30m0s``, ``1h0m0s``, ``1m30s``). Operators configure the
reaper with the same notation, so both directions live here.
"""

import re
from datetime import timedelta

_UNIT_MICROSECONDS = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60_000_000,
    "h": 3_600_000_000,
}

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|ms|s|m|h)")
_FULL = re.compile(r"^(?:(?:\d+\.?\d*|\.\d+)(?:ns|us|µs|ms|s|m|h))+$")


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as ``30m``, ``1h30m`` or ``90``.

    A bare number is read as seconds. A leading ``-`` yields a negative
    duration; callers decide whether that is acceptable.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    text = value.strip() if value else ""
    if not text:
        raise ValueError("Duration cannot be empty")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    try:
        if re.fullmatch(r"\d+(\.\d+)?", text):
            return timedelta(seconds=sign * float(text))

        if not _FULL.match(text):
            raise ValueError(f"Invalid duration: '{value}'")

        micros = 0.0
        for amount, unit in _COMPONENT.findall(text):
            micros += float(amount) * _UNIT_MICROSECONDS[unit]
        return timedelta(microseconds=sign * round(micros))
    except OverflowError as e:
        raise ValueError(f"Duration out of range: '{value}'") from e


def _trim(number: float) -> str:
    text = f"{number:.6f}".rstrip("0").rstrip(".")
    return text or "0"


def format_duration(duration: timedelta) -> str:
    """Format a timedelta the way Go's ``Duration.String`` does."""
    micros = (duration.days * 86_400 + duration.seconds) * 1_000_000 + duration.microseconds
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_trim(micros / 1_000)}ms"

    hours, rem = divmod(micros, 3_600_000_000)
    minutes, rem = divmod(rem, 60_000_000)
    seconds = _trim(rem / 1_000_000)

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"
