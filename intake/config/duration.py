"""Duration parsing for interval settings such as ``retry_queue.drain_interval``."""

import re

UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}

ISO_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$")
HUMAN_PART_PATTERN = re.compile(r"(\d+)([smhd])")


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to seconds.

    Accepts compact unit strings ("30s", "15m", "1h30m", "2d") and
    ISO-8601 durations ("PT30S", "PT15M", "P1DT2H").

    Raises:
        DurationParseError: If the string is empty, malformed or zero

    Examples:
        >>> parse_duration("15m")
        900
        >>> parse_duration("PT1H30M")
        5400
    """
    text = duration_str.strip()
    if not text:
        raise DurationParseError("Duration string cannot be empty")

    if text[0] in "pP":
        seconds = _parse_iso8601(text.upper())
    else:
        seconds = _parse_compact(text.lower())

    if seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")
    return seconds


def _parse_iso8601(text: str) -> int:
    match = ISO_PATTERN.match(text)
    if not match or text in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{text}'. "
            "Expected format like 'PT30S', 'PT15M' or 'P1DT2H'"
        )

    days, hours, minutes, seconds = match.groups()
    return (
        int(days or 0) * UNIT_SECONDS["d"]
        + int(hours or 0) * UNIT_SECONDS["h"]
        + int(minutes or 0) * UNIT_SECONDS["m"]
        + int(float(seconds or 0))
    )


def _parse_compact(text: str) -> int:
    cleaned = re.sub(r"\s+", "", text)
    parts = HUMAN_PART_PATTERN.findall(cleaned)

    if not parts or "".join(n + u for n, u in parts) != cleaned:
        raise DurationParseError(
            f"Invalid duration format: '{text}'. "
            "Use digits followed by s, m, h or d, e.g. '30s', '15m', '1h30m'"
        )

    return sum(int(number) * UNIT_SECONDS[unit] for number, unit in parts)


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int = 30,
    max_seconds: int = 86400,
    label: str = "Interval",
) -> None:
    """
    Check that a duration lies within ``[min_seconds, max_seconds]``.

    Raises:
        DurationParseError: If the duration is outside the range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {format_duration(duration_seconds)}. "
            f"Minimum is {format_duration(min_seconds)}."
        )

    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {format_duration(duration_seconds)}. "
            f"Maximum is {format_duration(max_seconds)}."
        )


def format_duration(seconds: int) -> str:
    """Render seconds in the largest whole unit ("15 minutes", "1 day")."""
    for unit, name in (("d", "day"), ("h", "hour"), ("m", "minute")):
        if seconds >= UNIT_SECONDS[unit]:
            value = seconds // UNIT_SECONDS[unit]
            return f"{value} {name}{'s' if value != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
