"""Duration parsing for schedule and retention settings."""

import re

_UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}

_TOKEN_PATTERN = re.compile(r"(\d+)\s*([smhdw])")
_ISO_PATTERN = re.compile(r"^P(?:(\d+)W)?(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to seconds.

    Accepts compact forms ("4h", "30d", "1h30m", "2w") and ISO-8601
    durations ("PT4H", "P30D").

    Raises:
        DurationParseError: If the string is empty, malformed or zero
    """
    text = duration_str.strip()
    if not text:
        raise DurationParseError("Duration string cannot be empty")

    if text.upper().startswith("P"):
        total = _parse_iso(text.upper())
    else:
        total = _parse_compact(text.lower())

    if total == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")
    return total


def _parse_iso(text: str) -> int:
    match = _ISO_PATTERN.match(text)
    if not match or text in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration: '{text}'. Expected something like 'PT4H' or 'P30D'"
        )
    weeks, days, hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return (
        weeks * _UNIT_SECONDS["w"]
        + days * _UNIT_SECONDS["d"]
        + hours * _UNIT_SECONDS["h"]
        + minutes * _UNIT_SECONDS["m"]
        + seconds
    )


def _parse_compact(text: str) -> int:
    tokens = _TOKEN_PATTERN.findall(text)
    consumed = "".join(f"{number}{unit}" for number, unit in tokens)
    if not tokens or consumed != re.sub(r"\s+", "", text):
        raise DurationParseError(
            f"Invalid duration: '{text}'. Use digits with s, m, h, d or w (e.g. '4h', '30d', '1h30m')"
        )
    return sum(int(number) * _UNIT_SECONDS[unit] for number, unit in tokens)


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int,
    max_seconds: int,
    label: str = "Duration",
) -> None:
    """Raise DurationParseError if duration_seconds is outside [min_seconds, max_seconds]."""
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {humanize_seconds(duration_seconds)}. "
            f"Minimum is {humanize_seconds(min_seconds)}."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {humanize_seconds(duration_seconds)}. "
            f"Maximum is {humanize_seconds(max_seconds)}."
        )


def humanize_seconds(seconds: int) -> str:
    """Render seconds using the largest whole unit, e.g. 14400 -> '4 hours'."""
    for unit, name in (("w", "week"), ("d", "day"), ("h", "hour"), ("m", "minute")):
        size = _UNIT_SECONDS[unit]
        if seconds >= size and seconds % size == 0:
            count = seconds // size
            return f"{count} {name}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
