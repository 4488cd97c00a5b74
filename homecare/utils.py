"""Shared utilities used across the pricing and proximity modules."""

import re

CANADIAN_POSTAL_CODE_REGEX = re.compile(r"^[A-Za-z]\d[A-Za-z]\s?\d[A-Za-z]\d$")
_TIME_REGEX = re.compile(r"^(\d{1,2}):(\d{2})$")


class InvalidTimeError(ValueError):
    """Raised when a time-of-day string is not a valid HH:MM value."""


def normalize_postal_code(value: str) -> str:
    """Strip all whitespace and uppercase a postal code.

    Examples:
        >>> normalize_postal_code("m5v 1j9")
        'M5V1J9'
    """
    return re.sub(r"\s", "", value).upper()


def is_valid_postal_code(value: str) -> bool:
    """Accept both the "A1A 1A1" and "A1A1A1" Canadian formats."""
    return bool(CANADIAN_POSTAL_CODE_REGEX.match(value.strip()))


def format_postal_code(value: str) -> str:
    """Format a postal code as "A1A 1A1".

    Partial input is uppercased and truncated to seven characters.

    Examples:
        >>> format_postal_code("k8n1a1")
        'K8N 1A1'
        >>> format_postal_code("m5")
        'M5'
    """
    cleaned = normalize_postal_code(value)
    if len(cleaned) == 6:
        return f"{cleaned[:3]} {cleaned[3:]}"
    return value.upper()[:7]


def minutes_of_day(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight.

    Raises:
        InvalidTimeError: If the value is not a valid 24-hour time.
    """
    match = _TIME_REGEX.match(value.strip())
    if not match:
        raise InvalidTimeError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeError(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_duration(minutes: int) -> str:
    """Format minutes as a readable duration.

    Examples:
        >>> format_duration(45)
        '45 min'
        >>> format_duration(90)
        '1 hr 30 min'
    """
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins} min"
    if mins == 0:
        return f"{hours} hr"
    return f"{hours} hr {mins} min"
