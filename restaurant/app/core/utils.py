"""Utility functions for the restaurant application."""

import secrets
import string
import time
from datetime import date, datetime
from typing import Optional

CONFIRMATION_CODE_ALPHABET = string.ascii_uppercase + string.digits
_BASE36 = string.digits + string.ascii_uppercase


def generate_confirmation_code(length: int = 6) -> str:
    """Random uppercase alphanumeric code shown to customers."""
    return "".join(secrets.choice(CONFIRMATION_CODE_ALPHABET) for _ in range(length))


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_booking_reference(kind: str = "RES") -> str:
    """Build a reference such as ``RES-LX2K9A1B-4QZ``.

    The middle part is the current epoch milliseconds in base 36, the tail
    three random base-36 characters.
    """
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(3))
    return f"{kind}-{stamp}-{suffix}"


def parse_iso_date(value) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (or a full ISO timestamp) into a date.

    Returns:
        The date, or None if value is empty or not a date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_time_label(value: str) -> str:
    """``"18:30"`` -> ``"6:30 PM"``."""
    hour_text, minute = value.split(":")
    hour = int(hour_text)
    suffix = "PM" if hour >= 12 else "AM"
    display = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display}:{minute} {suffix}"
