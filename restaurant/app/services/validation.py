"""Form validation for reservations, catering inquiries and feedback.

Each schema is a table of FieldRule entries keyed by the field name used in
the submitted JSON. ``validate_data`` applies every rule and collects
human-readable error messages; the ``validate_*_data`` helpers add the
cross-field business checks on top.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from restaurant.app.core.utils import parse_iso_date, time_to_minutes
from restaurant.app.middleware.rate_limit.window import validate_rate_limit

__all__ = [
    "BusinessHoursResult",
    "FieldRule",
    "TIME_SLOTS",
    "VALIDATION_RULES",
    "ValidationResult",
    "validate_business_hours",
    "validate_catering_data",
    "validate_data",
    "validate_feedback_data",
    "validate_rate_limit",
    "validate_reservation_data",
]

NAME_PATTERN = re.compile(r"^[a-zA-Z\s\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{10,}$")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
POSTAL_CODE_PATTERN = re.compile(r"^[A-Z0-9\s-]{3,10}$", re.IGNORECASE)
CURRENCY_PATTERN = re.compile(r"^\d+(\.\d{2})?$")

# Bookable reservation slots: lunch and dinner, every half hour.
TIME_SLOTS = (
    "11:00", "11:30", "12:00", "12:30", "13:00", "13:30", "14:00",
    "18:00", "18:30", "19:00", "19:30", "20:00", "20:30", "21:00",
)

LARGE_PARTY_SIZE = 8
MAX_EVENT_DAYS = 7
ON_SITE_GUEST_LIMIT = 100
LARGE_EVENT_NOTICE_DAYS = 14

# Keyed by date.weekday(): Monday is 0.
DEFAULT_BUSINESS_HOURS: Dict[int, Dict[str, Any]] = {
    0: {"open": "11:00", "close": "22:00"},
    1: {"open": "11:00", "close": "22:00"},
    2: {"open": "11:00", "close": "22:00"},
    3: {"open": "11:00", "close": "22:00"},
    4: {"open": "11:00", "close": "23:00"},
    5: {"open": "11:00", "close": "23:00"},
    6: {"open": "12:00", "close": "21:00"},
}


@dataclass(frozen=True)
class FieldRule:
    """Constraints for one submitted field."""
    required: bool = False
    required_if: Optional[Tuple[str, Any]] = None
    type: Optional[str] = None  # number
    format: Optional[str] = None  # email | phone | date | time | url | postal_code | currency
    pattern: Optional[re.Pattern] = None
    enum: Optional[Tuple[str, ...]] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    not_past: bool = False
    min_days_ahead: Optional[int] = None
    max_days_ahead: Optional[int] = None


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    processed_data: Optional[Dict[str, Any]] = None


@dataclass
class BusinessHoursResult:
    is_valid: bool
    error: Optional[str] = None


VALIDATION_RULES: Dict[str, Dict[str, FieldRule]] = {
    "reservation": {
        "name": FieldRule(required=True, min_length=2, max_length=100, pattern=NAME_PATTERN),
        "email": FieldRule(required=True, format="email"),
        "phone": FieldRule(required=True, format="phone"),
        "date": FieldRule(required=True, format="date", not_past=True, max_days_ahead=60),
        "time": FieldRule(required=True, format="time"),
        "partySize": FieldRule(required=True, type="number", min=1, max=20),
        "specialOccasion": FieldRule(enum=(
            "birthday", "anniversary", "business", "dateNight",
            "familyDinner", "celebration", "other",
        )),
        "specialRequests": FieldRule(max_length=500),
        "dietaryRestrictions": FieldRule(max_length=500),
    },
    "catering": {
        "name": FieldRule(required=True, min_length=2, max_length=100, pattern=NAME_PATTERN),
        "email": FieldRule(required=True, format="email"),
        "phone": FieldRule(required=True, format="phone"),
        "organization": FieldRule(max_length=200),
        "eventType": FieldRule(required=True, enum=(
            "corporate", "wedding", "private_party", "cultural_event",
            "birthday", "anniversary", "business_meeting", "other",
        )),
        "eventDate": FieldRule(
            required=True, format="date", not_past=True, min_days_ahead=7, max_days_ahead=365,
        ),
        "eventEndDate": FieldRule(format="date", not_past=True),
        "eventTime": FieldRule(format="time"),
        "guestCount": FieldRule(required=True, type="number", min=10, max=500),
        "venueOption": FieldRule(required=True, enum=("our_location", "customer_location", "delivery_only")),
        "venueAddress": FieldRule(max_length=500, required_if=("venueOption", "customer_location")),
        "venueDetails": FieldRule(max_length=1000),
        "menuPreferences": FieldRule(max_length=1000),
        "dietaryRestrictions": FieldRule(max_length=1000),
        "serviceStyle": FieldRule(enum=("buffet", "plated", "family_style", "cocktail", "mixed")),
        "specialEquipment": FieldRule(max_length=1000),
        "detailedRequirements": FieldRule(max_length=2000),
        "budgetRange": FieldRule(enum=(
            "under_1000", "1000_2500", "2500_5000", "5000_10000", "over_10000", "flexible",
        )),
    },
    "feedback": {
        "customerEmail": FieldRule(required=True, format="email"),
        "customerName": FieldRule(max_length=100),
        "foodRating": FieldRule(required=True, type="number", min=1, max=5),
        "serviceRating": FieldRule(required=True, type="number", min=1, max=5),
        "ambianceRating": FieldRule(type="number", min=1, max=5),
        "overallRating": FieldRule(required=True, type="number", min=1, max=5),
        "feedbackText": FieldRule(max_length=2000),
        "suggestions": FieldRule(max_length=1000),
    },
}


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _as_number(value: Any) -> Optional[float]:
    """Numbers pass through; numeric strings from form posts are coerced."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _check_format(value: Any, fmt: str) -> bool:
    text = str(value)
    if fmt == "email":
        return bool(EMAIL_PATTERN.match(text))
    if fmt == "phone":
        return bool(PHONE_PATTERN.match(text))
    if fmt == "date":
        return parse_iso_date(value) is not None
    if fmt == "time":
        return bool(TIME_PATTERN.match(text))
    if fmt == "url":
        parsed = urlparse(text)
        return bool(parsed.scheme and parsed.netloc)
    if fmt == "postal_code":
        return bool(POSTAL_CODE_PATTERN.match(text))
    if fmt == "currency":
        return bool(CURRENCY_PATTERN.match(text))
    return True


def _validate_field(
    name: str,
    value: Any,
    rule: FieldRule,
    data: Dict[str, Any],
    today: date,
) -> List[str]:
    errors: List[str] = []

    if rule.required and _is_empty(value):
        return [f"{name} is required"]

    if rule.required_if and not rule.required:
        other, expected = rule.required_if
        if data.get(other) == expected and _is_empty(value):
            return [f"{name} is required when {other} is {expected}"]

    if _is_empty(value):
        return errors

    number = None
    if rule.type == "number":
        number = _as_number(value)
        if number is None:
            errors.append(f"{name} must be of type number")

    if rule.format and not _check_format(value, rule.format):
        errors.append(f"{name} has invalid format")

    if rule.pattern is not None and not rule.pattern.match(str(value)):
        errors.append(f"{name} contains invalid characters")

    if rule.enum and value not in rule.enum:
        errors.append(f"{name} must be one of: {', '.join(rule.enum)}")

    if isinstance(value, str):
        if rule.min_length and len(value) < rule.min_length:
            errors.append(f"{name} must be at least {rule.min_length} characters long")
        if rule.max_length and len(value) > rule.max_length:
            errors.append(f"{name} must be no more than {rule.max_length} characters long")

    if number is not None:
        if rule.min is not None and number < rule.min:
            errors.append(f"{name} must be at least {rule.min:g}")
        if rule.max is not None and number > rule.max:
            errors.append(f"{name} must be no more than {rule.max:g}")

    if rule.not_past or rule.min_days_ahead or rule.max_days_ahead:
        when = parse_iso_date(value)
        if when is not None:
            if rule.not_past and when < today:
                errors.append(f"{name} cannot be in the past")
            if rule.min_days_ahead and when < today + timedelta(days=rule.min_days_ahead):
                errors.append(f"{name} must be at least {rule.min_days_ahead} days in advance")
            if rule.max_days_ahead and when > today + timedelta(days=rule.max_days_ahead):
                errors.append(f"{name} cannot be more than {rule.max_days_ahead} days in advance")

    return errors


def validate_data(data: Dict[str, Any], schema: str, today: Optional[date] = None) -> ValidationResult:
    """Validate data against a named schema.

    Args:
        data: Submitted fields
        schema: One of ``reservation``, ``catering``, ``feedback``
        today: Reference date for date rules (defaults to today)

    Returns:
        ValidationResult listing every failed rule
    """
    rules = VALIDATION_RULES.get(schema)
    if rules is None:
        return ValidationResult(is_valid=False, errors=["Invalid validation schema"])

    today = today or date.today()
    errors: List[str] = []
    for name, rule in rules.items():
        errors.extend(_validate_field(name, data.get(name), rule, data, today))
    return ValidationResult(is_valid=not errors, errors=errors)


def _unwrap_form_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten ``{"value": ..., "label": ...}`` objects sent by select inputs."""
    processed = {}
    for key, value in data.items():
        if isinstance(value, dict) and "value" in value:
            processed[key] = value["value"]
        elif isinstance(value, dict) and "label" in value:
            processed[key] = value.get("value") or value["label"]
        else:
            processed[key] = value
    return processed


def validate_reservation_data(data: Dict[str, Any], today: Optional[date] = None) -> ValidationResult:
    """Validate a reservation request.

    ``processed_data`` on the result holds the submitted fields with select
    objects flattened to their values.
    """
    processed = _unwrap_form_values(data)
    result = validate_data(processed, "reservation", today)

    party_size = _as_number(processed.get("partySize"))
    if party_size is not None and party_size > LARGE_PARTY_SIZE:
        requests = processed.get("specialRequests")
        if not requests or not str(requests).strip():
            result.errors.append("Large parties (8+ people) require special requests to be specified")

    if processed.get("date") and processed.get("time"):
        if processed["time"] not in TIME_SLOTS:
            result.errors.append("Selected time is not available")

    return ValidationResult(is_valid=not result.errors, errors=result.errors, processed_data=processed)


def validate_catering_data(data: Dict[str, Any], today: Optional[date] = None) -> ValidationResult:
    """Validate a catering inquiry, including the event-size business rules."""
    today = today or date.today()
    result = validate_data(data, "catering", today)

    start = parse_iso_date(data.get("eventDate"))
    end = parse_iso_date(data.get("eventEndDate"))
    if start and end:
        if end < start:
            result.errors.append("Event end date cannot be before start date")
        if (end - start).days > MAX_EVENT_DAYS:
            result.errors.append(f"Multi-day events cannot exceed {MAX_EVENT_DAYS} days")

    guests = _as_number(data.get("guestCount"))
    if guests is not None and guests > ON_SITE_GUEST_LIMIT:
        if data.get("venueOption") == "our_location":
            result.errors.append(
                f"Our restaurant location can accommodate maximum {ON_SITE_GUEST_LIMIT} guests"
            )
        if start and (start - today).days < LARGE_EVENT_NOTICE_DAYS:
            result.errors.append(
                f"Events with {ON_SITE_GUEST_LIMIT}+ guests require at least "
                f"{LARGE_EVENT_NOTICE_DAYS} days advance notice"
            )

    return ValidationResult(is_valid=not result.errors, errors=result.errors)


def validate_feedback_data(data: Dict[str, Any]) -> ValidationResult:
    return validate_data(data, "feedback")


def validate_business_hours(
    on_date: date,
    time: str,
    business_hours: Optional[Dict[int, Dict[str, Any]]] = None,
) -> BusinessHoursResult:
    """Check that a time falls inside the opening hours of its weekday.

    Args:
        on_date: Day of the visit
        time: ``HH:MM``
        business_hours: Per-weekday overrides (``{"open", "close"}`` or
            ``{"closed": True}``), keyed like DEFAULT_BUSINESS_HOURS
    """
    hours = {**DEFAULT_BUSINESS_HOURS, **(business_hours or {})}
    day = hours.get(on_date.weekday())

    if not day or day.get("closed"):
        return BusinessHoursResult(is_valid=False, error="Restaurant is closed on this day")

    minutes = time_to_minutes(time)
    if minutes < time_to_minutes(day["open"]) or minutes > time_to_minutes(day["close"]):
        return BusinessHoursResult(
            is_valid=False,
            error=f"Restaurant is open from {day['open']} to {day['close']} on this day",
        )

    return BusinessHoursResult(is_valid=True)
