"""Input sanitization applied after validation and before persistence."""

import math
import re
from typing import Any, Dict, Optional

from restaurant.app.core.utils import parse_iso_date

STRING_MAX_LENGTH = 255
TEXT_MAX_LENGTH = 2000
PHONE_MAX_LENGTH = 20

_PHONE_STRIP = re.compile(r"[^\d\s\-()+]")


def sanitize_string(value: Any) -> Optional[str]:
    if not value:
        return None
    return str(value).strip()[:STRING_MAX_LENGTH]


def sanitize_text(value: Any) -> Optional[str]:
    if not value:
        return None
    return str(value).strip()[:TEXT_MAX_LENGTH]


def sanitize_email(value: Any) -> Optional[str]:
    if not value:
        return None
    return str(value).lower().strip()[:STRING_MAX_LENGTH]


def sanitize_phone(value: Any) -> Optional[str]:
    """Keep digits, spaces, hyphens, parentheses and the plus sign."""
    if not value:
        return None
    return _PHONE_STRIP.sub("", str(value)).strip()[:PHONE_MAX_LENGTH]


def sanitize_number(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def sanitize_int(value: Any) -> Optional[int]:
    number = sanitize_number(value)
    return int(number) if number is not None else None


def sanitize_date(value: Any) -> Optional[str]:
    """Normalize to ``YYYY-MM-DD``; None when value is not a date."""
    if not value:
        return None
    parsed = parse_iso_date(value)
    return parsed.isoformat() if parsed else None


def sanitize_reservation_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map validated reservation fields onto reservation columns."""
    reservation_date = sanitize_date(data.get("date"))
    return {
        "customer_name": sanitize_string(data.get("name")),
        "customer_email": sanitize_email(data.get("email")),
        "customer_phone": sanitize_phone(data.get("phone")),
        "reservation_date": parse_iso_date(reservation_date),
        "reservation_time": sanitize_string(data.get("time")),
        "party_size": sanitize_int(data.get("partySize")),
        "special_occasion": sanitize_string(data.get("specialOccasion")),
        "special_requests": sanitize_text(data.get("specialRequests")),
        "dietary_restrictions": sanitize_text(data.get("dietaryRestrictions")),
    }


def sanitize_catering_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map validated catering fields onto catering inquiry columns."""
    return {
        "customer_name": sanitize_string(data.get("name")),
        "customer_email": sanitize_email(data.get("email")),
        "customer_phone": sanitize_phone(data.get("phone")),
        "organization": sanitize_string(data.get("organization")),
        "event_type": sanitize_string(data.get("eventType")),
        "event_date": parse_iso_date(sanitize_date(data.get("eventDate"))),
        "event_end_date": parse_iso_date(sanitize_date(data.get("eventEndDate"))),
        "event_time": sanitize_string(data.get("eventTime")),
        "guest_count": sanitize_int(data.get("guestCount")),
        "venue_option": sanitize_string(data.get("venueOption")),
        "venue_address": sanitize_text(data.get("venueAddress")),
        "venue_details": sanitize_text(data.get("venueDetails")),
        "menu_preferences": sanitize_text(data.get("menuPreferences")),
        "dietary_restrictions": sanitize_text(data.get("dietaryRestrictions")),
        "service_style": sanitize_string(data.get("serviceStyle")),
        "special_equipment_needed": sanitize_text(data.get("specialEquipment")),
        "detailed_requirements": sanitize_text(data.get("detailedRequirements")),
        "budget_range": sanitize_string(data.get("budgetRange")),
        "quote_amount": sanitize_number(data.get("estimatedCost")),
    }


def sanitize_feedback_data(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "customer_email": sanitize_email(data.get("customerEmail")),
        "customer_name": sanitize_string(data.get("customerName")),
        "food_rating": sanitize_int(data.get("foodRating")),
        "service_rating": sanitize_int(data.get("serviceRating")),
        "ambiance_rating": sanitize_int(data.get("ambianceRating")),
        "overall_rating": sanitize_int(data.get("overallRating")),
        "feedback_text": sanitize_text(data.get("feedbackText")),
        "suggestions": sanitize_text(data.get("suggestions")),
    }
