"""Tests for form validation and business hour checks."""

from datetime import date, timedelta

import pytest

from restaurant.app.services.validation import (
    TIME_SLOTS,
    _check_format,
    validate_business_hours,
    validate_catering_data,
    validate_data,
    validate_feedback_data,
    validate_reservation_data,
)

TODAY = date(2026, 3, 2)  # a Monday


def reservation(**overrides):
    data = {
        "name": "Layla Hassan",
        "email": "layla@example.com",
        "phone": "+1 555 123 4567",
        "date": (TODAY + timedelta(days=7)).isoformat(),
        "time": "19:00",
        "partySize": 4,
    }
    data.update(overrides)
    return data


def catering(**overrides):
    data = {
        "name": "Omar Said",
        "email": "omar@example.com",
        "phone": "555-123-4567",
        "eventType": "corporate",
        "eventDate": (TODAY + timedelta(days=20)).isoformat(),
        "guestCount": 50,
        "venueOption": "our_location",
    }
    data.update(overrides)
    return data


@pytest.mark.parametrize("fmt,value,valid", [
    ("url", "https://naturevillage.example/menu", True),
    ("url", "naturevillage.example", False),
    ("postal_code", "SW1A 1AA", True),
    ("postal_code", "90210", True),
    ("postal_code", "12", False),
    ("postal_code", "abc#12", False),
    ("currency", "1200", True),
    ("currency", "1200.50", True),
    ("currency", "1200.5", False),
    ("currency", "$12", False),
])
def test_check_format(fmt, value, valid):
    assert _check_format(value, fmt) is valid


class TestValidateData:
    """Tests for the generic rule engine."""

    def test_unknown_schema(self):
        result = validate_data({}, "menu")
        assert result.is_valid is False
        assert result.errors == ["Invalid validation schema"]

    def test_required_fields_reported(self):
        result = validate_data({}, "reservation", TODAY)
        assert "name is required" in result.errors
        assert "partySize is required" in result.errors

    def test_numeric_strings_are_accepted(self):
        assert validate_data(reservation(partySize="4"), "reservation", TODAY).is_valid

    def test_non_numeric_party_size(self):
        result = validate_data(reservation(partySize="four"), "reservation", TODAY)
        assert "partySize must be of type number" in result.errors

    def test_range(self):
        result = validate_data(reservation(partySize=25), "reservation", TODAY)
        assert "partySize must be no more than 20" in result.errors

    def test_infinite_party_size(self):
        result = validate_data(reservation(partySize=float("inf")), "reservation", TODAY)
        assert "partySize must be of type number" in result.errors

    def test_past_and_far_dates(self):
        past = validate_data(reservation(date="2026-03-01"), "reservation", TODAY)
        assert "date cannot be in the past" in past.errors

        far = validate_data(reservation(date="2026-06-01"), "reservation", TODAY)
        assert "date cannot be more than 60 days in advance" in far.errors

    def test_name_accepts_arabic_script(self):
        assert validate_data(reservation(name="ليلى Hassan"), "reservation", TODAY).is_valid

    def test_name_rejects_digits(self):
        result = validate_data(reservation(name="R2D2"), "reservation", TODAY)
        assert "name contains invalid characters" in result.errors

    def test_enum(self):
        result = validate_data(reservation(specialOccasion="graduation"), "reservation", TODAY)
        assert any(e.startswith("specialOccasion must be one of") for e in result.errors)


class TestReservationRules:
    """Tests for reservation cross-field checks."""

    def test_valid(self):
        result = validate_reservation_data(reservation(), TODAY)
        assert result.is_valid
        assert result.processed_data["time"] == "19:00"

    def test_select_objects_are_unwrapped(self):
        result = validate_reservation_data(
            reservation(time={"value": "18:30", "label": "6:30 PM"}), TODAY
        )
        assert result.is_valid
        assert result.processed_data["time"] == "18:30"

    def test_large_party_needs_special_requests(self):
        result = validate_reservation_data(reservation(partySize=10), TODAY)
        assert "Large parties (8+ people) require special requests to be specified" in result.errors

        ok = validate_reservation_data(reservation(partySize=10, specialRequests="Long table"), TODAY)
        assert ok.is_valid

    def test_time_must_be_a_slot(self):
        result = validate_reservation_data(reservation(time="16:00"), TODAY)
        assert "Selected time is not available" in result.errors

    def test_slots(self):
        assert len(TIME_SLOTS) == 14
        assert "15:00" not in TIME_SLOTS


class TestCateringRules:
    """Tests for catering event rules."""

    def test_valid(self):
        assert validate_catering_data(catering(), TODAY).is_valid

    def test_minimum_notice(self):
        result = validate_catering_data(catering(eventDate=(TODAY + timedelta(days=3)).isoformat()), TODAY)
        assert "eventDate must be at least 7 days in advance" in result.errors

    def test_end_before_start(self):
        result = validate_catering_data(
            catering(eventEndDate=(TODAY + timedelta(days=19)).isoformat()), TODAY
        )
        assert "Event end date cannot be before start date" in result.errors

    def test_multi_day_limit(self):
        result = validate_catering_data(
            catering(eventEndDate=(TODAY + timedelta(days=28)).isoformat()), TODAY
        )
        assert "Multi-day events cannot exceed 7 days" in result.errors

    def test_large_event_on_site(self):
        result = validate_catering_data(catering(guestCount=150), TODAY)
        assert "Our restaurant location can accommodate maximum 100 guests" in result.errors
        assert "Events with 100+ guests require at least 14 days advance notice" not in result.errors

    def test_large_event_short_notice(self):
        result = validate_catering_data(
            catering(
                guestCount=150,
                venueOption="delivery_only",
                eventDate=(TODAY + timedelta(days=10)).isoformat(),
            ),
            TODAY,
        )
        assert result.errors == ["Events with 100+ guests require at least 14 days advance notice"]

    def test_address_required_off_site(self):
        result = validate_catering_data(catering(venueOption="customer_location"), TODAY)
        assert "venueAddress is required when venueOption is customer_location" in result.errors


class TestFeedbackRules:
    def test_valid(self):
        result = validate_feedback_data({
            "customerEmail": "guest@example.com",
            "foodRating": 5,
            "serviceRating": 4,
            "overallRating": 5,
        })
        assert result.is_valid

    def test_rating_bounds(self):
        result = validate_feedback_data({
            "customerEmail": "guest@example.com",
            "foodRating": 0,
            "serviceRating": 4,
            "overallRating": 5,
        })
        assert result.errors == ["foodRating must be at least 1"]


class TestBusinessHours:
    """Tests for opening hours."""

    @pytest.mark.parametrize(
        ("day", "time", "valid"),
        [
            (date(2026, 3, 2), "11:00", True),   # Monday opening
            (date(2026, 3, 2), "22:30", False),
            (date(2026, 3, 6), "22:30", True),   # Friday closes at 23:00
            (date(2026, 3, 8), "11:30", False),  # Sunday opens at 12:00
            (date(2026, 3, 8), "12:00", True),
        ],
    )
    def test_default_hours(self, day, time, valid):
        assert validate_business_hours(day, time).is_valid is valid

    def test_error_message(self):
        result = validate_business_hours(date(2026, 3, 8), "11:30")
        assert result.error == "Restaurant is open from 12:00 to 21:00 on this day"

    def test_closed_day_override(self):
        result = validate_business_hours(date(2026, 3, 2), "19:00", {0: {"closed": True}})
        assert result.is_valid is False
        assert result.error == "Restaurant is closed on this day"
