"""
Tests for the public restaurant API
"""
import re
from datetime import date, timedelta

from fastapi.testclient import TestClient


class TestReservationsAPI:
    """Tests for /api/reservations"""

    def test_create_reservation(self, client, reservation_payload):
        response = client.post("/api/reservations", json=reservation_payload)

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert len(data["confirmationCode"]) == 6
        assert data["data"]["customer_email"] == "layla@example.com"
        assert data["data"]["status"] == "pending"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "4"

    def test_create_takes_tables(self, client, reservation_payload, booking_date):
        client.post("/api/reservations", json={**reservation_payload, "partySize": 6})

        response = client.post("/api/availability", json={"date": booking_date})
        slots = {slot["time"]: slot for slot in response.json()["availableTimes"]}
        assert slots["19:00"]["availableTables"] == 18
        assert slots["19:00"]["reservationCount"] == 2
        assert slots["18:00"]["availableTables"] == 20

    def test_invalid_reservation(self, client, reservation_payload):
        response = client.post("/api/reservations", json={**reservation_payload, "email": "nope"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid reservation data"
        assert "email has invalid format" in data["details"]
        assert response.headers["X-RateLimit-Limit"] == "5"

    def test_sixth_attempt_is_rate_limited(self, client, reservation_payload):
        for _ in range(5):
            response = client.post("/api/reservations", json={**reservation_payload, "name": "1"})
            assert response.status_code == 400

        response = client.post("/api/reservations", json=reservation_payload)

        assert response.status_code == 429
        data = response.json()
        assert data["error"] == "Too many reservation requests. Please try again in 15 minutes."
        assert data["remaining"] == 0
        assert 1 <= data["retryAfter"] <= 900
        assert set(data) == {"error", "retryAfter", "remaining", "resetTime"}
        assert int(response.headers["Retry-After"]) == data["retryAfter"]

    def test_lookup_by_code_and_email(self, client, reservation_payload):
        code = client.post("/api/reservations", json=reservation_payload).json()["confirmationCode"]

        by_code = client.get("/api/reservations", params={"confirmationCode": code})
        assert by_code.status_code == 200
        assert by_code.json()["reservation"]["confirmation_code"] == code

        by_email = client.get("/api/reservations", params={"email": "LAYLA@example.com"})
        assert [r["confirmation_code"] for r in by_email.json()["reservations"]] == [code]

    def test_lookup_errors(self, client):
        assert client.get("/api/reservations", params={"confirmationCode": "ZZZZZZ"}).status_code == 404

        response = client.get("/api/reservations")
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required parameters"

    def test_cancel_frees_tables(self, client, reservation_payload, booking_date):
        code = client.post("/api/reservations", json=reservation_payload).json()["confirmationCode"]

        response = client.put("/api/reservations", json={"confirmationCode": code, "action": "cancel"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"
        slots = client.post("/api/availability", json={"date": booking_date}).json()["availableTimes"]
        assert {s["time"]: s for s in slots}["19:00"]["availableTables"] == 20

    def test_modify_moves_reservation(self, client, reservation_payload):
        code = client.post("/api/reservations", json=reservation_payload).json()["confirmationCode"]

        response = client.put(
            "/api/reservations",
            json={**reservation_payload, "confirmationCode": code, "action": "modify", "time": "20:00"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["reservation_time"] == "20:00"

    def test_update_errors(self, client):
        assert client.put("/api/reservations", json={"action": "cancel"}).status_code == 400

        missing = client.put("/api/reservations", json={"confirmationCode": "ZZZZZZ", "action": "cancel"})
        assert missing.status_code == 404


class TestAvailabilityAPI:
    """Tests for /api/availability"""

    def test_day_availability(self, client, booking_date):
        response = client.post("/api/availability", json={"date": booking_date, "partySize": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == booking_date
        assert data["summary"]["totalSlots"] == len(data["availableTimes"])
        assert all(slot["status"] == "available" for slot in data["availableTimes"])

    def test_successful_checks_are_not_counted(self, client, booking_date):
        for _ in range(3):
            response = client.post("/api/availability", json={"date": booking_date})
            assert response.status_code == 200
            assert response.headers["X-RateLimit-Remaining"] == "29"

    def test_date_errors(self, client):
        assert client.post("/api/availability", json={}).json()["error"] == "Date is required"
        assert client.post("/api/availability", json={"date": "soon"}).json()["error"] == "Invalid date"

        past = (date.today() - timedelta(days=1)).isoformat()
        response = client.post("/api/availability", json={"date": past})
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot check availability for past dates"

    def test_party_size_errors(self, client, booking_date):
        response = client.post(
            "/api/availability",
            content=f'{{"date": "{booking_date}", "partySize": 1e309}}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid party size"
        assert response.json()["details"] == ["partySize must be between 1 and 20"]

        response = client.post("/api/availability", json={"date": booking_date, "partySize": 40})
        assert response.status_code == 400


class TestCateringAPI:
    """Tests for /api/catering"""

    def payload(self, **overrides):
        data = {
            "name": "Omar Said",
            "email": "omar@example.com",
            "phone": "555-123-4567",
            "eventType": "wedding",
            "eventDate": (date.today() + timedelta(days=30)).isoformat(),
            "guestCount": 80,
            "venueOption": "our_location",
            "serviceStyle": "buffet",
        }
        data.update(overrides)
        return data

    def test_create_inquiry(self, client):
        response = client.post("/api/catering", json=self.payload())

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["data"]["status"] == "inquiry"
        assert data["data"]["guest_count"] == 80
        assert re.fullmatch(r"CAT-[0-9A-Z]+-[0-9A-Z]{3}", data["confirmationCode"])

    def test_off_site_venue_requires_address(self, client):
        response = client.post("/api/catering", json=self.payload(venueOption="customer_location"))

        assert response.status_code == 400
        assert "venueAddress is required when venueOption is customer_location" in response.json()["details"]

    def test_rate_limited_after_three(self, client):
        for _ in range(3):
            client.post("/api/catering", json=self.payload(guestCount=5))

        response = client.post("/api/catering", json=self.payload())
        assert response.status_code == 429


class TestFeedbackAPI:
    """Tests for /api/feedback"""

    def test_submit_feedback(self, client):
        response = client.post("/api/feedback", json={
            "customerEmail": "guest@example.com",
            "foodRating": 5,
            "serviceRating": "4",
            "overallRating": 5,
            "feedbackText": "Lovely evening",
        })

        assert response.status_code == 201
        assert response.json()["message"] == "Thank you for your feedback"
        assert response.headers["X-RateLimit-Remaining"] == "9"

    def test_accepted_feedback_not_counted(self, client):
        payload = {"customerEmail": "guest@example.com", "foodRating": 4, "serviceRating": 4, "overallRating": 4}
        for _ in range(12):
            assert client.post("/api/feedback", json=payload).status_code == 201

    def test_invalid_feedback(self, client):
        response = client.post("/api/feedback", json={"customerEmail": "guest@example.com", "foodRating": 9})

        assert response.status_code == 400
        assert "foodRating must be no more than 5" in response.json()["details"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["database"]["status"] == "ok"
        assert data["components"]["rate_limit"]["cleanup_running"] is True

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_app_restarts(self, app):
        for _ in range(2):
            with TestClient(app) as c:
                response = c.get("/health")
                assert response.status_code == 200
                assert response.json()["components"]["rate_limit"]["cleanup_running"] is True

        assert app.state.admission.running is False
