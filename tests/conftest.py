from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from restaurant.app.core.config import settings
from restaurant.app.db.async_session import get_async_engine
from restaurant.app.main import create_app
from restaurant.app.middleware.rate_limit import AdmissionController

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Application bound to a throwaway SQLite file, with outbound calls disabled."""
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{tmp_path}/test.db")
    monkeypatch.setattr(settings, "admin_token", ADMIN_TOKEN)
    monkeypatch.setattr(settings, "admin_email", "")
    monkeypatch.setattr(settings, "restaurant_phone", "")
    monkeypatch.setattr(settings, "slack_webhook_url", "")
    monkeypatch.setattr(settings, "notification_webhook_url", "")
    get_async_engine.cache_clear()
    return create_app(AdmissionController())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def booking_date() -> str:
    return (date.today() + timedelta(days=7)).isoformat()


@pytest.fixture
def reservation_payload(booking_date):
    return {
        "name": "Layla Hassan",
        "email": "Layla@Example.com",
        "phone": "+1 (555) 123-4567",
        "date": booking_date,
        "time": "19:00",
        "partySize": 4,
        "specialOccasion": "birthday",
    }
