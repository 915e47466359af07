"""Tests for the FastAPI side of admission control."""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from restaurant.app.exceptions import RateLimitExceededError
from restaurant.app.middleware.rate_limit import (
    AdmissionController,
    DDoSGuardMiddleware,
    PolicyTable,
    RateLimit,
    RateLimitPolicy,
    RequestMeta,
    get_admission_controller,
    rate_limit_response,
    release_on_success,
)


def build_app(controller: AdmissionController, ddos: bool = True) -> FastAPI:
    app = FastAPI()
    app.state.admission = controller
    if ddos:
        app.add_middleware(DDoSGuardMiddleware)

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError):
        return rate_limit_response(exc.rejection)

    @app.post("/limited", dependencies=[Depends(RateLimit("limited"))])
    async def limited() -> dict:
        return {"ok": True}

    @app.post("/released", dependencies=[Depends(RateLimit("released"))])
    async def released(request: Request) -> dict:
        await release_on_success(request)
        return {"ok": True}

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


@pytest.fixture
def controller():
    return AdmissionController(policies=PolicyTable({
        "general": RateLimitPolicy("general", 900_000, 100),
        "limited": RateLimitPolicy("limited", 60_000, 2, message="Too many tries"),
        "released": RateLimitPolicy("released", 60_000, 1, skip_successful_requests=True),
    }))


class TestRateLimitDependency:
    """Tests for the RateLimit dependency."""

    def test_allowed_response_has_headers(self, controller):
        client = TestClient(build_app(controller))
        response = client.post("/limited")

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "1"
        assert response.headers["X-RateLimit-Window"] == "60000"
        assert response.headers["X-RateLimit-Reset"].endswith("Z")

    def test_rejection_is_429(self, controller):
        client = TestClient(build_app(controller))
        client.post("/limited")
        client.post("/limited")

        response = client.post("/limited")

        assert response.status_code == 429
        body = response.json()
        assert body["error"] == "Too many tries"
        assert body["remaining"] == 0
        assert body["retryAfter"] >= 1
        assert body["resetTime"].endswith("Z")
        assert response.headers["Retry-After"] == str(body["retryAfter"])
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_successful_requests_released(self, controller):
        client = TestClient(build_app(controller))
        for _ in range(3):
            response = client.post("/released")
            assert response.status_code == 200

    def test_forwarded_client_counted_separately(self, controller):
        client = TestClient(build_app(controller))
        client.post("/limited", headers={"X-Forwarded-For": "9.9.9.9"})
        client.post("/limited", headers={"X-Forwarded-For": "9.9.9.9"})

        # The TestClient socket address ("testclient") is not loopback and wins.
        assert client.post("/limited").status_code == 429

    def test_missing_controller(self):
        app = FastAPI()

        @app.get("/controller")
        async def read_controller(request: Request) -> dict:
            get_admission_controller(request)
            return {}

        with pytest.raises(RuntimeError):
            TestClient(app).get("/controller")


class TestReleaseOnSuccess:
    """Tests for giving slots back after a committed request."""

    def make_request(self, controller, result):
        request = Mock()
        request.state.rate_limit = result
        request.app.state.admission = controller
        return request

    @pytest.mark.asyncio
    async def test_released_after_commit(self, controller):
        meta = RequestMeta(source_ip="203.0.113.9")
        result = await controller.admit("released", meta)
        session = AsyncMock()

        assert await release_on_success(self.make_request(controller, result), session) is True

        session.commit.assert_awaited_once()
        assert sum(len(ts) for ts in (await controller.store.items()).values()) == 0

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_slot(self, controller):
        meta = RequestMeta(source_ip="203.0.113.9")
        result = await controller.admit("released", meta)
        session = AsyncMock()
        session.commit.side_effect = RuntimeError("database is locked")

        with pytest.raises(RuntimeError):
            await release_on_success(self.make_request(controller, result), session)

        assert list((await controller.store.items()).values()) == [[result.release_token.timestamp]]


class TestDDoSGuardMiddleware:
    """Tests for the flood guard middleware."""

    def test_blocks_flood(self, controller):
        client = TestClient(build_app(controller))
        statuses = [client.post("/released").status_code for _ in range(21)]

        assert statuses[:20] == [200] * 20
        assert statuses[20] == 429

    def test_flood_response_body(self, controller):
        client = TestClient(build_app(controller))
        for _ in range(20):
            client.get("/does-not-exist")

        response = client.post("/limited")

        assert response.status_code == 429
        assert response.json()["error"] == "Too many requests from this IP. Please slow down."
        assert response.headers["X-RateLimit-Limit"] == "20"

    def test_health_is_exempt(self, controller):
        client = TestClient(build_app(controller))
        statuses = {client.get("/health").status_code for _ in range(25)}
        assert statuses == {200}

    def test_flood_logged_once(self, controller):
        client = TestClient(build_app(controller))
        with patch("restaurant.app.middleware.rate_limit.admission.logger") as mock_logger:
            for _ in range(21):
                client.post("/released")

        assert mock_logger.warning.call_count == 1
