"""Tests for request ID middleware."""

import uuid

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from restaurant.app.middleware.request_id import RequestIdMiddleware, get_request_id


def build_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict:
        return {"request_id": get_request_id(request)}

    return app


class TestRequestIdMiddleware:
    """Test request ID propagation."""

    def test_incoming_id_is_kept(self):
        client = TestClient(build_app())
        resp = client.get("/echo", headers={"X-Request-ID": "req-42"})

        assert resp.json() == {"request_id": "req-42"}
        assert resp.headers["X-Request-ID"] == "req-42"

    def test_id_generated_when_missing(self):
        client = TestClient(build_app())
        resp = client.get("/echo")

        request_id = resp.headers["X-Request-ID"]
        assert uuid.UUID(request_id)
        assert resp.json() == {"request_id": request_id}

    def test_overlong_incoming_id_replaced(self):
        client = TestClient(build_app())
        resp = client.get("/echo", headers={"X-Request-ID": "x" * 500})

        assert resp.headers["X-Request-ID"] != "x" * 500
        assert uuid.UUID(resp.headers["X-Request-ID"])

    def test_unknown_outside_middleware(self):
        app = FastAPI()

        @app.get("/echo")
        async def echo(request: Request) -> dict:
            return {"request_id": get_request_id(request)}

        assert TestClient(app).get("/echo").json() == {"request_id": "unknown"}
