"""Middleware package for the restaurant API."""

from restaurant.app.middleware.auth import require_admin
from restaurant.app.middleware.rate_limit import DDoSGuardMiddleware, RateLimit
from restaurant.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "require_admin",
    "DDoSGuardMiddleware",
    "RateLimit",
    "RequestIdMiddleware",
    "get_request_id",
]
