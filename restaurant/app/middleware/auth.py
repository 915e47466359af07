"""Bearer token check for the admin API.

A single shared token (``ADMIN_TOKEN``) guards every ``/api/admin`` route.
When no token is configured the admin API is switched off.
"""

import hmac
from typing import Optional

from fastapi import Request

from restaurant.app.core.config import settings
from restaurant.app.core.logging import get_logger
from restaurant.app.exceptions import AuthenticationError

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def get_bearer_token(request: Request) -> Optional[str]:
    """Token of an ``Authorization: Bearer <token>`` header, else None."""
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):].strip()


def require_admin(request: Request) -> str:
    """FastAPI dependency admitting only callers presenting the admin token.

    Raises:
        AuthenticationError: When the admin API is disabled or the token
            is missing or wrong
    """
    expected = settings.admin_token
    if not expected:
        raise AuthenticationError("Admin API is disabled")

    presented = get_bearer_token(request) or ""
    # Constant-time comparison.
    if not hmac.compare_digest(presented.encode(), expected.encode()):
        logger.warning(f"Rejected admin request to {request.url.path}")
        raise AuthenticationError()

    return "admin"
