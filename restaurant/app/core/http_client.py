"""Pooled httpx client for outbound webhook calls.

One AsyncClient lives for the duration of the application lifespan;
``init_http_client`` opens and closes it.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx

from restaurant.app.core.config import settings

_client: Optional[httpx.AsyncClient] = None


def create_http_client() -> httpx.AsyncClient:
    """New client with the configured timeouts and pool limits. The caller closes it."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.httpx_timeout, connect=settings.httpx_connect_timeout),
        limits=httpx.Limits(
            max_connections=settings.httpx_max_connections,
            max_keepalive_connections=settings.httpx_max_keepalive_connections,
        ),
    )


def current_http_client() -> Optional[httpx.AsyncClient]:
    """The lifespan client, or None outside the application lifespan."""
    return _client


@asynccontextmanager
async def init_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Open the shared client for the lifespan of the application."""
    global _client

    _client = create_http_client()
    try:
        yield _client
    finally:
        client, _client = _client, None
        await client.aclose()
