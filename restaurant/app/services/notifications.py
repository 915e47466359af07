"""Outbound notifications over webhooks.

Slack messages go to the Slack incoming webhook. Email, SMS and calendar
notifications are posted as ``{"kind", "payload"}`` to a generic webhook
that fans them out to the actual providers. Delivery failures are logged
and reported in the result; they never fail the request that triggered them.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx

from restaurant.app.core import http_client
from restaurant.app.core.config import settings
from restaurant.app.core.logging import get_logger

logger = get_logger(__name__)

NOTIFICATION_KINDS = ("email", "sms", "slack", "calendar")


@dataclass
class NotificationResult:
    success: bool
    kind: str
    error: Optional[str] = None


@asynccontextmanager
async def _client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Yield the shared client, or a short-lived one outside the app lifespan."""
    shared = http_client.current_http_client()
    if shared is not None:
        yield shared
        return
    async with http_client.create_http_client() as client:
        yield client


def _target(kind: str) -> tuple[Optional[str], Optional[str]]:
    """Return ``(url, error)`` for a notification kind."""
    if kind == "slack":
        if not settings.slack_webhook_url:
            return None, "Slack webhook URL not configured"
        return settings.slack_webhook_url, None
    if not settings.notification_webhook_url:
        return None, f"Notification webhook not configured for {kind}"
    return settings.notification_webhook_url, None


async def send_notification(kind: str, payload: Dict[str, Any]) -> NotificationResult:
    """Deliver one notification.

    Args:
        kind: One of ``email``, ``sms``, ``slack``, ``calendar``
        payload: Message body. Sent as-is to Slack, wrapped otherwise.

    Returns:
        NotificationResult; ``success`` is False when the channel is not
        configured or delivery failed.
    """
    if kind not in NOTIFICATION_KINDS:
        return NotificationResult(success=False, kind=kind, error=f"Unsupported notification type: {kind}")

    url, error = _target(kind)
    if url is None:
        logger.debug(error)
        return NotificationResult(success=False, kind=kind, error=error)

    body = payload if kind == "slack" else {"kind": kind, "payload": payload}
    try:
        async with _client() as client:
            resp = await client.post(url, json=body, timeout=settings.notification_timeout)
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Failed to send {kind} notification: {e}")
        return NotificationResult(success=False, kind=kind, error=str(e))

    logger.info(f"Sent {kind} notification")
    return NotificationResult(success=True, kind=kind)


async def send_notifications(notifications: List[tuple[str, Dict[str, Any]]]) -> List[NotificationResult]:
    """Send several notifications in order, collecting every result."""
    return [await send_notification(kind, payload) for kind, payload in notifications]
