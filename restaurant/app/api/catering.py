"""Catering inquiry submission."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status

from restaurant.app.core.config import settings
from restaurant.app.core.logging import get_logger
from restaurant.app.core.utils import generate_booking_reference
from restaurant.app.db import crud
from restaurant.app.db.dependencies import SessionDep
from restaurant.app.exceptions import ConflictError, ValidationFailedError
from restaurant.app.middleware.rate_limit import RateLimit
from restaurant.app.api.schemas import dump_catering
from restaurant.app.services.availability import check_catering_capacity
from restaurant.app.services.notifications import send_notifications
from restaurant.app.services.sanitization import sanitize_catering_data
from restaurant.app.services.validation import validate_catering_data

router = APIRouter(prefix="/api/catering", tags=["catering"])
logger = get_logger(__name__)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimit("catering"))],
)
async def create_catering_inquiry(
    session: SessionDep,
    data: Dict[str, Any] = Body(...),
) -> dict:
    result = validate_catering_data(data)
    if not result.is_valid:
        raise ValidationFailedError("Invalid catering data", result.errors)

    fields = sanitize_catering_data(data)
    capacity = await check_catering_capacity(session, fields["event_date"], fields["guest_count"])
    if not capacity.available:
        raise ConflictError(capacity.message, suggestion=capacity.suggestion)

    inquiry = await crud.create_catering_inquiry(
        session,
        **fields,
        confirmation_code=generate_booking_reference("CAT"),
        preferred_language=str(data.get("language") or "en")[:10],
        status="inquiry",
    )
    logger.info(f"Catering inquiry {inquiry.id} received for {inquiry.event_date}")

    summary = (
        f"{inquiry.customer_name}: {inquiry.event_type} for {inquiry.guest_count} guests "
        f"on {inquiry.event_date.isoformat()}. Code: {inquiry.confirmation_code}"
    )
    notifications = [
        ("email", {
            "template": "catering_inquiry_received",
            "recipient": inquiry.customer_email,
            "language": inquiry.preferred_language,
            "data": {
                "customer_name": inquiry.customer_name,
                "event_type": inquiry.event_type,
                "event_date": inquiry.event_date.isoformat(),
                "guest_count": inquiry.guest_count,
                "confirmation_code": inquiry.confirmation_code,
            },
        }),
        ("slack", {"text": f"New catering inquiry: {summary}"}),
    ]
    if settings.admin_email:
        notifications.append(("email", {
            "template": "admin_new_catering",
            "recipient": settings.admin_email,
            "language": "en",
            "data": {"summary": summary, "customer_phone": inquiry.customer_phone},
        }))
    await send_notifications(notifications)

    return {
        "success": True,
        "message": "Catering inquiry submitted successfully",
        "inquiryId": inquiry.id,
        "confirmationCode": inquiry.confirmation_code,
        "data": dump_catering(inquiry),
    }
