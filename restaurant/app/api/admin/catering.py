"""Admin catering inquiry management."""

from typing import Optional

from fastapi import APIRouter, Query

from restaurant.app.core.logging import get_logger
from restaurant.app.db import crud
from restaurant.app.db.dependencies import SessionDep
from restaurant.app.exceptions import NotFoundError, ValidationFailedError
from restaurant.app.api.schemas import StatusUpdate, dump_catering
from restaurant.app.services.notifications import send_notification

router = APIRouter()
logger = get_logger(__name__)

ADMIN_CATERING_STATUSES = ("pending", "confirmed", "cancelled", "completed", "quoted")


async def _get_or_404(session, inquiry_id: int):
    inquiry = await crud.get_catering_inquiry_by_id(session, inquiry_id)
    if inquiry is None:
        raise NotFoundError("Catering inquiry not found")
    return inquiry


@router.get("")
async def list_catering(
    session: SessionDep,
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> dict:
    inquiries, total = await crud.list_catering_inquiries(
        session, status=status, limit=limit, offset=offset
    )
    return {
        "inquiries": [dump_catering(i) for i in inquiries],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/{inquiry_id}")
async def get_catering(inquiry_id: int, session: SessionDep) -> dict:
    return dump_catering(await _get_or_404(session, inquiry_id))


@router.patch("/{inquiry_id}")
async def update_catering_status(
    inquiry_id: int,
    data: StatusUpdate,
    session: SessionDep,
) -> dict:
    if not data.status:
        raise ValidationFailedError("Status is required")
    if data.status not in ADMIN_CATERING_STATUSES:
        raise ValidationFailedError(
            "Invalid status value", [f"status must be one of: {', '.join(ADMIN_CATERING_STATUSES)}"]
        )

    inquiry = await _get_or_404(session, inquiry_id)
    previous = inquiry.status

    updates = {"status": data.status}
    if data.admin_notes is not None:
        updates["admin_notes"] = data.admin_notes
    if data.quote_amount is not None:
        updates["quote_amount"] = data.quote_amount
    inquiry = await crud.update_catering_inquiry(session, inquiry, **updates)
    logger.info(f"Catering inquiry {inquiry_id} status {previous} -> {data.status}")

    if data.status != previous:
        await send_notification("email", {
            "template": "catering_quote" if data.status == "quoted" else "catering_status_update",
            "recipient": inquiry.customer_email,
            "language": inquiry.preferred_language,
            "data": {
                "customer_name": inquiry.customer_name,
                "status": inquiry.status,
                "quote_amount": inquiry.quote_amount,
                "confirmation_code": inquiry.confirmation_code,
            },
        })

    return dump_catering(inquiry)


@router.delete("/{inquiry_id}")
async def delete_catering(inquiry_id: int, session: SessionDep) -> dict:
    inquiry = await _get_or_404(session, inquiry_id)
    await crud.delete_catering_inquiry(session, inquiry)
    logger.info(f"Catering inquiry {inquiry_id} deleted")
    return {"success": True, "message": "Catering inquiry deleted successfully"}
