"""Admin reservation management."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from restaurant.app.core.logging import get_logger
from restaurant.app.db import crud
from restaurant.app.db.dependencies import SessionDep
from restaurant.app.db.models import RESERVATION_STATUSES
from restaurant.app.exceptions import NotFoundError, ValidationFailedError
from restaurant.app.api.schemas import StatusUpdate, dump_reservation
from restaurant.app.services.availability import update_table_availability
from restaurant.app.services.notifications import send_notification

router = APIRouter()
logger = get_logger(__name__)


async def _get_or_404(session, reservation_id: int):
    reservation = await crud.get_reservation_by_id(session, reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation


@router.get("")
async def list_reservations(
    session: SessionDep,
    status: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> dict:
    reservations, total = await crud.list_reservations(
        session, status=status, on_date=on_date, limit=limit, offset=offset
    )
    return {
        "reservations": [dump_reservation(r) for r in reservations],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/{reservation_id}")
async def get_reservation(reservation_id: int, session: SessionDep) -> dict:
    return dump_reservation(await _get_or_404(session, reservation_id))


@router.patch("/{reservation_id}")
async def update_reservation_status(
    reservation_id: int,
    data: StatusUpdate,
    session: SessionDep,
) -> dict:
    """Change a reservation's status; cancelling frees its tables."""
    if not data.status:
        raise ValidationFailedError("Status is required")
    if data.status not in RESERVATION_STATUSES:
        raise ValidationFailedError(
            "Invalid status value", [f"status must be one of: {', '.join(RESERVATION_STATUSES)}"]
        )

    reservation = await _get_or_404(session, reservation_id)
    previous = reservation.status

    if data.status == "cancelled" and previous != "cancelled":
        await update_table_availability(
            session,
            reservation.reservation_date,
            reservation.reservation_time,
            reservation.party_size,
            release=True,
        )
    elif previous == "cancelled" and data.status != "cancelled":
        await update_table_availability(
            session, reservation.reservation_date, reservation.reservation_time, reservation.party_size
        )

    updates = {"status": data.status}
    if data.admin_notes is not None:
        updates["admin_notes"] = data.admin_notes
    reservation = await crud.update_reservation(session, reservation, **updates)
    logger.info(f"Reservation {reservation_id} status {previous} -> {data.status}")

    if data.status != previous:
        await send_notification("email", {
            "template": "reservation_status_update",
            "recipient": reservation.customer_email,
            "language": reservation.preferred_language,
            "data": {
                "customer_name": reservation.customer_name,
                "status": reservation.status,
                "confirmation_code": reservation.confirmation_code,
            },
        })

    return dump_reservation(reservation)


@router.delete("/{reservation_id}")
async def delete_reservation(reservation_id: int, session: SessionDep) -> dict:
    reservation = await _get_or_404(session, reservation_id)
    if reservation.status != "cancelled":
        await update_table_availability(
            session,
            reservation.reservation_date,
            reservation.reservation_time,
            reservation.party_size,
            release=True,
        )
    await crud.delete_reservation(session, reservation)
    logger.info(f"Reservation {reservation_id} deleted")
    return {"success": True, "message": "Reservation deleted successfully"}
