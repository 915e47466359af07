"""Public reservation endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status

from restaurant.app.core.config import settings
from restaurant.app.core.logging import get_logger
from restaurant.app.core.utils import generate_confirmation_code
from restaurant.app.db import crud
from restaurant.app.db.dependencies import SessionDep
from restaurant.app.exceptions import ConflictError, NotFoundError, ValidationFailedError
from restaurant.app.middleware.rate_limit import RateLimit, release_on_success
from restaurant.app.api.schemas import dump_reservation
from restaurant.app.services.availability import (
    check_table_availability,
    update_table_availability,
)
from restaurant.app.services.notifications import send_notifications
from restaurant.app.services.sanitization import sanitize_reservation_data
from restaurant.app.services.validation import validate_reservation_data

router = APIRouter(prefix="/api/reservations", tags=["reservations"])
logger = get_logger(__name__)


def _confirmation_notifications(reservation) -> list:
    summary = (
        f"{reservation.customer_name} for {reservation.party_size} on "
        f"{reservation.reservation_date.isoformat()} at {reservation.reservation_time}. "
        f"Code: {reservation.confirmation_code}"
    )
    notifications = [
        ("email", {
            "template": "reservation_confirmation",
            "recipient": reservation.customer_email,
            "language": reservation.preferred_language,
            "data": {
                "customer_name": reservation.customer_name,
                "reservation_date": reservation.reservation_date.isoformat(),
                "reservation_time": reservation.reservation_time,
                "party_size": reservation.party_size,
                "confirmation_code": reservation.confirmation_code,
                "special_requests": reservation.special_requests or "None",
                "dietary_restrictions": reservation.dietary_restrictions or "None",
            },
        }),
        ("slack", {"text": f"New reservation: {summary}"}),
    ]
    if settings.admin_email:
        notifications.append(("email", {
            "template": "admin_new_reservation",
            "recipient": settings.admin_email,
            "language": "en",
            "data": {"summary": summary, "customer_phone": reservation.customer_phone},
        }))
    if settings.restaurant_phone:
        notifications.append(("sms", {
            "recipient": settings.restaurant_phone,
            "message": f"New reservation: {summary}",
        }))
    return notifications


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimit("reservations"))],
)
async def create_reservation(
    session: SessionDep,
    data: Dict[str, Any] = Body(...),
) -> dict:
    """Book a table."""
    result = validate_reservation_data(data)
    if not result.is_valid:
        raise ValidationFailedError("Invalid reservation data", result.errors)

    fields = sanitize_reservation_data(result.processed_data)
    check = await check_table_availability(
        session, fields["reservation_date"], fields["reservation_time"], fields["party_size"]
    )
    if not check.available:
        raise ConflictError(
            "No tables available for the selected date and time",
            suggestion=check.suggestion,
        )

    reservation = await crud.create_reservation(
        session,
        **fields,
        confirmation_code=generate_confirmation_code(),
        preferred_language=str(data.get("language") or "en")[:10],
        status="pending",
    )
    await update_table_availability(
        session, reservation.reservation_date, reservation.reservation_time, reservation.party_size
    )
    logger.info(f"Reservation {reservation.id} created for {reservation.reservation_date}")

    await send_notifications(_confirmation_notifications(reservation))

    return {
        "success": True,
        "message": "Reservation created successfully",
        "reservationId": reservation.id,
        "confirmationCode": reservation.confirmation_code,
        "data": dump_reservation(reservation),
    }


@router.get("")
async def lookup_reservations(
    session: SessionDep,
    confirmation_code: Optional[str] = Query(None, alias="confirmationCode"),
    email: Optional[str] = Query(None),
) -> dict:
    """Find a reservation by confirmation code, or all reservations of an email."""
    if confirmation_code:
        reservation = await crud.get_reservation_by_code(session, confirmation_code)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return {"reservation": dump_reservation(reservation)}

    if email:
        reservations = await crud.list_reservations_by_email(session, email.strip().lower())
        return {"reservations": [dump_reservation(r) for r in reservations]}

    raise ValidationFailedError("Missing required parameters")


async def _cancel(session, reservation) -> None:
    if reservation.status != "cancelled":
        await update_table_availability(
            session,
            reservation.reservation_date,
            reservation.reservation_time,
            reservation.party_size,
            release=True,
        )
    await crud.update_reservation(session, reservation, status="cancelled")

    await send_notifications([("email", {
        "template": "reservation_cancelled",
        "recipient": reservation.customer_email,
        "language": reservation.preferred_language,
        "data": {
            "customer_name": reservation.customer_name,
            "confirmation_code": reservation.confirmation_code,
            "reservation_date": reservation.reservation_date.isoformat(),
            "reservation_time": reservation.reservation_time,
        },
    })])


async def _modify(session, reservation, update: Dict[str, Any]) -> None:
    result = validate_reservation_data(update)
    if not result.is_valid:
        raise ValidationFailedError("Invalid update data", result.errors)

    fields = sanitize_reservation_data(result.processed_data)
    moved = (
        fields["reservation_date"] != reservation.reservation_date
        or fields["reservation_time"] != reservation.reservation_time
        or fields["party_size"] != reservation.party_size
    )
    if moved and reservation.status != "cancelled":
        # The old tables are freed before the new slot is checked.
        await update_table_availability(
            session,
            reservation.reservation_date,
            reservation.reservation_time,
            reservation.party_size,
            release=True,
        )
        check = await check_table_availability(
            session, fields["reservation_date"], fields["reservation_time"], fields["party_size"]
        )
        if not check.available:
            await update_table_availability(
                session,
                reservation.reservation_date,
                reservation.reservation_time,
                reservation.party_size,
            )
            raise ConflictError(
                "No tables available for the selected date and time",
                suggestion=check.suggestion,
            )
        await update_table_availability(
            session, fields["reservation_date"], fields["reservation_time"], fields["party_size"]
        )

    await crud.update_reservation(session, reservation, **fields)


@router.put("", dependencies=[Depends(RateLimit("general"))])
async def update_reservation(
    request: Request,
    session: SessionDep,
    data: Dict[str, Any] = Body(...),
) -> dict:
    """Cancel or modify a reservation identified by its confirmation code."""
    update = dict(data)
    confirmation_code = update.pop("confirmationCode", None)
    action = update.pop("action", None)

    if not confirmation_code:
        raise ValidationFailedError("Confirmation code required")

    reservation = await crud.get_reservation_by_code(session, str(confirmation_code))
    if reservation is None:
        raise NotFoundError("Reservation not found")

    if action == "cancel":
        await _cancel(session, reservation)
    elif action == "modify":
        await _modify(session, reservation, update)
    else:
        raise ValidationFailedError("Unknown action", ["action must be one of: cancel, modify"])

    await release_on_success(request, session)
    return {
        "success": True,
        "message": "Reservation updated successfully",
        "data": dump_reservation(reservation),
    }
