"""Table availability lookup."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from restaurant.app.core.utils import parse_iso_date
from restaurant.app.db.dependencies import SessionDep
from restaurant.app.exceptions import ValidationFailedError
from restaurant.app.middleware.rate_limit import RateLimit, release_on_success
from restaurant.app.services.availability import get_day_availability
from restaurant.app.services.sanitization import sanitize_int
from restaurant.app.services.validation import VALIDATION_RULES

PARTY_SIZE_RULE = VALIDATION_RULES["reservation"]["partySize"]

router = APIRouter(prefix="/api/availability", tags=["availability"])


@router.post("", dependencies=[Depends(RateLimit("availability"))])
async def check_availability(
    request: Request,
    session: SessionDep,
    data: Dict[str, Any] = Body(...),
) -> dict:
    """List the bookable time slots of a date.

    Successful lookups do not count against the availability quota.
    """
    if not data.get("date"):
        raise ValidationFailedError("Date is required")

    on_date = parse_iso_date(data["date"])
    if on_date is None:
        raise ValidationFailedError("Invalid date", ["date has invalid format"])

    party_size = None
    if data.get("partySize") not in (None, ""):
        party_size = sanitize_int(data["partySize"])
        if party_size is None or not PARTY_SIZE_RULE.min <= party_size <= PARTY_SIZE_RULE.max:
            raise ValidationFailedError(
                "Invalid party size",
                [f"partySize must be between {PARTY_SIZE_RULE.min:g} and {PARTY_SIZE_RULE.max:g}"],
            )

    result = await get_day_availability(session, on_date, party_size=party_size)

    await release_on_success(request, session)
    return result
