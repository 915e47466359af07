"""Table and catering capacity checks.

Table capacity is tracked per (date, time slot) in TableAvailability rows,
created lazily at the configured default capacity. A reservation takes
``ceil(party_size / seats_per_table)`` tables and gives them back when it
is cancelled.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from restaurant.app.core.config import settings
from restaurant.app.core.logging import get_logger
from restaurant.app.core.utils import format_time_label, time_to_minutes
from restaurant.app.db import crud
from restaurant.app.exceptions import ValidationFailedError
from restaurant.app.services.validation import TIME_SLOTS, validate_business_hours

logger = get_logger(__name__)

LIMITED_TABLES = 2


@dataclass
class TableCheck:
    available: bool
    available_tables: int
    suggestion: List[str] = field(default_factory=list)


@dataclass
class CapacityCheck:
    available: bool
    message: Optional[str] = None
    suggestion: Optional[str] = None


def tables_needed(party_size: int) -> int:
    return max(1, math.ceil(party_size / settings.seats_per_table))


async def check_table_availability(
    session: AsyncSession,
    on_date: date,
    time_slot: str,
    party_size: int,
) -> TableCheck:
    """Check whether a slot still has tables for a party.

    When the slot is full, ``suggestion`` lists the other slots of the day
    that can still seat the party.
    """
    slot = await crud.get_or_create_slot(
        session, on_date, time_slot, settings.default_tables_per_slot
    )
    needed = tables_needed(party_size)
    if slot.available_tables >= needed:
        return TableCheck(available=True, available_tables=slot.available_tables)

    alternatives = [
        other.time_slot
        for other in await crud.list_slots_for_date(session, on_date)
        if other.time_slot != time_slot and other.available_tables >= needed
    ]
    return TableCheck(
        available=False,
        available_tables=slot.available_tables,
        suggestion=alternatives,
    )


async def update_table_availability(
    session: AsyncSession,
    on_date: date,
    time_slot: str,
    party_size: int,
    release: bool = False,
) -> int:
    """Take (or give back, with ``release``) the tables of a party.

    Returns:
        Tables left in the slot
    """
    slot = await crud.get_or_create_slot(
        session, on_date, time_slot, settings.default_tables_per_slot
    )
    change = tables_needed(party_size)
    slot = await crud.adjust_available_tables(session, slot, change if release else -change)
    logger.debug(
        f"Slot {on_date} {time_slot}: {slot.available_tables}/{slot.total_tables} tables free"
    )
    return slot.available_tables


def _slot_status(available: bool, available_tables: int) -> str:
    if not available:
        return "full"
    if available_tables <= LIMITED_TABLES:
        return "limited"
    return "available"


async def get_day_availability(
    session: AsyncSession,
    on_date: date,
    party_size: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Bookable slots of a day with the tables left in each.

    Slots outside business hours are left out. For today, only slots at
    least ``same_day_lead_minutes`` ahead are listed.

    Raises:
        ValidationFailedError: If the date is in the past or too far ahead
    """
    now = now or datetime.now()
    today = now.date()
    if on_date < today:
        raise ValidationFailedError("Cannot check availability for past dates")
    if on_date > today + timedelta(days=settings.max_days_ahead):
        raise ValidationFailedError(
            f"Cannot book more than {settings.max_days_ahead} days in advance"
        )

    needed = tables_needed(party_size) if party_size else 1
    rows = {row.time_slot: row for row in await crud.list_slots_for_date(session, on_date)}
    earliest = now.hour * 60 + now.minute + settings.same_day_lead_minutes

    times = []
    for time_slot in TIME_SLOTS:
        if not validate_business_hours(on_date, time_slot).is_valid:
            continue
        if on_date == today and time_to_minutes(time_slot) <= earliest:
            continue

        row = rows.get(time_slot)
        total = row.total_tables if row else settings.default_tables_per_slot
        free = row.available_tables if row else total
        available = free >= needed
        times.append({
            "time": time_slot,
            "label": format_time_label(time_slot),
            "available": available,
            "availableTables": free,
            "totalTables": total,
            "reservationCount": total - free,
            "status": _slot_status(available, free),
        })

    return {
        "date": on_date.isoformat(),
        "availableTimes": times,
        "summary": {
            "totalSlots": len(times),
            "availableSlots": sum(1 for slot in times if slot["available"]),
            "fullyBookedSlots": sum(1 for slot in times if not slot["available"]),
        },
    }


async def check_catering_capacity(
    session: AsyncSession,
    event_date: date,
    guest_count: int,
    today: Optional[date] = None,
) -> CapacityCheck:
    """Check guest minimum, lead time and the daily catering capacity."""
    today = today or date.today()

    if guest_count < settings.catering_min_guests:
        return CapacityCheck(
            available=False,
            message=f"Minimum {settings.catering_min_guests} guests required for catering services",
            suggestion="Please consider our restaurant dining for smaller groups",
        )

    earliest = today + timedelta(days=settings.catering_lead_time_days)
    if event_date < earliest:
        return CapacityCheck(
            available=False,
            message=f"Catering requires at least {settings.catering_lead_time_days} days advance notice",
            suggestion=f"Please select a date after {earliest.isoformat()}",
        )

    booked = await crud.booked_guests_on(session, event_date)
    if booked + guest_count > settings.catering_max_daily_capacity:
        return CapacityCheck(
            available=False,
            message="Catering capacity limit reached for this date",
            suggestion="Please select an alternative date or reduce guest count",
        )

    return CapacityCheck(available=True)
