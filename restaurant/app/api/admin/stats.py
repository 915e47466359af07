"""Admin dashboard statistics."""

from datetime import date, datetime, timezone

from fastapi import APIRouter

from restaurant.app.db import crud
from restaurant.app.db.dependencies import SessionDep
from restaurant.app.api.schemas import dump_reservation

router = APIRouter()


@router.get("")
async def get_stats(session: SessionDep) -> dict:
    now = datetime.now(timezone.utc)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    recent = await crud.recent_reservations(session, limit=10)
    return {
        "todayReservations": await crud.count_reservations(session, on_date=date.today()),
        "pendingReservations": await crud.count_reservations(session, status="pending"),
        "pendingCatering": await crud.count_catering_inquiries(session, status="inquiry"),
        "monthlyReservations": await crud.count_reservations(
            session, status="confirmed", created_since=month_start
        ),
        "totalReservations": await crud.count_reservations(session),
        "totalCatering": await crud.count_catering_inquiries(session),
        "totalCustomers": await crud.count_unique_customers(session),
        "averagePartySize": await crud.average_party_size(session),
        "averageRating": await crud.average_overall_rating(session),
        "popularTimeSlots": await crud.popular_time_slots(session),
        "recentActivity": [dump_reservation(r) for r in recent],
    }
