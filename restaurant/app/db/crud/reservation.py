"""Reservation CRUD operations."""
from datetime import date, datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant.app.db.models import Reservation

# Fields an admin or a customer modification may change
UPDATABLE_FIELDS = frozenset({
    "customer_name",
    "customer_email",
    "customer_phone",
    "reservation_date",
    "reservation_time",
    "party_size",
    "special_occasion",
    "special_requests",
    "dietary_restrictions",
    "status",
    "admin_notes",
})


async def create_reservation(
    session: AsyncSession,
    auto_commit: bool = True,
    **fields: Any,
) -> Reservation:
    """Insert a reservation.

    Args:
        session: Database session from FastAPI dependency
        auto_commit: Whether to commit the transaction. Set to False
                     to control transaction boundaries manually.
        **fields: Column values

    Returns:
        The created Reservation
    """
    reservation = Reservation(**fields)
    session.add(reservation)
    if auto_commit:
        await session.commit()
        await session.refresh(reservation)
    else:
        await session.flush()
    return reservation


async def get_reservation_by_id(session: AsyncSession, reservation_id: int) -> Optional[Reservation]:
    result = await session.execute(
        select(Reservation).where(Reservation.id == reservation_id)
    )
    return result.scalar_one_or_none()


async def get_reservation_by_code(session: AsyncSession, confirmation_code: str) -> Optional[Reservation]:
    result = await session.execute(
        select(Reservation).where(Reservation.confirmation_code == confirmation_code)
    )
    return result.scalar_one_or_none()


async def list_reservations_by_email(session: AsyncSession, email: str) -> List[Reservation]:
    result = await session.execute(
        select(Reservation)
        .where(Reservation.customer_email == email)
        .order_by(Reservation.reservation_date.asc())
    )
    return list(result.scalars().all())


async def list_reservations(
    session: AsyncSession,
    status: Optional[str] = None,
    on_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[List[Reservation], int]:
    """List reservations for the admin dashboard, newest first.

    Returns:
        Tuple of (page of reservations, total matching count)
    """
    query = select(Reservation)
    count_query = select(func.count(Reservation.id))
    if status:
        query = query.where(Reservation.status == status)
        count_query = count_query.where(Reservation.status == status)
    if on_date:
        query = query.where(Reservation.reservation_date == on_date)
        count_query = count_query.where(Reservation.reservation_date == on_date)

    result = await session.execute(
        query.order_by(Reservation.created_at.desc()).offset(offset).limit(limit)
    )
    total = (await session.execute(count_query)).scalar_one()
    return list(result.scalars().all()), total


async def update_reservation(
    session: AsyncSession,
    reservation: Reservation,
    auto_commit: bool = True,
    **updates: Any,
) -> Reservation:
    """Apply updates to a reservation and stamp ``updated_at``.

    Raises:
        ValueError: If a field is not updatable
    """
    unknown = set(updates) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    for name, value in updates.items():
        setattr(reservation, name, value)
    reservation.updated_at = datetime.now(timezone.utc)

    if auto_commit:
        await session.commit()
        await session.refresh(reservation)
    return reservation


async def delete_reservation(session: AsyncSession, reservation: Reservation, auto_commit: bool = True) -> None:
    await session.delete(reservation)
    if auto_commit:
        await session.commit()


async def count_reservations(
    session: AsyncSession,
    status: Optional[str] = None,
    on_date: Optional[date] = None,
    created_since: Optional[datetime] = None,
) -> int:
    query = select(func.count(Reservation.id))
    if status:
        query = query.where(Reservation.status == status)
    if on_date:
        query = query.where(Reservation.reservation_date == on_date)
    if created_since:
        query = query.where(Reservation.created_at >= created_since)
    return (await session.execute(query)).scalar_one()


async def count_unique_customers(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count(func.distinct(Reservation.customer_email)))
    )
    return result.scalar_one()


async def average_party_size(session: AsyncSession) -> float:
    result = await session.execute(select(func.avg(Reservation.party_size)))
    value = result.scalar_one_or_none()
    return round(float(value), 1) if value is not None else 0.0


async def popular_time_slots(session: AsyncSession, limit: int = 5) -> List[dict]:
    """Most booked confirmed time slots."""
    result = await session.execute(
        select(Reservation.reservation_time, func.count(Reservation.id).label("count"))
        .where(Reservation.status == "confirmed")
        .group_by(Reservation.reservation_time)
        .order_by(func.count(Reservation.id).desc())
        .limit(limit)
    )
    return [{"time": row[0], "count": row[1]} for row in result.all()]


async def recent_reservations(session: AsyncSession, limit: int = 10) -> List[Reservation]:
    result = await session.execute(
        select(Reservation).order_by(Reservation.created_at.desc()).limit(limit)
    )
    return list(result.scalars().all())
