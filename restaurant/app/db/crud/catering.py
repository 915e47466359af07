"""Catering inquiry CRUD operations."""
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant.app.db.models import CateringInquiry


async def create_catering_inquiry(
    session: AsyncSession,
    auto_commit: bool = True,
    **fields: Any,
) -> CateringInquiry:
    inquiry = CateringInquiry(**fields)
    session.add(inquiry)
    if auto_commit:
        await session.commit()
        await session.refresh(inquiry)
    else:
        await session.flush()
    return inquiry


async def get_catering_inquiry_by_id(session: AsyncSession, inquiry_id: int) -> Optional[CateringInquiry]:
    result = await session.execute(
        select(CateringInquiry).where(CateringInquiry.id == inquiry_id)
    )
    return result.scalar_one_or_none()


async def list_catering_inquiries(
    session: AsyncSession,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[List[CateringInquiry], int]:
    """List inquiries newest first.

    Returns:
        Tuple of (page of inquiries, total matching count)
    """
    query = select(CateringInquiry)
    count_query = select(func.count(CateringInquiry.id))
    if status:
        query = query.where(CateringInquiry.status == status)
        count_query = count_query.where(CateringInquiry.status == status)

    result = await session.execute(
        query.order_by(CateringInquiry.created_at.desc()).offset(offset).limit(limit)
    )
    total = (await session.execute(count_query)).scalar_one()
    return list(result.scalars().all()), total


async def update_catering_inquiry(
    session: AsyncSession,
    inquiry: CateringInquiry,
    auto_commit: bool = True,
    **updates: Any,
) -> CateringInquiry:
    for name, value in updates.items():
        if not hasattr(CateringInquiry, name):
            raise ValueError(f"Unknown catering field: {name}")
        setattr(inquiry, name, value)
    inquiry.updated_at = datetime.now(timezone.utc)

    if auto_commit:
        await session.commit()
        await session.refresh(inquiry)
    return inquiry


async def delete_catering_inquiry(session: AsyncSession, inquiry: CateringInquiry, auto_commit: bool = True) -> None:
    await session.delete(inquiry)
    if auto_commit:
        await session.commit()


async def booked_guests_on(
    session: AsyncSession,
    event_date: date,
    statuses: Iterable[str] = ("confirmed", "in_progress"),
) -> int:
    """Total guests of catering bookings already held for a date."""
    result = await session.execute(
        select(func.coalesce(func.sum(CateringInquiry.guest_count), 0))
        .where(CateringInquiry.event_date == event_date)
        .where(CateringInquiry.status.in_(tuple(statuses)))
    )
    return int(result.scalar_one())


async def count_catering_inquiries(session: AsyncSession, status: Optional[str] = None) -> int:
    query = select(func.count(CateringInquiry.id))
    if status:
        query = query.where(CateringInquiry.status == status)
    return (await session.execute(query)).scalar_one()
