"""Table availability CRUD operations."""
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant.app.db.models import TableAvailability


async def get_slot(session: AsyncSession, on_date: date, time_slot: str) -> Optional[TableAvailability]:
    result = await session.execute(
        select(TableAvailability)
        .where(TableAvailability.date == on_date)
        .where(TableAvailability.time_slot == time_slot)
    )
    return result.scalar_one_or_none()


async def get_or_create_slot(
    session: AsyncSession,
    on_date: date,
    time_slot: str,
    total_tables: int,
    auto_commit: bool = True,
) -> TableAvailability:
    """Return the slot row, creating it at full capacity when absent."""
    slot = await get_slot(session, on_date, time_slot)
    if slot is not None:
        return slot

    slot = TableAvailability(
        date=on_date,
        time_slot=time_slot,
        available_tables=total_tables,
        total_tables=total_tables,
    )
    session.add(slot)
    if auto_commit:
        await session.commit()
        await session.refresh(slot)
    else:
        await session.flush()
    return slot


async def list_slots_for_date(session: AsyncSession, on_date: date) -> List[TableAvailability]:
    result = await session.execute(
        select(TableAvailability)
        .where(TableAvailability.date == on_date)
        .order_by(TableAvailability.time_slot.asc())
    )
    return list(result.scalars().all())


async def adjust_available_tables(
    session: AsyncSession,
    slot: TableAvailability,
    change: int,
    auto_commit: bool = True,
) -> TableAvailability:
    """Add ``change`` tables to a slot, clamped to ``[0, total_tables]``."""
    slot.available_tables = max(0, min(slot.total_tables, slot.available_tables + change))
    if auto_commit:
        await session.commit()
        await session.refresh(slot)
    return slot
