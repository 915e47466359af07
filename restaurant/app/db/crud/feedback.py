"""Feedback CRUD operations."""
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant.app.db.models import Feedback


async def create_feedback(session: AsyncSession, auto_commit: bool = True, **fields: Any) -> Feedback:
    feedback = Feedback(**fields)
    session.add(feedback)
    if auto_commit:
        await session.commit()
        await session.refresh(feedback)
    else:
        await session.flush()
    return feedback


async def average_overall_rating(session: AsyncSession) -> float:
    result = await session.execute(select(func.avg(Feedback.overall_rating)))
    value = result.scalar_one_or_none()
    return round(float(value), 2) if value is not None else 0.0
