"""Request-scoped database session for route handlers.

    @router.get("")
    async def list_things(session: SessionDep):
        ...
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant.app.db.async_session import get_db

SessionDep = Annotated[AsyncSession, Depends(get_db)]
