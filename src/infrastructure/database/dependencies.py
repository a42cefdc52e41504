"""FastAPI dependency injection for database session management.

The ``DatabaseSession`` alias injects a request-scoped session into route
handlers and dependencies without repeating the ``Depends()`` pattern.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.session import get_async_session


async def get_db() -> AsyncGenerator[AsyncSession]:
    """Provide a database session for FastAPI dependency injection.

    The session is committed when the request succeeds and rolled back when
    it fails.

    Yields:
        AsyncGenerator[AsyncSession]: An async SQLAlchemy session.
    """
    async with get_async_session() as session:
        yield session


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
