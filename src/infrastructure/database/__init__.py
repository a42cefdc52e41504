"""Database infrastructure with async PostgreSQL and repository pattern.

Core components:
- **base**: Declarative base and timestamp fields
- **models**: Table models
- **session**: Async engine and session management
- **repository**: Generic repository base class
- **dependencies**: FastAPI dependency injection helpers
"""

from src.infrastructure.database.base import Base, TimestampedModel
from src.infrastructure.database.dependencies import DatabaseSession, get_db
from src.infrastructure.database.models import Authentication
from src.infrastructure.database.repository import BaseRepository
from src.infrastructure.database.session import (
    check_database_connection,
    close_database,
    create_database_engine,
    get_async_session,
    get_engine,
    get_session_factory,
)

__all__ = [
    "Authentication",
    "Base",
    "BaseRepository",
    "DatabaseSession",
    "TimestampedModel",
    "check_database_connection",
    "close_database",
    "create_database_engine",
    "get_async_session",
    "get_db",
    "get_engine",
    "get_session_factory",
]
