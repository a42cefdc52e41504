"""Base repository pattern implementation for database operations."""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.base import Base


class BaseRepository[T: Base]:
    """Base repository class providing common operations for one model.

    Args:
        session: The async SQLAlchemy session to use for operations.
        model_class: The SQLAlchemy model class this repository manages.

    Example:
        class UserRepository(BaseRepository[User]):
            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, User)
    """

    def __init__(self, session: AsyncSession, model_class: type[T]) -> None:
        self.session = session
        self.model_class = model_class

    async def create(self, obj: T) -> T:
        """Create a new model instance in the database.

        The instance is flushed so that database-generated values (primary
        key, timestamps) are populated; the surrounding session commits.

        Args:
            obj: The model instance to create.

        Returns:
            T: The created model instance.
        """
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)

        logger.debug("Created {} instance", self.model_class.__name__)
        return obj
