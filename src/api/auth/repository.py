"""Data access for authentication records."""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.auth.schemas import CreateUserRequest
from src.infrastructure.database import Authentication, BaseRepository, DatabaseSession


class AuthenticationRepository(BaseRepository[Authentication]):
    """Repository for the ``authentication`` table."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Authentication)

    async def create_authentication(self, data: CreateUserRequest) -> Authentication:
        """Store a new authentication record.

        Args:
            data: Validated user data.

        Returns:
            Authentication: The stored record with its generated ``user_id``.
        """
        record = await self.create(
            Authentication(
                user_email=str(data.user_email),
                user_role=data.user_role,
                user_country=data.user_country,
            )
        )
        logger.info("Created authentication record {}", record.user_id)
        return record


def get_auth_repository(session: DatabaseSession) -> AuthenticationRepository:
    """Provide the authentication repository for the current request."""
    return AuthenticationRepository(session)
