"""Database models."""

from sqlalchemy import Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.constants import COUNTRIES
from src.infrastructure.database.base import TimestampedModel


class Authentication(TimestampedModel):
    """Application user record, linked to an identity provider account by email."""

    __tablename__ = "authentication"

    user_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_role: Mapped[int] = mapped_column(Integer, nullable=False)
    user_country: Mapped[str | None] = mapped_column(
        Enum(*COUNTRIES, name="country"), nullable=True
    )

    def __repr__(self) -> str:
        """Return a string representation of the record.

        Returns:
            str: The class name and user ID
        """
        return f"<{self.__class__.__name__}(user_id={self.user_id})>"
