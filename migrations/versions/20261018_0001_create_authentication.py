"""Create authentication table.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

country = sa.Enum("CANADA", "INDIA", "UK", "USA", name="country")


def upgrade() -> None:
    """Create the authentication table and the country enum."""
    op.create_table(
        "authentication",
        sa.Column("user_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("user_role", sa.Integer(), nullable=False),
        sa.Column("user_country", country, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("user_id", name=op.f("pk_authentication")),
    )


def downgrade() -> None:
    """Drop the authentication table and the country enum."""
    op.drop_table("authentication")
    country.drop(op.get_bind(), checkfirst=True)
