"""User management operations against the identity provider."""

import secrets

from src.infrastructure.identity import IdentityProvider

TEMPORARY_PASSWORD_BYTES = 18


def generate_temporary_password() -> str:
    """Generate the initial password of a new user.

    Users are expected to reset it through the password reset flow.

    Returns:
        str: A random URL-safe password.
    """
    return secrets.token_urlsafe(TEMPORARY_PASSWORD_BYTES)


async def create_identity_user(
    identity: IdentityProvider, email: str, password: str | None = None
) -> str:
    """Create a user in the identity provider.

    Args:
        identity: The identity provider.
        email: User's email address.
        password: Initial password. A temporary one is generated if omitted.

    Returns:
        str: The provider UID of the created user.
    """
    return await identity.create_user(email, password or generate_temporary_password())
