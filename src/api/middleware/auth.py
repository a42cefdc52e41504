"""Bearer token verification and role-based authorization.

Both concerns are FastAPI dependencies. ``verify_token`` checks the
``Authorization: Bearer <token>`` header against the identity provider and
returns the authenticated ``Principal``; ``require_role`` builds a
dependency that authorizes that principal. The principal is passed down
the dependency chain explicitly, never stored on the request.

Usage:
    @router.post("/user", dependencies=[Depends(require_role(["admin"]))])
    async def create_user(...): ...

Every failure is raised as an operational ``AppError`` (401 or 403) and
answered by the terminal error handler.
"""

from collections.abc import Iterable
from typing import Annotated

from fastapi import Depends, Request, status
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from src.core.config import get_settings
from src.core.constants import DEVELOPER_ROLE
from src.core.exceptions import create_app_error
from src.core.types import Claims
from src.infrastructure.identity import IdentityProvider, get_identity_provider

BEARER_PREFIX = "Bearer "

NO_TOKEN_MESSAGE = "No authorization token provided"
INVALID_FORMAT_MESSAGE = "Invalid authorization format. Use Bearer token"
AUTHENTICATION_FAILED_MESSAGE = "Failed to authenticate user"
FORBIDDEN_MESSAGE = "Forbidden: insufficient permissions"

# Provider error codes found in verification failures, checked in order
TOKEN_FAILURE_MESSAGES: tuple[tuple[str, str], ...] = (
    ("id-token-expired", "Token expired. Please sign in again"),
    ("id-token-revoked", "Token has been revoked. Please sign in again"),
    ("invalid-id-token", "Invalid token. Please sign in again"),
)


class Principal(BaseModel):
    """Authenticated identity of the current request."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identity provider UID")
    email: str | None = Field(default=None, description="Email claim, if any")
    role: str | None = Field(default=None, description="Custom role claim, if any")
    claims: Claims = Field(
        default_factory=dict, description="All decoded token claims"
    )

    @classmethod
    def from_claims(cls, claims: Claims) -> "Principal":
        """Build a principal from decoded token claims.

        Args:
            claims: Claims returned by the identity provider.

        Returns:
            Principal: The authenticated identity.
        """
        role = claims.get("role")
        return cls(
            id=str(claims.get("uid") or claims.get("sub") or ""),
            email=claims.get("email"),
            role=role if isinstance(role, str) else None,
            claims=dict(claims),
        )


def token_failure_message(error: object) -> str:
    """Map a verification failure to the message returned to the client.

    Args:
        error: Whatever the identity provider raised.

    Returns:
        str: A specific message for known provider codes, a generic one otherwise.
    """
    if isinstance(error, Exception):
        description = str(error)
        for code, message in TOKEN_FAILURE_MESSAGES:
            if code in description:
                return message
    return AUTHENTICATION_FAILED_MESSAGE


async def verify_token(
    request: Request,
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
) -> Principal:
    """Authenticate the request from its bearer token.

    Args:
        request: The incoming request.
        identity: Identity provider used to verify the token.

    Returns:
        Principal: The authenticated identity.

    Raises:
        AppError: 401 when the header is missing or malformed, or the token
            is rejected by the identity provider.
    """
    auth_header = request.headers.get("authorization")
    if not auth_header:
        raise create_app_error(NO_TOKEN_MESSAGE, status.HTTP_401_UNAUTHORIZED)

    if not auth_header.startswith(BEARER_PREFIX):
        raise create_app_error(INVALID_FORMAT_MESSAGE, status.HTTP_401_UNAUTHORIZED)

    token = auth_header.split(" ", 1)[1]

    try:
        claims = await identity.verify_token(token)
    except Exception as exc:
        if not get_settings().is_production:
            logger.warning(
                "[Auth] Invalid token Path: {} | Error: {}", request.url.path, exc
            )
        raise create_app_error(
            token_failure_message(exc), status.HTTP_401_UNAUTHORIZED, cause=exc
        ) from exc

    return Principal.from_claims(claims)


CurrentPrincipal = Annotated[Principal, Depends(verify_token)]


class RoleGate:
    """Dependency allowing only principals with one of the given roles.

    Role names are compared case-insensitively and ``developer`` is always
    allowed. A principal without a role, or no principal at all, is denied.

    Args:
        allowed_roles: Role names allowed to proceed.
    """

    def __init__(self, allowed_roles: Iterable[str]) -> None:
        self.allowed_roles = frozenset(
            {*(role.lower() for role in allowed_roles), DEVELOPER_ROLE}
        )

    def authorize(self, principal: Principal | None, path: str) -> None:
        """Check a principal against the allowed roles.

        Args:
            principal: The authenticated identity, if any.
            path: Request path, for logging.

        Raises:
            AppError: 403 when the principal's role is not allowed.
        """
        role = (principal.role or "").lower() if principal else ""

        if not role:
            user = (principal.email or principal.id) if principal else None
            logger.warning("[Auth] User {} has no role set", user)

        if not role or role not in self.allowed_roles:
            logger.warning("[Auth] Access denied: role={}, path={}", role, path)
            raise create_app_error(FORBIDDEN_MESSAGE, status.HTTP_403_FORBIDDEN)

    async def __call__(self, request: Request, principal: CurrentPrincipal) -> Principal:
        """Authorize the principal of the current request.

        Args:
            request: The incoming request.
            principal: The principal returned by ``verify_token``.

        Returns:
            Principal: The authorized principal.
        """
        self.authorize(principal, request.url.path)
        return principal


def require_role(allowed_roles: Iterable[str]) -> RoleGate:
    """Create a role gate dependency.

    Args:
        allowed_roles: Role names allowed to proceed, in addition to ``developer``.

    Returns:
        RoleGate: The dependency to use with ``Depends``.
    """
    return RoleGate(allowed_roles)
