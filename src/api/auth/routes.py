"""User management endpoints.

``POST /auth/user`` runs, in order: bearer token verification, the admin
role gate, body validation and the handler.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.auth.repository import AuthenticationRepository, get_auth_repository
from src.api.auth.schemas import (
    CreateUserEnvelope,
    CreateUserRequest,
    CreateUserResponse,
)
from src.api.auth.service import create_identity_user
from src.api.constants import USER_ADMIN_ROLES, USER_CREATED_MESSAGE
from src.api.middleware.auth import require_role
from src.api.middleware.error_handler import async_router
from src.infrastructure.identity import IdentityProvider, get_identity_provider

router = async_router(APIRouter(prefix="/auth", tags=["auth"]))


@router.post(
    "/user",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateUserEnvelope,
    dependencies=[Depends(require_role(USER_ADMIN_ROLES))],
)
async def create_user(
    body: CreateUserRequest,
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
    repository: Annotated[AuthenticationRepository, Depends(get_auth_repository)],
) -> CreateUserEnvelope:
    """Create a user in the identity provider and store its record."""
    firebase_uid = await create_identity_user(identity, str(body.user_email))
    record = await repository.create_authentication(body)

    return CreateUserEnvelope(
        status=status.HTTP_201_CREATED,
        message=USER_CREATED_MESSAGE,
        data=CreateUserResponse(
            user_id=record.user_id,
            user_email=record.user_email,
            user_role=record.user_role,
            user_country=record.user_country,
            firebase_uid=firebase_uid,
        ),
    )
