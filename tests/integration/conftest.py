"""Shared fixtures for integration tests.

The application is built fresh for every test with ``create_app`` so that
environment changes made by a test are respected. The identity provider and
the authentication repository are replaced through
``app.dependency_overrides``; no Firebase project or database is needed.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.api.auth.repository import get_auth_repository
from src.api.auth.schemas import CreateUserRequest
from src.api.main import create_app
from src.core.types import Claims
from src.infrastructure.database import Authentication
from src.infrastructure.identity import (
    INVALID_ID_TOKEN,
    IdentityVerificationError,
    get_identity_provider,
)

TOKENS: dict[str, Claims] = {
    "admin-token": {"uid": "admin-uid", "email": "admin@example.com", "role": "admin"},
    "developer-token": {"uid": "dev-uid", "role": "Developer"},
    "student-token": {"uid": "student-uid", "role": "student"},
    "no-role-token": {"uid": "anonymous-uid"},
}


class FakeIdentityProvider:
    """Identity provider accepting the tokens listed in ``TOKENS``."""

    def __init__(self) -> None:
        self.created_users: list[str] = []

    async def verify_token(self, token: str) -> Claims:
        if token not in TOKENS:
            raise IdentityVerificationError(INVALID_ID_TOKEN, "unknown token")
        return TOKENS[token]

    async def create_user(self, email: str, password: str) -> str:
        self.created_users.append(email)
        return f"firebase-{len(self.created_users)}"


class FakeAuthenticationRepository:
    """In-memory replacement for AuthenticationRepository."""

    def __init__(self) -> None:
        self.records: list[Authentication] = []

    async def create_authentication(self, data: CreateUserRequest) -> Authentication:
        record = Authentication(
            user_id=len(self.records) + 1,
            user_email=str(data.user_email),
            user_role=data.user_role,
            user_country=data.user_country,
        )
        self.records.append(record)
        return record


type ClientFactory = Callable[..., Awaitable[AsyncClient]]


@pytest.fixture
def identity() -> FakeIdentityProvider:
    """Identity provider shared by the app and the test."""
    return FakeIdentityProvider()


@pytest.fixture
def auth_repository() -> FakeAuthenticationRepository:
    """Repository shared by the app and the test."""
    return FakeAuthenticationRepository()


@pytest.fixture
async def client_factory(
    identity: FakeIdentityProvider, auth_repository: FakeAuthenticationRepository
) -> AsyncGenerator[ClientFactory]:
    """Factory creating clients for fresh application instances.

    Usage:
        async def test_something(client_factory, set_environment):
            set_environment("production")
            client = await client_factory()

    Extra overrides are added to the app's dependency overrides.
    """
    clients: list[AsyncClient] = []

    async def _create_client(
        overrides: dict[Callable[..., Any], Callable[..., Any]] | None = None,
    ) -> AsyncClient:
        app: FastAPI = create_app()
        app.dependency_overrides[get_identity_provider] = lambda: identity
        app.dependency_overrides[get_auth_repository] = lambda: auth_repository
        app.dependency_overrides.update(overrides or {})
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _create_client

    for client in clients:
        await client.aclose()


@pytest.fixture
async def client(client_factory: ClientFactory) -> AsyncClient:
    """Client for an application running with default settings."""
    return await client_factory()


@pytest.fixture
def auth_header() -> Callable[[str], dict[str, str]]:
    """Build the Authorization header for a token."""
    return lambda token: {"Authorization": f"Bearer {token}"}
