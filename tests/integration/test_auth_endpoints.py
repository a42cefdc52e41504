"""Integration tests for POST /auth/user."""

from collections.abc import Callable
from typing import Any

import pytest
from httpx import AsyncClient

from src.api.middleware.auth import (
    FORBIDDEN_MESSAGE,
    INVALID_FORMAT_MESSAGE,
    NO_TOKEN_MESSAGE,
)
from src.api.middleware.error_handler import VALIDATION_FAILED_MESSAGE

VALID_BODY: dict[str, Any] = {
    "user_email": "new.user@example.com",
    "user_role": 2,
    "user_country": "INDIA",
}

type AuthHeader = Callable[[str], dict[str, str]]


@pytest.mark.integration
class TestCreateUser:
    """Test the authentication and authorization chain of user creation."""

    async def test_creates_user(
        self,
        client: AsyncClient,
        auth_header: AuthHeader,
        identity: Any,
        auth_repository: Any,
    ) -> None:
        """An admin creates the identity user and its record."""
        response = await client.post(
            "/auth/user", json=VALID_BODY, headers=auth_header("admin-token")
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == 201
        assert body["message"] == "User created successfully"
        assert body["data"] == {
            "user_id": 1,
            "user_email": "new.user@example.com",
            "user_role": 2,
            "user_country": "INDIA",
            "firebase_uid": "firebase-1",
        }
        assert identity.created_users == ["new.user@example.com"]
        assert len(auth_repository.records) == 1

    async def test_developer_allowed(
        self, client: AsyncClient, auth_header: AuthHeader
    ) -> None:
        """The developer role passes the admin gate."""
        response = await client.post(
            "/auth/user", json=VALID_BODY, headers=auth_header("developer-token")
        )

        assert response.status_code == 201

    async def test_missing_token(self, client: AsyncClient, identity: Any) -> None:
        """Requests without a token are rejected before anything else runs."""
        response = await client.post("/auth/user", json=VALID_BODY)

        assert response.status_code == 401
        assert response.json()["message"] == NO_TOKEN_MESSAGE
        assert identity.created_users == []

    async def test_invalid_format(self, client: AsyncClient) -> None:
        """Non-bearer credentials are rejected."""
        response = await client.post(
            "/auth/user", json=VALID_BODY, headers={"Authorization": "Basic abc"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == INVALID_FORMAT_MESSAGE

    async def test_invalid_token(
        self, client: AsyncClient, auth_header: AuthHeader
    ) -> None:
        """Tokens rejected by the provider give a 401 asking to sign in again."""
        response = await client.post(
            "/auth/user", json=VALID_BODY, headers=auth_header("forged")
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token. Please sign in again"

    async def test_auth_checked_before_validation(self, client: AsyncClient) -> None:
        """An invalid body without a token is a 401, not a 422."""
        response = await client.post("/auth/user", json={"user_email": "nope"})

        assert response.status_code == 401

    @pytest.mark.parametrize("token", ["student-token", "no-role-token"])
    async def test_forbidden_roles(
        self,
        client: AsyncClient,
        auth_header: AuthHeader,
        identity: Any,
        token: str,
    ) -> None:
        """Authenticated users without an allowed role get 403."""
        response = await client.post(
            "/auth/user", json=VALID_BODY, headers=auth_header(token)
        )

        assert response.status_code == 403
        assert response.json()["message"] == FORBIDDEN_MESSAGE
        assert identity.created_users == []

    @pytest.mark.parametrize(
        "override",
        [
            {"user_email": "not-an-email"},
            {"user_role": "2"},
            {"user_country": "FRANCE"},
        ],
    )
    async def test_invalid_body(
        self,
        client: AsyncClient,
        auth_header: AuthHeader,
        identity: Any,
        override: dict[str, Any],
    ) -> None:
        """Invalid bodies from authorized users are rejected with 422."""
        response = await client.post(
            "/auth/user",
            json={**VALID_BODY, **override},
            headers=auth_header("admin-token"),
        )

        assert response.status_code == 422
        assert response.json()["status"] == 422
        assert response.json()["message"] == VALIDATION_FAILED_MESSAGE
        assert identity.created_users == []

    async def test_provider_failure_is_500(
        self, client: AsyncClient, auth_header: AuthHeader, identity: Any
    ) -> None:
        """A failure creating the identity user is answered with a 500."""

        async def failing_create_user(email: str, password: str) -> str:
            msg = "EMAIL_EXISTS"
            raise ValueError(msg)

        identity.create_user = failing_create_user

        response = await client.post(
            "/auth/user", json=VALID_BODY, headers=auth_header("admin-token")
        )

        assert response.status_code == 500
        assert response.json()["message"] == "EMAIL_EXISTS"
