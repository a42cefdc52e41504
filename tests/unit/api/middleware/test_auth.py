"""Unit tests for bearer token verification and role gates."""

from collections.abc import Callable
from typing import Any

import pytest
from pytest_mock import MockerFixture, MockType
from starlette.requests import Request

from src.api.middleware.auth import (
    AUTHENTICATION_FAILED_MESSAGE,
    FORBIDDEN_MESSAGE,
    INVALID_FORMAT_MESSAGE,
    NO_TOKEN_MESSAGE,
    Principal,
    RoleGate,
    require_role,
    token_failure_message,
    verify_token,
)
from src.core.exceptions import AppError
from src.infrastructure.identity import IdentityVerificationError

type RequestFactory = Callable[..., Request]

CLAIMS = {"uid": "uid-123", "email": "admin@example.com", "role": "admin"}


class FakeIdentityProvider:
    """Identity provider returning fixed claims or raising a fixed error."""

    def __init__(self, claims: dict[str, Any] | None = None, error: object = None) -> None:
        self.claims = claims or CLAIMS
        self.error = error
        self.tokens: list[str] = []

    async def verify_token(self, token: str) -> dict[str, Any]:
        self.tokens.append(token)
        if self.error is not None:
            raise self.error  # type: ignore[misc]
        return self.claims

    async def create_user(self, email: str, password: str) -> str:
        return f"uid-for-{email}"


@pytest.fixture
def mock_auth_logger(mocker: MockerFixture) -> MockType:
    """Patch the auth module logger."""
    return mocker.patch("src.api.middleware.auth.logger")


@pytest.mark.unit
class TestVerifyToken:
    """Test suite for verify_token."""

    async def test_valid_token(self, make_request: RequestFactory) -> None:
        """A valid token produces the principal."""
        identity = FakeIdentityProvider()
        request = make_request(headers={"Authorization": "Bearer valid-token"})

        principal = await verify_token(request, identity)

        assert identity.tokens == ["valid-token"]
        assert principal.id == "uid-123"
        assert principal.email == "admin@example.com"
        assert principal.role == "admin"
        assert principal.claims == CLAIMS

    async def test_missing_header(self, make_request: RequestFactory) -> None:
        """No Authorization header is a 401."""
        identity = FakeIdentityProvider()

        with pytest.raises(AppError) as exc_info:
            await verify_token(make_request(), identity)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == NO_TOKEN_MESSAGE
        assert identity.tokens == []

    @pytest.mark.parametrize("header", ["Basic abc", "bearer abc", "Token abc", "Bearer"])
    async def test_invalid_format(self, make_request: RequestFactory, header: str) -> None:
        """Anything not starting with 'Bearer ' is a 401."""
        identity = FakeIdentityProvider()

        with pytest.raises(AppError) as exc_info:
            await verify_token(make_request(headers={"Authorization": header}), identity)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == INVALID_FORMAT_MESSAGE
        assert identity.tokens == []

    async def test_token_is_text_after_first_space(
        self, make_request: RequestFactory
    ) -> None:
        """The token keeps any further spaces."""
        identity = FakeIdentityProvider()

        await verify_token(
            make_request(headers={"Authorization": "Bearer part1 part2"}), identity
        )

        assert identity.tokens == ["part1 part2"]

    @pytest.mark.parametrize(
        ("error", "message"),
        [
            (
                IdentityVerificationError("auth/id-token-expired", "expired"),
                "Token expired. Please sign in again",
            ),
            (
                IdentityVerificationError("auth/id-token-revoked", "revoked"),
                "Token has been revoked. Please sign in again",
            ),
            (
                IdentityVerificationError("auth/invalid-id-token", "bad signature"),
                "Invalid token. Please sign in again",
            ),
            (ValueError("network down"), AUTHENTICATION_FAILED_MESSAGE),
        ],
    )
    async def test_provider_failures(
        self,
        make_request: RequestFactory,
        mock_auth_logger: MockType,
        error: Exception,
        message: str,
    ) -> None:
        """Provider failures are mapped to specific 401 messages."""
        identity = FakeIdentityProvider(error=error)

        with pytest.raises(AppError) as exc_info:
            await verify_token(
                make_request(headers={"Authorization": "Bearer t"}), identity
            )

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == message
        assert exc_info.value.cause is error
        mock_auth_logger.warning.assert_called_once()

    async def test_failure_not_logged_in_production(
        self,
        make_request: RequestFactory,
        mock_auth_logger: MockType,
        set_environment: Any,
    ) -> None:
        """Verification failures are only logged outside production."""
        set_environment("production")
        identity = FakeIdentityProvider(error=ValueError("x"))

        with pytest.raises(AppError):
            await verify_token(
                make_request(headers={"Authorization": "Bearer t"}), identity
            )

        mock_auth_logger.warning.assert_not_called()


@pytest.mark.unit
class TestTokenFailureMessage:
    """Test suite for token_failure_message."""

    @pytest.mark.parametrize("value", [None, "id-token-expired", 42])
    def test_non_exceptions_are_generic(self, value: object) -> None:
        """Only exceptions are inspected for provider codes."""
        assert token_failure_message(value) == AUTHENTICATION_FAILED_MESSAGE

    def test_code_found_anywhere_in_message(self) -> None:
        """The provider code is matched as a substring."""
        error = Exception("Firebase: auth/id-token-expired (code)")

        assert token_failure_message(error) == "Token expired. Please sign in again"


@pytest.mark.unit
class TestPrincipal:
    """Test suite for Principal.from_claims."""

    def test_sub_used_without_uid(self) -> None:
        """The subject claim identifies the principal when uid is absent."""
        principal = Principal.from_claims({"sub": "subject-1"})

        assert principal.id == "subject-1"
        assert principal.email is None
        assert principal.role is None

    def test_non_string_role_ignored(self) -> None:
        """Only string roles are kept."""
        assert Principal.from_claims({"uid": "u", "role": 3}).role is None


@pytest.mark.unit
class TestRoleGate:
    """Test suite for require_role."""

    def test_allowed_role(self, mock_auth_logger: MockType) -> None:
        """A principal with an allowed role passes."""
        require_role(["admin"]).authorize(Principal.from_claims(CLAIMS), "/auth/user")

        mock_auth_logger.warning.assert_not_called()

    def test_case_insensitive(self) -> None:
        """Roles are compared case-insensitively on both sides."""
        principal = Principal(id="u", role="ADMIN")

        require_role(["Admin"]).authorize(principal, "/x")

    def test_developer_always_allowed(self) -> None:
        """The developer role passes every gate."""
        principal = Principal(id="u", role="Developer")

        require_role(["admin"]).authorize(principal, "/x")

    def test_disallowed_role(self, mock_auth_logger: MockType) -> None:
        """Other roles are rejected with 403."""
        principal = Principal(id="u", role="student")

        with pytest.raises(AppError) as exc_info:
            require_role(["admin"]).authorize(principal, "/auth/user")

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == FORBIDDEN_MESSAGE
        mock_auth_logger.warning.assert_called_once_with(
            "[Auth] Access denied: role={}, path={}", "student", "/auth/user"
        )

    @pytest.mark.parametrize("role", [None, ""])
    def test_missing_role(self, mock_auth_logger: MockType, role: str | None) -> None:
        """A principal without a role is warned about and rejected."""
        principal = Principal(id="u", email="nobody@example.com", role=role)

        with pytest.raises(AppError) as exc_info:
            require_role(["admin"]).authorize(principal, "/x")

        assert exc_info.value.status_code == 403
        assert mock_auth_logger.warning.call_count == 2

    def test_missing_principal(self, mock_auth_logger: MockType) -> None:
        """No principal behaves like a missing role."""
        with pytest.raises(AppError) as exc_info:
            require_role(["admin"]).authorize(None, "/x")

        assert exc_info.value.status_code == 403

    def test_empty_allowed_roles(self) -> None:
        """A gate without roles still admits developers only."""
        gate = RoleGate([])

        assert gate.allowed_roles == frozenset({"developer"})
        with pytest.raises(AppError):
            gate.authorize(Principal(id="u", role="admin"), "/x")

    async def test_dependency_returns_principal(
        self, make_request: RequestFactory
    ) -> None:
        """Used as a dependency, the gate returns the authorized principal."""
        principal = Principal(id="u", role="admin")

        result = await require_role(["admin"])(make_request(), principal)

        assert result is principal
