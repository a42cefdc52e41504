"""Identity provider integration backed by Firebase Authentication.

The API layer only depends on the ``IdentityProvider`` protocol: verify a
bearer token and create a user. ``FirebaseIdentityProvider`` implements it
with the ``firebase_admin`` SDK. The SDK is synchronous, so every call runs
in Starlette's thread pool to keep the event loop free.

Token failures raised by the SDK are re-raised as
``IdentityVerificationError`` whose message starts with the provider error
code (``auth/id-token-expired``, ``auth/id-token-revoked``,
``auth/invalid-id-token``), which is what the auth middleware inspects.
"""

from functools import lru_cache
from typing import Protocol

import firebase_admin
from firebase_admin import auth, credentials
from loguru import logger
from starlette.concurrency import run_in_threadpool

from src.core.config import FirebaseConfig, get_settings
from src.core.types import Claims

FIREBASE_APP_NAME = "nucleus"
TOKEN_URI = "https://oauth2.googleapis.com/token"  # noqa: S105 - public endpoint

ID_TOKEN_EXPIRED = "auth/id-token-expired"
ID_TOKEN_REVOKED = "auth/id-token-revoked"
INVALID_ID_TOKEN = "auth/invalid-id-token"  # noqa: S105 - error code, not a secret


class IdentityVerificationError(Exception):
    """Raised when the identity provider rejects a token.

    Args:
        code: Provider error code, e.g. ``auth/id-token-expired``
        message: Description from the provider
    """

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"{code}: {message}")


class IdentityProvider(Protocol):
    """External identity service used by the API."""

    async def verify_token(self, token: str) -> Claims:
        """Verify a bearer token and return its decoded claims."""
        ...

    async def create_user(self, email: str, password: str) -> str:
        """Create a user and return its provider UID."""
        ...


class FirebaseIdentityProvider:
    """``IdentityProvider`` implementation using the Firebase Admin SDK.

    The Firebase app is initialized lazily on first use so that the API can
    start (and serve docs and health checks) without credentials.

    Args:
        config: Firebase service account configuration.
    """

    def __init__(self, config: FirebaseConfig) -> None:
        self.config = config
        self._app: firebase_admin.App | None = None

    def _get_app(self) -> firebase_admin.App:
        """Get or initialize the Firebase app.

        Returns:
            firebase_admin.App: The initialized app.

        Raises:
            RuntimeError: If the service account is not configured.
        """
        if self._app is not None:
            return self._app

        try:
            self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            if not (self.config.project_id and self.config.client_email):
                msg = "Firebase service account is not configured"
                raise RuntimeError(msg) from None

            # The private key comes from the environment with escaped newlines
            private_key = (self.config.private_key or "").replace("\\n", "\n")
            credential = credentials.Certificate(
                {
                    "type": "service_account",
                    "project_id": self.config.project_id,
                    "client_email": self.config.client_email,
                    "private_key": private_key,
                    "token_uri": TOKEN_URI,
                }
            )
            options = {"projectId": self.config.project_id}
            if self.config.storage_bucket:
                options["storageBucket"] = self.config.storage_bucket

            self._app = firebase_admin.initialize_app(
                credential, options, name=FIREBASE_APP_NAME
            )
            logger.info(
                "Initialized Firebase app for project {}", self.config.project_id
            )

        return self._app

    async def verify_token(self, token: str) -> Claims:
        """Verify a Firebase ID token, including revocation.

        Args:
            token: The raw bearer token.

        Returns:
            Claims: The decoded token claims.

        Raises:
            IdentityVerificationError: If the token is expired, revoked or invalid.
        """
        app = self._get_app()
        try:
            return await run_in_threadpool(
                auth.verify_id_token, token, app=app, check_revoked=True
            )
        # Expired and revoked errors are subclasses of InvalidIdTokenError
        except auth.ExpiredIdTokenError as e:
            raise IdentityVerificationError(ID_TOKEN_EXPIRED, str(e)) from e
        except auth.RevokedIdTokenError as e:
            raise IdentityVerificationError(ID_TOKEN_REVOKED, str(e)) from e
        except auth.InvalidIdTokenError as e:
            raise IdentityVerificationError(INVALID_ID_TOKEN, str(e)) from e

    async def create_user(self, email: str, password: str) -> str:
        """Create a Firebase user with email and password.

        Args:
            email: User's email address, passed as-is.
            password: Initial password.

        Returns:
            str: Firebase UID of the created user.
        """
        app = self._get_app()
        user_record = await run_in_threadpool(
            auth.create_user,
            email=email,
            password=password,
            email_verified=False,
            disabled=False,
            app=app,
        )
        logger.info("Created Firebase user {}", user_record.uid)
        return user_record.uid


@lru_cache
def get_identity_provider() -> IdentityProvider:
    """Get the process-wide identity provider."""
    return FirebaseIdentityProvider(get_settings().firebase_config)
