"""Uniform application error model.

Every failure the API reports to a client is expressed as an ``AppError``:
a message, an HTTP status code and an operational flag. The error is a
tagged union of two concrete kinds:

- **OperationalError**: anticipated, client-facing failures (bad input,
  authentication or authorization failures, unknown routes)
- **GenericError**: unexpected failures (bugs, unavailable collaborators)

Both kinds are built exclusively through ``create_app_error`` so that
``is_app_error`` is an exact check rather than a structural guess. The
status code is stored as given; normalization to a valid HTTP status is the
job of the terminal error handler.
"""

import traceback
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Discriminator of the application error union."""

    OPERATIONAL = "OPERATIONAL"
    """An expected, client-facing failure."""

    GENERIC = "GENERIC"
    """An unexpected failure that must be investigated."""


class AppError(Exception):
    """Base class of the application error union.

    Do not instantiate directly, use ``create_app_error``.

    Args:
        message: Human-readable error message
        status_code: HTTP status code to answer with (not validated here)
        cause: The original exception that caused this error
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        status_code: Any,  # noqa: ANN401 - stored as given, sanitized downstream
        cause: BaseException | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.cause = cause

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-2]

        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def is_operational(self) -> bool:
        """Whether the error is an anticipated, client-facing failure.

        Returns:
            bool: True for operational errors
        """
        return self.kind is ErrorKind.OPERATIONAL

    def __str__(self) -> str:
        """Return the error message."""
        return self.message

    def __repr__(self) -> str:
        """Return a detailed representation of the exception."""
        return (
            f"{self.__class__.__name__}(message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )


class OperationalError(AppError):
    """Anticipated failure: validation, auth, authorization, not found."""

    kind = ErrorKind.OPERATIONAL


class GenericError(AppError):
    """Unexpected failure, always reported as non-operational."""

    kind = ErrorKind.GENERIC


def create_app_error(
    message: str,
    status_code: Any,  # noqa: ANN401 - stored as given, sanitized downstream
    is_operational: bool = True,  # noqa: FBT001, FBT002
    cause: BaseException | None = None,
) -> AppError:
    """Create an application error.

    Args:
        message: Human-readable error message
        status_code: HTTP status code; invalid values are kept as given
        is_operational: Whether the failure is anticipated and client-facing
        cause: The original exception being wrapped, if any

    Returns:
        AppError: An ``OperationalError`` or a ``GenericError``
    """
    error_class = OperationalError if is_operational else GenericError
    return error_class(message, status_code, cause)


def is_app_error(value: object) -> bool:
    """Check whether a value is an error created by ``create_app_error``.

    Objects exposing ``status_code`` and ``is_operational`` attributes that
    are not application errors are rejected.

    Args:
        value: Any value

    Returns:
        bool: True only for ``AppError`` instances
    """
    return isinstance(value, AppError)
