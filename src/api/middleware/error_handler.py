"""Global exception handling for the FastAPI application.

This module is the single point where failures become HTTP responses. Every
value that reaches ``error_handler`` is normalized to an ``AppError`` and
answered with ``{"status": ..., "message": ...}``; nothing upstream writes
an error response itself.

It also provides the adapters that route handler failures into that
channel:

- ``catch_async``: wraps a handler so foreign exceptions become
  non-operational ``AppError``s handled by ``error_handler``
- ``async_router``: applies ``catch_async`` to every handler registered
  through a router's ``get/post/put/delete/patch`` methods
- ``not_found_handler``: answers unmatched routes with ``Not found - <path>``
- ``ErrorHandlerMiddleware``: answers failures no exception handler caught,
  inside the CORS and security header middleware
"""

import functools
import inspect
import math
import traceback
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas.errors import ErrorResponse
from src.api.utils.responses import ORJSONResponse
from src.core.config import get_settings
from src.core.exceptions import AppError, create_app_error, is_app_error

MIN_STATUS_CODE = 100
MAX_STATUS_CODE = 599
UNEXPECTED_ERROR_MESSAGE = "Unexpected error"
VALIDATION_FAILED_MESSAGE = "Request Data Validation failed"
ROUTE_METHODS = ("get", "post", "put", "delete", "patch")

# Exceptions already understood by the registered exception handlers
_PASSTHROUGH_EXCEPTIONS = (AppError, HTTPException, RequestValidationError)


def sanitize_status_code(status_code: object) -> int:
    """Coerce anything that is not a valid HTTP status code to 500.

    Args:
        status_code: The status code carried by an error

    Returns:
        int: The status code, or 500 if it is not an integral number in [100, 599]
    """
    if isinstance(status_code, bool) or not isinstance(status_code, int | float):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if not math.isfinite(status_code) or status_code != int(status_code):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if not MIN_STATUS_CODE <= status_code <= MAX_STATUS_CODE:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return int(status_code)


def _message_of(value: object) -> str:
    if not isinstance(value, BaseException):
        return UNEXPECTED_ERROR_MESSAGE
    try:
        return str(value)
    except Exception:  # noqa: BLE001 - a broken __str__ must not break the handler
        return UNEXPECTED_ERROR_MESSAGE


def _repr_of(value: object) -> str:
    try:
        return repr(value)
    except Exception:  # noqa: BLE001 - a broken __repr__ must not break the handler
        return f"<unrepresentable {type(value).__name__}>"


def normalize_error(value: object) -> AppError:
    """Normalize any raised or passed value into an ``AppError``.

    Args:
        value: An exception, ``None`` or any other value

    Returns:
        AppError: The value itself when it is an application error, otherwise
            a non-operational 500 error wrapping it
    """
    if is_app_error(value):
        return value  # type: ignore[return-value]
    cause = value if isinstance(value, BaseException) else None
    return create_app_error(_message_of(value), 500, is_operational=False, cause=cause)


def _format_stack(value: object) -> str:
    """Render the stack of the original failure for development responses.

    Args:
        value: The value passed to the terminal handler

    Returns:
        str: The formatted traceback, or "Unknown error" for non-exceptions
    """
    if not isinstance(value, BaseException):
        return "Unknown error"
    if value.__traceback__ is not None:
        return "".join(traceback.format_exception(value))
    if isinstance(value, AppError):
        return "".join([*value.stack_trace, *traceback.format_exception_only(value)])
    return "".join(traceback.format_exception_only(value))


def _request_target(request: Request) -> tuple[str, str]:
    scope = getattr(request, "scope", {}) or {}
    return scope.get("method", "UNKNOWN"), scope.get("path", "")


async def error_handler(request: Request, exc: object) -> Response:
    """Terminal handler: answer any failure with ``{status, message}``.

    Application errors are used as-is; anything else (including ``None`` and
    non-exception values) becomes a non-operational 500. Invalid status codes
    are coerced to 500. In development the original traceback is attached
    under ``error``.

    Args:
        request: The request that failed
        exc: Whatever was raised

    Returns:
        Response: ORJSONResponse with the normalized error
    """
    error = normalize_error(exc)
    status_code = sanitize_status_code(error.status_code)
    message = str(error.message)
    method, path = _request_target(request)

    logger.error(
        "[{}] [{} {}] ERROR {} - {}",
        datetime.now(UTC).isoformat(),
        method,
        path,
        status_code,
        message,
        method=method,
        path=path,
        status_code=status_code,
    )

    if not error.is_operational:
        raw = exc if isinstance(exc, BaseException) else None
        logger.opt(exception=raw).error(
            "[{}] Non-operational error: {}",
            datetime.now(UTC).isoformat(),
            _repr_of(exc),
        )

    body = ErrorResponse(
        status=status_code,
        message=message,
        error=_format_stack(exc) if get_settings().is_development else None,
    )

    return ORJSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Answer request validation failures with a 422 application error.

    Args:
        request: The request whose data failed validation
        exc: The RequestValidationError raised by FastAPI

    Returns:
        Response: ORJSONResponse with status 422
    """
    field_errors: dict[str, list[str]] = {}
    if isinstance(exc, RequestValidationError):
        for error in exc.errors():
            field_path = error.get("loc", ())
            field_name = ".".join(str(loc) for loc in field_path[1:]) or "root"
            field_errors.setdefault(field_name, []).append(
                error.get("msg", "Invalid value")
            )

    logger.warning(
        "Request validation failed",
        path=request.url.path,
        validation_errors=field_errors,
    )

    error = create_app_error(
        VALIDATION_FAILED_MESSAGE, status.HTTP_422_UNPROCESSABLE_ENTITY, cause=exc
    )
    return await error_handler(request, error)


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Convert Starlette HTTPException to an operational application error.

    Args:
        request: The request that failed
        exc: The HTTPException to handle

    Returns:
        Response: ORJSONResponse carrying the exception's status and headers

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    error = create_app_error(str(exc.detail), exc.status_code, cause=exc)
    response = await error_handler(request, error)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def _decode(value: bytes | str | None) -> str:
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return value or ""


def _original_path(request: Request) -> str:
    # Path as sent by the client, query string included
    scope = getattr(request, "scope", {}) or {}
    path = _decode(scope.get("raw_path")) or scope.get("path")
    if not path:
        return "undefined"
    query = _decode(scope.get("query_string"))
    if query and "?" not in path:
        path = f"{path}?{query}"
    return path


async def not_found_handler(request: Request, _exc: Exception | None = None) -> Response:
    """Answer unmatched routes with ``404 Not found - <path>``.

    Args:
        request: The request no route matched
        _exc: The 404 HTTPException raised by the router (unused)

    Returns:
        Response: ORJSONResponse with status 404
    """
    error = create_app_error(
        f"Not found - {_original_path(request)}", status.HTTP_404_NOT_FOUND
    )
    return await error_handler(request, error)


def catch_async[**P, R](
    handler: Callable[P, Awaitable[R]] | Callable[P, R],
) -> Callable[P, Awaitable[R]]:
    """Route every failure of a handler into the application error channel.

    The returned coroutine function keeps the handler's signature, so FastAPI
    still resolves its parameters and dependencies. Sync handlers run in the
    thread pool, as FastAPI would run them unwrapped. Application errors, HTTP
    exceptions and validation errors propagate unchanged; any other exception,
    raised synchronously or while awaiting, is re-raised as a non-operational
    500 ``AppError`` with the original as its cause.

    Args:
        handler: A route handler or dependency, sync or async

    Returns:
        Callable[P, Awaitable[R]]: The wrapped handler

    Raises:
        TypeError: If handler is not callable
    """
    if not callable(handler):
        msg = "catch_async requires a callable handler"
        raise TypeError(msg)

    is_coroutine = inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    )

    @functools.wraps(handler)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            if is_coroutine:
                result = await handler(*args, **kwargs)
            else:
                result = await run_in_threadpool(handler, *args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except _PASSTHROUGH_EXCEPTIONS:
            raise
        except Exception as exc:
            raise normalize_error(exc) from exc
        return result  # type: ignore[return-value]

    return wrapper


class AsyncRouter:
    """Router proxy that wraps every registered handler with ``catch_async``.

    Only the route registration methods of the wrapped router are changed;
    every other attribute is delegated. Methods the wrapped router does not
    have are not available on the proxy either.

    Args:
        router: Any object exposing ``get/post/put/delete/patch`` methods
    """

    def __init__(self, router: Any) -> None:  # noqa: ANN401
        self.router = router

    def __getattr__(self, name: str) -> Any:  # noqa: ANN401
        attribute = getattr(self.router, name)
        if name not in ROUTE_METHODS:
            return attribute
        return self._wrap_registration(attribute)

    def _wrap_registration(self, method: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(method)
        def register(*args: Any, **kwargs: Any) -> Any:  # noqa: ANN401
            wrapped_args = [_wrap_handler(arg) for arg in args]
            result = method(*wrapped_args, **kwargs)
            if result is self.router:
                return self
            if callable(result):
                return _wrap_decorator(result)
            return result

        return register


def _wrap_handler(value: Any) -> Any:  # noqa: ANN401
    # Classes (response models, etc.) are configuration, not handlers
    if callable(value) and not isinstance(value, type):
        return catch_async(value)
    return value


def _wrap_decorator(
    decorator: Callable[[Callable[..., Any]], Any],
) -> Callable[[Callable[..., Any]], Any]:
    def decorate(endpoint: Callable[..., Any]) -> Callable[..., Any]:
        decorator(catch_async(endpoint))
        return endpoint

    return decorate


def async_router[T](router: T) -> T:
    """Return a proxy of ``router`` whose handlers are wrapped by ``catch_async``.

    Args:
        router: The router to wrap

    Returns:
        T: A proxy with the same registration interface
    """
    return AsyncRouter(router)  # type: ignore[return-value]


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Answer failures that escaped the exception handlers.

    Exceptions raised outside ``catch_async`` (a failing dependency, for
    instance) would otherwise reach Starlette's outermost error middleware,
    which answers without the CORS and security headers and re-raises to the
    server. Registered inside those middleware, this one hands them to
    ``error_handler`` instead.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Forward the request and answer any failure with ``error_handler``.

        Args:
            request: The incoming request
            call_next: The next handler in the chain

        Returns:
            Response: The downstream response, or the error response
        """
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001 - answered by the terminal handler
            return await error_handler(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppError, error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(status.HTTP_404_NOT_FOUND, not_found_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, error_handler)

    logger.info("Exception handlers registered")
