"""HTTP request/response logging with performance monitoring.

Every request is logged once on completion with its method, path, status
and duration. What else is logged depends on the environment:

- **Development and test**: health checks and favicon requests are skipped,
  and the JSON body of ``POST``/``PUT``/``PATCH`` requests is logged with
  sensitive fields redacted and truncated to ``log_config.body_log_limit``
  characters
- **Production**: every request is logged, with the client address and user
  agent instead of the body

Failures raised by the application are logged and re-raised so the
exception handlers still answer them.
"""

import time
from collections.abc import Awaitable, Callable

import orjson
from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.api.constants import REQUEST_BODY_METHODS, USER_AGENT_MAX_LENGTH
from src.core.config import LogConfig, get_settings
from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.error_context import sanitize_value


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses.

    Args:
        app: The ASGI application.
        log_config: Logging configuration.
    """

    def __init__(self, app: ASGIApp, *, log_config: LogConfig) -> None:
        super().__init__(app)
        self.log_config = log_config
        self.excluded_paths = set(log_config.excluded_paths)
        self.settings = get_settings()

    def _is_excluded(self, request: Request) -> bool:
        if self.settings.is_production:
            return False
        return request.url.path in self.excluded_paths

    def _get_client_ip(self, request: Request) -> str:
        """Extract the client IP, trusting proxy headers.

        Only called in production, where the API runs behind a proxy.

        Args:
            request: The incoming request.

        Returns:
            str: The client IP address.
        """
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

        if request.client:
            return request.client.host
        return "unknown"

    def _get_user_agent(self, request: Request) -> str:
        ua = request.headers.get("user-agent", "")
        return ua[:USER_AGENT_MAX_LENGTH] if ua else "unknown"

    async def _get_body_preview(self, request: Request) -> str | None:
        """Render the request body for logging.

        JSON bodies are sanitized before rendering; anything else is logged
        as text. The result is truncated to the configured limit.

        Args:
            request: The incoming request.

        Returns:
            str | None: The body preview, or None when there is nothing to log.
        """
        if request.method not in REQUEST_BODY_METHODS:
            return None

        raw = await request.body()
        if not raw:
            return None

        try:
            preview = orjson.dumps(sanitize_value(orjson.loads(raw))).decode()
        except orjson.JSONDecodeError:
            preview = raw.decode("utf-8", errors="replace")

        return preview[: self.log_config.body_log_limit]

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process the request and log details.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The response from the application.

        Raises:
            Exception: Any exception raised by the application is re-raised
                after logging.
        """
        if self._is_excluded(request):
            return await call_next(request)

        context: dict[str, object] = {
            "method": request.method,
            "path": request.url.path,
        }
        if self.settings.is_production:
            context["client_host"] = self._get_client_ip(request)
            context["user_agent"] = self._get_user_agent(request)
        else:
            body = await self._get_body_preview(request)
            if body is not None:
                context["body"] = body

        with logger.contextualize(**context):
            start_time = time.perf_counter()

            try:
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
                logger.error(
                    "{} {} failed after {:.2f} ms",
                    request.method,
                    request.url.path,
                    duration_ms,
                    duration_ms=round(duration_ms, 2),
                    error_type=type(exc).__name__,
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
            logger.info(
                "{} {} {} - {:.2f} ms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            if duration_ms > self.log_config.slow_request_threshold_ms:
                logger.warning(
                    "Slow request detected",
                    duration_ms=round(duration_ms, 2),
                    threshold_ms=self.log_config.slow_request_threshold_ms,
                )

            return response
