"""Shared fixtures for API unit tests."""

from collections.abc import Callable

import pytest
from starlette.requests import Request

type RequestFactory = Callable[..., Request]


@pytest.fixture
def make_request() -> RequestFactory:
    """Build bare Starlette requests without running an application.

    Usage:
        request = make_request("/auth/user", method="POST",
                               headers={"authorization": "Bearer x"})
    """

    def _make(
        path: str = "/test",
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        raw_path: bytes | None = None,
        query_string: bytes = b"",
    ) -> Request:
        scope = {
            "type": "http",
            "method": method,
            "scheme": "http",
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 12345),
            "path": path,
            "raw_path": raw_path if raw_path is not None else path.encode(),
            "query_string": query_string,
            "root_path": "",
            "headers": [
                (key.lower().encode("latin-1"), value.encode("latin-1"))
                for key, value in (headers or {}).items()
            ],
        }
        return Request(scope)

    return _make
