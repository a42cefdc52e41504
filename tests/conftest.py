"""Root conftest.py for the Shree Nucleus API test suite.

This file contains project-wide fixtures and pytest configuration.
"""

import os
from collections.abc import Generator

import pytest

from src.core.config import get_settings
from src.infrastructure.identity import get_identity_provider

APP_ENV_PREFIXES = (
    "APP_",
    "API_",
    "ENVIRONMENT",
    "NODE_ENV",
    "DEBUG",
    "CORS_ORIGINS",
    "LOG_CONFIG__",
    "DATABASE_CONFIG__",
    "FIREBASE_CONFIG__",
    "DOCS_CONFIG__",
)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that run the full application stack"
    )


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Clear cached settings and providers before and after each test."""
    get_settings.cache_clear()
    get_identity_provider.cache_clear()
    yield
    get_settings.cache_clear()
    get_identity_provider.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove application environment variables so tests start from defaults.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        pytest.MonkeyPatch: The monkeypatch instance for env manipulation.
    """
    for key in list(os.environ):
        if key.upper().startswith(APP_ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("PORT", raising=False)
    return monkeypatch


@pytest.fixture
def set_environment(monkeypatch: pytest.MonkeyPatch):  # noqa: ANN201
    """Switch the application environment for the current test.

    Usage:
        def test_something(set_environment):
            set_environment("production")
    """

    def _set(environment: str) -> None:
        monkeypatch.setenv("ENVIRONMENT", environment)
        get_settings.cache_clear()

    return _set
