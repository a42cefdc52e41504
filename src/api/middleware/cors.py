"""Cross-Origin Resource Sharing policy.

Only the configured frontend origins may call the API from a browser.
Requests without an ``Origin`` header (curl, mobile apps, server to server)
are not affected by CORS at all.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.core.config import Settings

CORS_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
CORS_ALLOWED_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]
# Lets browsers read file names of downloads
CORS_EXPOSED_HEADERS = ["Content-Disposition"]
CORS_PREFLIGHT_MAX_AGE = 86400


def add_cors_middleware(app: FastAPI, settings: Settings) -> None:
    """Register the CORS middleware with the configured origins.

    Args:
        app: The FastAPI application instance.
        settings: Application settings providing ``cors_origins``.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
        expose_headers=CORS_EXPOSED_HEADERS,
        allow_credentials=True,
        max_age=CORS_PREFLIGHT_MAX_AGE,
    )
