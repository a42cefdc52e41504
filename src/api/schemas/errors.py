"""Error response schemas.

Every error answered by the API has the same two-field body::

    {"status": 404, "message": "Not found - /nope"}

In development an ``error`` field carries the traceback of the original
failure. The documentation endpoints use ``DocsErrorResponse``, whose
``error`` is an object holding the underlying failure message.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    status: int = Field(
        ...,
        description="HTTP status code of the response",
        examples=[401, 404, 500],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["No authorization token provided", "Not found - /nope"],
    )

    error: str | None = Field(
        default=None,
        description="Traceback of the original failure (development only)",
    )


class ErrorDetail(BaseModel):
    """Underlying failure of a documentation request."""

    message: str = Field(..., description="Message of the underlying failure")


class DocsErrorResponse(BaseModel):
    """Error body returned when the OpenAPI document cannot be built."""

    status: int = Field(default=500, description="HTTP status code")
    message: str = Field(
        default="Error generating OpenAPI specification",
        description="Human-readable error message",
    )
    error: ErrorDetail
