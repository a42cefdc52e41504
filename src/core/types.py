"""Type aliases for dynamic data structures throughout the application.

All types defined here should be JSON-serializable to support logging,
API responses, and document serialization.
"""

from typing import Any

# JSON-compatible type that represents any valid JSON value
type JsonValue = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)

# Decoded identity-provider token claims
type Claims = dict[str, Any]

# OpenAPI document or fragment, as parsed from YAML
type OpenAPIDocument = dict[str, Any]
