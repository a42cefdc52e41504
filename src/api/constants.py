"""API-related constants."""

# Request handling
REQUEST_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
USER_AGENT_MAX_LENGTH = 200

# Content types
YAML_MEDIA_TYPE = "text/yaml"

# Response messages
ROOT_MESSAGE = "Shree Nucleus API is running!"
HEALTH_MESSAGE = "OK"
DOCS_ERROR_MESSAGE = "Error generating OpenAPI specification"
USER_CREATED_MESSAGE = "User created successfully"

# Roles allowed to manage users, besides the implicit developer role
USER_ADMIN_ROLES = ("admin",)
