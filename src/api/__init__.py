"""HTTP API layer of the Shree Nucleus API.

Key components:
- **main**: Application factory and lifecycle management
- **middleware**: Cross-cutting concerns for all requests
  - Security headers and CORS
  - Request logging
  - Bearer token authentication and role gates
  - Centralized error handling with consistent responses
- **auth**: User management endpoints (``/auth``)
- **docs**: Combined OpenAPI document and Swagger UI (``/docs``)
- **schemas**: Shared response models
- **utils**: orjson response class

Each API module lives in its own package, ``src/api/<module>/``, and may ship
an OpenAPI fragment at ``src/api/<module>/<module>.yaml`` that is merged into
the served documentation.
"""
