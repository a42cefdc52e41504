"""Infrastructure layer for external system integrations and data persistence.

Key responsibilities:
- **Database access**: Async PostgreSQL with SQLAlchemy 2.0+
- **Repository pattern**: Typed data access per model
- **Connection management**: Pooling, health checks, and lifecycle
- **Identity**: Firebase Authentication for token verification and user creation
"""
