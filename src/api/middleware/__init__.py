"""FastAPI middleware package for cross-cutting request/response concerns.

This package contains the components shared by all API endpoints:

- **SecurityHeadersMiddleware**: Adds API security headers (HSTS in production)
- **CORS**: Restricts browser access to the configured frontend origins
- **RequestLoggingMiddleware**: Request logging with timing
- **auth**: Bearer token verification and role gates as FastAPI dependencies
- **error_handler**: Terminal error handler and the adapters feeding it

Middleware run in this order on the way in:
1. Security headers (first to process, last to respond)
2. CORS (answers preflight requests)
3. Request logging
"""
