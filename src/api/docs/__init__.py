"""API documentation module: OpenAPI aggregation and Swagger UI endpoints."""
