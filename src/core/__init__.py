"""Core infrastructure package for shared application functionality.

This package provides the foundational components used across all layers
of the application:

- **config**: Centralized configuration management with environment support
- **exceptions**: Uniform application error model and its factory
- **error_context**: Sensitive data sanitization for safe logging
- **logging**: Structured logging with Loguru
- **types**: Type aliases for better code clarity
"""
