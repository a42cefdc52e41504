"""Shree Nucleus API - backend of the Shree Nucleus tutoring platform.

Built with Python 3.13+ and FastAPI.

Architecture Overview:
- **API Layer**: FastAPI application, middleware, and per-module routes
- **Core Layer**: Configuration, logging, and the application error model
- **Infrastructure Layer**: Relational store and identity provider integration
"""
