"""
Core application utilities for settings, logging, errors and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Logging configuration with request correlation ids
- Domain exceptions mapped onto the API error envelope
- Dependency helpers (database session)
"""
