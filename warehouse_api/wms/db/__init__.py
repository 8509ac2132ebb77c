"""
Database layer: declarative base, settings, engine/session management and ORM models.

Importing this package registers every model on Base.metadata, which Alembic
and the test fixtures rely on.
"""

from .base import Base
from .config import get_settings, Settings
from .session import (
    dispose_engine,
    get_async_session,
    get_engine,
    get_session_maker,
    session_scope,
)

from . import models as models  # noqa: F401

__all__ = [
    "Base",
    "Settings",
    "get_settings",
    "get_engine",
    "get_session_maker",
    "get_async_session",
    "session_scope",
    "dispose_engine",
    "models",
]
