"""Core app configuration, database session and error types."""

from app.core.config import APP_VERSION, get_settings, settings
from app.core.database import SessionLocal, get_db, session_scope

__all__ = [
    "APP_VERSION",
    "SessionLocal",
    "get_db",
    "get_settings",
    "session_scope",
    "settings",
]
