"""
Backoffice API - Core Module

This module contains configuration, database setup, and security utilities.
"""

from app.core.config import get_settings, settings
from app.core.database import Base, get_engine, get_session_maker
from app.core.exceptions import DataSourceError

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "get_engine",
    "get_session_maker",
    "DataSourceError",
]
