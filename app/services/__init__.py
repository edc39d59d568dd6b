"""
Backoffice API - Services Module

Business logic layer.
"""

from app.services import aggregation
from app.services import analytics_service
from app.services import users_service
from app.services import banner_service
from app.services import report_service

__all__ = [
    "aggregation",
    "analytics_service",
    "users_service",
    "banner_service",
    "report_service",
]
