"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import analytics, users, banners, reports

router = APIRouter()

# Include analytics routes
router.include_router(analytics.router)

# Include user routes
router.include_router(users.router)

# Include banner routes
router.include_router(banners.router)

# Include report routes
router.include_router(reports.router)
