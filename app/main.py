"""
Backoffice Analytics Backend - FastAPI Application

Main entry point for the application.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import close_db
from app.core.http_client import close_http_client
from app.core.logging import setup_logging
from app.api.v1 import router as api_v1_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    
    Handles startup and shutdown events.
    """
    # Startup
    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting backoffice analytics ({settings.DATA_SOURCE} data source)")
    yield
    # Shutdown
    logger.info("Shutting down backoffice analytics")
    await close_http_client()
    await close_db()


# Create FastAPI application
app = FastAPI(
    title="Backoffice Analytics",
    description="Admin dashboard backend: user analytics, course completion rates, users, banners and report downloads.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.
    
    Returns:
        dict: Health status and environment info.
    """
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "data_source": settings.DATA_SOURCE,
        "version": "0.1.0",
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    """
    Root endpoint.
    
    Returns:
        dict: Welcome message and API documentation links.
    """
    return {
        "message": "Welcome to the Backoffice Analytics API",
        "docs": "/docs",
        "health": "/health",
    }
