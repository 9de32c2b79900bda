# src/kettle_stage/main.py
"""Main entry point for the Kettle application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from kettle_stage.api.v1 import (
    changes_router,
    heat_router,
    kettles_router,
    moderation_router,
    votes_router,
)
from kettle_stage.core.settings import settings

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Kettle API",
    description="Anonymous topic rooms with live heat",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(votes_router, prefix="/api/v1")
app.include_router(heat_router, prefix="/api/v1")
app.include_router(kettles_router, prefix="/api/v1")
app.include_router(changes_router, prefix="/api/v1")
app.include_router(moderation_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.debug:
        logging.basicConfig(level=logging.DEBUG)
    logger.info("%s %s ready", settings.app_name, settings.app_version)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Kettle API",
        "version": settings.app_version,
        "description": "Anonymous topic rooms with live heat",
        "docs": "/docs",
        "redoc": "/redoc"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("kettle_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
