# src/kettle_stage/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    changes_router,
    heat_router,
    kettles_router,
    moderation_router,
    votes_router,
)

__all__ = [
    "changes_router",
    "heat_router",
    "kettles_router",
    "moderation_router",
    "votes_router",
]
