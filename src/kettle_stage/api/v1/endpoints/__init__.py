# src/kettle_stage/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .changes import router as changes_router
from .heat import router as heat_router
from .kettles import router as kettles_router
from .moderation import router as moderation_router
from .votes import router as votes_router

__all__ = [
    "changes_router",
    "heat_router",
    "kettles_router",
    "moderation_router",
    "votes_router",
]
