# src/kettle_stage/models/__init__.py
"""SQLAlchemy models for the Kettle application."""

from .kettle import Kettle
from .post import Post
from .report import Report

__all__ = [
    "Kettle",
    "Post",
    "Report",
]
