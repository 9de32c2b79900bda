# src/kettle_stage/schemas/kettle.py
"""Kettle-related Pydantic schemas."""

from pydantic import BaseModel


class KettleHeatResponse(BaseModel):
    """Aggregated heat for one kettle."""

    kettle_id: int
    total_heat: int
    post_count: int
    boiling_posts: int
    is_boiling: bool


class KettleResponse(BaseModel):
    """Schema for kettle information returned by the API."""

    id: int
    slug: str
    name: str
    description: str | None
    icon: str | None
    is_active: bool
    total_heat: int = 0
    post_count: int = 0
    is_boiling: bool = False


class KettleActiveUpdate(BaseModel):
    """Toggle a kettle's active flag."""

    is_active: bool
