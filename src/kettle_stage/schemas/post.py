# src/kettle_stage/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kettle_stage.core.settings import settings


class PostCreate(BaseModel):
    """Schema for pouring a new post into a kettle."""

    content: str = Field(..., min_length=1, description="Post text")
    image_url: str | None = Field(None, description="Optional media reference")
    parent_post_id: str | None = Field(None, description="Parent post ID for replies")

    @field_validator("content")
    @classmethod
    def _strip_and_bound(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Spill at least a little tea first.")
        if len(value) > settings.post_max_length:
            raise ValueError(f"Content exceeds {settings.post_max_length} characters")
        return value


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: str
    kettle_id: int
    parent_post_id: str | None = None
    content: str
    image_url: str | None = None
    heat_score: int = 0
    anonymous_identity: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ThreadNodeResponse(BaseModel):
    """A post with its nested replies.

    ``has_more_replies`` is set when the post has replies below the requested
    depth that were left out of ``children``.
    """

    post: PostResponse
    display_heat: int
    is_boiling: bool
    has_more_replies: bool = False
    children: list["ThreadNodeResponse"] = Field(default_factory=list)


class TrendingPostResponse(BaseModel):
    """Hot post with the kettle it belongs to."""

    id: str
    content: str
    heat_score: int
    anonymous_identity: str
    created_at: datetime
    kettle_name: str
    kettle_slug: str
