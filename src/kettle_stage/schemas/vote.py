# src/kettle_stage/schemas/vote.py
"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field

from kettle_stage.services.heat import VoteAction


class VoteRequest(BaseModel):
    """Schema for a vote action on a post."""

    post_id: str = Field(..., min_length=1)
    action: VoteAction = Field(
        ...,
        description="up, down, remove-up, remove-down, switch-up or switch-down",
    )


class VoteResponse(BaseModel):
    """Authoritative heat after a vote."""

    success: bool = True
    heat: int


class HeatResponse(BaseModel):
    """Current heat of a single post."""

    heat: int
