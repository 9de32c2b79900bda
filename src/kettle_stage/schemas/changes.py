# src/kettle_stage/schemas/changes.py
"""Change-feed Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

from kettle_stage.services.change_feed import ChangeKind


class ChangeEventResponse(BaseModel):
    """One post mutation notification."""

    cursor: int
    kettle_id: int
    kind: ChangeKind
    post_id: str

    model_config = ConfigDict(from_attributes=True)


class ChangeBatchResponse(BaseModel):
    """Events newer than the requested cursor plus the cursor to resume from.

    ``reset`` is set when the requested cursor belongs to an earlier server
    run. The batch then starts from the oldest retained event, and the
    client should refetch the kettle and adopt ``cursor`` and ``epoch``.
    """

    events: list[ChangeEventResponse]
    cursor: int | None
    epoch: str = Field(..., description="Identifies the server run that issued the cursors")
    reset: bool = False
