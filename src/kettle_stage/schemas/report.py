# src/kettle_stage/schemas/report.py
"""Report-related Pydantic schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

REPORT_DESCRIPTION_MAX_LENGTH = 500


class ReportReason(str, Enum):
    """Why a participant flagged a post."""

    SPAM = "spam"
    HARASSMENT = "harassment"
    HATE_SPEECH = "hate_speech"
    EXPLICIT_CONTENT = "explicit_content"
    MISINFORMATION = "misinformation"
    DOXXING = "doxxing"
    SELF_HARM = "self_harm"
    OTHER = "other"


class ReportCreate(BaseModel):
    """Schema for reporting a post."""

    reason: ReportReason
    description: str | None = Field(None, description="Optional free-text detail")
    reporter_fingerprint: str = Field(
        ...,
        min_length=8,
        max_length=64,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Per-device token from the participant's ledger",
    )

    @field_validator("description")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if len(value) > REPORT_DESCRIPTION_MAX_LENGTH:
            raise ValueError(f"Description exceeds {REPORT_DESCRIPTION_MAX_LENGTH} characters")
        return value or None


class ReportResponse(BaseModel):
    """A stored report. The reporter's fingerprint is never echoed back."""

    id: int
    post_id: str
    reason: ReportReason
    description: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
