# src/kettle_stage/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .changes import ChangeBatchResponse, ChangeEventResponse
from .kettle import KettleActiveUpdate, KettleHeatResponse, KettleResponse
from .post import PostCreate, PostResponse, ThreadNodeResponse, TrendingPostResponse
from .report import ReportCreate, ReportReason, ReportResponse
from .vote import HeatResponse, VoteRequest, VoteResponse

__all__ = [
    "ChangeBatchResponse", "ChangeEventResponse",
    "KettleActiveUpdate", "KettleHeatResponse", "KettleResponse",
    "PostCreate", "PostResponse", "ThreadNodeResponse", "TrendingPostResponse",
    "ReportCreate", "ReportReason", "ReportResponse",
    "HeatResponse", "VoteRequest", "VoteResponse",
]
