# src/kettle_stage/api/v1/endpoints/votes.py
"""Vote boundary endpoints for the Kettle API."""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from kettle_stage.schemas.vote import HeatResponse, VoteRequest, VoteResponse
from kettle_stage.services.change_feed import ChangeKind
from kettle_stage.services.heat import PostNotFoundError

from ..dependencies import HeatEngineDep, HubDep, RepoDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vote", tags=["votes"])


@router.post("/", response_model=VoteResponse)
async def cast_vote(
    vote_data: VoteRequest,
    repo: RepoDep,
    engine: HeatEngineDep,
    hub: HubDep,
) -> VoteResponse:
    """Apply a vote action and return the post's authoritative heat.

    The action is chosen by the caller from its local vote record; this
    endpoint does not deduplicate.
    """
    post = repo.get_by_id(vote_data.post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    kettle_id = post.kettle_id

    try:
        heat = engine.apply_vote(vote_data.post_id, vote_data.action)
        repo.session.commit()
    except PostNotFoundError as exc:
        repo.session.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found") from exc
    except SQLAlchemyError as exc:
        repo.session.rollback()
        logger.error("Vote on post %s failed: %s", vote_data.post_id, exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update heat",
        ) from exc

    hub.publish(kettle_id, ChangeKind.UPDATE, vote_data.post_id)
    return VoteResponse(heat=heat)


@router.get("/", response_model=HeatResponse)
async def get_heat(
    repo: RepoDep,
    post_id: str = Query(..., min_length=1, description="Post to read heat for"),
) -> HeatResponse:
    """Return the current heat score of a post."""
    post = repo.get_by_id(post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return HeatResponse(heat=post.heat_score)
