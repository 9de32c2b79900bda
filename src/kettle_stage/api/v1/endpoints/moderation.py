# src/kettle_stage/api/v1/endpoints/moderation.py
"""Moderation data operations that touch the heat core.

Admin screens and report triage live elsewhere; these endpoints only flip
the storage state they act on and announce it on the change feed.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from kettle_stage.schemas.kettle import KettleActiveUpdate, KettleResponse
from kettle_stage.schemas.post import PostResponse
from kettle_stage.services.change_feed import ChangeKind
from kettle_stage.services.kettles import kettle_heat, to_kettle_response

from ..dependencies import AdminDep, HubDep, RepoDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.post("/posts/{post_id}/hide", response_model=PostResponse)
async def hide_post(post_id: str, admin: AdminDep, repo: RepoDep, hub: HubDep) -> PostResponse:
    """Soft-remove a post from every feed."""
    post = repo.set_hidden(post_id, True)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    repo.session.commit()
    logger.info("Post %s hidden by %s", post_id, admin)
    hub.publish(post.kettle_id, ChangeKind.DELETE, post_id)
    return PostResponse.model_validate(post)


@router.post("/posts/{post_id}/unhide", response_model=PostResponse)
async def unhide_post(post_id: str, admin: AdminDep, repo: RepoDep, hub: HubDep) -> PostResponse:
    """Restore a soft-removed post."""
    post = repo.set_hidden(post_id, False)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    repo.session.commit()
    logger.info("Post %s restored by %s", post_id, admin)
    hub.publish(post.kettle_id, ChangeKind.INSERT, post_id)
    return PostResponse.model_validate(post)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, admin: AdminDep, repo: RepoDep, hub: HubDep) -> None:
    """Permanently delete a post and its replies."""
    post = repo.get_by_id(post_id, include_hidden=True)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    kettle_id = post.kettle_id

    removed = repo.delete(post_id)
    repo.session.commit()
    logger.info("Post %s deleted by %s (%d rows)", post_id, admin, len(removed))
    for removed_id in removed:
        hub.publish(kettle_id, ChangeKind.DELETE, removed_id)


@router.post("/kettles/{kettle_id}/active", response_model=KettleResponse)
async def set_kettle_active(
    kettle_id: int,
    update: KettleActiveUpdate,
    admin: AdminDep,
    repo: RepoDep,
) -> KettleResponse:
    """Open or close a kettle."""
    kettle = repo.get_kettle(kettle_id)
    if kettle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Kettle not found")
    kettle.is_active = update.is_active
    repo.session.commit()
    logger.info("Kettle %s active=%s by %s", kettle.slug, update.is_active, admin)
    return to_kettle_response(kettle, kettle_heat(repo, kettle.id))
