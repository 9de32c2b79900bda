# src/kettle_stage/api/v1/endpoints/kettles.py
"""Kettle and post feed endpoints for the Kettle API."""

from __future__ import annotations

from collections.abc import Sequence

from fastapi import APIRouter, HTTPException, Query, status

from kettle_stage.core.settings import settings
from kettle_stage.models import Kettle, Post, Report
from kettle_stage.repositories.post_repo import PostRepository
from kettle_stage.schemas.kettle import KettleResponse
from kettle_stage.schemas.post import PostCreate, PostResponse, ThreadNodeResponse
from kettle_stage.schemas.report import ReportCreate, ReportResponse
from kettle_stage.services.boiling import display_heat, is_boiling
from kettle_stage.services.heat import PostNotFoundError
from kettle_stage.services.kettles import (
    DuplicateReportError,
    InvalidParentError,
    KettleNotFoundError,
    file_report,
    kettle_heat,
    pour_post,
    ranked_kettles,
    resolve_kettle,
    to_kettle_response,
)
from kettle_stage.services.threads import ReplyNode, build_tree

from ..dependencies import HubDep, RepoDep

router = APIRouter(prefix="/kettles", tags=["kettles"])

THREAD_DEPTH_LIMIT = 100


def _get_kettle_or_404(repo: PostRepository, slug: str) -> Kettle:
    try:
        return resolve_kettle(repo, slug)
    except KettleNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Kettle not found") from exc


def _thread_nodes(roots: Sequence[ReplyNode[Post]], max_depth: int) -> list[ThreadNodeResponse]:
    """Convert a reply tree to response nodes without recursing.

    Roots sit at depth 0. Replies deeper than ``max_depth`` are left out and
    their parent is flagged with ``has_more_replies``.
    """
    result: list[ThreadNodeResponse] = []
    stack = [(node, 0, result) for node in reversed(roots)]
    while stack:
        node, depth, siblings = stack.pop()
        response = ThreadNodeResponse(
            post=PostResponse.model_validate(node.post),
            display_heat=display_heat(node.post.heat_score),
            is_boiling=is_boiling(node.post.heat_score),
            has_more_replies=depth >= max_depth and bool(node.children),
            children=[],
        )
        siblings.append(response)
        if depth < max_depth:
            # response.children is the list the model holds.
            stack.extend(
                (child, depth + 1, response.children) for child in reversed(node.children)
            )
    return result


@router.get("/", response_model=list[KettleResponse])
async def list_kettles(repo: RepoDep) -> list[KettleResponse]:
    """List active kettles, boiling kettles first, then by descending heat."""
    return [to_kettle_response(row.kettle, row.heat) for row in ranked_kettles(repo)]


@router.get("/{slug}", response_model=KettleResponse)
async def get_kettle(slug: str, repo: RepoDep) -> KettleResponse:
    """Get a kettle with its live heat."""
    kettle = _get_kettle_or_404(repo, slug)
    return to_kettle_response(kettle, kettle_heat(repo, kettle.id))


@router.get("/{slug}/posts", response_model=list[PostResponse])
async def list_kettle_posts(slug: str, repo: RepoDep) -> list[Post]:
    """List every visible post in a kettle, newest first."""
    kettle = _get_kettle_or_404(repo, slug)
    return repo.list_posts(kettle.id)


@router.get("/{slug}/thread", response_model=list[ThreadNodeResponse])
async def get_kettle_thread(
    slug: str,
    repo: RepoDep,
    max_depth: int | None = Query(
        None,
        alias="maxDepth",
        ge=0,
        le=THREAD_DEPTH_LIMIT,
        description="Deepest reply level to include; roots are level 0",
    ),
) -> list[ThreadNodeResponse]:
    """Return the kettle's posts as a reply tree.

    Roots are newest first; replies under each post are oldest first.
    Replies whose parent is no longer visible are left out, and so are
    replies nested deeper than ``maxDepth`` (``THREAD_MAX_DEPTH`` by default).
    """
    kettle = _get_kettle_or_404(repo, slug)
    depth = min(settings.thread_max_depth, THREAD_DEPTH_LIMIT) if max_depth is None else max_depth
    return _thread_nodes(build_tree(repo.list_posts(kettle.id)), depth)


@router.post(
    "/{slug}/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    slug: str,
    post_data: PostCreate,
    repo: RepoDep,
    hub: HubDep,
) -> Post:
    """Pour a new anonymous post (or reply) into a kettle.

    Raises:
        HTTPException: If the kettle is unknown or the parent is not in it
    """
    kettle = _get_kettle_or_404(repo, slug)
    try:
        return pour_post(repo=repo, hub=hub, kettle=kettle, data=post_data)
    except InvalidParentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post(
    "/{slug}/posts/{post_id}/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def report_post(
    slug: str,
    post_id: str,
    report_data: ReportCreate,
    repo: RepoDep,
) -> Report:
    """Flag a post for moderators.

    Raises:
        HTTPException: 404 if the post is not visible in the kettle, 409 if
            this device already reported it
    """
    kettle = _get_kettle_or_404(repo, slug)
    try:
        return file_report(repo=repo, kettle=kettle, post_id=post_id, data=report_data)
    except PostNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found") from exc
    except DuplicateReportError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
