# src/kettle_stage/api/v1/endpoints/heat.py
"""Kettle heat aggregate and trending endpoints."""

from typing import Any, Literal

from fastapi import APIRouter, HTTPException, Query, status

from kettle_stage.core.settings import settings
from kettle_stage.schemas.kettle import KettleHeatResponse
from kettle_stage.schemas.post import TrendingPostResponse
from kettle_stage.services.kettles import kettle_heat, ranked_kettles, to_kettle_response

from ..dependencies import RepoDep

router = APIRouter(tags=["heat"])


@router.get("/heat", response_model=KettleHeatResponse)
async def get_kettle_heat(
    repo: RepoDep,
    kettle_id: int | None = Query(None, alias="kettleId", description="Kettle ID"),
    slug: str | None = Query(None, description="Kettle slug"),
) -> KettleHeatResponse:
    """Return total heat, post count and boiling post count for a kettle."""
    if kettle_id is None and not slug:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Kettle ID or slug required",
        )

    kettle = repo.get_kettle(kettle_id) if kettle_id is not None else repo.get_kettle_by_slug(slug or "")
    if kettle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Kettle not found")

    summary = kettle_heat(repo, kettle.id)
    return KettleHeatResponse(
        kettle_id=summary.kettle_id,
        total_heat=summary.total_heat,
        post_count=summary.post_count,
        boiling_posts=summary.boiling_posts,
        is_boiling=summary.is_boiling,
    )


@router.get("/trending", response_model=None)
async def get_trending(
    repo: RepoDep,
    type_: Literal["posts", "kettles"] = Query("posts", alias="type"),
    limit: int = Query(settings.trending_default_limit, ge=1),
) -> dict[str, list[Any]]:
    """Return the hottest posts or kettles.

    Kettles follow the listing order: boiling first, then by heat.
    """
    limit = min(limit, settings.trending_max_limit)

    if type_ == "kettles":
        ranked = ranked_kettles(repo)[:limit]
        return {
            "kettles": [
                to_kettle_response(row.kettle, row.heat) for row in ranked
            ]
        }

    return {
        "posts": [
            TrendingPostResponse(
                id=post.id,
                content=post.content,
                heat_score=post.heat_score,
                anonymous_identity=post.anonymous_identity,
                created_at=post.created_at,
                kettle_name=kettle.name,
                kettle_slug=kettle.slug,
            )
            for post, kettle in repo.list_top_posts(limit)
        ]
    }
