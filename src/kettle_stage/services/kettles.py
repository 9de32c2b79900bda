"""Service-level helpers for kettles and the posts poured into them."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from kettle_stage.models import Kettle, Post, Report
from kettle_stage.repositories.post_repo import PostRepository
from kettle_stage.schemas.kettle import KettleResponse
from kettle_stage.schemas.post import PostCreate
from kettle_stage.schemas.report import ReportCreate
from kettle_stage.services.boiling import (
    BOILING_THRESHOLD,
    KettleHeat,
    sort_kettles,
    summarize_kettle,
)
from kettle_stage.services.change_feed import ChangeHub, ChangeKind
from kettle_stage.services.heat import KettleStageError, PostNotFoundError
from kettle_stage.services.identity import generate_identity

logger = logging.getLogger(__name__)


class KettleNotFoundError(KettleStageError):
    """Raised when a kettle lookup fails or the kettle is inactive."""


class InvalidParentError(KettleStageError):
    """Raised when a reply references a post outside the kettle."""


class DuplicateReportError(KettleStageError):
    """Raised when the same reporter flags the same post twice."""


def resolve_kettle(repo: PostRepository, slug: str, *, include_inactive: bool = False) -> Kettle:
    """Return the kettle for ``slug`` or raise :class:`KettleNotFoundError`."""
    kettle = repo.get_kettle_by_slug(slug)
    if kettle is None or (not kettle.is_active and not include_inactive):
        raise KettleNotFoundError(f"Kettle '{slug}' not found")
    return kettle


def pour_post(
    *,
    repo: PostRepository,
    hub: ChangeHub,
    kettle: Kettle,
    data: PostCreate,
    rng: random.Random | None = None,
) -> Post:
    """Create a post in ``kettle`` with a fresh pseudonym.

    Args:
        repo: Repository used to persist the post.
        hub: Change hub notified once the post exists.
        kettle: Target kettle.
        data: Validated post payload.
        rng: Optional random source for the pseudonym.

    Raises:
        InvalidParentError: If the parent is missing, hidden or in another kettle.
    """
    if data.parent_post_id is not None:
        parent = repo.get_by_id(data.parent_post_id)
        if parent is None or parent.kettle_id != kettle.id:
            raise InvalidParentError("Parent post not found in this kettle")

    post = repo.create(
        kettle_id=kettle.id,
        content=data.content,
        image_url=data.image_url,
        parent_post_id=data.parent_post_id,
        anonymous_identity=generate_identity(rng),
    )
    repo.session.commit()
    repo.session.refresh(post)
    hub.publish(kettle.id, ChangeKind.INSERT, post.id)
    return post


def file_report(
    *,
    repo: PostRepository,
    kettle: Kettle,
    post_id: str,
    data: ReportCreate,
) -> Report:
    """Store a participant's report against a visible post in ``kettle``.

    Raises:
        PostNotFoundError: If the post is missing, hidden or in another kettle.
        DuplicateReportError: If this fingerprint already reported the post.
    """
    post = repo.get_by_id(post_id)
    if post is None or post.kettle_id != kettle.id:
        raise PostNotFoundError("Post not found in this kettle")
    if repo.find_report(post_id, data.reporter_fingerprint) is not None:
        raise DuplicateReportError("Post already reported from this device")

    report = repo.create_report(
        post_id=post_id,
        reporter_fingerprint=data.reporter_fingerprint,
        reason=data.reason.value,
        description=data.description,
    )
    repo.session.commit()
    repo.session.refresh(report)
    logger.info("Post %s reported for %s", post_id, data.reason.value)
    return report


def kettle_heat(repo: PostRepository, kettle_id: int) -> KettleHeat:
    """Return heat totals for a kettle, summed from its current posts."""
    return summarize_kettle(kettle_id, (post.heat_score for post in repo.list_posts(kettle_id)))


@dataclass(frozen=True)
class RankedKettle:
    """A kettle paired with its derived heat."""

    kettle: Kettle
    heat: KettleHeat

    @property
    def total_heat(self) -> int:
        return self.heat.total_heat


def ranked_kettles(repo: PostRepository) -> list[RankedKettle]:
    """Return active kettles with their heat, boiling kettles first.

    Reads the grouped aggregate query; if that fails, each kettle is summed
    from its listed posts instead.
    """
    kettles = repo.list_kettles()
    try:
        with repo.session.begin_nested():
            aggregates = repo.get_all_aggregates(boiling_threshold=BOILING_THRESHOLD)
    except SQLAlchemyError as exc:
        logger.warning("Aggregate query failed, summing posts per kettle: %s", exc)
        rows = [RankedKettle(kettle, kettle_heat(repo, kettle.id)) for kettle in kettles]
        return sort_kettles(rows)

    rows = []
    for kettle in kettles:
        agg = aggregates.get(kettle.id)
        heat = (
            KettleHeat(kettle.id, agg.total_heat, agg.post_count, agg.boiling_posts)
            if agg
            else KettleHeat(kettle.id, 0, 0, 0)
        )
        rows.append(RankedKettle(kettle, heat))
    return sort_kettles(rows)


def to_kettle_response(kettle: Kettle, heat: KettleHeat) -> KettleResponse:
    """Convert a kettle and its heat into an API schema."""
    return KettleResponse(
        id=kettle.id,
        slug=kettle.slug,
        name=kettle.name,
        description=kettle.description,
        icon=kettle.icon,
        is_active=kettle.is_active,
        total_heat=heat.total_heat,
        post_count=heat.post_count,
        is_boiling=heat.is_boiling,
    )
