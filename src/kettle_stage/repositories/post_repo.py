"""Data access helpers for working with posts and kettles."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.orm import Session

from kettle_stage.models.kettle import Kettle
from kettle_stage.models.post import Post
from kettle_stage.models.report import Report

__all__ = ["KettleAggregates", "PostRepository"]


@dataclass(frozen=True)
class KettleAggregates:
    """Precomputed totals for one kettle."""

    kettle_id: int
    total_heat: int
    post_count: int
    boiling_posts: int


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: str, *, include_hidden: bool = False) -> Post | None:
        """Return a post by identifier."""
        stmt = select(Post).where(Post.id == post_id)
        if not include_hidden:
            stmt = stmt.where(Post.is_hidden.is_(False))
        return self.session.execute(stmt).scalars().first()

    def get_kettle(self, kettle_id: int) -> Kettle | None:
        """Return a kettle by identifier."""
        return self.session.get(Kettle, kettle_id)

    def get_kettle_by_slug(self, slug: str) -> Kettle | None:
        """Return a kettle by its slug."""
        return self.session.execute(
            select(Kettle).where(Kettle.slug == slug)
        ).scalars().first()

    def list_kettles(self, *, active_only: bool = True) -> list[Kettle]:
        """Return kettles in creation order."""
        stmt = select(Kettle)
        if active_only:
            stmt = stmt.where(Kettle.is_active.is_(True))
        return list(self.session.execute(stmt.order_by(Kettle.id)).scalars())

    def list_posts(self, kettle_id: int) -> list[Post]:
        """Return all visible posts in a kettle, newest first."""
        result = self.session.execute(
            select(Post)
            .where(Post.kettle_id == kettle_id, Post.is_hidden.is_(False))
            .order_by(Post.created_at.desc(), Post.id)
        )
        return list(result.scalars())

    def list_top_posts(self, limit: int) -> list[tuple[Post, Kettle]]:
        """Return the hottest visible posts in active kettles."""
        result = self.session.execute(
            select(Post, Kettle)
            .join(Kettle, Kettle.id == Post.kettle_id)
            .where(Post.is_hidden.is_(False), Kettle.is_active.is_(True))
            .order_by(Post.heat_score.desc(), Post.created_at.desc())
            .limit(limit)
        )
        return [(post, kettle) for post, kettle in result.all()]

    def create(
        self,
        *,
        kettle_id: int,
        content: str,
        anonymous_identity: str,
        image_url: str | None = None,
        parent_post_id: str | None = None,
    ) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        post = Post(
            kettle_id=kettle_id,
            content=content,
            image_url=image_url,
            parent_post_id=parent_post_id,
            anonymous_identity=anonymous_identity,
            heat_score=0,
        )
        self.session.add(post)
        self.session.flush()
        return post

    def apply_heat_delta(self, post_id: str, delta: int) -> int | None:
        """Atomically add ``delta`` to a post's heat and return the new value.

        The increment happens in a single UPDATE so concurrent voters never
        overwrite each other. Returns None when the post is missing or hidden.
        """
        result = self.session.execute(
            update(Post)
            .where(Post.id == post_id, Post.is_hidden.is_(False))
            .values(heat_score=Post.heat_score + delta)
        )
        if result.rowcount == 0:
            return None
        self.session.flush()
        return self.session.execute(
            select(Post.heat_score).where(Post.id == post_id)
        ).scalar_one()

    def increment_heat(self, post_id: str) -> int | None:
        """Add one to a post's heat."""
        return self.apply_heat_delta(post_id, 1)

    def decrement_heat(self, post_id: str) -> int | None:
        """Subtract one from a post's heat."""
        return self.apply_heat_delta(post_id, -1)

    def get_aggregates(self, kettle_id: int, *, boiling_threshold: int) -> KettleAggregates:
        """Return totals for a single kettle in one query."""
        return self.get_all_aggregates(
            boiling_threshold=boiling_threshold,
            kettle_id=kettle_id,
        ).get(kettle_id, KettleAggregates(kettle_id, 0, 0, 0))

    def get_all_aggregates(
        self,
        *,
        boiling_threshold: int,
        kettle_id: int | None = None,
    ) -> dict[int, KettleAggregates]:
        """Return aggregates for every kettle that has visible posts."""
        stmt = (
            select(
                Post.kettle_id,
                func.coalesce(func.sum(Post.heat_score), 0),
                func.count(Post.id),
                func.coalesce(
                    func.sum(case((Post.heat_score >= boiling_threshold, 1), else_=0)),
                    0,
                ),
            )
            .where(Post.is_hidden.is_(False))
            .group_by(Post.kettle_id)
        )
        if kettle_id is not None:
            stmt = stmt.where(Post.kettle_id == kettle_id)
        return {
            row_kettle_id: KettleAggregates(row_kettle_id, int(total), int(count), int(boiling))
            for row_kettle_id, total, count, boiling in self.session.execute(stmt).all()
        }

    def set_hidden(self, post_id: str, hidden: bool) -> Post | None:
        """Flip a post's soft-removal flag."""
        post = self.get_by_id(post_id, include_hidden=True)
        if post is None:
            return None
        post.is_hidden = hidden
        self.session.flush()
        return post

    def delete(self, post_id: str) -> list[str]:
        """Hard-delete a post together with every reply beneath it.

        Returns the ids of all removed posts (empty when the post is missing).
        """
        post = self.get_by_id(post_id, include_hidden=True)
        if post is None:
            return []

        removed: list[str] = []
        frontier = [post_id]
        while frontier:
            removed.extend(frontier)
            frontier = list(
                self.session.execute(
                    select(Post.id).where(Post.parent_post_id.in_(frontier))
                ).scalars()
            )
            frontier = [child for child in frontier if child not in removed]

        self.session.execute(delete(Report).where(Report.post_id.in_(removed)))
        self.session.execute(
            delete(Post).where(Post.id.in_(removed)).execution_options(synchronize_session="fetch")
        )
        self.session.flush()
        return removed

    def find_report(self, post_id: str, reporter_fingerprint: str) -> Report | None:
        """Return the report a reporter already filed against a post, if any."""
        return self.session.execute(
            select(Report).where(
                Report.post_id == post_id,
                Report.reporter_fingerprint == reporter_fingerprint,
            )
        ).scalars().first()

    def create_report(
        self,
        *,
        post_id: str,
        reporter_fingerprint: str,
        reason: str,
        description: str | None = None,
    ) -> Report:
        """Insert a report against a post."""
        report = Report(
            post_id=post_id,
            reporter_fingerprint=reporter_fingerprint,
            reason=reason,
            description=description,
        )
        self.session.add(report)
        self.session.flush()
        return report

    def list_reports(self, post_id: str) -> list[Report]:
        """Return every report filed against a post, oldest first."""
        return list(
            self.session.execute(
                select(Report).where(Report.post_id == post_id).order_by(Report.id)
            ).scalars()
        )
