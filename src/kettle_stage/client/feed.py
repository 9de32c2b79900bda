"""Reconciliation loop for one kettle's feed.

A :class:`FeedSession` holds the participant's copy of a kettle: the flat
post list, the reply tree built from it, and the expand/collapse flags.
Every change event triggers a full refetch that replaces the post list
wholesale. Fetches are coalesced (one in flight plus at most one pending
rerun) and numbered, and a result older than the last applied one is
dropped, so a slow response can never roll the feed back.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from kettle_stage.schemas.post import PostResponse
from kettle_stage.services.boiling import KettleHeat, summarize_kettle
from kettle_stage.services.change_feed import ChangeEvent
from kettle_stage.services.threads import ReplyNode, build_tree, newest_first

from .api import BoundaryError, KettleApiClient
from .changes import ChangeFeed, Unsubscribe
from .voting import HeatBoard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a manual refresh."""

    ok: bool
    message: str
    applied: bool = False


class FeedSession:
    """Keeps a kettle's posts and reply tree in step with the server."""

    def __init__(
        self,
        api: KettleApiClient,
        *,
        kettle_id: int,
        slug: str,
        feed: ChangeFeed | None = None,
        board: HeatBoard | None = None,
    ) -> None:
        self.api = api
        self.kettle_id = kettle_id
        self.slug = slug
        self.feed = feed
        self.board = board if board is not None else HeatBoard()

        self._posts: list[PostResponse] = []
        self._tree: list[ReplyNode[PostResponse]] = []
        self._expanded: set[str] = set()

        self._tickets = itertools.count(1)
        self._applied_ticket = 0
        self._fetch_task: asyncio.Task[None] | None = None
        self._rerun = False
        self._unsubscribe: Unsubscribe | None = None

    async def start(self) -> RefreshResult:
        """Subscribe to the kettle's changes and load its posts."""
        if self.feed is not None and self._unsubscribe is None:
            self._unsubscribe = self.feed.subscribe(self.kettle_id, self._on_change)
        return await self.refresh()

    async def stop(self) -> None:
        """Unsubscribe and cancel any background fetch."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        task, self._fetch_task = self._fetch_task, None
        self._rerun = False
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def wait_idle(self) -> None:
        """Wait until no background fetch is running or pending."""
        while self._fetch_task is not None and not self._fetch_task.done():
            await asyncio.shield(self._fetch_task)

    @property
    def posts(self) -> list[PostResponse]:
        return list(self._posts)

    @property
    def post_count(self) -> int:
        return len(self._posts)

    @property
    def tree(self) -> list[ReplyNode[PostResponse]]:
        return self._tree

    @property
    def status(self) -> KettleHeat:
        """Heat status derived from the posts currently held."""
        return summarize_kettle(self.kettle_id, (self.heat_of(post) for post in self._posts))

    def heat_of(self, post: PostResponse) -> int:
        return self.board.heat(post.id, post.heat_score)

    def is_expanded(self, post_id: str) -> bool:
        return post_id in self._expanded

    def toggle_expanded(self, post_id: str) -> bool:
        """Flip a post's reply section and return the new state."""
        if post_id in self._expanded:
            self._expanded.discard(post_id)
            return False
        self._expanded.add(post_id)
        return True

    def replace_posts(self, posts: Sequence[PostResponse]) -> None:
        """Replace the whole post list and rebuild the tree from it.

        Stored heat overwrites any optimistic value held for these posts, and
        heat held for posts no longer listed is dropped.
        """
        self._posts = newest_first(posts)
        self.board.reconcile(self._posts)
        self._tree = build_tree(self._posts)
        logger.debug("Kettle %s now holds %d posts", self.slug, len(self._posts))

    async def refresh(self) -> RefreshResult:
        """Refetch the kettle now and report what happened."""
        try:
            applied = await self._fetch_and_replace()
        except BoundaryError as exc:
            logger.warning("Refresh of kettle %s failed: %s", self.slug, exc)
            return RefreshResult(ok=False, message=f"Could not refresh: {exc}")

        if not applied:
            return RefreshResult(ok=True, message="Newer posts already loaded", applied=False)
        return RefreshResult(ok=True, message=f"Loaded {len(self._posts)} posts", applied=True)

    async def load_aggregates(self) -> KettleHeat:
        """Return server aggregates, or sum the held posts if unavailable."""
        try:
            return await self.api.get_kettle_heat(self.kettle_id)
        except BoundaryError as exc:
            logger.debug("Aggregates for kettle %d unavailable, summing locally: %s", self.kettle_id, exc)
            return self.status

    def _on_change(self, event: ChangeEvent) -> None:
        logger.debug(
            "Kettle %d change %s on post %s", event.kettle_id, event.kind.value, event.post_id
        )
        self.schedule_fetch()

    def schedule_fetch(self) -> None:
        """Start a background refetch, or mark one pending if already running."""
        if self._fetch_task is not None and not self._fetch_task.done():
            self._rerun = True
            return
        self._fetch_task = asyncio.get_running_loop().create_task(self._background_fetch())

    async def _background_fetch(self) -> None:
        while True:
            self._rerun = False
            try:
                await self._fetch_and_replace()
            except BoundaryError as exc:
                logger.warning("Background refresh of kettle %s failed: %s", self.slug, exc)
            if not self._rerun:
                return

    async def _fetch_and_replace(self) -> bool:
        ticket = next(self._tickets)
        posts = await self.api.list_posts(self.slug)
        if ticket <= self._applied_ticket:
            logger.debug(
                "Discarding stale fetch %d for kettle %s (applied %d)",
                ticket,
                self.slug,
                self._applied_ticket,
            )
            return False
        self._applied_ticket = ticket
        self.replace_posts(posts)
        return True
