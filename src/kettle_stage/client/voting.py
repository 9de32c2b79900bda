"""Optimistic voting for a participant session.

A vote changes the locally held heat immediately, records the new direction
in the ledger, then asks the API for the authoritative score. A failed call
leaves the optimistic value in place; the next feed reconciliation replaces
it with whatever the server stored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from kettle_stage.services.heat import Direction, VoteAction, select_vote

from .api import BoundaryError, KettleApiClient
from .ledger import VoteLedger

logger = logging.getLogger(__name__)


class VoteInProgressError(RuntimeError):
    """Raised when a vote is cast on a post whose previous vote is pending."""


class HeldPost(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def heat_score(self) -> int: ...


@dataclass(frozen=True)
class LocalHeat:
    """Heat as currently shown to the participant."""

    heat: int
    confirmed: bool


@dataclass(frozen=True)
class VoteOutcome:
    """What a single :meth:`VoteController.cast` did."""

    post_id: str
    action: VoteAction
    vote: Direction | None
    heat: int
    confirmed: bool


class HeatBoard:
    """Locally held heat per post, optimistic or confirmed."""

    def __init__(self) -> None:
        self._heat: dict[str, LocalHeat] = {}

    def get(self, post_id: str) -> LocalHeat | None:
        return self._heat.get(post_id)

    def heat(self, post_id: str, default: int = 0) -> int:
        entry = self._heat.get(post_id)
        return entry.heat if entry is not None else default

    def set_optimistic(self, post_id: str, heat: int) -> None:
        self._heat[post_id] = LocalHeat(heat=heat, confirmed=False)

    def confirm(self, post_id: str, heat: int) -> None:
        self._heat[post_id] = LocalHeat(heat=heat, confirmed=True)

    def reconcile(self, posts: Iterable[HeldPost], *, prune: bool = True) -> None:
        """Overwrite held heat with the stored scores of ``posts``.

        With ``prune`` (the default) ``posts`` is taken as the full listing,
        and entries for posts missing from it are dropped.
        """
        fresh = {post.id: LocalHeat(heat=post.heat_score, confirmed=True) for post in posts}
        if prune:
            self._heat = fresh
        else:
            self._heat.update(fresh)

    def forget(self, post_id: str) -> None:
        self._heat.pop(post_id, None)


class VoteController:
    """Casts votes with an optimistic local update and a ledger write."""

    def __init__(
        self,
        api: KettleApiClient,
        ledger: VoteLedger,
        board: HeatBoard | None = None,
    ) -> None:
        self.api = api
        self.ledger = ledger
        self.board = board if board is not None else HeatBoard()
        self._pending: set[str] = set()

    def is_pending(self, post_id: str) -> bool:
        return post_id in self._pending

    async def cast(
        self,
        post_id: str,
        direction: Direction,
        current_heat: int | None = None,
    ) -> VoteOutcome:
        """Vote ``direction`` on ``post_id``.

        Clicking the recorded direction again removes the vote; clicking the
        other direction switches it in one call.

        Args:
            post_id: Post being voted on.
            direction: Direction the participant chose.
            current_heat: Heat to start from when the board has no entry.

        Returns:
            The action sent, the ledger value and the heat now shown.

        Raises:
            VoteInProgressError: If a vote on the same post has not finished.
        """
        if post_id in self._pending:
            raise VoteInProgressError(f"Vote on post {post_id} already in progress")

        self._pending.add(post_id)
        try:
            transition = select_vote(self.ledger.get_vote(post_id), direction)
            start = self.board.heat(post_id, current_heat or 0)
            optimistic = start + transition.delta
            self.board.set_optimistic(post_id, optimistic)
            self.ledger.set_vote(post_id, transition.next_vote)

            try:
                heat = await self.api.vote(post_id, transition.action)
            except BoundaryError as exc:
                logger.warning(
                    "Vote %s on post %s not confirmed: %s",
                    transition.action.value,
                    post_id,
                    exc,
                )
                return VoteOutcome(
                    post_id=post_id,
                    action=transition.action,
                    vote=transition.next_vote,
                    heat=optimistic,
                    confirmed=False,
                )

            self.board.confirm(post_id, heat)
            return VoteOutcome(
                post_id=post_id,
                action=transition.action,
                vote=transition.next_vote,
                heat=heat,
                confirmed=True,
            )
        finally:
            self._pending.discard(post_id)
