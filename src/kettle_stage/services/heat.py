"""Heat engine: vote actions, their deltas, and authoritative application.

The per-participant "at most one active vote" rule is enforced by the caller,
which picks an action by comparing the requested direction with its local
vote ledger (see :func:`select_vote`). The server-side engine is stateless
per call and simply applies the action's delta atomically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from kettle_stage.repositories.post_repo import PostRepository

logger = logging.getLogger(__name__)


class KettleStageError(RuntimeError):
    """Base exception for domain failures raised by service code."""


class PostNotFoundError(KettleStageError):
    """Raised when a vote or lookup targets a missing or hidden post."""


class Direction(str, Enum):
    """Direction a participant can vote in."""

    UP = "up"
    DOWN = "down"


class VoteAction(str, Enum):
    """Action sent to the vote boundary.

    ``switch-up``/``switch-down`` move an existing vote to the opposite
    direction in one atomic step instead of an undo followed by an apply.
    """

    UP = "up"
    DOWN = "down"
    REMOVE_UP = "remove-up"
    REMOVE_DOWN = "remove-down"
    SWITCH_UP = "switch-up"
    SWITCH_DOWN = "switch-down"


HEAT_DELTAS: dict[VoteAction, int] = {
    VoteAction.UP: 1,
    VoteAction.DOWN: -1,
    VoteAction.REMOVE_UP: -1,
    VoteAction.REMOVE_DOWN: 1,
    VoteAction.SWITCH_UP: 2,
    VoteAction.SWITCH_DOWN: -2,
}


@dataclass(frozen=True)
class VoteTransition:
    """Result of comparing a requested vote with the recorded one."""

    action: VoteAction
    delta: int
    next_vote: Direction | None


def select_vote(current: Direction | None, requested: Direction) -> VoteTransition:
    """Pick the boundary action for a vote request.

    Repeating the recorded direction toggles it off; choosing the other
    direction switches the vote in one step.

    Args:
        current: Direction recorded in the participant's ledger, if any.
        requested: Direction the participant just clicked.

    Returns:
        The action to send, its heat delta, and the ledger value afterwards.
    """
    if current is None:
        action = VoteAction.UP if requested is Direction.UP else VoteAction.DOWN
        return VoteTransition(action, HEAT_DELTAS[action], requested)

    if current is requested:
        action = VoteAction.REMOVE_UP if current is Direction.UP else VoteAction.REMOVE_DOWN
        return VoteTransition(action, HEAT_DELTAS[action], None)

    action = VoteAction.SWITCH_UP if requested is Direction.UP else VoteAction.SWITCH_DOWN
    return VoteTransition(action, HEAT_DELTAS[action], requested)


def apply_delta(heat: int, action: VoteAction) -> int:
    """Return ``heat`` after applying ``action``'s delta locally."""
    return heat + HEAT_DELTAS[action]


class HeatEngine:
    """Applies vote actions to the authoritative heat score."""

    def __init__(self, repo: PostRepository) -> None:
        self.repo = repo

    def apply_vote(self, post_id: str, action: VoteAction) -> int:
        """Apply ``action`` to a post and return its new heat.

        Raises:
            PostNotFoundError: If the post does not exist or is hidden.
        """
        delta = HEAT_DELTAS[action]
        new_heat = self.repo.apply_heat_delta(post_id, delta)
        if new_heat is None:
            raise PostNotFoundError(f"Post {post_id} not found")
        logger.debug("Applied %s (%+d) to post %s -> %d", action.value, delta, post_id, new_heat)
        return new_heat
