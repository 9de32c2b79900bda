# mypy: ignore-errors
"""Tests for vote transitions and heat application."""

import pytest

from kettle_stage.repositories.post_repo import PostRepository
from kettle_stage.services.heat import (
    HEAT_DELTAS,
    Direction,
    HeatEngine,
    PostNotFoundError,
    VoteAction,
    apply_delta,
    select_vote,
)


@pytest.mark.parametrize(
    ("current", "requested", "action", "delta", "next_vote"),
    [
        (None, Direction.UP, VoteAction.UP, 1, Direction.UP),
        (None, Direction.DOWN, VoteAction.DOWN, -1, Direction.DOWN),
        (Direction.UP, Direction.UP, VoteAction.REMOVE_UP, -1, None),
        (Direction.DOWN, Direction.DOWN, VoteAction.REMOVE_DOWN, 1, None),
        (Direction.UP, Direction.DOWN, VoteAction.SWITCH_DOWN, -2, Direction.DOWN),
        (Direction.DOWN, Direction.UP, VoteAction.SWITCH_UP, 2, Direction.UP),
    ],
)
def test_select_vote_table(current, requested, action, delta, next_vote) -> None:
    transition = select_vote(current, requested)
    assert transition.action is action
    assert transition.delta == delta
    assert transition.next_vote is next_vote


def test_every_action_has_a_delta() -> None:
    assert set(HEAT_DELTAS) == set(VoteAction)


def test_toggle_and_switch_sequence_returns_to_start() -> None:
    heat = 0
    vote = None
    for requested, expected_heat in [
        (Direction.UP, 1),
        (Direction.UP, 0),
        (Direction.DOWN, -1),
        (Direction.UP, 1),
        (Direction.DOWN, -1),
        (Direction.DOWN, 0),
    ]:
        transition = select_vote(vote, requested)
        heat = apply_delta(heat, transition.action)
        vote = transition.next_vote
        assert heat == expected_heat
    assert vote is None


def test_engine_applies_delta(db_session, kettle, make_post) -> None:
    post = make_post(kettle, heat=10)
    engine = HeatEngine(PostRepository(db_session))

    assert engine.apply_vote(post.id, VoteAction.UP) == 11
    assert engine.apply_vote(post.id, VoteAction.SWITCH_DOWN) == 9
    assert engine.apply_vote(post.id, VoteAction.REMOVE_DOWN) == 10


def test_engine_allows_negative_heat(db_session, kettle, make_post) -> None:
    post = make_post(kettle)
    engine = HeatEngine(PostRepository(db_session))
    assert engine.apply_vote(post.id, VoteAction.DOWN) == -1


def test_engine_rejects_missing_post(db_session) -> None:
    engine = HeatEngine(PostRepository(db_session))
    with pytest.raises(PostNotFoundError):
        engine.apply_vote("does-not-exist", VoteAction.UP)


def test_engine_rejects_hidden_post(db_session, kettle, make_post) -> None:
    post = make_post(kettle, hidden=True)
    engine = HeatEngine(PostRepository(db_session))
    with pytest.raises(PostNotFoundError):
        engine.apply_vote(post.id, VoteAction.UP)
