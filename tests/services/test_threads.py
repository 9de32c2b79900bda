# mypy: ignore-errors
"""Tests for reply-tree assembly."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from kettle_stage.services.threads import (
    ReplyNode,
    build_tree,
    count_nodes,
    flatten,
    iter_nodes,
    newest_first,
)

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)


@dataclass
class FakePost:
    id: str
    parent_post_id: str | None
    created_at: datetime
    heat_score: int = 0


def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def shape(tree):
    return [(node.id, shape(node.children)) for node in tree]


def test_replies_nest_under_parent_oldest_first() -> None:
    posts = [
        FakePost("A", None, at(0)),
        FakePost("B", "A", at(2)),
        FakePost("C", "A", at(1)),
    ]
    tree = build_tree(posts)
    assert shape(tree) == [("A", [("C", []), ("B", [])])]


def test_roots_keep_input_order() -> None:
    posts = [
        FakePost("new", None, at(5)),
        FakePost("old", None, at(1)),
        FakePost("mid", None, at(3)),
    ]
    assert [node.id for node in build_tree(posts)] == ["new", "old", "mid"]


def test_orphan_is_dropped() -> None:
    posts = [FakePost("A", None, at(0)), FakePost("X", "missing", at(1))]
    tree = build_tree(posts)
    assert shape(tree) == [("A", [])]


def test_orphan_subtree_reappears_when_parent_arrives() -> None:
    reply = FakePost("R", "P", at(2))
    assert build_tree([reply]) == []
    tree = build_tree([FakePost("P", None, at(1)), reply])
    assert shape(tree) == [("P", [("R", [])])]


def test_equal_timestamps_keep_input_order() -> None:
    posts = [
        FakePost("root", None, at(0)),
        FakePost("second", "root", at(1)),
        FakePost("first", "root", at(1)),
    ]
    tree = build_tree(posts)
    assert [child.id for child in tree[0].children] == ["second", "first"]


def test_build_is_idempotent() -> None:
    posts = [
        FakePost("A", None, at(3)),
        FakePost("B", None, at(2)),
        FakePost("C", "A", at(4)),
        FakePost("D", "C", at(5)),
    ]
    assert shape(build_tree(posts)) == shape(build_tree(posts))


def test_self_parent_and_cycles_are_unreachable() -> None:
    posts = [
        FakePost("A", None, at(0)),
        FakePost("S", "S", at(1)),
        FakePost("X", "Y", at(2)),
        FakePost("Y", "X", at(3)),
    ]
    tree = build_tree(posts)
    assert shape(tree) == [("A", [])]
    assert count_nodes(tree) == 1


def test_duplicate_ids_keep_last_occurrence() -> None:
    first = FakePost("A", None, at(0), heat_score=1)
    second = FakePost("A", None, at(0), heat_score=5)
    tree = build_tree([first, second])
    assert len(tree) == 1
    assert tree[0].post is second


def test_flatten_is_preorder_and_preserves_records() -> None:
    posts = [
        FakePost("A", None, at(2)),
        FakePost("B", None, at(1)),
        FakePost("A1", "A", at(3)),
        FakePost("A1a", "A1", at(4)),
        FakePost("B1", "B", at(5)),
    ]
    flat = flatten(build_tree(posts))
    assert [post.id for post in flat] == ["A", "A1", "A1a", "B", "B1"]
    assert all(post in posts for post in flat)


def test_iter_nodes_reports_depth() -> None:
    posts = [FakePost("A", None, at(0)), FakePost("B", "A", at(1)), FakePost("C", "B", at(2))]
    depths = [(node.id, depth) for node, depth in iter_nodes(build_tree(posts))]
    assert depths == [("A", 0), ("B", 1), ("C", 2)]


def test_iter_nodes_terminates_on_hand_built_cycle() -> None:
    node = ReplyNode(FakePost("A", None, at(0)))
    node.children.append(node)
    assert count_nodes([node]) == 1


def test_naive_and_aware_timestamps_compare() -> None:
    posts = [
        FakePost("root", None, at(0)),
        FakePost("late", "root", at(10)),
        FakePost("early", "root", at(1).replace(tzinfo=None)),
    ]
    tree = build_tree(posts)
    assert [child.id for child in tree[0].children] == ["early", "late"]


def test_newest_first_sorts_descending() -> None:
    posts = [FakePost("a", None, at(1)), FakePost("c", None, at(3)), FakePost("b", None, at(2))]
    assert [post.id for post in newest_first(posts)] == ["c", "b", "a"]


def test_deep_chain_does_not_recurse() -> None:
    posts = [FakePost("p0", None, at(0))]
    for index in range(1, 3000):
        posts.append(FakePost(f"p{index}", f"p{index - 1}", at(index)))
    assert count_nodes(build_tree(posts)) == 3000
