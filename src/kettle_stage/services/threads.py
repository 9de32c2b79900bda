"""Reply-tree assembly from a flat, parent-referencing post list.

The tree is a projection: it is rebuilt from scratch every time the post
collection changes and is never patched in place. Anything that must
survive a rebuild (expand/collapse state, for example) is keyed by post id
outside the tree.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Generic, Protocol, TypeVar


class ThreadablePost(Protocol):
    """Minimal shape a post needs to take part in a thread."""

    @property
    def id(self) -> str: ...

    @property
    def parent_post_id(self) -> str | None: ...

    @property
    def created_at(self) -> datetime: ...


PostT = TypeVar("PostT", bound=ThreadablePost)


@dataclass
class ReplyNode(Generic[PostT]):
    """A post decorated with its ordered replies."""

    post: PostT
    children: list[ReplyNode[PostT]] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.post.id


def created_at_utc(post: ThreadablePost) -> datetime:
    """Return the post timestamp as an aware UTC datetime."""
    # SQLite hands back naive datetimes; treat them as UTC so they compare.
    created = post.created_at
    if created.tzinfo is None:
        return created.replace(tzinfo=UTC)
    return created


def build_tree(posts: Sequence[PostT]) -> list[ReplyNode[PostT]]:
    """Assemble a reply tree from a flat list of posts.

    Roots keep the order they have in ``posts``. Replies under each node are
    sorted oldest first. A reply whose parent is not in ``posts`` is dropped
    without error; it reappears once its parent is part of a later input.

    Args:
        posts: Posts of a single kettle, typically newest first.

    Returns:
        Root nodes in input order.
    """
    nodes: dict[str, ReplyNode[PostT]] = {}
    for post in posts:
        nodes[post.id] = ReplyNode(post)

    roots: list[ReplyNode[PostT]] = []
    for post in posts:
        node = nodes[post.id]
        if node.post is not post:
            # Duplicate id; the last occurrence wins the slot.
            continue
        parent_id = post.parent_post_id
        if parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(parent_id)
        if parent is None or parent is node:
            continue
        parent.children.append(node)

    for node in nodes.values():
        if len(node.children) > 1:
            node.children.sort(key=lambda child: created_at_utc(child.post))

    return roots


def iter_nodes(tree: Iterable[ReplyNode[PostT]]) -> Iterator[tuple[ReplyNode[PostT], int]]:
    """Yield ``(node, depth)`` pairs in pre-order.

    Uses an explicit stack and a visited set, so a hand-built cyclic
    structure terminates instead of recursing forever.
    """
    stack: list[tuple[ReplyNode[PostT], int]] = [(node, 0) for node in reversed(list(tree))]
    seen: set[int] = set()
    while stack:
        node, depth = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node, depth
        for child in reversed(node.children):
            stack.append((child, depth + 1))


def flatten(tree: Iterable[ReplyNode[PostT]]) -> list[PostT]:
    """Return the original post records in pre-order."""
    return [node.post for node, _ in iter_nodes(tree)]


def count_nodes(tree: Iterable[ReplyNode[PostT]]) -> int:
    """Return how many posts are reachable from the roots."""
    return sum(1 for _ in iter_nodes(tree))


def newest_first(posts: Iterable[PostT]) -> list[PostT]:
    """Return ``posts`` sorted by creation time, newest first.

    Posts created at the same instant keep their relative order.
    """
    return sorted(posts, key=created_at_utc, reverse=True)
