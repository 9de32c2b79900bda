"""Boiling classification for posts and kettles."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

# Kettles and posts boil at this much heat.
BOILING_THRESHOLD = 100


class HasHeat(Protocol):
    @property
    def heat_score(self) -> int: ...


class HasTotalHeat(Protocol):
    @property
    def total_heat(self) -> int: ...


KettleT = TypeVar("KettleT", bound=HasTotalHeat)


def is_boiling(heat: int) -> bool:
    """Return True once ``heat`` reaches the boiling threshold."""
    return heat >= BOILING_THRESHOLD


def display_heat(heat: int) -> int:
    """Clamp transiently negative heat to zero for display."""
    return max(heat, 0)


@dataclass(frozen=True)
class KettleHeat:
    """Derived heat status of one kettle."""

    kettle_id: int
    total_heat: int
    post_count: int
    boiling_posts: int

    @property
    def is_boiling(self) -> bool:
        return is_boiling(self.total_heat)


def summarize_kettle(kettle_id: int, heats: Iterable[int]) -> KettleHeat:
    """Sum member heats into a :class:`KettleHeat`.

    Replies count toward the total like any other post. The result does not
    depend on the order of ``heats``.
    """
    total = 0
    count = 0
    boiling = 0
    for heat in heats:
        total += heat
        count += 1
        if is_boiling(heat):
            boiling += 1
    return KettleHeat(kettle_id=kettle_id, total_heat=total, post_count=count, boiling_posts=boiling)


def post_boiling_flags(posts: Iterable[HasHeat]) -> list[bool]:
    """Return the boiling badge flag for each post, in order."""
    return [is_boiling(post.heat_score) for post in posts]


def sort_kettles(kettles: Sequence[KettleT]) -> list[KettleT]:
    """Order kettles for listings: boiling first, then by descending heat.

    Two keys: the boiling flag, then total heat. Kettles with equal keys
    keep their input order.
    """
    return sorted(
        kettles,
        key=lambda kettle: (not is_boiling(kettle.total_heat), -kettle.total_heat),
    )
