# src/kettle_stage/services/__init__.py
"""Business logic services for the Kettle application."""

from .boiling import BOILING_THRESHOLD, KettleHeat, is_boiling, sort_kettles, summarize_kettle
from .change_feed import ChangeEvent, ChangeHub, ChangeKind
from .heat import Direction, HeatEngine, VoteAction, select_vote
from .identity import generate_identity
from .threads import ReplyNode, build_tree, flatten

__all__ = [
    "BOILING_THRESHOLD", "KettleHeat", "is_boiling", "sort_kettles", "summarize_kettle",
    "ChangeEvent", "ChangeHub", "ChangeKind",
    "Direction", "HeatEngine", "VoteAction", "select_vote",
    "generate_identity",
    "ReplyNode", "build_tree", "flatten",
]
