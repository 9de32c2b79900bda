"""In-process change notifications for kettle posts.

The hub keeps a bounded, per-kettle log of post mutations with a global
monotonic cursor. Remote participants pull it through the changes endpoint;
in-process listeners subscribe directly. Events only say *that* something
changed: consumers refetch the kettle instead of trusting a payload.

Cursors are only meaningful within one hub's ``epoch``. A restarted process
starts a new epoch and counts from 1 again.
"""

from __future__ import annotations

import itertools
import logging
import uuid
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from threading import Lock

from kettle_stage.core.settings import settings

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Kind of row mutation reported by the feed."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    # Raised on the client only, when the server lost the history a cursor referred to.
    RESET = "reset"


@dataclass(frozen=True)
class ChangeEvent:
    """A single post mutation inside a kettle."""

    cursor: int
    kettle_id: int
    kind: ChangeKind
    post_id: str


ChangeCallback = Callable[[ChangeEvent], None]


class ChangeHub:
    """Per-kettle publish/subscribe hub with a replayable history."""

    def __init__(self, retention: int | None = None) -> None:
        self._retention = max(1, retention or settings.change_log_retention)
        self._lock = Lock()
        self._sequence = itertools.count(1)
        self._last_cursor = 0
        self.epoch = uuid.uuid4().hex
        self._history: dict[int, deque[ChangeEvent]] = defaultdict(
            lambda: deque(maxlen=self._retention)
        )
        self._subscribers: dict[int, list[ChangeCallback]] = defaultdict(list)

    def publish(self, kettle_id: int, kind: ChangeKind, post_id: str) -> ChangeEvent:
        """Record a mutation and notify in-process subscribers."""
        with self._lock:
            event = ChangeEvent(
                cursor=next(self._sequence),
                kettle_id=kettle_id,
                kind=kind,
                post_id=post_id,
            )
            self._last_cursor = event.cursor
            self._history[kettle_id].append(event)
            callbacks = list(self._subscribers.get(kettle_id, ()))

        logger.debug("Published %s for post %s in kettle %d", kind.value, post_id, kettle_id)
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Change subscriber failed for kettle %d", kettle_id)
        return event

    def events_since(
        self,
        kettle_id: int,
        cursor: int | None = None,
        limit: int = 100,
    ) -> list[ChangeEvent]:
        """Return events newer than ``cursor``, oldest first."""
        with self._lock:
            history = list(self._history.get(kettle_id, ()))
        if cursor is not None:
            history = [event for event in history if event.cursor > cursor]
        return history[:limit]

    @property
    def last_cursor(self) -> int:
        """Return the newest cursor issued in any kettle, or 0 before the first."""
        with self._lock:
            return self._last_cursor

    def is_stale(self, cursor: int, epoch: str | None = None) -> bool:
        """Return True if ``cursor`` cannot have come from this hub.

        That is the case when it was issued under another epoch, or when it
        is ahead of every cursor this hub has handed out.
        """
        if epoch is not None and epoch != self.epoch:
            return True
        return cursor > self.last_cursor

    def latest_cursor(self, kettle_id: int) -> int | None:
        """Return the cursor of the newest retained event for a kettle."""
        with self._lock:
            history = self._history.get(kettle_id)
            return history[-1].cursor if history else None

    def subscribe(self, kettle_id: int, callback: ChangeCallback) -> Callable[[], None]:
        """Register ``callback`` for a kettle and return an unsubscribe handle."""
        with self._lock:
            self._subscribers[kettle_id].append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(kettle_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return _unsubscribe


class _ChangeHubSingleton:
    """Singleton wrapper for ChangeHub."""

    _instance: ChangeHub | None = None

    @classmethod
    def get_instance(cls) -> ChangeHub:
        """Get or create the singleton ChangeHub instance."""
        if cls._instance is None:
            cls._instance = ChangeHub()
        return cls._instance


def get_change_hub() -> ChangeHub:
    """Return the process-wide change hub."""
    return _ChangeHubSingleton.get_instance()
