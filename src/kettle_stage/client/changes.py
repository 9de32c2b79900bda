"""Change-feed adapters that deliver kettle mutations to a session.

Both feeds hand :class:`~kettle_stage.services.change_feed.ChangeEvent`
objects to a callback on the session's event loop, one at a time. Events are
notifications only; the session refetches the kettle on each one. When the
server reports that a cursor predates its current run, the polling feed
delivers a single ``ChangeKind.RESET`` event instead of the replayed history.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from kettle_stage.core.settings import settings
from kettle_stage.services.change_feed import ChangeEvent, ChangeHub, ChangeKind, get_change_hub

from .api import BoundaryError, KettleApiClient

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


class ChangeFeed(Protocol):
    """Anything a session can subscribe to for one kettle's changes."""

    def subscribe(self, kettle_id: int, callback: ChangeCallback) -> Unsubscribe: ...


class HubChangeFeed:
    """Subscribes directly to an in-process :class:`ChangeHub`.

    The hub may publish from a worker thread, so events are handed to the
    subscribing loop with ``call_soon_threadsafe``.
    """

    def __init__(self, hub: ChangeHub | None = None) -> None:
        self.hub = hub or get_change_hub()

    def subscribe(self, kettle_id: int, callback: ChangeCallback) -> Unsubscribe:
        loop = asyncio.get_running_loop()

        def _forward(event: ChangeEvent) -> None:
            loop.call_soon_threadsafe(callback, event)

        return self.hub.subscribe(kettle_id, _forward)


@dataclass
class _KettleWatch:
    """Polling state for one subscribed kettle."""

    kettle_id: int
    callback: ChangeCallback
    cursor: int | None = None
    epoch: str | None = None
    stopping: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task[None] | None = None


class PollingChangeFeed:
    """Pulls the changes endpoint with a cursor in a background task.

    One task runs per subscribed kettle. API failures back off and retry;
    they never reach the callback.
    """

    def __init__(self, api: KettleApiClient, interval: float | None = None) -> None:
        self.api = api
        self.interval = max(0.05, float(interval or settings.change_poll_interval_seconds))
        self._watches: list[_KettleWatch] = []

    def subscribe(self, kettle_id: int, callback: ChangeCallback) -> Unsubscribe:
        watch = _KettleWatch(kettle_id=kettle_id, callback=callback)
        watch.task = asyncio.get_running_loop().create_task(self._run(watch))
        self._watches.append(watch)

        def _unsubscribe() -> None:
            watch.stopping.set()
            if watch in self._watches:
                self._watches.remove(watch)

        return _unsubscribe

    async def close(self) -> None:
        """Stop every polling task and wait for them to finish."""
        watches, self._watches = self._watches, []
        for watch in watches:
            watch.stopping.set()
        for watch in watches:
            if watch.task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await watch.task

    async def _sleep(self, watch: _KettleWatch, seconds: float) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(watch.stopping.wait(), timeout=seconds)

    async def _run(self, watch: _KettleWatch) -> None:
        backoff = min(self.interval * 4, 30.0)

        while not watch.stopping.is_set():
            try:
                batch = await self.api.pull_changes(
                    watch.kettle_id, watch.cursor, epoch=watch.epoch
                )
            except BoundaryError as exc:
                logger.warning("Change poll for kettle %d failed: %s", watch.kettle_id, exc)
                await self._sleep(watch, backoff)
                continue

            events = batch.events
            if batch.reset:
                logger.info(
                    "Change history for kettle %d was reset (cursor %s), refetching",
                    watch.kettle_id,
                    watch.cursor,
                )
                events = [
                    ChangeEvent(
                        cursor=batch.cursor or 0,
                        kettle_id=watch.kettle_id,
                        kind=ChangeKind.RESET,
                        post_id="",
                    )
                ]

            for event in events:
                if watch.stopping.is_set():
                    return
                try:
                    watch.callback(event)
                except Exception:
                    logger.exception("Change callback failed for kettle %d", watch.kettle_id)

            if batch.epoch is not None:
                watch.epoch = batch.epoch
            if batch.cursor is not None or batch.reset:
                watch.cursor = batch.cursor

            await self._sleep(watch, self.interval)
