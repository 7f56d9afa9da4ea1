"""Realtime intake of newly created photos."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from badge_relay.domain.photos import PhotoRecord

_logger = logging.getLogger(__name__)


class Subscription(Protocol):
    """Handle returned by a change feed subscription."""

    async def unsubscribe(self) -> None:
        """Stop receiving events."""


class ChangeFeed(Protocol):
    """Delivers each newly created photo at least once."""

    async def subscribe(
        self, on_insert: Callable[[PhotoRecord], None]
    ) -> Subscription:
        """Register `on_insert` for photo-created events."""


@dataclass
class PhotoIntake:
    """Feeds change-feed inserts to a handler one at a time, in arrival order."""

    feed: ChangeFeed
    handler: Callable[[PhotoRecord], Awaitable[object]]
    _queue: asyncio.Queue[PhotoRecord] | None = field(default=None, init=False)
    _worker: asyncio.Task[None] | None = field(default=None, init=False)
    _subscription: Subscription | None = field(default=None, init=False)

    @property
    def running(self) -> bool:
        """Return True while subscribed."""
        return self._subscription is not None

    async def start(self) -> None:
        """Subscribe to the feed and start the consumer task."""
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._consume())
        try:
            self._subscription = await self.feed.subscribe(self._enqueue)
        except Exception:
            await self._stop_worker()
            raise
        _logger.info("Photo intake subscribed")

    async def stop(self) -> None:
        """Unsubscribe and stop the consumer once queued events are handled."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.unsubscribe()
            _logger.info("Photo intake unsubscribed")
        await self._stop_worker()

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        if self._queue is not None:
            await self._queue.join()

    def _enqueue(self, record: PhotoRecord) -> None:
        if self._queue is None:
            _logger.warning("Dropping insert received after stop: id=%s", record.id)
            return
        self._queue.put_nowait(record)

    async def _consume(self) -> None:
        queue = self._queue
        if queue is None:
            return
        while True:
            record = await queue.get()
            try:
                outcome = await self.handler(record)
                _logger.info(
                    "Photo insert handled: id=%s outcome=%s", record.id, outcome
                )
            except Exception:
                _logger.exception("Failed to handle photo insert: id=%s", record.id)
            finally:
                queue.task_done()

    async def _stop_worker(self) -> None:
        worker, self._worker = self._worker, None
        if self._queue is not None:
            await self._queue.join()
        self._queue = None
        if worker is not None:
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
