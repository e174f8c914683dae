"""Fan-out of published snapshots to any number of clients."""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from common.queues import offer_latest
from common.settings import settings
from navigation.types import DerivedState

logger = logging.getLogger(__name__)


class StateBroadcaster:
    """
    Reactor listener that copies each snapshot into per-subscriber queues.

    Delivery never blocks the reactor: a slow subscriber loses its oldest
    snapshots instead. Must be used from the event loop thread.
    """

    def __init__(self, queue_size: int | None = None):
        self._queue_size = queue_size if queue_size is not None else settings.broadcast_queue_size
        self._subscribers: set[asyncio.Queue] = set()
        self._latest: DerivedState | None = None
        self.dropped = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def latest(self) -> DerivedState | None:
        return self._latest

    def __call__(self, state: DerivedState) -> None:
        self.publish(state)

    def publish(self, state: DerivedState) -> None:
        self._latest = state
        for queue in list(self._subscribers):
            if not offer_latest(queue, state):
                self.dropped += 1
                logger.debug("Subscriber lagging; dropped oldest snapshot")

    def open(self, replay_latest: bool = True) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, self._queue_size))
        if replay_latest and self._latest is not None:
            queue.put_nowait(self._latest)
        self._subscribers.add(queue)
        logger.info("State subscriber added (%d active)", len(self._subscribers))
        return queue

    def close(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.discard(queue)
            logger.info("State subscriber removed (%d active)", len(self._subscribers))

    async def stream(self, replay_latest: bool = True) -> AsyncIterator[DerivedState]:
        queue = self.open(replay_latest=replay_latest)
        try:
            while True:
                yield await queue.get()
        finally:
            self.close(queue)
