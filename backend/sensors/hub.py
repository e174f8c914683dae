"""
Push-driven sensor feed.

Platform integrations push raw samples in; the navigation session pulls
validated ``Position`` / ``Heading`` values out through async iterators.
Each stream has at most one active subscriber. A new subscription finishes
the previous one and immediately replays the latest known value.

All methods must be called from the event loop thread.
"""
from __future__ import annotations

import asyncio
import logging
import math
from typing import AsyncIterator, Generic, TypeVar

from pydantic import ValidationError

from common.queues import offer_latest
from common.settings import settings
from navigation.types import Heading, Position

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


class _Subscription:
    def __init__(self, maxsize: int):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, maxsize))
        self.closed = False


class LatestValueStream(Generic[T]):
    """Single-subscriber stream that remembers its most recent value."""

    def __init__(self, name: str, queue_size: int | None = None):
        self.name = name
        self._queue_size = queue_size if queue_size is not None else settings.sensor_queue_size
        self._latest: T | None = None
        self._active: _Subscription | None = None
        self.published = 0
        self.dropped = 0

    @property
    def latest(self) -> T | None:
        return self._latest

    @property
    def has_subscriber(self) -> bool:
        return self._active is not None

    def publish(self, item: T) -> None:
        self._latest = item
        self.published += 1
        if self._active is not None and not offer_latest(self._active.queue, item):
            self.dropped += 1
            logger.warning("[%s] Subscriber lagging; dropped oldest sample", self.name)

    def subscribe(self) -> AsyncIterator[T]:
        previous = self._active
        if previous is not None:
            self._close(previous)
            logger.info("[%s] New subscription supersedes the previous one", self.name)

        sub = _Subscription(self._queue_size)
        self._active = sub
        if self._latest is not None:
            sub.queue.put_nowait(self._latest)
        return self._iterate(sub)

    def close(self) -> None:
        if self._active is not None:
            self._close(self._active)
            self._active = None

    @staticmethod
    def _close(sub: _Subscription) -> None:
        sub.closed = True
        # May evict an undelivered sample; superseded streams get no final-event guarantee.
        offer_latest(sub.queue, _CLOSED)

    async def _iterate(self, sub: _Subscription) -> AsyncIterator[T]:
        try:
            while True:
                item = await sub.queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            if self._active is sub:
                self._active = None


class SensorHub:
    """SensorFeed backed by pushed samples, with sensor-failure filtering."""

    def __init__(self, queue_size: int | None = None):
        self._positions: LatestValueStream[Position] = LatestValueStream("position", queue_size)
        self._headings: LatestValueStream[Heading] = LatestValueStream("heading", queue_size)
        self.filtered_positions = 0
        self.filtered_headings = 0

    @property
    def latest_position(self) -> Position | None:
        return self._positions.latest

    @property
    def latest_heading(self) -> Heading | None:
        return self._headings.latest

    def position_updates(self) -> AsyncIterator[Position]:
        return self._positions.subscribe()

    def heading_updates(self) -> AsyncIterator[Heading]:
        return self._headings.subscribe()

    def push_position(self, latitude: float, longitude: float, timestamp: float | None = None) -> bool:
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            self.filtered_positions += 1
            logger.debug("Dropping non-finite position (%s, %s)", latitude, longitude)
            return False
        try:
            position = Position.at(latitude, longitude, timestamp)
        except ValidationError:
            self.filtered_positions += 1
            logger.debug("Dropping out-of-range position (%s, %s)", latitude, longitude)
            return False
        self._positions.publish(position)
        return True

    def push_heading(self, true_heading: float, timestamp: float | None = None) -> bool:
        # Negative true heading is the platform's "no reading" sentinel.
        if not math.isfinite(true_heading) or true_heading < 0 or true_heading >= 360:
            self.filtered_headings += 1
            logger.debug("Dropping invalid heading %s", true_heading)
            return False
        if timestamp is None:
            heading = Heading(true_heading=true_heading)
        else:
            heading = Heading(true_heading=true_heading, timestamp=timestamp)
        self._headings.publish(heading)
        return True

    def close(self) -> None:
        self._positions.close()
        self._headings.close()

    def to_dict(self) -> dict:
        return {
            "position_subscribed": self._positions.has_subscriber,
            "heading_subscribed": self._headings.has_subscriber,
            "positions_published": self._positions.published,
            "headings_published": self._headings.published,
            "positions_filtered": self.filtered_positions,
            "headings_filtered": self.filtered_headings,
            "samples_dropped": self._positions.dropped + self._headings.dropped,
        }
