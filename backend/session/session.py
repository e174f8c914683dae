"""Single-consumer merge of sensor and destination events."""
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import time
from typing import AsyncIterator, Callable

from common.settings import settings
from navigation.reactor import DerivedStateReactor
from navigation.types import DerivedState
from sensors.base import SensorFeed
from session.exceptions import (
    ChannelAlreadyAttachedError,
    ChannelNotFoundError,
    EventQueueFullError,
    SessionNotRunningError,
)
from session.types import (
    HEADING_CHANNEL,
    POSITION_CHANNEL,
    ChannelHandle,
    DestinationEvent,
    HeadingEvent,
    HeadingLostEvent,
    PositionEvent,
    PositionLostEvent,
    SessionEvent,
)

logger = logging.getLogger(__name__)

_STOP = object()


class NavigationSession:
    """
    Funnels every input into one queue and applies them to the reactor in
    arrival order from a single consumer task.
    """

    def __init__(
        self,
        reactor: DerivedStateReactor | None = None,
        queue_size: int | None = None,
    ):
        self._reactor = reactor or DerivedStateReactor()
        self._queue_size = settings.session_queue_size if queue_size is None else queue_size
        self._queue: asyncio.Queue | None = None
        self._consumer: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._channels: dict[str, ChannelHandle] = {}
        self._running = False
        self.events_processed = 0
        self.events_failed = 0

    @property
    def reactor(self) -> DerivedStateReactor:
        return self._reactor

    @property
    def state(self) -> DerivedState:
        return self._reactor.state

    @property
    def is_running(self) -> bool:
        return self._running

    # ---------- Lifecycle ----------

    def start(self) -> None:
        """Start the consumer. Must be called from inside the event loop."""
        if self._running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=max(0, self._queue_size))
        self._consumer = self._loop.create_task(self._consume(), name="navigation-session")
        self._running = True
        logger.info("Navigation session started")

    async def shutdown(self) -> None:
        if not self._running:
            return
        self._running = False

        handles = list(self._channels.values())
        self._channels.clear()
        for handle in handles:
            handle.cancel()
        for handle in handles:
            if handle.task is not None:
                await asyncio.gather(handle.task, return_exceptions=True)

        # Drain whatever was already queued, then stop.
        await self._queue.put(_STOP)
        await self._consumer
        self._consumer = None
        logger.info(
            "Navigation session shutdown complete (%d events processed)",
            self.events_processed,
        )

    async def join(self) -> None:
        """Wait until every event queued so far has been applied."""
        if self._queue is None:
            return
        await self._queue.join()

    # ---------- Submission ----------

    def submit(self, event: SessionEvent) -> None:
        if not self._running:
            raise SessionNotRunningError("Navigation session is not running")
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            raise EventQueueFullError(
                f"Event queue full ({self._queue.maxsize}); dropping {type(event).__name__}"
            )

    def submit_threadsafe(self, event: SessionEvent) -> concurrent.futures.Future:
        """Enqueue from a thread other than the event loop's."""
        if not self._running or self._loop is None:
            raise SessionNotRunningError("Navigation session is not running")
        return asyncio.run_coroutine_threadsafe(self._enqueue(event), self._loop)

    async def _enqueue(self, event: SessionEvent) -> None:
        if not self._running:
            raise SessionNotRunningError("Navigation session is not running")
        await self._queue.put(event)

    def set_destination(self, latitude_text: str | None, longitude_text: str | None) -> None:
        self.submit(DestinationEvent(latitude_text, longitude_text))

    def clear_destination(self) -> None:
        self.submit(DestinationEvent(None, None))

    # ---------- Channels ----------

    def attach_position_feed(self, feed: SensorFeed, replace: bool = False) -> ChannelHandle:
        return self._attach(POSITION_CHANNEL, feed.position_updates, PositionEvent, replace)

    def attach_heading_feed(self, feed: SensorFeed, replace: bool = False) -> ChannelHandle:
        return self._attach(HEADING_CHANNEL, feed.heading_updates, HeadingEvent, replace)

    def attach_feed(self, feed: SensorFeed, replace: bool = False) -> list[ChannelHandle]:
        return [
            self.attach_position_feed(feed, replace=replace),
            self.attach_heading_feed(feed, replace=replace),
        ]

    def detach(self, channel: str, invalidate: bool = False) -> None:
        """Cancel one channel. Its last value stays in the reactor unless invalidate is set."""
        handle = self._channels.pop(channel, None)
        if not handle:
            raise ChannelNotFoundError(f"Channel '{channel}' has no attached feed")
        handle.cancel()
        logger.info("Detached %s channel", channel)
        if invalidate:
            self.submit(PositionLostEvent() if channel == POSITION_CHANNEL else HeadingLostEvent())

    def get_channel(self, channel: str) -> ChannelHandle:
        handle = self._channels.get(channel)
        if not handle:
            raise ChannelNotFoundError(f"Channel '{channel}' has no attached feed")
        return handle

    def _attach(
        self,
        channel: str,
        subscribe: Callable[[], AsyncIterator],
        make_event: Callable[[object], SessionEvent],
        replace: bool,
    ) -> ChannelHandle:
        if not self._running:
            raise SessionNotRunningError("Navigation session is not running")

        existing = self._channels.get(channel)
        if existing and existing.is_alive:
            if not replace:
                raise ChannelAlreadyAttachedError(f"Channel '{channel}' already has a live feed")
            existing.cancel()
            logger.info("Replacing %s feed", channel)

        handle = ChannelHandle(channel=channel)
        handle.task = self._loop.create_task(
            self._pump(handle, subscribe(), make_event),
            name=f"navigation-{channel}-pump",
        )
        self._channels[channel] = handle
        logger.info("Attached %s feed", channel)
        return handle

    async def _pump(
        self,
        handle: ChannelHandle,
        updates: AsyncIterator,
        make_event: Callable[[object], SessionEvent],
    ) -> None:
        try:
            async for item in updates:
                await self._queue.put(make_event(item))
                handle.events_forwarded += 1
                handle.last_event_at = time.monotonic()
            logger.info("[%s] Feed finished after %d events", handle.channel, handle.events_forwarded)
        except asyncio.CancelledError:
            logger.debug("[%s] Pump cancelled", handle.channel)
            raise
        except Exception as exc:
            handle.error = f"{type(exc).__name__}: {exc}"
            logger.exception("[%s] Feed failed", handle.channel)
        finally:
            # Release the feed's subscription even when cancelled between items.
            aclose = getattr(updates, "aclose", None)
            if aclose is not None:
                await aclose()

    # ---------- Consumer ----------

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                if event is _STOP:
                    return
                self._apply(event)
                self.events_processed += 1
            except Exception:
                self.events_failed += 1
                logger.exception("Failed to apply %s", type(event).__name__)
            finally:
                self._queue.task_done()

    def _apply(self, event: SessionEvent) -> DerivedState:
        if isinstance(event, PositionEvent):
            return self._reactor.on_position(event.position)
        if isinstance(event, HeadingEvent):
            return self._reactor.on_heading(event.heading)
        if isinstance(event, DestinationEvent):
            return self._reactor.on_destination_changed(event.latitude_text, event.longitude_text)
        if isinstance(event, PositionLostEvent):
            return self._reactor.clear_position()
        if isinstance(event, HeadingLostEvent):
            return self._reactor.clear_heading()
        raise TypeError(f"Unknown session event: {event!r}")

    def status(self) -> dict:
        return {
            "running": self._running,
            "queued": self._queue.qsize() if self._queue is not None else 0,
            "events_processed": self.events_processed,
            "events_failed": self.events_failed,
            "recomputations": self._reactor.recompute_count,
            "channels": [h.to_dict() for h in self._channels.values()],
        }
