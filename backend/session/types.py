"""Event and handle types for the navigation session."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Union

from navigation.types import Heading, Position

POSITION_CHANNEL = "position"
HEADING_CHANNEL = "heading"


@dataclass(frozen=True)
class PositionEvent:
    position: Position


@dataclass(frozen=True)
class HeadingEvent:
    heading: Heading


@dataclass(frozen=True)
class DestinationEvent:
    latitude_text: str | None
    longitude_text: str | None


@dataclass(frozen=True)
class PositionLostEvent:
    pass


@dataclass(frozen=True)
class HeadingLostEvent:
    pass


SessionEvent = Union[PositionEvent, HeadingEvent, DestinationEvent, PositionLostEvent, HeadingLostEvent]


@dataclass
class ChannelHandle:
    """Handle for one feed pump forwarding samples into the session queue."""

    channel: str
    task: asyncio.Task | None = None
    started_at: float = field(default_factory=time.monotonic)
    events_forwarded: int = 0
    last_event_at: float = 0.0
    error: str | None = None

    @property
    def is_alive(self) -> bool:
        return self.task is not None and not self.task.done()

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()

    def to_dict(self) -> dict:
        return {
            "channel": self.channel,
            "status": "running" if self.is_alive else "stopped",
            "started_at_monotonic": self.started_at,
            "events_forwarded": self.events_forwarded,
            "last_event_at_monotonic": self.last_event_at,
            "error": self.error,
        }
