"""Navigation session package."""

from .exceptions import (
    ChannelAlreadyAttachedError,
    ChannelNotFoundError,
    EventQueueFullError,
    SessionError,
    SessionNotRunningError,
)
from .session import NavigationSession
from .types import (
    HEADING_CHANNEL,
    POSITION_CHANNEL,
    ChannelHandle,
    DestinationEvent,
    HeadingEvent,
    HeadingLostEvent,
    PositionEvent,
    PositionLostEvent,
)

__all__ = [
    "ChannelAlreadyAttachedError",
    "ChannelHandle",
    "ChannelNotFoundError",
    "DestinationEvent",
    "EventQueueFullError",
    "HEADING_CHANNEL",
    "HeadingEvent",
    "HeadingLostEvent",
    "NavigationSession",
    "POSITION_CHANNEL",
    "PositionEvent",
    "PositionLostEvent",
    "SessionError",
    "SessionNotRunningError",
]
