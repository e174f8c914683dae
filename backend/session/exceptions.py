"""Custom exceptions for the navigation session."""


class SessionError(Exception):
    """Base session exception."""


class SessionNotRunningError(SessionError):
    """Raised when events are submitted before start() or after shutdown()."""


class EventQueueFullError(SessionError):
    """Raised when a bounded event queue cannot take a synchronous submit."""


class ChannelAlreadyAttachedError(SessionError):
    """Raised when attaching a feed to a channel that already has a live pump."""


class ChannelNotFoundError(SessionError):
    """Raised when a channel has no attached feed."""
