"""Interface the navigation session expects from a sensor source."""
from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable

from navigation.types import Heading, Position


@runtime_checkable
class SensorFeed(Protocol):
    def position_updates(self) -> AsyncIterator[Position]:
        ...

    def heading_updates(self) -> AsyncIterator[Heading]:
        ...
