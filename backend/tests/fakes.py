"""Shared test doubles for navigation tests.

Provides FakeSensorFeed (a hand-driven SensorFeed), FailingFeed and a
StateRecorder listener so session tests run without any platform sensors.
"""
from __future__ import annotations

import asyncio

from navigation.types import DerivedState, Heading, Position

_END = object()


class FakeSensorFeed:
    """Mimics a platform sensor feed; tests push samples explicitly."""

    def __init__(self):
        self._positions: asyncio.Queue = asyncio.Queue()
        self._headings: asyncio.Queue = asyncio.Queue()
        self.position_subscriptions = 0
        self.heading_subscriptions = 0

    async def position_updates(self):
        self.position_subscriptions += 1
        while True:
            item = await self._positions.get()
            if item is _END:
                return
            yield item

    async def heading_updates(self):
        self.heading_subscriptions += 1
        while True:
            item = await self._headings.get()
            if item is _END:
                return
            yield item

    def emit_position(self, latitude: float, longitude: float):
        self._positions.put_nowait(Position.at(latitude, longitude))

    def emit_heading(self, true_heading: float):
        self._headings.put_nowait(Heading(true_heading=true_heading))

    def finish_positions(self):
        self._positions.put_nowait(_END)

    def finish_headings(self):
        self._headings.put_nowait(_END)


class FailingFeed:
    """Delivers a few headings, then raises (simulates a crashed sensor driver)."""

    def __init__(self, headings: list[float]):
        self._headings = headings

    async def position_updates(self):
        return
        yield  # pragma: no cover

    async def heading_updates(self):
        for value in self._headings:
            yield Heading(true_heading=value)
        raise RuntimeError("compass driver crashed")


class StateRecorder:
    """Reactor listener that keeps every published snapshot."""

    def __init__(self):
        self.states: list[DerivedState] = []

    def __call__(self, state: DerivedState):
        self.states.append(state)

    @property
    def last(self) -> DerivedState | None:
        return self.states[-1] if self.states else None

    @property
    def rotations(self) -> list[float | None]:
        return [s.continuous_rotation for s in self.states]


async def settle(session, rounds: int = 10):
    """Let feed pumps forward pending samples, then wait for the consumer."""
    for _ in range(rounds):
        await asyncio.sleep(0)
    await session.join()
