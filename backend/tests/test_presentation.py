"""State text view and snapshot broadcaster."""
from __future__ import annotations

import asyncio

import pytest

from navigation.reactor import DerivedStateReactor
from navigation.types import DerivedState, Heading, Position
from presentation import CALCULATING_TEXT, StateBroadcaster, describe_state, state_payload
from presentation.view import format_direction, format_distance


# ---------- View ----------

class TestDescribeState:
    def test_empty_state_shows_placeholder(self):
        view = describe_state(DerivedState())
        assert view.distance_text is None
        assert view.direction_text == CALCULATING_TEXT
        assert view.arrow_rotation is None

    def test_route_without_heading(self):
        view = describe_state(DerivedState(distance_m=1234.56, bearing_deg=10.0))
        assert view.distance_text == "Distance: 1234.6 m"
        assert view.direction_text == CALCULATING_TEXT

    def test_full_state(self):
        state = DerivedState(
            distance_m=50.0,
            bearing_deg=90.0,
            continuous_rotation=370.0,
            display_rotation=10.0,
        )
        view = describe_state(state)
        assert view.direction_text == "Direction: 10°"
        assert view.arrow_rotation == 370.0

    def test_direction_rounds_into_range(self):
        assert format_direction(359.6) == "Direction: 0°"
        assert format_direction(0.4) == "Direction: 0°"

    def test_distance_format(self):
        assert format_distance(0.0) == "Distance: 0.0 m"

    def test_payload_shape(self):
        payload = state_payload(DerivedState())
        assert payload["type"] == "state"
        assert payload["state"]["distanceMeters"] is None
        assert payload["view"]["directionText"] == CALCULATING_TEXT


# ---------- Broadcaster ----------

class TestBroadcaster:
    @pytest.mark.asyncio
    async def test_fans_out_to_all_subscribers(self):
        broadcaster = StateBroadcaster()
        a = broadcaster.open()
        b = broadcaster.open()
        state = DerivedState(distance_m=1.0, bearing_deg=2.0)
        broadcaster.publish(state)
        assert a.get_nowait() == state
        assert b.get_nowait() == state

    @pytest.mark.asyncio
    async def test_slow_subscriber_keeps_newest(self):
        broadcaster = StateBroadcaster(queue_size=1)
        queue = broadcaster.open()
        for d in (1.0, 2.0, 3.0):
            broadcaster.publish(DerivedState(distance_m=d, bearing_deg=0.0))
        assert queue.qsize() == 1
        assert queue.get_nowait().distance_m == 3.0
        assert broadcaster.dropped == 2

    @pytest.mark.asyncio
    async def test_replays_latest_on_open(self):
        broadcaster = StateBroadcaster()
        broadcaster.publish(DerivedState(distance_m=5.0, bearing_deg=0.0))
        assert broadcaster.open().get_nowait().distance_m == 5.0
        assert broadcaster.open(replay_latest=False).empty()

    @pytest.mark.asyncio
    async def test_stream_closes_subscription(self):
        broadcaster = StateBroadcaster()
        stream = broadcaster.stream(replay_latest=False)
        pending = asyncio.ensure_future(anext(stream))
        await asyncio.sleep(0)
        assert broadcaster.subscriber_count == 1

        broadcaster.publish(DerivedState())
        assert await asyncio.wait_for(pending, timeout=1) == DerivedState()
        await stream.aclose()
        assert broadcaster.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_reactor_listener_integration(self):
        reactor = DerivedStateReactor(reset_continuity_on_heading_loss=False)
        broadcaster = StateBroadcaster()
        reactor.subscribe(broadcaster)
        queue = broadcaster.open()

        reactor.on_position(Position.at(0.0, 0.0))
        reactor.on_destination_changed("0.0", "1.0")
        reactor.on_heading(Heading(true_heading=0.0))

        received = [queue.get_nowait() for _ in range(3)]
        assert received[-1].continuous_rotation == pytest.approx(90.0)
        assert broadcaster.latest == reactor.state
