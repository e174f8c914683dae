"""Merge of position, heading and destination into one derived state."""
from __future__ import annotations

import logging
from typing import Callable

from common.settings import settings
from navigation.continuity import AngleContinuityTracker
from navigation.geo_utils import bearing_between, distance_between, ideal_angle
from navigation.types import EMPTY_STATE, Coordinate, DerivedState, Heading, Position, parse_destination

logger = logging.getLogger(__name__)

StateListener = Callable[[DerivedState], None]


class DerivedStateReactor:
    """
    Holds the three input cells and recomputes the derived state whenever one
    of them changes.

    Not thread-safe: exactly one caller (the session consumer) may drive it.
    """

    def __init__(
        self,
        tracker: AngleContinuityTracker | None = None,
        reset_continuity_on_heading_loss: bool | None = None,
    ):
        self._tracker = tracker or AngleContinuityTracker()
        if reset_continuity_on_heading_loss is None:
            reset_continuity_on_heading_loss = settings.reset_continuity_on_heading_loss
        self._reset_on_heading_loss = reset_continuity_on_heading_loss
        self._position: Position | None = None
        self._heading: Heading | None = None
        self._destination: Coordinate | None = None
        self._state: DerivedState = EMPTY_STATE
        self._listeners: list[StateListener] = []
        self._recompute_count = 0

    @property
    def state(self) -> DerivedState:
        return self._state

    @property
    def position(self) -> Position | None:
        return self._position

    @property
    def heading(self) -> Heading | None:
        return self._heading

    @property
    def destination(self) -> Coordinate | None:
        return self._destination

    @property
    def tracker(self) -> AngleContinuityTracker:
        return self._tracker

    @property
    def recompute_count(self) -> int:
        return self._recompute_count

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe():
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    # ---------- Mutators ----------

    def on_position(self, position: Position) -> DerivedState:
        self._position = position
        return self._recompute()

    def on_heading(self, heading: Heading) -> DerivedState:
        self._heading = heading
        return self._recompute()

    def on_destination_changed(self, text_lat: str | None, text_lon: str | None) -> DerivedState:
        self._destination = parse_destination(text_lat, text_lon)
        return self._recompute()

    def clear_position(self) -> DerivedState:
        self._position = None
        return self._recompute()

    def clear_heading(self) -> DerivedState:
        self._heading = None
        if self._reset_on_heading_loss:
            self._tracker.reset()
        return self._recompute()

    # ---------- Recomputation ----------

    def _recompute(self) -> DerivedState:
        self._recompute_count += 1

        if self._destination is None or self._position is None:
            if self._tracker.is_primed:
                logger.debug("Route lost; continuity reset")
            self._tracker.reset()
            return self._publish(EMPTY_STATE)

        start = self._position.coordinate
        distance = distance_between(start, self._destination)
        bearing = bearing_between(start, self._destination)

        if self._heading is None:
            return self._publish(DerivedState(distance_m=distance, bearing_deg=bearing))

        rotation = self._tracker.advance(ideal_angle(bearing, self._heading.true_heading))
        return self._publish(
            DerivedState(
                distance_m=distance,
                bearing_deg=bearing,
                continuous_rotation=rotation.continuous,
                display_rotation=rotation.display,
            )
        )

    def _publish(self, state: DerivedState) -> DerivedState:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener %r failed", listener)
        return state
