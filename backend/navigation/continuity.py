"""
Angle continuity for the destination arrow.

Each ideal angle is computed fresh in [0, 360) with no memory of the previous
one. Animating those values directly makes the arrow spin the long way round
whenever the angle crosses north. The tracker turns the sequence into an
unbounded accumulated rotation that always moves the short way, plus a
normalized value for display.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from navigation.geo_utils import normalize_deg


@dataclass
class ContinuityState:
    last_continuous_angle: float | None = None

    def reset(self) -> None:
        self.last_continuous_angle = None


class Rotation(NamedTuple):
    continuous: float
    display: float


def fold_delta(delta: float) -> float:
    """Fold a difference of two [0, 360) angles into [-180, 180]."""
    if delta > 180.0:
        delta -= 360.0
    if delta < -180.0:
        delta += 360.0
    return delta


def advance(ideal: float, state: ContinuityState) -> Rotation:
    last = state.last_continuous_angle
    if last is None:
        continuous = ideal
    else:
        # Compare against the wrapped value, accumulate on the raw one.
        delta = fold_delta(ideal - normalize_deg(last))
        continuous = last + delta

    state.last_continuous_angle = continuous
    return Rotation(continuous=continuous, display=normalize_deg(continuous))


class AngleContinuityTracker:
    """Owns one ContinuityState and unwraps ideal angles against it."""

    def __init__(self, state: ContinuityState | None = None):
        self._state = state if state is not None else ContinuityState()

    @property
    def state(self) -> ContinuityState:
        return self._state

    @property
    def last_continuous_angle(self) -> float | None:
        return self._state.last_continuous_angle

    @property
    def is_primed(self) -> bool:
        return self._state.last_continuous_angle is not None

    def advance(self, ideal: float) -> Rotation:
        return advance(ideal, self._state)

    def reset(self) -> None:
        self._state.reset()
