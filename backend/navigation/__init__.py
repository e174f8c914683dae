"""Bearing, continuity and derived-state engine."""

from .continuity import AngleContinuityTracker, ContinuityState, Rotation, advance
from .geo_utils import bearing_deg, haversine_distance, ideal_angle, normalize_deg
from .reactor import DerivedStateReactor
from .types import Coordinate, DerivedState, Heading, Position, parse_destination

__all__ = [
    "AngleContinuityTracker",
    "ContinuityState",
    "Coordinate",
    "DerivedState",
    "DerivedStateReactor",
    "Heading",
    "Position",
    "Rotation",
    "advance",
    "bearing_deg",
    "haversine_distance",
    "ideal_angle",
    "normalize_deg",
    "parse_destination",
]
