# geo_utils.py
from __future__ import annotations

import math
from typing import TYPE_CHECKING

from common.settings import settings

if TYPE_CHECKING:
    from navigation.types import Coordinate

EARTH_RADIUS_M = settings.earth_radius_m


def normalize_deg(angle):
    """Map any angle onto [0, 360)."""
    wrapped = angle % 360.0
    # -1e-20 % 360.0 rounds up to 360.0
    if wrapped >= 360.0:
        return 0.0
    return wrapped


def wrap_angle_deg(angle):
    return (angle + 180) % 360 - 180


def haversine_distance(lat1, lon1, lat2, lon2, radius_m=EARTH_RADIUS_M):
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(dlambda/2)**2
    # Rounding can push antipodal pairs just past 1.
    a = min(1.0, max(0.0, a))
    return 2 * radius_m * math.atan2(math.sqrt(a), math.sqrt(1-a))


def bearing_deg(lat1, lon1, lat2, lon2):
    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlambda = math.radians(lon2 - lon1)

    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1)*math.sin(phi2) - math.sin(phi1)*math.cos(phi2)*math.cos(dlambda)
    if x == 0.0 and y == 0.0:
        return 0.0
    brng = math.degrees(math.atan2(y, x))
    return normalize_deg(brng + 360)


def ideal_angle(bearing, heading):
    """Arrow rotation relative to the device's facing direction, in [0, 360)."""
    return normalize_deg(bearing - heading)


def distance_between(start: Coordinate, end: Coordinate) -> float:
    return haversine_distance(start.latitude, start.longitude, end.latitude, end.longitude)


def bearing_between(start: Coordinate, end: Coordinate) -> float:
    return bearing_deg(start.latitude, start.longitude, end.latitude, end.longitude)
