"""Value types shared by the bearing engine, the sensor feeds and the API."""
from __future__ import annotations

import logging
import math
import time

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class Coordinate(BaseModel):
    """Geographic point in decimal degrees."""

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    model_config = ConfigDict(frozen=True)


class Position(BaseModel):
    """Latest fix from the location sensor. Only the most recent one matters."""

    coordinate: Coordinate
    timestamp: float = Field(default_factory=time.time)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def at(cls, latitude: float, longitude: float, timestamp: float | None = None) -> "Position":
        coordinate = Coordinate(latitude=latitude, longitude=longitude)
        if timestamp is None:
            return cls(coordinate=coordinate)
        return cls(coordinate=coordinate, timestamp=timestamp)


class Heading(BaseModel):
    """True heading of the device. Sensor failure values never make it this far."""

    true_heading: float = Field(..., ge=0.0, lt=360.0, alias="trueHeading")
    timestamp: float = Field(default_factory=time.time)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class DerivedState(BaseModel):
    """Snapshot published after every recomputation."""

    distance_m: float | None = Field(None, alias="distanceMeters")
    bearing_deg: float | None = Field(None, alias="bearingDegrees")
    continuous_rotation: float | None = Field(None, alias="continuousRotation")
    display_rotation: float | None = Field(None, alias="displayRotation")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def has_route(self) -> bool:
        return self.distance_m is not None and self.bearing_deg is not None

    @property
    def has_rotation(self) -> bool:
        return self.continuous_rotation is not None and self.display_rotation is not None


EMPTY_STATE = DerivedState()


def _parse_degrees(text: str | None) -> float | None:
    if text is None:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_destination(text_lat: str | None, text_lon: str | None) -> Coordinate | None:
    """Parse the two destination text fields. Anything unusable means no destination."""
    lat = _parse_degrees(text_lat)
    lon = _parse_degrees(text_lon)
    if lat is None or lon is None:
        logger.debug("Destination not parseable: lat=%r lon=%r", text_lat, text_lon)
        return None
    try:
        return Coordinate(latitude=lat, longitude=lon)
    except ValidationError:
        logger.debug("Destination out of range: lat=%s lon=%s", lat, lon)
        return None
