"""Sensor feeds delivering position and heading samples."""

from .base import SensorFeed
from .hub import LatestValueStream, SensorHub
from .replay import ReplayFeed

__all__ = [
    "LatestValueStream",
    "ReplayFeed",
    "SensorFeed",
    "SensorHub",
]
