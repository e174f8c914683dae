"""
Scripted sensor feed.

Replays recorded position / heading samples, one NDJSON object per line:

    {"type": "position", "latitude": 35.0, "longitude": 139.0, "timestamp": 1.0}
    {"type": "heading", "trueHeading": 12.5}
"""
from __future__ import annotations

import asyncio
import json
import logging
import math
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Set

from pydantic import ValidationError

from navigation.types import Heading, Position

logger = logging.getLogger(__name__)


def _to_position(sample: Dict[str, Any]) -> Position | None:
    try:
        lat = float(sample["latitude"])
        lon = float(sample["longitude"])
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return None
        return Position.at(lat, lon, sample.get("timestamp"))
    except (KeyError, TypeError, ValueError, ValidationError):
        return None


def _to_heading(sample: Dict[str, Any]) -> Heading | None:
    raw = sample.get("trueHeading", sample.get("true_heading"))
    try:
        value = float(raw)
        if not math.isfinite(value) or value < 0 or value >= 360:
            return None
        if sample.get("timestamp") is None:
            return Heading(true_heading=value)
        return Heading(true_heading=value, timestamp=sample["timestamp"])
    except (TypeError, ValueError, ValidationError):
        return None


_CONVERTERS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    "position": _to_position,
    "heading": _to_heading,
}


class _TrackCursor:
    """One pass over the track, shared by the position and heading streams."""

    def __init__(self, samples: List[Dict[str, Any]]):
        self.samples = samples
        self.index = 0
        self.opened: Set[str] = set()
        self.readers: Set[str] = set()
        self.changed = asyncio.Condition()

    def advance(self) -> None:
        # Caller holds self.changed.
        self.index += 1
        self.changed.notify_all()


class _ReplayStream:
    """
    Releases the samples of one type in track order.

    The cursor stays on a delivered sample until the consumer asks for the
    next one, so the other stream cannot overtake an item still in flight.
    Samples of a type nobody reads are skipped.
    """

    def __init__(self, cursor: _TrackCursor, kind: str, interval: float):
        self._cursor = cursor
        self._kind = kind
        self._convert = _CONVERTERS[kind]
        self._interval = interval
        self._holding = False
        self._closed = False

    def __aiter__(self) -> "_ReplayStream":
        return self

    async def __anext__(self):
        if self._closed:
            raise StopAsyncIteration
        cursor = self._cursor
        if self._holding and self._interval:
            await asyncio.sleep(self._interval)
        async with cursor.changed:
            if self._holding:
                self._holding = False
                cursor.advance()
            while True:
                if cursor.index >= len(cursor.samples):
                    self._release()
                    raise StopAsyncIteration
                sample = cursor.samples[cursor.index]
                kind = sample.get("type")
                if kind == self._kind:
                    item = self._convert(sample)
                    if item is not None:
                        self._holding = True
                        return item
                    logger.debug("Skipping invalid %s sample %r", kind, sample)
                    cursor.advance()
                elif kind not in cursor.readers:
                    cursor.advance()
                else:
                    await cursor.changed.wait()

    async def aclose(self) -> None:
        if self._closed:
            return
        async with self._cursor.changed:
            if self._holding:
                self._holding = False
                self._cursor.advance()
            self._release()

    def _release(self) -> None:
        # Caller holds the cursor lock.
        self._closed = True
        self._cursor.readers.discard(self._kind)
        self._cursor.changed.notify_all()


class ReplayFeed:
    """
    SensorFeed over a fixed list of samples.

    Streams opened together share one pass over the track and deliver in the
    recorded order, paced by ``interval_seconds`` per sample. Opening a stream
    type that the current pass already serves starts a new pass.
    """

    def __init__(self, samples: Iterable[Dict[str, Any]], interval_seconds: float = 0.0):
        self._samples: List[Dict[str, Any]] = list(samples)
        self._interval = max(0.0, interval_seconds)
        self._cursor: _TrackCursor | None = None

    @classmethod
    def from_ndjson(cls, path: Path | str, interval_seconds: float = 0.0) -> "ReplayFeed":
        samples: List[Dict[str, Any]] = []
        with open(path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                row = line.strip()
                if not row:
                    continue
                try:
                    sample = json.loads(row)
                except json.JSONDecodeError:
                    logger.warning("Skipping malformed replay line %d in %s", line_no, path)
                    continue
                if isinstance(sample, dict):
                    samples.append(sample)
        logger.info("Loaded %d replay samples from %s", len(samples), path)
        return cls(samples, interval_seconds=interval_seconds)

    def __len__(self) -> int:
        return len(self._samples)

    def position_updates(self) -> AsyncIterator[Position]:
        return self._open("position")

    def heading_updates(self) -> AsyncIterator[Heading]:
        return self._open("heading")

    def _open(self, kind: str) -> _ReplayStream:
        # Registration is eager so a sibling stream knows to wait for this one.
        cursor = self._cursor
        if cursor is None or kind in cursor.opened:
            cursor = self._cursor = _TrackCursor(self._samples)
        cursor.opened.add(kind)
        cursor.readers.add(kind)
        return _ReplayStream(cursor, kind, self._interval)
