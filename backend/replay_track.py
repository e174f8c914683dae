#!/usr/bin/env python3
"""
Replay a recorded sensor track against a destination and print what the
arrow would show.

Usage:
    python replay_track.py <track.ndjson> <dest_lat> <dest_lon> [interval_seconds]

Example:
    python replay_track.py data/tokyo_walk.ndjson 35.6586 139.7454 0.1
"""
import asyncio
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from common.logging_config import configure_logging
from navigation.types import DerivedState
from presentation import describe_state
from sensors import ReplayFeed
from session import NavigationSession


def _print_state(state: DerivedState) -> None:
    view = describe_state(state)
    rotation = f"{view.arrow_rotation:8.1f}" if view.arrow_rotation is not None else "       -"
    print(f"{rotation}  {view.direction_text:<24} {view.distance_text or ''}")


async def replay(track: Path, dest_lat: str, dest_lon: str, interval: float) -> int:
    feed = ReplayFeed.from_ndjson(track, interval_seconds=interval)
    session = NavigationSession()
    session.reactor.subscribe(_print_state)
    session.start()
    session.set_destination(dest_lat, dest_lon)
    handles = session.attach_feed(feed)
    await asyncio.gather(*(h.task for h in handles), return_exceptions=True)
    await session.join()
    await session.shutdown()
    return session.events_processed


def _usage():
    print("Usage: python replay_track.py <track.ndjson> <dest_lat> <dest_lon> [interval_seconds]")
    print("\nExample:")
    print("  python replay_track.py data/tokyo_walk.ndjson 35.6586 139.7454 0.1")
    sys.exit(1)


def main():
    if len(sys.argv) < 4:
        _usage()

    track = Path(sys.argv[1])
    try:
        interval = float(sys.argv[4]) if len(sys.argv) > 4 else 0.0
    except ValueError:
        print(f"Error: interval_seconds must be a number, got {sys.argv[4]!r}")
        _usage()

    configure_logging()
    print(f"Replaying {track} toward ({sys.argv[2]}, {sys.argv[3]})")
    print()

    try:
        processed = asyncio.run(replay(track, sys.argv[2], sys.argv[3], interval))
    except OSError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print()
    print(f"Processed {processed} events")


if __name__ == "__main__":
    main()
