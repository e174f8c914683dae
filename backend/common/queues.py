"""Bounded queue helpers shared by the sensor hub and the broadcaster."""
from __future__ import annotations

import asyncio


def offer_latest(queue_obj: asyncio.Queue, item) -> bool:
    """Keep queue non-blocking and biased toward newest data.

    Returns False when an older item had to be dropped to make room.
    """
    try:
        queue_obj.put_nowait(item)
        return True
    except asyncio.QueueFull:
        try:
            queue_obj.get_nowait()
            queue_obj.put_nowait(item)
        except (asyncio.QueueEmpty, asyncio.QueueFull):
            pass
        return False
