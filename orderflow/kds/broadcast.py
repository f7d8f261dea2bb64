"""Cross-process board invalidation over Redis pub/sub.

Each process runs its own display sessions; when one of them commits a
status change it publishes on ``rt:kds:{restaurant_id}`` so sessions held
by other processes refetch as well.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .hub import BoardHub

logger = logging.getLogger("kds")

POLL_TIMEOUT = 1.0


def channel(restaurant_id: str) -> str:
    return f"rt:kds:{restaurant_id}"


async def publish(redis: Any, restaurant_id: str, reason: str, origin: str) -> None:
    """Announce that ``restaurant_id``'s board changed."""
    payload = json.dumps({"reason": reason, "origin": origin})
    await redis.publish(channel(restaurant_id), payload)


def decode(message: dict) -> dict | None:
    data = message.get("data")
    if isinstance(data, bytes):
        data = data.decode()
    try:
        decoded = json.loads(data)
    except (TypeError, ValueError):
        logger.warning("ignoring malformed board invalidation: %r", data)
        return None
    return decoded if isinstance(decoded, dict) else None


async def listen(redis: Any, restaurant_id: str, hub: "BoardHub") -> None:
    """Relay invalidations published by other processes into ``hub``.

    Runs until cancelled. Messages published by ``hub`` itself are skipped
    since its sessions were already refreshed locally.
    """
    pubsub = redis.pubsub()
    await pubsub.subscribe(channel(restaurant_id))
    try:
        while True:
            message = await pubsub.get_message(
                ignore_subscribe_messages=True, timeout=POLL_TIMEOUT
            )
            if message is None:
                continue
            data = decode(message)
            if data is None or data.get("origin") == hub.instance_id:
                continue
            await hub.invalidate(
                restaurant_id, reason=f"remote:{data.get('reason', 'mutation')}", publish=False
            )
    finally:
        await pubsub.unsubscribe(channel(restaurant_id))
        await pubsub.aclose()
