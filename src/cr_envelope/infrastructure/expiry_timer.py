"""Redis TTL keys that mark envelope deadlines.

One key per envelope, set to expire exactly at the envelope's expires_at.
When Redis evicts it, the keyevent notification drives ExpireListener.
The key carries no state: losing it only delays settlement to the next sweep.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime

import redis.asyncio as aioredis

from src.cr_common.id_generator import is_storable_id

KEY_SEGMENT = "redenvelope:expire:"


def expiry_key(prefix: str, envelope_id: int) -> str:
    return f"{prefix}{KEY_SEGMENT}{envelope_id}"


def envelope_id_from_key(prefix: str, key: str) -> int | None:
    """Parse the envelope id out of an expired key; None for foreign keys."""
    head = f"{prefix}{KEY_SEGMENT}"
    if not key.startswith(head):
        return None
    tail = key[len(head):]
    if not tail.isdigit():
        return None
    envelope_id = int(tail)
    return envelope_id if is_storable_id(envelope_id) else None


class RedisExpiryTimer:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]],
        key_prefix: str,
    ) -> None:
        self._redis_factory = redis_factory
        self._prefix = key_prefix

    async def arm(self, envelope_id: int, expires_at: datetime, now: datetime) -> None:
        ttl_ms = max(int((expires_at - now).total_seconds() * 1000), 1)
        redis = await self._redis_factory()
        await redis.set(expiry_key(self._prefix, envelope_id), "1", px=ttl_ms)
