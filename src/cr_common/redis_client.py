"""Redis client factory — used for envelope expiry timers and their notifications.

NOT used for balances or envelope state (those live in PostgreSQL). A lost key
or a dropped notification only delays settlement until the next sweep.
"""

import redis.asyncio as aioredis
from redis.asyncio.connection import parse_url

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


def redis_db_index() -> int:
    """Logical DB number of REDIS_URL; keyevent channels are per-DB."""
    return int(parse_url(settings.REDIS_URL).get("db", 0))
