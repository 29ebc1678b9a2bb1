"""Passive expiry path: Redis keyevent subscriber.

Runs as one long-lived asyncio task. Pub/Sub delivery is at-most-once, so
every (re)subscription is followed by a catch-up sweep that settles anything
whose notification fell into the gap. Handling is idempotent: a key that
fires after the sweep already settled its envelope is a no-op.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError, ResponseError

from src.cr_envelope.application.resolver import ExpiryResolver
from src.cr_envelope.infrastructure.expiry_timer import envelope_id_from_key

logger = logging.getLogger(__name__)


def expired_channel(db_index: int) -> str:
    return f"__keyevent@{db_index}__:expired"


class ExpireListener:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]],
        resolver: ExpiryResolver,
        key_prefix: str,
        db_index: int = 0,
        reconnect_delay: float = 5.0,
    ) -> None:
        self._redis_factory = redis_factory
        self._resolver = resolver
        self._prefix = key_prefix
        self._channel = expired_channel(db_index)
        self._reconnect_delay = reconnect_delay

    async def run(self) -> None:
        """Subscribe forever; returns only when cancelled."""
        while True:
            try:
                await self._listen_once()
            except (RedisError, OSError) as exc:
                logger.warning(
                    "Expire listener lost Redis (%s), reconnecting in %.1fs",
                    exc,
                    self._reconnect_delay,
                )
                await asyncio.sleep(self._reconnect_delay)

    async def _listen_once(self) -> None:
        redis = await self._redis_factory()
        await self._enable_notifications(redis)

        pubsub = redis.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.subscribe(self._channel)
            logger.info("Expire listener subscribed to %s", self._channel)
            await self._catch_up()

            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                await self.handle_expired_key(message.get("data"))
        finally:
            await pubsub.aclose()

    async def _enable_notifications(self, redis: aioredis.Redis) -> None:
        # Managed Redis often forbids CONFIG; the server may already be configured
        try:
            await redis.config_set("notify-keyspace-events", "Ex")
        except ResponseError as exc:
            logger.warning("Could not enable keyspace notifications: %s", exc)

    async def _catch_up(self) -> None:
        try:
            settled = await self._resolver.sweep()
        except Exception:
            logger.exception("Catch-up sweep after subscribe failed")
            return
        if settled:
            logger.info("Catch-up sweep settled %d envelopes", settled)

    async def handle_expired_key(self, key: object) -> bool:
        """Settle the envelope behind one expired key. Never raises."""
        if isinstance(key, bytes):
            key = key.decode()
        if not isinstance(key, str):
            return False

        envelope_id = envelope_id_from_key(self._prefix, key)
        if envelope_id is None:
            return False

        try:
            return await self._resolver.settle(envelope_id)
        except Exception:
            logger.exception("Failed to settle envelope %s from expiry notification", envelope_id)
            return False
