"""redis_identity.py — Session-scoped identity pointers in Redis.

One key per browser session, expiring with the session TTL:

    devpulse:identity:<session_key> → "<identity id>"

Called by: sql_storage.DatabaseStorage
Depends on: redis.asyncio
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from devpulse.core.errors import StorageError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "devpulse:identity:"


class RedisIdentityPointerStore:
    def __init__(self, redis: aioredis.Redis, ttl_seconds: int) -> None:
        self._redis = redis
        self._ttl = ttl_seconds

    async def get(self, session_key: str) -> int | None:
        try:
            value = await self._redis.get(_KEY_PREFIX + session_key)
        except RedisError as exc:
            raise StorageError(f"Failed to read identity pointer: {exc}") from exc
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning("Discarding malformed identity pointer for session %s", session_key)
            return None

    async def set(self, session_key: str, identity_id: int) -> None:
        try:
            await self._redis.set(_KEY_PREFIX + session_key, str(identity_id), ex=self._ttl)
        except RedisError as exc:
            raise StorageError(f"Failed to store identity pointer: {exc}") from exc

    async def clear(self, session_key: str) -> None:
        try:
            await self._redis.delete(_KEY_PREFIX + session_key)
        except RedisError as exc:
            raise StorageError(f"Failed to clear identity pointer: {exc}") from exc
