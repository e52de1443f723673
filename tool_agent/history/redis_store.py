"""Redis-backed list store (redis-py asyncio client)."""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis

from tool_agent.history.interface import ListStore


class RedisListStore(ListStore):
    """Thin adapter over ``redis.asyncio.Redis``.

    Ordering under concurrent writers is whatever Redis serialises; no
    extra locking happens here.
    """

    def __init__(self, client: Any) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> RedisListStore:
        return cls(redis.from_url(url, decode_responses=True))

    async def push_front(self, key: str, *values: str) -> int:
        if not values:
            return int(await self._redis.llen(key))
        return int(await self._redis.lpush(key, *values))

    async def range(self, key: str, start: int, stop: int) -> list[str | bytes]:
        return list(await self._redis.lrange(key, start, stop))

    async def delete(self, key: str) -> int:
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.llen(key)
            pipe.delete(key)
            length, _ = await pipe.execute()
        return int(length or 0)
