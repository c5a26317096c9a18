from __future__ import annotations

from redis import Redis
from redis import asyncio as aioredis
from redis.connection import ConnectionPool

from specyf.core.config import settings

_pool: ConnectionPool | None = None


def get_redis() -> Redis:
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(settings.redis_url, decode_responses=True)
    return Redis(connection_pool=_pool)


def get_async_redis() -> aioredis.Redis:
    # pub/sub holds its connection for the life of a stream, so it gets its own client
    return aioredis.Redis.from_url(settings.redis_url, decode_responses=True)
