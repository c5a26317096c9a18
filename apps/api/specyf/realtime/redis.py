from __future__ import annotations

import asyncio
import json
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.client import PubSub

from specyf.realtime.base import Broker, Subscription
from specyf.redis_client import get_async_redis, get_redis


class RedisSubscription(Subscription):
    def __init__(self, client: Redis, pubsub: PubSub, channel: str) -> None:
        self._client = client
        self._pubsub = pubsub
        self._channel = channel

    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            remaining = None if deadline is None else max(0.0, deadline - loop.time())
            raw = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=remaining)
            if raw is not None and raw.get("type") == "message":
                return json.loads(raw["data"])
            if deadline is not None and loop.time() >= deadline:
                return None

    async def close(self) -> None:
        try:
            await self._pubsub.unsubscribe(self._channel)
        finally:
            await self._pubsub.aclose()
            await self._client.aclose()


class RedisBroker(Broker):
    """Redis pub/sub. Messages are JSON strings; subscribers decode them."""

    def publish(self, channel: str, message: dict[str, Any]) -> None:
        get_redis().publish(channel, json.dumps(message, separators=(",", ":"), default=str))

    async def subscribe(self, channel: str) -> RedisSubscription:
        client = get_async_redis()
        pubsub = client.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(channel)
        return RedisSubscription(client, pubsub, channel)
