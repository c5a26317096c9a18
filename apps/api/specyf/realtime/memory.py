from __future__ import annotations

import asyncio
import threading
from collections import defaultdict
from typing import Any

from specyf.realtime.base import Broker, Subscription


class MemorySubscription(Subscription):
    def __init__(self, broker: MemoryBroker, channel: str) -> None:
        self._broker = broker
        self._channel = channel
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    def deliver(self, message: dict[str, Any]) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, message)

    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        # a cancelled Queue.get leaves queued items in place
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broker._remove(self._channel, self)


class MemoryBroker(Broker):
    """Single-process broker for local runs and tests.

    Publishers may run in worker threads (sync route handlers), so delivery
    goes through the subscriber's own event loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, set[MemorySubscription]] = defaultdict(set)
        self.published: list[tuple[str, dict[str, Any]]] = []

    def publish(self, channel: str, message: dict[str, Any]) -> None:
        with self._lock:
            self.published.append((channel, message))
            targets = list(self._subscribers.get(channel, ()))
        for subscription in targets:
            subscription.deliver(message)

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, ()))

    async def subscribe(self, channel: str) -> MemorySubscription:
        subscription = MemorySubscription(self, channel)
        with self._lock:
            self._subscribers[channel].add(subscription)
        return subscription

    def _remove(self, channel: str, subscription: MemorySubscription) -> None:
        with self._lock:
            self._subscribers[channel].discard(subscription)
            if not self._subscribers[channel]:
                del self._subscribers[channel]

    def reset(self) -> None:
        with self._lock:
            self.published.clear()
