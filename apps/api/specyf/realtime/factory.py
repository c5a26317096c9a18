from __future__ import annotations

from functools import lru_cache

from specyf.core.config import settings
from specyf.realtime.base import Broker


def create_broker(backend: str | None = None) -> Broker:
    selected_backend = (backend or settings.realtime_backend).strip().lower()
    if selected_backend == "memory":
        from specyf.realtime.memory import MemoryBroker

        return MemoryBroker()
    if selected_backend == "redis":
        from specyf.realtime.redis import RedisBroker

        return RedisBroker()
    raise ValueError(f"unsupported realtime backend: {selected_backend}")


@lru_cache(maxsize=1)
def get_broker() -> Broker:
    return create_broker()
