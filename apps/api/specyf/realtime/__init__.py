from __future__ import annotations

from typing import Any

import structlog
from redis.exceptions import RedisError

from specyf.realtime.base import Broker, Subscription, event_channel
from specyf.realtime.factory import create_broker, get_broker

logger = structlog.get_logger(__name__)


def publish_event_update(event_id: Any, kind: str, payload: dict[str, Any]) -> None:
    """Notify stream subscribers of an event. Delivery is best effort."""
    message = {"type": kind, "event_id": str(event_id), "payload": payload}
    try:
        get_broker().publish(event_channel(event_id), message)
    except RedisError as exc:
        # callers have already committed
        logger.warning("realtime_publish_failed", event_id=str(event_id), type=kind, error=str(exc))


__all__ = ["Broker", "Subscription", "create_broker", "event_channel", "get_broker", "publish_event_update"]
