# File: parkingsystem/infrastructure/messaging.py
"""
Messaging Infrastructure for Parking System

Parking domain events (vehicle entered, vehicle exited) leave the service
through a publisher:
1. EventBus - in-process publish/subscribe, handlers keyed by event type
2. RedisEventPublisher - Redis Pub/Sub, events serialised as JSON
3. CompositeEventPublisher - fans an event out to several publishers

Publishers never raise into the parking flow: a failed publish is logged and
reported as False.
"""

from typing import Callable, Dict, List, Optional, Any
import logging
import json

import redis

from ..domain.models import DomainEvent


EventHandler = Callable[[DomainEvent], None]

DEFAULT_CHANNEL = "parking-events"
ALL_EVENTS = "*"


# ============================================================================
# IN-PROCESS EVENT BUS
# ============================================================================

class EventBus:
    """
    Synchronous in-process event bus

    Handlers subscribe to an event type ("vehicle.entered") or to every
    event ("*"). A failing handler is logged and does not stop the others.
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type"""
        self._handlers.setdefault(event_type, []).append(handler)
        self._logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """Unsubscribe a handler from an event type"""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: DomainEvent) -> bool:
        """Deliver an event to its handlers; False if any handler failed"""
        handlers = self._handlers.get(event.event_type, []) + self._handlers.get(ALL_EVENTS, [])
        delivered = True
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(f"Error handling event {event.event_type}: {e}")
                delivered = False
        self._logger.debug(f"Published {event.event_type} to {len(handlers)} handlers")
        return delivered

    def clear_subscribers(self) -> None:
        """Clear all subscribers (for testing)"""
        self._handlers.clear()


# ============================================================================
# REDIS PUBLISHER
# ============================================================================

class RedisEventPublisher:
    """Redis Pub/Sub publisher for parking events"""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        channel: str = DEFAULT_CHANNEL,
        client: Optional[redis.Redis] = None,
        **kwargs: Any
    ):
        self.redis_url = redis_url
        self.channel = channel
        self._logger = logging.getLogger(self.__class__.__name__)
        self.redis_client = client or redis.Redis.from_url(redis_url, **kwargs)

    def publish(self, event: DomainEvent) -> bool:
        """Publish an event to the channel"""
        try:
            message_json = json.dumps(event.to_dict(), default=str)
            receivers = self.redis_client.publish(self.channel, message_json)
            self._logger.debug(
                f"Published {event.event_type} ({event.event_id}) to {self.channel}, "
                f"{receivers} receivers"
            )
            return True
        except redis.RedisError as e:
            self._logger.error(f"Error publishing to Redis: {e}")
            return False

    def close(self) -> None:
        """Close Redis connection"""
        self.redis_client.close()
        self._logger.info("Redis publisher closed")


class CompositeEventPublisher:
    """Publishes every event to all wrapped publishers"""

    def __init__(self, publishers: List[Any]):
        self.publishers = list(publishers)

    def publish(self, event: DomainEvent) -> bool:
        results = [publisher.publish(event) for publisher in self.publishers]
        return all(results)
