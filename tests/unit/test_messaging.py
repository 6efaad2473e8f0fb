"""
Messaging Infrastructure Unit Tests

EventBus handler dispatch, Redis publishing against a mocked client and the
composite publisher.
"""

import json
import unittest
from unittest.mock import Mock, patch
from datetime import datetime

import redis

from parkingsystem.domain.models import (
    ParkingSpot, ParkingType, Ticket, VehicleEnteredEvent
)
from parkingsystem.infrastructure.messaging import (
    EventBus, RedisEventPublisher, CompositeEventPublisher, DEFAULT_CHANNEL
)


def make_event():
    ticket = Ticket(
        vehicle_reg_number="ABC123",
        parking_spot=ParkingSpot(1, ParkingType.CAR, False),
        in_time=datetime(2024, 3, 15, 10, 0, 0)
    )
    return VehicleEnteredEvent(ticket)


class TestEventBus(unittest.TestCase):
    """Unit tests for EventBus"""

    def setUp(self):
        self.event_bus = EventBus()
        self.event = make_event()

    def test_publish_to_subscribers(self):
        handler = Mock()
        other = Mock()
        self.event_bus.subscribe("vehicle.entered", handler)
        self.event_bus.subscribe("vehicle.exited", other)

        self.assertTrue(self.event_bus.publish(self.event))

        handler.assert_called_once_with(self.event)
        other.assert_not_called()

    def test_wildcard_subscriber(self):
        handler = Mock()
        self.event_bus.subscribe("*", handler)

        self.event_bus.publish(self.event)

        handler.assert_called_once_with(self.event)

    def test_publish_without_subscribers(self):
        self.assertTrue(self.event_bus.publish(self.event))

    def test_failing_handler_does_not_stop_others(self):
        failing = Mock(side_effect=RuntimeError("boom"))
        handler = Mock()
        self.event_bus.subscribe("vehicle.entered", failing)
        self.event_bus.subscribe("vehicle.entered", handler)

        self.assertFalse(self.event_bus.publish(self.event))
        handler.assert_called_once_with(self.event)

    def test_unsubscribe(self):
        handler = Mock()
        self.event_bus.subscribe("vehicle.entered", handler)
        self.event_bus.unsubscribe("vehicle.entered", handler)
        self.event_bus.unsubscribe("vehicle.exited", handler)

        self.event_bus.publish(self.event)

        handler.assert_not_called()

    def test_clear_subscribers(self):
        handler = Mock()
        self.event_bus.subscribe("*", handler)
        self.event_bus.clear_subscribers()

        self.event_bus.publish(self.event)

        handler.assert_not_called()


class TestRedisEventPublisher(unittest.TestCase):
    """Unit tests for RedisEventPublisher"""

    def setUp(self):
        self.client = Mock()
        self.client.publish.return_value = 1
        self.publisher = RedisEventPublisher(client=self.client)
        self.event = make_event()

    def test_publish_serializes_event(self):
        self.assertTrue(self.publisher.publish(self.event))

        self.client.publish.assert_called_once()
        channel, payload = self.client.publish.call_args[0]
        self.assertEqual(channel, DEFAULT_CHANNEL)
        message = json.loads(payload)
        self.assertEqual(message["event_type"], "vehicle.entered")
        self.assertEqual(message["event_id"], self.event.event_id)
        self.assertEqual(message["data"]["vehicle_reg_number"], "ABC123")

    def test_publish_connection_error(self):
        self.client.publish.side_effect = redis.ConnectionError("connection refused")

        self.assertFalse(self.publisher.publish(self.event))

    def test_client_created_from_url(self):
        with patch("parkingsystem.infrastructure.messaging.redis.Redis.from_url") as from_url:
            publisher = RedisEventPublisher("redis://cache:6379/1", channel="lot-7")

        from_url.assert_called_once_with("redis://cache:6379/1")
        self.assertIs(publisher.redis_client, from_url.return_value)
        self.assertEqual(publisher.channel, "lot-7")

    def test_close(self):
        self.publisher.close()
        self.client.close.assert_called_once()


class TestCompositeEventPublisher(unittest.TestCase):

    def test_publishes_to_all(self):
        first = Mock()
        first.publish.return_value = True
        second = Mock()
        second.publish.return_value = True
        event = make_event()

        self.assertTrue(CompositeEventPublisher([first, second]).publish(event))

        first.publish.assert_called_once_with(event)
        second.publish.assert_called_once_with(event)

    def test_reports_partial_failure(self):
        first = Mock()
        first.publish.return_value = False
        second = Mock()
        second.publish.return_value = True

        self.assertFalse(CompositeEventPublisher([first, second]).publish(make_event()))
        second.publish.assert_called_once()


if __name__ == "__main__":
    unittest.main()
