"""
Event Bus Tests
================

Unit tests for the in-memory and Redis event buses.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from django.test import SimpleTestCase, override_settings

from infrastructure.events import InMemoryEventBus, RedisEventBus
from infrastructure.events import factory as event_factory

pytestmark = pytest.mark.unit


class InMemoryEventBusTest(SimpleTestCase):
    def setUp(self):
        self.bus = InMemoryEventBus()

    def test_publish_records_envelope(self):
        self.bus.publish("order.placed", {"order_number": "ORD-12345"})

        self.assertEqual(len(self.bus.published), 1)
        event = self.bus.published[0]
        self.assertEqual(event["event_type"], "order.placed")
        self.assertEqual(event["payload"], {"order_number": "ORD-12345"})
        self.assertIn("occurred_at", event)

    def test_each_event_gets_its_own_id(self):
        self.bus.publish("order.placed", {})
        self.bus.publish("order.placed", {})

        first, second = (event["event_id"] for event in self.bus.published)
        self.assertTrue(first)
        self.assertNotEqual(first, second)

    def test_handlers_receive_matching_events_once(self):
        handler = MagicMock()
        self.bus.subscribe("order.placed", handler)
        self.bus.subscribe("order.placed", handler)

        self.bus.publish("order.placed", {"order_number": "ORD-1"})
        self.bus.publish("order.cancelled", {"order_number": "ORD-1"})

        handler.assert_called_once()
        self.assertEqual(handler.call_args.args[0]["event_type"], "order.placed")

    def test_handler_error_does_not_propagate(self):
        failing = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        self.bus.subscribe("order.placed", failing)
        self.bus.subscribe("order.placed", healthy)

        with self.assertLogs("infrastructure.events.memory_event_bus", "ERROR"):
            self.bus.publish("order.placed", {})

        healthy.assert_called_once()

    def test_clear(self):
        self.bus.publish("order.placed", {})
        self.bus.clear()

        self.assertEqual(self.bus.published, [])


@patch("infrastructure.events.redis_event_bus.redis")
class RedisEventBusTest(SimpleTestCase):
    def test_publish_to_event_channel(self, mock_redis):
        bus = RedisEventBus("redis://test:6379/0")

        bus.publish("order.completed", {"order_number": "ORD-12345"})

        channel, body = mock_redis.from_url.return_value.publish.call_args.args
        self.assertEqual(channel, "events.order.completed")
        self.assertEqual(json.loads(body)["payload"], {"order_number": "ORD-12345"})
        self.assertIn("event_id", json.loads(body))

    def test_publish_failure_is_logged(self, mock_redis):
        mock_redis.from_url.return_value.publish.side_effect = ConnectionError("down")
        bus = RedisEventBus("redis://test:6379/0")

        with self.assertLogs("infrastructure.events.redis_event_bus", "ERROR"):
            bus.publish("order.completed", {})

    def test_received_message_reaches_handlers(self, mock_redis):
        bus = RedisEventBus("redis://test:6379/0")
        handler = MagicMock()
        bus.subscribe("order.placed", handler)
        envelope = {"event_type": "order.placed", "occurred_at": "now", "payload": {"order_number": "ORD-1"}}

        bus._handle_message({"type": "message", "data": json.dumps(envelope)})

        handler.assert_called_once_with(envelope)


class EventBusFactoryTest(SimpleTestCase):
    def setUp(self):
        event_factory._event_bus_instance = None

    def tearDown(self):
        event_factory._event_bus_instance = None

    @override_settings(INFRASTRUCTURE={"EVENT_BUS_BACKEND": "memory"})
    def test_singleton(self):
        bus = event_factory.get_event_bus()

        self.assertIsInstance(bus, InMemoryEventBus)
        self.assertIs(bus, event_factory.get_event_bus())

    @override_settings(INFRASTRUCTURE={"EVENT_BUS_BACKEND": "kafka"})
    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            event_factory.get_event_bus()
