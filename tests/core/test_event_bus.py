"""Tests for EventBus."""

import logging

from core.event_bus import EventBus
from core.events import Notification


class TestSubscribeAndPublish:

    def test_subscriber_receives_the_published_object(self):
        bus = EventBus()
        received = []
        bus.subscribe("Notification", received.append)

        event = Notification.create("Success", "Invoice created successfully")
        assert bus.publish(event) == 1

        assert received == [event]

    def test_class_and_name_share_a_subscription_list(self):
        bus = EventBus()
        calls = []
        bus.subscribe(Notification, lambda e: calls.append("by class"))
        bus.subscribe("Notification", lambda e: calls.append("by name"))

        bus.publish(Notification.create("Success"))

        assert calls == ["by class", "by name"]

    def test_nobody_listening(self):
        assert EventBus().publish(Notification.create("Success")) == 0


class TestUnsubscribe:

    def test_removed_subscriber_stops_receiving(self):
        bus = EventBus()
        received = []
        bus.subscribe(Notification, received.append)

        assert bus.unsubscribe(Notification, received.append) is True
        bus.publish(Notification.create("Success"))

        assert received == []

    def test_unknown_subscriber(self):
        assert EventBus().unsubscribe("Notification", print) is False

    def test_subscriber_can_remove_itself_while_delivering(self):
        bus = EventBus()
        calls = []

        def once(event):
            calls.append(event.title)
            bus.unsubscribe(Notification, once)

        bus.subscribe(Notification, once)
        bus.publish(Notification.create("first"))
        bus.publish(Notification.create("second"))

        assert calls == ["first"]


class TestSubscriberErrors:

    def test_raising_subscriber_is_logged_and_skipped(self, caplog):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe("Notification", broken)
        bus.subscribe("Notification", received.append)

        with caplog.at_level(logging.ERROR, logger="core.event_bus"):
            delivered = bus.publish(Notification.create("Success"))

        assert delivered == 1
        assert len(received) == 1
        assert "Subscriber broken raised on Notification" in caplog.text


class TestNotification:

    def test_failure_is_destructive(self):
        n = Notification.failure("Failed to create invoice")

        assert n.title == "Error"
        assert n.description == "Failed to create invoice"
        assert n.destructive is True

    def test_events_get_unique_ids(self):
        assert Notification.create("a").event_id != Notification.create("a").event_id
