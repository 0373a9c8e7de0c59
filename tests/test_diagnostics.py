"""Tests for debug-mode diagnostics and the pypubsub diagnostic channel."""

import asyncio
from unittest.mock import Mock

import pytest

from msgbus import (
    AsyncioScheduler,
    Bus,
    BusConfig,
    DiagnosticChannel,
    DuplicateSubscriptionError,
    InvalidCallbackError,
    InvalidTopicError,
    SubscriberFaultError,
)


class TestDebugDiagnostics:
    def test_invalid_topic_on_subscribe_is_deferred(self, debug_bus, scheduler, diagnostics):
        assert debug_bus.subscribe("", Mock()) is None
        assert diagnostics == []

        scheduler.run_pending()
        assert len(diagnostics) == 1
        assert isinstance(diagnostics[0], InvalidTopicError)
        assert diagnostics[0].kind == "invalid_topic"
        assert diagnostics[0].topic == ""

    def test_invalid_topic_on_publish(self, debug_bus, scheduler, diagnostics):
        assert debug_bus.publish(None, "data") is None
        assert debug_bus.publish_sync(None, "data") is None
        scheduler.run_pending()
        assert [type(d) for d in diagnostics] == [InvalidTopicError, InvalidTopicError]

    def test_invalid_callback(self, debug_bus, scheduler, diagnostics):
        debug_bus.subscribe("A", None)
        scheduler.run_pending()
        assert len(diagnostics) == 1
        assert isinstance(diagnostics[0], InvalidCallbackError)
        assert diagnostics[0].topic == "A"

    def test_duplicate_subscription(self, debug_bus, scheduler, diagnostics):
        spy = Mock()
        debug_bus.subscribe("B", spy)
        debug_bus.subscribe("B", spy)
        scheduler.run_pending()
        assert len(diagnostics) == 1
        assert isinstance(diagnostics[0], DuplicateSubscriptionError)
        assert debug_bus.get_subscribers_for_message("B") == [spy]

    def test_subscriber_fault_reported_after_sync_delivery(self, debug_bus, scheduler, diagnostics):
        original = RuntimeError("some error")
        broken = Mock(side_effect=original)
        spy = Mock()
        debug_bus.subscribe("A", broken)
        debug_bus.subscribe("A", spy)

        debug_bus.publish_sync("A", "payload")
        spy.assert_called_once_with("A", "payload")
        assert diagnostics == []

        scheduler.run_pending()
        assert len(diagnostics) == 1
        fault = diagnostics[0]
        assert isinstance(fault, SubscriberFaultError)
        assert fault.original is original
        assert fault.__cause__ is original
        assert fault.subscriber is broken
        assert fault.topic == "A"

    def test_subscriber_fault_in_deferred_delivery(self, debug_bus, scheduler, diagnostics):
        debug_bus.subscribe("A", Mock(side_effect=KeyError("missing")))
        debug_bus.publish("A", 1)

        # delivery and the diagnostic it raises both run in the same drain
        assert scheduler.run_pending() == 2
        assert len(diagnostics) == 1
        assert isinstance(diagnostics[0], SubscriberFaultError)

    def test_unsubscribe_misses_are_not_diagnosed(self, debug_bus, scheduler, diagnostics):
        assert debug_bus.unsubscribe("unknown", Mock()) is False
        assert scheduler.pending == 0
        assert diagnostics == []

    def test_no_diagnostics_without_debug_mode(self, bus, scheduler):
        received = []
        bus.on_diagnostic(lambda diagnostic: received.append(diagnostic))
        bus.subscribe("", Mock())
        bus.subscribe("A", None)
        spy = Mock(side_effect=RuntimeError("x"))
        bus.subscribe("A", spy)
        bus.subscribe("A", spy)
        bus.publish_sync("A", 1)

        assert scheduler.pending == 0
        assert received == []

    def test_unhandled_diagnostic_surfaces_from_scheduler(self, scheduler):
        bus = Bus(BusConfig(debug_mode=True), scheduler=scheduler)
        bus.subscribe("", Mock())
        with pytest.raises(InvalidTopicError):
            scheduler.run_pending()

    def test_unhandled_diagnostic_reaches_loop_exception_handler(self):
        captured = []

        async def scenario():
            loop = asyncio.get_running_loop()
            loop.set_exception_handler(lambda _loop, context: captured.append(context))
            bus = Bus(BusConfig(debug_mode=True), scheduler=AsyncioScheduler())
            assert bus.publish_sync("", "data") is None
            await asyncio.sleep(0)

        asyncio.run(scenario())
        assert len(captured) == 1
        assert isinstance(captured[0]["exception"], InvalidTopicError)


class TestDiagnosticChannel:
    def test_report_delivers_to_every_listener(self):
        channel = DiagnosticChannel()
        first, second = [], []
        channel.subscribe(lambda diagnostic: first.append(diagnostic))
        channel.subscribe(lambda diagnostic: second.append(diagnostic))

        error = InvalidTopicError("bad", topic="")
        channel.report(error)
        assert first == [error]
        assert second == [error]

    def test_failing_listener_is_logged_and_others_still_notified(self, caplog):
        channel = DiagnosticChannel()
        received = []

        def broken(diagnostic):
            raise RuntimeError("listener failure")

        channel.subscribe(broken)
        channel.subscribe(lambda diagnostic: received.append(diagnostic))

        channel.report(InvalidTopicError("bad", topic=""))
        assert len(received) == 1
        assert "Diagnostic listener" in caplog.text

    def test_unsubscribe(self):
        channel = DiagnosticChannel()
        received = []

        def listener(diagnostic):
            received.append(diagnostic)

        sub = channel.subscribe(listener)
        assert channel.has_listeners() is True
        assert sub.unsubscribe() is True
        assert sub.unsubscribe() is False
        assert channel.has_listeners() is False

        with pytest.raises(InvalidTopicError):
            channel.report(InvalidTopicError("bad", topic=""))
        assert received == []

    def test_channels_are_independent(self):
        first_channel = DiagnosticChannel()
        second_channel = DiagnosticChannel()
        received = []
        first_channel.subscribe(lambda diagnostic: received.append(diagnostic))

        assert second_channel.has_listeners() is False
        with pytest.raises(InvalidCallbackError):
            second_channel.report(InvalidCallbackError("bad", topic="A"))
        assert received == []


class TestDiagnosticsWithoutRunningLoop:
    """debug bus on the default scheduler, called outside an event loop"""

    def test_failing_subscriber_does_not_stop_sync_delivery(self, caplog):
        bus = Bus(BusConfig(debug_mode=True))
        spy = Mock()
        bus.subscribe("A", Mock(side_effect=RuntimeError("boom")))
        bus.subscribe("A", spy)

        assert bus.publish_sync("A", 1) is True
        spy.assert_called_once_with("A", 1)
        assert "Could not defer bus diagnostic [subscriber_fault]" in caplog.text

    def test_invalid_subscribe_does_not_raise(self, caplog):
        bus = Bus(BusConfig(debug_mode=True))
        assert bus.subscribe("", Mock()) is None
        assert bus.subscribe("A", None) is None
        assert "Could not defer bus diagnostic [invalid_topic]" in caplog.text
        assert "Could not defer bus diagnostic [invalid_callback]" in caplog.text
