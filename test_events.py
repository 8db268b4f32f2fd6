"""
test the keyed event bus.

run with: pytest test_events.py -v
"""

import logging

from linkbubble.events import EventBus


class TestEventBus:

    def test_dispatch_in_registration_order(self):
        bus = EventBus()
        calls = []
        bus.on("/p/a", lambda v: calls.append(("first", v)))
        bus.on("/p/a", lambda v: calls.append(("second", v)))

        bus.dispatch("/p/a", 1)

        assert calls == [("first", 1), ("second", 1)]

    def test_topics_are_independent(self):
        bus = EventBus()
        calls = []
        bus.on("/p/a", calls.append)

        bus.dispatch("/p/b", "ignored")
        bus.dispatch("/p/a", "seen")

        assert calls == ["seen"]

    def test_same_listener_registered_once(self):
        bus = EventBus()
        calls = []
        bus.on("/p/a", calls.append)
        bus.on("/p/a", calls.append)

        bus.dispatch("/p/a", 1)

        assert calls == [1]
        assert bus.listener_count("/p/a") == 1

    def test_off_removes_listener(self):
        bus = EventBus()
        calls = []
        bus.on("/p/a", calls.append)
        bus.off("/p/a", calls.append)
        bus.off("/p/a", calls.append)  # unknown listener is fine
        bus.off("/p/unknown", calls.append)

        bus.dispatch("/p/a", 1)

        assert calls == []
        assert bus.listener_count("/p/a") == 0

    def test_removal_during_dispatch_keeps_current_pass(self):
        bus = EventBus()
        calls = []

        def second(value):
            calls.append(("second", value))

        def first(value):
            calls.append(("first", value))
            bus.off("/p/a", second)

        bus.on("/p/a", first)
        bus.on("/p/a", second)

        bus.dispatch("/p/a", 1)
        bus.dispatch("/p/a", 2)

        assert calls == [("first", 1), ("second", 1), ("first", 2)]

    def test_failing_listener_does_not_stop_others(self, caplog):
        bus = EventBus()
        calls = []

        def broken(value):
            raise RuntimeError("listener bug")

        bus.on("/p/a", broken)
        bus.on("/p/a", calls.append)

        with caplog.at_level(logging.ERROR, logger="linkbubble.events"):
            bus.dispatch("/p/a", 1)

        assert calls == [1]
        assert "listener bug" in caplog.text

    def test_clear(self):
        bus = EventBus()
        calls = []
        bus.on("/p/a", calls.append)

        bus.clear()
        bus.dispatch("/p/a", 1)

        assert calls == []
