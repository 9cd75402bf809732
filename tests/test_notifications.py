"""Tests for the notification bus."""

import pytest

pytestmark = pytest.mark.fast

from headwatch.schemas import HeadChangedEvent
from headwatch.watcher.notifications import HEAD_CHANGED, UPDATE, NotificationBus


@pytest.fixture
def bus():
    return NotificationBus()


@pytest.fixture
def event():
    return HeadChangedEvent(repo_root_id="/repo/.git", head="main", old_head=None, init=True)


class TestNotificationBus:
    """Tests for NotificationBus."""

    def test_delivers_in_subscription_order(self, bus, event):
        seen = []
        bus.subscribe(HEAD_CHANGED, lambda e: seen.append(("first", e.head)))
        bus.subscribe(HEAD_CHANGED, lambda e: seen.append(("second", e.head)))

        bus.emit_head_changed(event)

        assert seen == [("first", "main"), ("second", "main")]

    def test_update_has_no_payload(self, bus):
        seen = []
        bus.subscribe(UPDATE, lambda: seen.append("update"))

        bus.emit_update()

        assert seen == ["update"]
        assert bus.emitted[UPDATE] == 1

    def test_unsubscribe(self, bus, event):
        seen = []
        unsubscribe = bus.subscribe(HEAD_CHANGED, seen.append)

        unsubscribe()
        unsubscribe()  # second call is harmless
        bus.emit_head_changed(event)

        assert seen == []
        assert bus.emitted[HEAD_CHANGED] == 1

    def test_failing_subscriber_does_not_stop_delivery(self, bus, event):
        seen = []

        def broken(_):
            raise RuntimeError("subscriber bug")

        bus.subscribe(HEAD_CHANGED, broken)
        bus.subscribe(HEAD_CHANGED, seen.append)

        bus.emit_head_changed(event)

        assert seen == [event]

    def test_unknown_kind_rejected(self, bus):
        with pytest.raises(ValueError):
            bus.subscribe("BufferAttached", print)
