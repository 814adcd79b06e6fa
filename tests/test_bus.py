"""Session bus fan-out."""

import logging

from yewchat.bus import SessionBus
from yewchat.transport.envelope import message_envelope, users_envelope


def test_publish_reaches_subscribers_in_registration_order():
    bus = SessionBus()
    calls = []
    bus.subscribe(lambda env: calls.append(("first", env.data)))
    bus.subscribe(lambda env: calls.append(("second", env.data)))

    bus.publish(message_envelope("a"))
    bus.publish(message_envelope("b"))

    assert calls == [("first", "a"), ("second", "a"), ("first", "b"), ("second", "b")]


def test_publish_without_subscribers_is_a_no_op():
    SessionBus().publish(users_envelope(["alice"]))


def test_unsubscribe_stops_delivery_and_is_idempotent():
    bus = SessionBus()
    received = []
    unsubscribe = bus.subscribe(received.append)
    assert len(bus) == 1

    unsubscribe()
    unsubscribe()
    bus.publish(message_envelope("late"))

    assert received == []
    assert len(bus) == 0


def test_subscriber_removed_during_publish_still_sees_current_envelope():
    bus = SessionBus()
    received = []
    holder = {}

    def first(env):
        received.append(("first", env.data))
        holder["unsubscribe_second"]()

    bus.subscribe(first)
    holder["unsubscribe_second"] = bus.subscribe(lambda env: received.append(("second", env.data)))

    bus.publish(message_envelope("x"))
    bus.publish(message_envelope("y"))

    assert received == [("first", "x"), ("second", "x"), ("first", "y")]


def test_close_drops_all_subscribers():
    bus = SessionBus()
    received = []
    bus.subscribe(received.append)
    bus.close()
    bus.publish(message_envelope("x"))
    assert received == []


def test_failing_subscriber_does_not_starve_the_rest(caplog):
    bus = SessionBus()
    received = []

    def explode(env):
        raise RuntimeError("subscriber bug")

    bus.subscribe(explode)
    bus.subscribe(received.append)

    with caplog.at_level(logging.ERROR, logger="yewchat.bus"):
        bus.publish(message_envelope("x"))

    assert [env.data for env in received] == ["x"]
    assert len(caplog.records) == 1
    assert caplog.records[0].exc_info is not None
