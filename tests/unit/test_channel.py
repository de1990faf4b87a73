from __future__ import annotations

import pytest

from tablesource.services.channel import Channel


def test_publish_fans_out_in_subscription_order():
    channel: Channel[int] = Channel()
    calls = []
    channel.subscribe(lambda v: calls.append(("first", v)))
    channel.subscribe(lambda v: calls.append(("second", v)))

    channel.publish(1)

    assert calls == [("first", 1), ("second", 1)]


def test_channel_without_initial_value_does_not_replay():
    channel: Channel[int] = Channel()
    channel.publish(1)
    received = []
    channel.subscribe(received.append)
    assert received == []
    assert channel.has_value is False
    with pytest.raises(LookupError):
        channel.value


def test_channel_with_initial_value_replays_latest():
    channel: Channel[int] = Channel(0)
    channel.publish(5)
    received = []
    channel.subscribe(received.append)
    assert received == [5]
    assert channel.value == 5


def test_unsubscribe_is_idempotent():
    channel: Channel[int] = Channel()
    received = []
    sub = channel.subscribe(received.append)
    sub.unsubscribe()
    sub.unsubscribe()
    channel.publish(1)
    assert received == []
    assert sub.closed is True
    assert channel.observer_count == 0


def test_same_callback_subscribed_twice_is_two_subscriptions():
    channel: Channel[int] = Channel()
    received = []
    first = channel.subscribe(received.append)
    channel.subscribe(received.append)
    first.unsubscribe()
    channel.publish(3)
    assert received == [3]


def test_observer_may_unsubscribe_during_publish():
    channel: Channel[int] = Channel()
    received = []
    subs = []

    def once(value: int) -> None:
        received.append(("once", value))
        subs[0].unsubscribe()

    subs.append(channel.subscribe(once))
    channel.subscribe(lambda v: received.append(("always", v)))

    channel.publish(1)
    channel.publish(2)

    assert received == [("once", 1), ("always", 1), ("always", 2)]


def test_map_applies_function_per_delivery():
    channel: Channel[int] = Channel(1)
    received = []
    channel.map(lambda v: v * 10).subscribe(received.append)
    channel.publish(2)
    assert received == [10, 20]


def test_mapped_observable_close_stops_all_its_subscriptions():
    channel: Channel[int] = Channel()
    view = channel.map(str)
    received = []
    view.subscribe(received.append)
    view.subscribe(received.append)

    view.close()
    channel.publish(1)
    view.subscribe(received.append)
    channel.publish(2)

    assert received == []
    assert view.closed is True
    assert channel.observer_count == 0


def test_observer_errors_propagate_to_publisher():
    channel: Channel[int] = Channel()

    def broken(_: int) -> None:
        raise RuntimeError("boom")

    channel.subscribe(broken)
    with pytest.raises(RuntimeError):
        channel.publish(1)


def test_mapped_observable_forgets_unsubscribed_observers():
    channel: Channel[int] = Channel(0)
    view = channel.map(str)
    kept = []
    view.subscribe(kept.append)

    for _ in range(100):
        view.subscribe(lambda _: None).unsubscribe()

    assert view.subscription_count == 1
    assert channel.observer_count == 1
    channel.publish(1)
    assert kept == ["0", "1"]
