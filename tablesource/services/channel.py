from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

"""Synchronous push channels (observer registry).

Channel is a hot, multicast source: publish() calls every current observer
before it returns, in subscription order. A channel created with an initial
value also replays its latest value to each new subscriber, which is how the
row-sequence channel hands the current rows to a viewer that connects late.

MappedObservable applies a function at delivery time, per subscriber. The data
source uses it to window the row sequence for each connected viewer.
"""

__all__ = [
    "Observer",
    "Subscription",
    "Observable",
    "Channel",
    "MappedObservable",
]

T = TypeVar("T")
R = TypeVar("R")

Observer = Callable[[T], None]

_NO_VALUE: Any = object()


class Subscription:
    """Handle returned by subscribe(); unsubscribe() is idempotent."""

    def __init__(self, teardown: Callable[[], None]) -> None:
        self._teardown: Callable[[], None] | None = teardown

    @property
    def closed(self) -> bool:
        return self._teardown is None

    def unsubscribe(self) -> None:
        teardown, self._teardown = self._teardown, None
        if teardown is not None:
            teardown()


class Observable(Generic[T]):
    def subscribe(self, observer: Observer[T]) -> Subscription:  # pragma: no cover (interface)
        raise NotImplementedError

    def map(self, fn: Callable[[T], R]) -> MappedObservable[T, R]:
        return MappedObservable(self, fn)


class _Entry(Generic[T]):
    __slots__ = ("callback",)

    def __init__(self, callback: Observer[T]) -> None:
        self.callback = callback


class Channel(Observable[T]):
    """Hot multicast channel, optionally replaying its latest value."""

    def __init__(self, initial: T = _NO_VALUE) -> None:
        self._entries: list[_Entry[T]] = []
        self._replay = initial is not _NO_VALUE
        self._value = initial

    @property
    def value(self) -> T:
        if self._value is _NO_VALUE:
            raise LookupError("channel has no value")
        return self._value

    @property
    def has_value(self) -> bool:
        return self._value is not _NO_VALUE

    @property
    def observer_count(self) -> int:
        return len(self._entries)

    def subscribe(self, observer: Observer[T]) -> Subscription:
        entry = _Entry(observer)
        self._entries.append(entry)
        if self._replay:
            observer(self._value)
        return Subscription(lambda: self._remove(entry))

    def publish(self, value: T) -> None:
        if self._replay:
            self._value = value
        # Observers may unsubscribe while being notified
        for entry in list(self._entries):
            entry.callback(value)

    def _remove(self, entry: _Entry[T]) -> None:
        if entry in self._entries:
            self._entries.remove(entry)


class MappedObservable(Observable[R], Generic[T, R]):
    """Derived view applying ``fn`` to every value of ``source``.

    The view remembers the subscriptions it created so close() can stop all
    further delivery through it at once.
    """

    def __init__(self, source: Observable[T], fn: Callable[[T], R]) -> None:
        self._source = source
        self._fn = fn
        self._subscriptions: list[Subscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, observer: Observer[R]) -> Subscription:
        if self._closed:
            return Subscription(lambda: None)
        inner = self._source.subscribe(lambda value: observer(self._fn(value)))

        def teardown() -> None:
            inner.unsubscribe()
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

        sub = Subscription(teardown)
        self._subscriptions.append(sub)
        return sub

    def close(self) -> None:
        self._closed = True
        subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            sub.unsubscribe()
