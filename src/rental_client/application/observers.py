"""Subscribe/unsubscribe handles for in-process event fan-out."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], Awaitable[None]]


class Subscription:
    """Handle returned at subscription time. ``dispose()`` is idempotent."""

    __slots__ = ("_dispose", "_disposed")

    def __init__(self, dispose: Callable[[], None]) -> None:
        self._dispose = dispose
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._dispose()


class SubscriptionGroup:
    """Owns several subscriptions and disposes them in reverse order."""

    def __init__(self) -> None:
        self._items: list[Subscription] = []

    def add(self, subscription: Subscription) -> Subscription:
        self._items.append(subscription)
        return subscription

    def dispose(self) -> None:
        while self._items:
            self._items.pop().dispose()

    def __len__(self) -> int:
        return len(self._items)


class Observable(Generic[T]):
    """Ordered list of async listeners for one kind of value."""

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._listeners: list[Listener[T]] = []

    def subscribe(self, listener: Listener[T]) -> Subscription:
        self._listeners.append(listener)

        def _remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return Subscription(_remove)

    async def emit(self, value: T) -> None:
        # Snapshot: listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            try:
                await listener(value)
            except Exception:
                logger.exception("Listener failed for %s", self._name or "event")

    def __len__(self) -> int:
        return len(self._listeners)


class EventHub:
    """Named observables, one per event name."""

    def __init__(self) -> None:
        self._channels: dict[str, Observable[Any]] = {}

    def channel(self, event: str) -> Observable[Any]:
        if event not in self._channels:
            self._channels[event] = Observable(event)
        return self._channels[event]

    def subscribe(self, event: str, listener: Listener[Any]) -> Subscription:
        return self.channel(event).subscribe(listener)

    async def emit(self, event: str, value: Any) -> None:
        observable = self._channels.get(event)
        if observable is not None:
            await observable.emit(value)

    def listener_count(self, event: str) -> int:
        observable = self._channels.get(event)
        return len(observable) if observable is not None else 0
