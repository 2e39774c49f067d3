"""Live subscriber registry and push-event broadcaster."""

import asyncio
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID, uuid4

from food_log.domain.errors import ChannelClosedError
from food_log.domain.events import EventKind, PushEvent

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Subscriber:
    """One open push channel with its pending events."""

    id: UUID = field(default_factory=uuid4)
    closed: bool = False
    _queue: "asyncio.Queue[PushEvent | None]" = field(
        default_factory=asyncio.Queue, repr=False
    )

    def deliver(self, event: PushEvent) -> None:
        """Queue an event, failing if the channel already closed."""
        if self.closed:
            raise ChannelClosedError(f"Subscriber {self.id} is closed")
        self._queue.put_nowait(event)

    async def next_event(self) -> PushEvent | None:
        """Wait for the next event; ``None`` once the channel has closed."""
        return await self._queue.get()

    def drain(self) -> list[PushEvent]:
        """Return queued events without waiting."""
        events: list[PushEvent] = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is not None:
                events.append(event)
        return events

    def close(self) -> None:
        """Close the channel, drop undelivered events and wake the consumer."""
        if self.closed:
            return
        self.closed = True
        dropped = self.drain()
        if dropped:
            logger.debug(
                "Dropped undelivered events",
                extra={"subscriber_id": str(self.id), "dropped": len(dropped)},
            )
        self._queue.put_nowait(None)


class RegistryListener(Protocol):
    """Observer of subscriber registry changes."""

    def subscriber_added(self, subscriber: Subscriber) -> None:
        """Handle a newly registered subscriber."""

    def subscribers_removed(self, removed: int) -> None:
        """Handle removal of one or more subscribers."""


@dataclass
class SubscriberRegistry:
    """Process-wide set of open push channels.

    The live count is always the size of the registry.
    """

    _subscribers: dict[UUID, Subscriber] = field(default_factory=dict)
    _listeners: list[RegistryListener] = field(default_factory=list)

    def add_listener(self, listener: RegistryListener) -> None:
        """Subscribe to registry changes."""
        self._listeners.append(listener)

    def register(self) -> Subscriber:
        """Admit a new subscriber."""
        subscriber = Subscriber()
        self._subscribers[subscriber.id] = subscriber
        logger.info(
            "Subscriber connected",
            extra={"subscriber_id": str(subscriber.id), "subscriber_count": self.count()},
        )
        for listener in list(self._listeners):
            listener.subscriber_added(subscriber)
        return subscriber

    def unregister(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber; unknown or removed ones are ignored."""
        return self.evict([subscriber]) == 1

    def evict(self, subscribers: Iterable[Subscriber]) -> int:
        """Remove several subscribers and notify listeners once."""
        removed = 0
        for subscriber in subscribers:
            if self._subscribers.pop(subscriber.id, None) is None:
                continue
            subscriber.close()
            removed += 1
            logger.info(
                "Subscriber disconnected",
                extra={"subscriber_id": str(subscriber.id)},
            )
        if removed:
            for listener in list(self._listeners):
                listener.subscribers_removed(removed)
        return removed

    def count(self) -> int:
        """Return the number of open subscribers."""
        return len(self._subscribers)

    def subscribers(self) -> list[Subscriber]:
        """Return a snapshot of the open subscribers."""
        return list(self._subscribers.values())

    @contextmanager
    def subscription(self) -> Iterator[Subscriber]:
        """Register for the duration of the block, always unregistering."""
        subscriber = self.register()
        try:
            yield subscriber
        finally:
            self.unregister(subscriber)

    def close_all(self) -> int:
        """Close every channel, e.g. on server shutdown."""
        return self.evict(self.subscribers())


@dataclass
class Broadcaster:
    """Emits push events to every registered subscriber."""

    registry: SubscriberRegistry

    def __post_init__(self) -> None:
        self.registry.add_listener(self)

    def emit(self, kind: EventKind) -> int:
        """Deliver an event to all subscribers and return how many received it."""
        if kind is EventKind.CONNECTED:
            raise ValueError("connected is only sent to a new subscriber")
        client_count = (
            self.registry.count() if kind is EventKind.CLIENT_COUNT_CHANGED else None
        )
        event = PushEvent(kind=kind, client_count=client_count)
        delivered = 0
        failed: list[Subscriber] = []
        for subscriber in self.registry.subscribers():
            try:
                subscriber.deliver(event)
            except ChannelClosedError:
                failed.append(subscriber)
                continue
            delivered += 1
        logger.debug(
            "Push event broadcast",
            extra={
                "event": kind.value,
                "client_count": event.client_count,
                "delivered": delivered,
            },
        )
        if failed:
            logger.debug(
                "Evicting closed subscribers",
                extra={"event": kind.name, "failed": len(failed)},
            )
            self.registry.evict(failed)
        return delivered

    def subscriber_added(self, subscriber: Subscriber) -> None:
        """Acknowledge the new subscriber, then announce the new count."""
        subscriber.deliver(PushEvent(kind=EventKind.CONNECTED))
        self.emit(EventKind.CLIENT_COUNT_CHANGED)

    def subscribers_removed(self, removed: int) -> None:
        """Announce the new count after removals."""
        self.emit(EventKind.CLIENT_COUNT_CHANGED)
