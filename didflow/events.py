"""
Agent event channels.

An agent announces each state change of its records to a webhook. Whatever
receives those webhooks hands the payload to the agent's EventChannel; flows
subscribe to the channel and wait on it with a bound.
"""

import queue
import threading
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from didflow.logging import get_logger
from didflow.types.events import Event, EventType

logger = get_logger("events")

EventFilter = Callable[[Event], bool]


def parse_webhook_event(payload: dict[str, Any]) -> Event:
    """
    Build an Event from a webhook payload.

    Payload format: {"id": ..., "ts": ISO-8601, "type": ..., "data": {...}}

    Raises:
        ValueError: If the payload type is not a known event type
    """
    ts_raw = payload.get("ts")
    if ts_raw:
        ts = datetime.fromisoformat(ts_raw.replace("Z", "+00:00"))
    else:
        ts = datetime.now(timezone.utc)

    return Event(
        id=payload.get("id") or str(uuid.uuid4()),
        type=EventType(payload["type"]),
        ts=ts,
        data=payload.get("data") or {},
    )


class Subscription:
    """
    A cancellable, filtered view onto an EventChannel.

    Only events published after the subscription was opened are delivered.
    Use as a context manager so the subscription is cancelled on exit.
    """

    def __init__(
        self,
        channel: "EventChannel",
        types: frozenset[EventType] | None,
        predicate: EventFilter | None,
    ) -> None:
        self._channel = channel
        self._types = types
        self._predicate = predicate
        self._queue: "queue.Queue[Event]" = queue.Queue()
        self.cancelled = False

    def matches(self, event: Event) -> bool:
        if self._types is not None and event.type not in self._types:
            return False
        return self._predicate is None or self._predicate(event)

    def _offer(self, event: Event) -> None:
        if not self.cancelled and self.matches(event):
            self._queue.put(event)

    def get(self, timeout: float | None = None) -> Event | None:
        """
        Wait for the next matching event.

        Args:
            timeout: Seconds to wait; None waits forever, 0 does not block

        Returns:
            The event, or None if nothing arrived in time or the subscription is cancelled
        """
        if self.cancelled:
            return None
        try:
            if timeout is not None and timeout <= 0:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[Event]:
        """Return every event already queued without blocking."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def cancel(self) -> None:
        """Stop receiving events."""
        self.cancelled = True
        self._channel._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *args: Any) -> None:
        self.cancel()


class EventChannel:
    """
    Thread-safe fan-out of one agent's events to its subscriptions.

    Example:
        ```python
        channel = EventChannel("Acme")
        with channel.subscribe(EventType.CONNECTION_UPDATED) as sub:
            ...  # trigger the exchange
            event = sub.get(timeout=5.0)
        ```
    """

    def __init__(self, name: str, history_size: int = 256) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []
        self._history: list[Event] = []
        self._history_size = history_size

    def subscribe(
        self,
        types: EventType | Iterable[EventType] | None = None,
        predicate: EventFilter | None = None,
    ) -> Subscription:
        """
        Open a subscription.

        Args:
            types: Event type or types to receive (default: all)
            predicate: Further filter on the event
        """
        if isinstance(types, EventType):
            type_set: frozenset[EventType] | None = frozenset({types})
        elif types is None:
            type_set = None
        else:
            type_set = frozenset(types)

        subscription = Subscription(self, type_set, predicate)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: Event) -> None:
        """Deliver an event to every open subscription."""
        with self._lock:
            self._history.append(event)
            if len(self._history) > self._history_size:
                del self._history[0]
            subscriptions = list(self._subscriptions)

        logger.debug(f"{self.name} <- {event.type.value} {event.data.get('thid', '')}")
        for subscription in subscriptions:
            subscription._offer(event)

    def publish_payload(self, payload: dict[str, Any]) -> Event:
        """Parse a raw webhook payload and publish it."""
        event = parse_webhook_event(payload)
        self.publish(event)
        return event

    def history(self, types: EventType | Iterable[EventType] | None = None) -> list[Event]:
        """Events published so far (most recent last), optionally of given types."""
        with self._lock:
            events = list(self._history)
        if types is None:
            return events
        wanted = {types} if isinstance(types, EventType) else set(types)
        return [event for event in events if event.type in wanted]

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)


__all__ = [
    "EventChannel",
    "Subscription",
    "parse_webhook_event",
]
