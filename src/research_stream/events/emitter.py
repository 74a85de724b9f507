"""Observer registry for stream notifications."""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

from research_stream.events.models import Event
from research_stream.utils.logging import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[Event], Any]


def pattern_matches(pattern: str, event_type: str) -> bool:
    """``*`` matches everything, ``stream.*`` matches every ``stream.`` type."""
    if pattern in ("*", event_type):
        return True
    if pattern.endswith(".*"):
        return event_type.startswith(pattern[:-1])
    return False


@dataclass(frozen=True)
class Subscription:
    id: str
    pattern: str
    handler: EventHandler


class EventEmitter:
    """
    Deliver notifications to subscribed observers.

    Design Pattern: Observer Pattern

    Created by the owner of a conversation and passed to everything that
    publishes, so observers never rely on a process-wide channel. Handlers
    run in subscription order; one failing handler does not stop the rest.
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._counter = 0

    def subscribe(self, pattern: str, handler: EventHandler) -> str:
        """
        Register ``handler`` for event types matching ``pattern``.

        Args:
            pattern: Event type pattern (e.g., "stream.*", "view.updated", "*")
            handler: Callable receiving the event; coroutine functions are
                scheduled on the running loop

        Returns:
            Subscription ID for unsubscribing
        """
        self._counter += 1
        subscription = Subscription(f"sub_{self._counter}", pattern, handler)
        self._subscriptions.append(subscription)
        return subscription.id

    def unsubscribe(self, subscription_id: str) -> bool:
        for i, subscription in enumerate(self._subscriptions):
            if subscription.id == subscription_id:
                del self._subscriptions[i]
                return True
        return False

    def clear(self) -> None:
        self._subscriptions.clear()

    def listens_for(self, event: Event) -> bool:
        return bool(self._matching(event))

    def emit(self, event: Event) -> int:
        """
        Deliver ``event`` synchronously.

        Returns:
            Number of handlers invoked
        """
        matching = self._matching(event)
        for subscription in matching:
            try:
                result = subscription.handler(event)
                if asyncio.iscoroutine(result):
                    asyncio.get_running_loop().create_task(result)
            except Exception as e:
                logger.error(
                    f"Event handler error: {e}",
                    event_type=event.event_type.value,
                    subscription=subscription.id,
                    exc_info=True,
                )
        return len(matching)

    async def emit_async(self, event: Event) -> int:
        """Deliver ``event``, awaiting coroutine handlers in turn."""
        matching = self._matching(event)
        for subscription in matching:
            try:
                result = subscription.handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Event handler error: {e}",
                    event_type=event.event_type.value,
                    subscription=subscription.id,
                    exc_info=True,
                )
        return len(matching)

    def _matching(self, event: Event) -> list[Subscription]:
        event_type = event.event_type.value
        return [s for s in self._subscriptions if pattern_matches(s.pattern, event_type)]

    def __len__(self) -> int:
        return len(self._subscriptions)
