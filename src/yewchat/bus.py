"""
Session bus: in-process publish/subscribe relay between the transport and
whatever consumes decoded envelopes.

Single channel, no topics. Delivery is synchronous and in registration order,
so envelopes reach every subscriber in the order they were published.
"""

import logging
from typing import Callable

from yewchat.models.envelope import Envelope

logger = logging.getLogger(__name__)

Subscriber = Callable[[Envelope], None]


class SessionBus:
    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber. Returns a function that removes it again."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass
        return unsubscribe

    def publish(self, envelope: Envelope) -> None:
        logger.debug("Publishing %s envelope to %d subscriber(s)", envelope.message_type.value, len(self._subscribers))
        for callback in list(self._subscribers):
            try:
                callback(envelope)
            except Exception:
                logger.exception("Subscriber %r failed on %s envelope", callback, envelope.message_type.value)

    def close(self) -> None:
        self._subscribers.clear()
