"""Interface for named event channels (subscribe / unsubscribe / publish).

Only the contract is defined here; how a notification is physically
delivered is left to the implementation.
"""

import abc
import logging
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

EventPayload = Dict[str, Any]
EventHandler = Callable[[EventPayload], None]


class Subscription:
    """Handle for one active channel subscription.

    ``unsubscribe`` is idempotent so cleanup paths may call it freely.
    """

    def __init__(self, channel: str, release: Callable[[], None]):
        self.channel = channel
        self._release = release
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._release()
        logger.debug(f"Unsubscribed from channel '{self.channel}'")


class EventBus(abc.ABC):
    """Abstract Base Class for the host bridge's event channels."""

    @abc.abstractmethod
    async def subscribe(self, channel: str, handler: EventHandler) -> Subscription:
        """Registers ``handler`` for every payload published on ``channel``.

        Raises:
            SubscriptionError: If the subscription could not be opened.
        """
        pass

    @abc.abstractmethod
    async def publish(self, channel: str, payload: EventPayload) -> None:
        """Delivers ``payload`` to every current subscriber of ``channel``."""
        pass

    @abc.abstractmethod
    def subscriber_count(self, channel: str) -> int:
        """Number of active subscriptions on ``channel``."""
        pass
