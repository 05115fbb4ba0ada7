"""In-process implementation of the EventBus port.

Handlers run synchronously on the publishing coroutine's thread, in
subscription order, so state mutations triggered by a notification never
interleave with each other.
"""

import itertools
import logging
from collections import defaultdict
from typing import Dict

from pdfcheck.domain.interfaces.event_bus import EventBus, EventHandler, EventPayload, Subscription

logger = logging.getLogger(__name__)


class LocalEventBus(EventBus):
    """Named channels held in memory."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Dict[int, EventHandler]] = defaultdict(dict)
        self._ids = itertools.count(1)

    async def subscribe(self, channel: str, handler: EventHandler) -> Subscription:
        subscription_id = next(self._ids)
        self._handlers[channel][subscription_id] = handler

        def release() -> None:
            self._handlers[channel].pop(subscription_id, None)

        logger.debug(f"Handler {subscription_id} subscribed to '{channel}'")
        return Subscription(channel, release)

    async def publish(self, channel: str, payload: EventPayload) -> None:
        handlers = list(self._handlers.get(channel, {}).values())
        if not handlers:
            logger.debug(f"No subscribers on '{channel}' for payload: {payload}")
            return
        for handler in handlers:
            try:
                handler(payload)
            except Exception as e:
                # One faulty listener must not starve the others on the channel.
                logger.error(f"Handler on '{channel}' failed: {e}", exc_info=True)

    def subscriber_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, {}))
