"""Run-scoped resources shared by the orchestrators.

``RunGuard`` enforces a single in-flight run independently of the UI, and
``open_subscriptions`` scopes channel subscriptions to one run so they are
released on every exit path.
"""

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Dict, Iterator, List, Optional

from pdfcheck.domain.exceptions import RunInProgressError, SubscriptionError
from pdfcheck.domain.interfaces.event_bus import EventBus, EventHandler, Subscription

logger = logging.getLogger(__name__)


class RunGuard:
    """Allows at most one analysis or guideline run at a time."""

    def __init__(self) -> None:
        self._active_run: Optional[str] = None

    @property
    def active(self) -> bool:
        return self._active_run is not None

    @property
    def active_run(self) -> Optional[str]:
        return self._active_run

    @contextmanager
    def hold(self, run_kind: str) -> Iterator[None]:
        """Claims the guard for the duration of the block.

        Raises:
            RunInProgressError: If another run already holds the guard.
        """
        if self._active_run is not None:
            raise RunInProgressError(self._active_run, run_kind)
        self._active_run = run_kind
        logger.debug(f"Run guard claimed by {run_kind} run")
        try:
            yield
        finally:
            self._active_run = None
            logger.debug(f"Run guard released by {run_kind} run")


@asynccontextmanager
async def open_subscriptions(
    event_bus: EventBus, handlers: Dict[str, EventHandler]
) -> AsyncIterator[List[Subscription]]:
    """Subscribes every handler and unsubscribes all of them on exit.

    If one subscription cannot be opened, the ones already opened are
    released before ``SubscriptionError`` propagates.
    """
    subscriptions: List[Subscription] = []
    try:
        for channel, handler in handlers.items():
            try:
                subscriptions.append(await event_bus.subscribe(channel, handler))
            except SubscriptionError:
                raise
            except Exception as e:
                raise SubscriptionError(channel, e) from e
            logger.debug(f"Subscribed to channel '{channel}'")
        yield subscriptions
    finally:
        for subscription in subscriptions:
            subscription.unsubscribe()
