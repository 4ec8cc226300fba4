"""Interval polling of orders and dashboards.

Order tracking and the owner/admin dashboards refresh by re-fetching on a
fixed interval. A failed fetch keeps the previous snapshot; the change
callback fires only when a fetched snapshot differs from the current one.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from campus_bites.client.api_client import CampusBitesClient
from campus_bites.models.order_models import OrderView
from campus_bites.models.stats_models import PlatformStatistics, RestaurantStatistics
from campus_bites.services.order_lifecycle import TERMINAL_STATUSES

logger = logging.getLogger(__name__)

ORDER_POLL_SECONDS = 15.0
DASHBOARD_POLL_SECONDS = 30.0

T = TypeVar("T")


class OrderTracker(Generic[T]):
    """Polls a resource until stopped or until it reaches a final state."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T | None]],
        on_change: Callable[[T], Any],
        interval: float,
        is_finished: Callable[[T], bool] | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            fetch: Returns the latest snapshot, or None when the fetch failed
            on_change: Called with each new snapshot (may be a coroutine function)
            interval: Seconds between fetches
            is_finished: Stops polling once it returns True for a snapshot
        """
        self.fetch = fetch
        self.on_change = on_change
        self.interval = interval
        self.is_finished = is_finished
        self.snapshot: T | None = None
        self._stopped = asyncio.Event()

    @classmethod
    def for_order(
        cls,
        client: CampusBitesClient,
        order_id: str,
        on_change: Callable[[OrderView], Any],
        interval: float = ORDER_POLL_SECONDS,
    ) -> "OrderTracker[OrderView]":
        """Track one order until it is Completed or Cancelled."""
        return cls(
            fetch=lambda: client.get_order(order_id),
            on_change=on_change,
            interval=interval,
            is_finished=lambda order: order.status in TERMINAL_STATUSES,
        )

    @classmethod
    def for_restaurant_dashboard(
        cls,
        client: CampusBitesClient,
        on_change: Callable[[RestaurantStatistics], Any],
        restaurant_id: str | None = None,
        interval: float = DASHBOARD_POLL_SECONDS,
    ) -> "OrderTracker[RestaurantStatistics]":
        return cls(
            fetch=lambda: client.get_restaurant_statistics(restaurant_id),
            on_change=on_change,
            interval=interval,
        )

    @classmethod
    def for_platform_dashboard(
        cls,
        client: CampusBitesClient,
        on_change: Callable[[PlatformStatistics], Any],
        interval: float = DASHBOARD_POLL_SECONDS,
    ) -> "OrderTracker[PlatformStatistics]":
        return cls(fetch=client.get_platform_statistics, on_change=on_change, interval=interval)

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        self._stopped.set()

    async def poll_once(self) -> bool:
        """Fetch once and replace the snapshot if it changed.

        Returns:
            True if the snapshot changed
        """
        latest = await self.fetch()
        if latest is None or latest == self.snapshot:
            return False

        self.snapshot = latest
        result = self.on_change(latest)
        if inspect.isawaitable(result):
            await result
        return True

    async def run(self) -> T | None:
        """Poll until ``stop()`` is called or the snapshot is finished.

        Returns:
            The last snapshot seen
        """
        while not self.stopped:
            await self.poll_once()

            if self.snapshot is not None and self.is_finished and self.is_finished(self.snapshot):
                logger.info("Tracked resource reached a final state, polling stopped")
                self.stop()
                break

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except TimeoutError:
                continue

        return self.snapshot
