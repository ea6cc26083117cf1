"""Shared in-memory holder of the latest published dashboard state.

The refresh monitor publishes, the JSON API and the chart feed read. State
is one frozen object swapped under an asyncio.Lock, so a reader sees either
the previous cycle or the new one, never a mix of the two.
"""

import asyncio
import time
from dataclasses import dataclass

from perpstats.feed.adapter import DEFAULT_RESOLUTIONS, ChartDataFeed, generate_data_feed
from perpstats.feed.scheduler import Scheduler
from perpstats.logging import get_logger
from perpstats.metrics.calculator import MetricSnapshot
from perpstats.metrics.chart_stats import PriceChange24h
from perpstats.models import Bar, TokenState

logger = get_logger(__name__)


@dataclass(frozen=True)
class DashboardState:
    """Everything published for one cycle."""

    snapshot: MetricSnapshot
    tokens: tuple[TokenState, ...] | None
    bars: tuple[Bar, ...] | None
    price_change: PriceChange24h
    published_at: float


class SnapshotStore:
    """Latest DashboardState with ordering and staleness checks."""

    def __init__(self) -> None:
        self._state: DashboardState | None = None
        self._lock = asyncio.Lock()

    async def publish(self, state: DashboardState) -> bool:
        """Swap in a new state unless a later cycle is already published.

        Returns:
            True if the state was stored.
        """
        async with self._lock:
            current = self._state
            if current is not None and state.snapshot.cycle <= current.snapshot.cycle:
                logger.debug(
                    "snapshot_publish_skipped",
                    cycle=state.snapshot.cycle,
                    published_cycle=current.snapshot.cycle,
                )
                return False
            self._state = state
        logger.debug("snapshot_published", cycle=state.snapshot.cycle)
        return True

    async def clear(self) -> None:
        """Forget the published state (account or network switch)."""
        async with self._lock:
            self._state = None

    def current(self) -> DashboardState | None:
        """Latest state, or None before the first cycle completes."""
        return self._state

    def age(self) -> float | None:
        """Seconds since the latest state was published, or None if none is."""
        state = self._state
        if state is None:
            return None
        return time.time() - state.published_at

    def is_stale(self, max_age_seconds: float) -> bool:
        """True if nothing is published or the latest state is older than max_age_seconds."""
        age = self.age()
        if age is None:
            return True
        return age > max_age_seconds

    def data_feed(
        self,
        scheduler: Scheduler | None = None,
        supported_resolutions: tuple[str, ...] = DEFAULT_RESOLUTIONS,
    ) -> ChartDataFeed | None:
        """Chart feed over the published bars; None until bars are loaded."""
        state = self._state
        if state is None:
            return None
        return generate_data_feed(state.bars, scheduler, supported_resolutions)
