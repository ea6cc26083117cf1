"""Refresh monitor: polls raw sources, recomputes metrics, publishes snapshots.

Every raw read is an independent logical source with its own sequence
numbers. Reads run concurrently; each response is validated and applied as
it lands, unless a newer response for the same source already landed or the
chain context changed while it was in flight. After all reads settle the
metrics are recomputed from the latest applied values and published.

A read that fails leaves its slot Unknown for the cycle. Previous values are
not reused (price sources can opt into that via PriceSettings).
"""

import asyncio
import time
from typing import Any, Callable

from perpstats.config import ChainContext, RefreshSettings
from perpstats.logging import bind_chain_context, clear_chain_context, get_logger
from perpstats.market_data.snapshot_store import DashboardState, SnapshotStore
from perpstats.metrics.calculator import MetricsCalculator, MetricSnapshot, RawCycle
from perpstats.metrics.chart_stats import price_change_24h
from perpstats.models import FeeInputs, StakingTotals, SupplyFigures, VolumeStats
from perpstats.numeric import NOT_LOADED
from perpstats.pricing.sequencer import RefreshSequencer
from perpstats.sources import ingest
from perpstats.sources.client import MarketDataSource
from perpstats.sources.stats_server import StatsServerClient

logger = get_logger(__name__)

_FAILED = object()

# logical source -> (fetch method on the source, parser)
SOURCES: dict[str, tuple[str, Callable[..., Any]]] = {
    "tokens": ("fetch_token_states", ingest.parse_token_states),
    "prices": ("fetch_price_observations", ingest.parse_price_observations),
    "supplies": ("fetch_supplies", ingest.parse_supplies),
    "staking": ("fetch_staking", ingest.parse_staking),
    "fees": ("fetch_fee_inputs", ingest.parse_fee_inputs),
    "aums": ("fetch_aums", ingest.parse_aums),
    "volume": ("fetch_volume_stats", ingest.parse_volume_stats),
    "bars": ("fetch_price_bars", ingest.parse_bars),
}


class RefreshMonitor:
    """Drives poll cycles and owns the per-source latest values.

    Args:
        source: Raw-data source for every read.
        calculator: Single writer of MetricSnapshot.
        store: Where published states go.
        settings: Poll cadence.
        chain: Session identity; bound into log context.
        stats_client: Optional stats server; supplies volume reads when set.
    """

    def __init__(
        self,
        source: MarketDataSource,
        calculator: MetricsCalculator,
        store: SnapshotStore,
        settings: RefreshSettings,
        chain: ChainContext,
        stats_client: StatsServerClient | None = None,
    ) -> None:
        self._source = source
        self._calculator = calculator
        self._store = store
        self._settings = settings
        self._chain = chain
        self._stats_client = stats_client
        self._sequencer = RefreshSequencer()
        self._latest: dict[str, Any] = {}
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def chain(self) -> ChainContext:
        return self._chain

    @property
    def sequencer(self) -> RefreshSequencer:
        return self._sequencer

    async def start(self) -> None:
        """Begin polling in the background."""
        if self._running:
            logger.warning("refresh_monitor_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("refresh_monitor_started", poll_interval=self._settings.poll_interval_seconds)

    async def stop(self) -> None:
        """Stop polling and wait for the loop to exit."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("refresh_monitor_stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.refresh_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("refresh_cycle_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._settings.poll_interval_seconds)

    def _reader(self, name: str) -> Any:
        if name == "volume" and self._stats_client is not None:
            return self._stats_client
        return self._source

    async def _refresh_source(self, name: str, now: float) -> None:
        """Fetch, parse and apply one logical source."""
        ticket = self._sequencer.begin(name)
        method, parser = SOURCES[name]
        try:
            payload = await getattr(self._reader(name), method)()
            parsed = parser(payload, now) if name == "prices" else parser(payload)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("source_refresh_failed", source=name, error=str(exc))
            parsed = _FAILED
        if self._sequencer.accept(ticket):
            self._latest[name] = parsed

    def _value(self, name: str) -> Any:
        value = self._latest.get(name, _FAILED)
        return None if value is _FAILED else value

    def build_raw_cycle(self) -> RawCycle:
        """Assemble the latest applied values; failed or missing slots are Unknown."""
        token_states = self._value("tokens")
        tokens, total_weights = token_states if token_states is not None else (None, NOT_LOADED)
        return RawCycle(
            tokens=tokens,
            total_token_weights=total_weights,
            observations=self._value("prices") or (),
            supplies=self._value("supplies") or SupplyFigures(),
            staking=self._value("staking") or StakingTotals(),
            fees=self._value("fees") or FeeInputs(),
            aums=self._value("aums"),
            volume=self._value("volume") or VolumeStats(),
        )

    async def refresh_once(self, now: float | None = None) -> MetricSnapshot | None:
        """Run one full cycle.

        Returns:
            The snapshot computed this cycle, or None if the chain context
            changed while the cycle was in flight.
        """
        now = time.time() if now is None else now
        # rebound each cycle: the chain may have switched since the last one
        bind_chain_context(self._chain.chain_id, self._chain.chain_name)
        epoch = self._sequencer.epoch
        await asyncio.gather(*(self._refresh_source(name, now) for name in SOURCES))

        if self._sequencer.epoch != epoch:
            logger.info("refresh_cycle_cancelled", epoch=epoch)
            return None

        raw = self.build_raw_cycle()
        snapshot = self._calculator.compute(raw, now)
        bars = self._value("bars")
        state = DashboardState(
            snapshot=snapshot,
            tokens=raw.tokens,
            bars=bars,
            # bars are index price history
            price_change=price_change_24h(bars or (), snapshot.index_price, snapshot.index_price, now),
            published_at=now,
        )
        await self._store.publish(state)
        logger.info(
            "refresh_cycle_completed",
            cycle=snapshot.cycle,
            failed=sorted(name for name in SOURCES if self._latest.get(name, _FAILED) is _FAILED),
        )
        return snapshot

    async def invalidate_context(self, chain: ChainContext | None = None) -> None:
        """Drop everything tied to the current account or network.

        In-flight responses are discarded when they land and latest values
        and the published state are cleared. The caller's log context is
        rebound here; the poll loop picks up the new chain on its next cycle.
        """
        self._sequencer.invalidate()
        self._latest.clear()
        await self._store.clear()
        clear_chain_context()
        if chain is not None:
            self._chain = chain
        bind_chain_context(self._chain.chain_id, self._chain.chain_name)
        logger.info("chain_context_switched", chain_id=self._chain.chain_id, account=self._chain.account)
