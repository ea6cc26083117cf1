"""Entry point for the perp-swaps stats engine.

With the dashboard enabled (the default) uvicorn serves the JSON API and the
refresh monitor runs inside the API's lifespan, so both share one event loop.
With it disabled the monitor polls headless until SIGINT or SIGTERM.

_build_components constructs, in dependency order: the session ChainContext,
the snapshot file source, the optional stats server client, the metrics
calculator, the snapshot store, and the refresh monitor that ties them together.
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from perpstats.config import AppSettings, ChainContext
from perpstats.logging import bind_chain_context, get_logger, setup_logging
from perpstats.market_data.refresh_monitor import RefreshMonitor
from perpstats.market_data.snapshot_store import SnapshotStore
from perpstats.metrics.calculator import MetricsCalculator
from perpstats.sources.snapshot_file import SnapshotFileSource
from perpstats.sources.stats_server import StatsServerClient

logger = get_logger("perpstats.main")


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the component graph.

    Args:
        settings: Root settings; each component receives only its own section.

    Returns:
        Components by name: chain, source, stats_client, calculator, store,
        refresh_monitor.
    """
    chain = ChainContext.from_settings(settings.chain)
    source = SnapshotFileSource(settings.chain.snapshot_path)

    stats_client = None
    if settings.chain.stats_server_url:
        stats_client = StatsServerClient(
            settings.chain.stats_server_url,
            timeout=settings.chain.request_timeout_seconds,
        )
    else:
        logger.info("stats_server_disabled", note="volume figures come from the snapshot source")

    calculator = MetricsCalculator(settings.prices, settings.fees)
    store = SnapshotStore()
    monitor = RefreshMonitor(
        source=source,
        calculator=calculator,
        store=store,
        settings=settings.refresh,
        chain=chain,
        stats_client=stats_client,
    )

    return {
        "chain": chain,
        "source": source,
        "stats_client": stats_client,
        "calculator": calculator,
        "store": store,
        "refresh_monitor": monitor,
    }


async def _shutdown(components: dict[str, Any]) -> None:
    await components["refresh_monitor"].stop()
    await components["source"].close()
    logger.info("perpstats_stopped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the refresh monitor for as long as the API is up."""
    components = app.state.components
    monitor: RefreshMonitor = components["refresh_monitor"]

    app.state.refresh_monitor = monitor
    await monitor.start()
    logger.info("api_lifespan_started", chain_id=monitor.chain.chain_id)
    try:
        yield
    finally:
        await _shutdown(components)


async def _serve_api(settings: AppSettings, components: dict[str, Any]) -> None:
    from perpstats.dashboard.app import create_dashboard_app

    app = create_dashboard_app(
        store=components["store"],
        chart_settings=settings.chart,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.components = components

    logger.info("serving_api", host=settings.dashboard.host, port=settings.dashboard.port)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",
        )
    )
    await server.serve()


async def _run_headless(settings: AppSettings, components: dict[str, Any]) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    logger.info(
        "running_headless",
        poll_interval=settings.refresh.poll_interval_seconds,
        snapshot_path=settings.chain.snapshot_path,
    )
    await components["refresh_monitor"].start()
    try:
        await stop.wait()
        logger.info("shutdown_signal_received")
    finally:
        await _shutdown(components)


async def run() -> None:
    """Load settings, wire components, then serve the API or poll headless."""
    settings = AppSettings()
    setup_logging(settings.log_level)

    components = _build_components(settings)
    chain: ChainContext = components["chain"]
    bind_chain_context(chain.chain_id, chain.chain_name)

    if settings.dashboard.enabled:
        await _serve_api(settings, components)
    else:
        await _run_headless(settings, components)


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
