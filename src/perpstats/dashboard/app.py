"""FastAPI application factory for the dashboard's JSON API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from perpstats.config import ChartSettings
from perpstats.dashboard.routes import api
from perpstats.market_data.snapshot_store import SnapshotStore


def create_dashboard_app(
    store: SnapshotStore | None = None,
    chart_settings: ChartSettings | None = None,
    lifespan: Any = None,
) -> FastAPI:
    """Create and configure the FastAPI dashboard application.

    Args:
        store: Published-state holder the routes read from. main.py shares
               it with the refresh monitor; tests pass a pre-filled one.
        chart_settings: Resolutions advertised by the chart feed.
        lifespan: Optional async context manager for startup/shutdown.
                  Used by main.py to start and stop the refresh monitor.

    Returns:
        Configured FastAPI application with the /api routes.
    """
    app = FastAPI(
        title="Perp Stats Dashboard",
        lifespan=lifespan,
    )

    app.state.store = store or SnapshotStore()
    app.state.chart_settings = chart_settings or ChartSettings()
    # Wired by main.py lifespan
    app.state.refresh_monitor = None

    app.include_router(api.router, prefix="/api")

    return app
