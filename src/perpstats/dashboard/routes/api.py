"""JSON API endpoints for the dashboard's read-only figures and chart feed."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from perpstats.exceptions import MalformedSymbolError
from perpstats.feed.adapter import ChartDataFeed, PeriodParams
from perpstats.market_data.snapshot_store import DashboardState
from perpstats.metrics.ratios import WeightInfo
from perpstats.numeric import PLACEHOLDER, Metric, Unknown, format_amount

log = structlog.get_logger(__name__)

router = APIRouter()

USD_DISPLAY_DECIMALS = 2
PRICE_DISPLAY_DECIMALS = 4
TOKEN_DISPLAY_DECIMALS = 4


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _metric(value: Metric, display_decimals: int = USD_DISPLAY_DECIMALS) -> str:
    """Render a figure for the API; Unknown becomes the placeholder."""
    if isinstance(value, Unknown):
        return PLACEHOLDER
    return format_amount(value, display_decimals)


def _not_loaded() -> JSONResponse:
    return JSONResponse(status_code=503, content={"status": "loading"})


def _state(request: Request) -> DashboardState | None:
    return request.app.state.store.current()


@router.get("/metrics")
async def get_metrics(request: Request) -> JSONResponse:
    """Headline figures for the latest cycle."""
    state = _state(request)
    if state is None:
        return _not_loaded()
    s = state.snapshot
    fees = s.fees
    content = {
        "cycle": s.cycle,
        "computed_at": s.computed_at,
        "token_price": _metric(s.token_price, PRICE_DISPLAY_DECIMALS),
        "market_cap": _metric(s.market_cap),
        "fully_diluted_market_cap": _metric(s.fully_diluted_market_cap),
        "aum": _metric(s.aum),
        "index_price": _metric(s.index_price, PRICE_DISPLAY_DECIMALS),
        "index_market_cap": _metric(s.index_market_cap),
        "staking_value": _metric(s.staking_value),
        "total_value_locked": _metric(s.total_value_locked),
        "fees": {
            "settled": _metric(fees.settled),
            "current_period": _metric(fees.current_period),
            "live": _metric(fees.live),
            "distributed": _metric(fees.distributed),
            "by_category": {k: _metric(v) for k, v in fees.by_category.items()},
            "included_live": fees.included_live,
        },
        "spread_captured_fees": _metric(s.spread_captured_fees),
        "total_fees": _metric(s.total_fees),
        "staking_apr": _metric(s.staking_apr),
        "volume_24h": {
            "total": _metric(s.volume_24h.total),
            "by_token": {k: _metric(v) for k, v in s.volume_24h.by_token.items()},
        },
        "total_volume": _metric(s.total_volume),
        "long_open_interest": _metric(s.long_open_interest),
        "short_open_interest": _metric(s.short_open_interest),
        "inconsistent": s.inconsistent,
    }
    return JSONResponse(content=content)


@router.get("/prices")
async def get_prices(request: Request) -> JSONResponse:
    """Canonical price per asset with every source's value alongside."""
    state = _state(request)
    if state is None:
        return _not_loaded()
    result = {}
    for asset, price in sorted(state.snapshot.prices.items()):
        result[asset] = {
            "canonical": _metric(price.canonical, PRICE_DISPLAY_DECIMALS),
            "canonical_source": price.canonical_source,
            "by_source": {
                source: _metric(value, PRICE_DISPLAY_DECIMALS)
                for source, value in price.by_source.items()
            },
            "used_last_known": list(price.used_last_known),
        }
    return JSONResponse(content=result)


@router.get("/distribution")
async def get_distribution(request: Request) -> JSONResponse:
    """Supply distribution buckets, largest first."""
    state = _state(request)
    if state is None:
        return _not_loaded()
    dist = state.snapshot.distribution
    content = {
        "buckets": [
            {"key": b.key, "label": b.label, "value": b.value, "color": b.color}
            for b in dist.buckets
        ],
        "total": dist.total,
        "inconsistent": dist.inconsistent,
        "missing": list(dist.missing),
    }
    return JSONResponse(content=_decimal_to_str(content))


@router.get("/pool")
async def get_pool(request: Request) -> JSONResponse:
    """Index pool composition by weight share."""
    state = _state(request)
    if state is None:
        return _not_loaded()
    pool = state.snapshot.pool
    content = {
        "shares": [
            {
                "symbol": share.symbol,
                "name": share.name,
                "value": share.value,
                "is_stable": share.is_stable,
            }
            for share in pool.shares
        ],
        "stablecoin_share_percent": pool.stablecoin_share_percent,
        "adjusted_usdg_supply": _metric(pool.adjusted_usdg_supply),
    }
    return JSONResponse(content=_decimal_to_str(content))


def _weight(info: WeightInfo) -> dict[str, Any]:
    return {
        "current": _metric(info.current),
        "target": _metric(info.target),
        "text": info.text,
        "below_target": info.below_target,
        "above_target": info.above_target,
    }


@router.get("/tokens")
async def get_tokens(request: Request) -> JSONResponse:
    """Index composition table rows."""
    state = _state(request)
    if state is None:
        return _not_loaded()
    rows = [
        {
            "symbol": row.symbol,
            "name": row.name,
            "pool_amount": _metric(row.pool_amount, TOKEN_DISPLAY_DECIMALS),
            "managed_amount": _metric(row.managed_amount, TOKEN_DISPLAY_DECIMALS),
            "managed_usd": _metric(row.managed_usd),
            "utilization": _metric(row.utilization),
            "weight": _weight(row.weight),
            "max_capacity": _metric(row.max_capacity, 0),
        }
        for row in state.snapshot.token_rows
    ]
    return JSONResponse(content=rows)


def _feed(request: Request) -> ChartDataFeed | None:
    resolutions = tuple(request.app.state.chart_settings.supported_resolutions)
    return request.app.state.store.data_feed(supported_resolutions=resolutions)


@router.get("/chart/config")
async def get_chart_config(request: Request, symbol: str | None = None) -> JSONResponse:
    """Datafeed configuration, plus the resolved symbol when one is given."""
    feed = _feed(request)
    if feed is None:
        return _not_loaded()

    loop = asyncio.get_running_loop()
    ready: asyncio.Future[dict[str, Any]] = loop.create_future()
    feed.on_ready(ready.set_result)
    content: dict[str, Any] = {"configuration": await ready}

    if symbol is not None:
        resolved: asyncio.Future[dict[str, Any]] = loop.create_future()
        feed.resolve_symbol(
            symbol,
            resolved.set_result,
            lambda reason: resolved.set_exception(MalformedSymbolError(reason)),
        )
        try:
            content["symbol"] = await resolved
        except MalformedSymbolError as exc:
            log.info("chart_symbol_rejected", symbol=symbol)
            return JSONResponse(status_code=400, content={"error": str(exc)})
    return JSONResponse(content=content)


@router.get("/chart/bars")
async def get_chart_bars(
    request: Request,
    resolution: str = "1D",
    first_data_request: bool = True,
) -> JSONResponse:
    """Bars as the widget receives them, with 24h high/low and change."""
    feed = _feed(request)
    state = _state(request)
    if feed is None or state is None:
        return _not_loaded()

    loop = asyncio.get_running_loop()
    result: asyncio.Future[tuple[list[dict[str, Any]], dict[str, Any]]] = loop.create_future()
    feed.get_bars(
        {},
        resolution,
        PeriodParams(first_data_request=first_data_request),
        lambda bars, meta: result.set_result((bars, meta)),
    )
    bars, meta = await result

    change = state.price_change
    content = {
        "bars": bars,
        "no_data": meta["noData"],
        "high_24h": change.high,
        "low_24h": change.low,
        "delta_24h": change.delta,
        "delta_percentage_24h": change.delta_percentage_text,
    }
    return JSONResponse(content=_decimal_to_str(content))
