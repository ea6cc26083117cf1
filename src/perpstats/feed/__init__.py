"""Charting data-feed adapter and its callback scheduler."""

from perpstats.feed.adapter import (
    DEFAULT_RESOLUTIONS,
    ChartDataFeed,
    PeriodParams,
    SymbolInfo,
    generate_data_feed,
    parse_symbol,
    price_scale_for,
)
from perpstats.feed.scheduler import AsyncioScheduler, Scheduler, TaskQueueScheduler

__all__ = [
    "DEFAULT_RESOLUTIONS",
    "AsyncioScheduler",
    "ChartDataFeed",
    "PeriodParams",
    "Scheduler",
    "SymbolInfo",
    "TaskQueueScheduler",
    "generate_data_feed",
    "parse_symbol",
    "price_scale_for",
]
