"""Raw-data sources and the ingestion boundary."""

from perpstats.sources.client import MarketDataSource
from perpstats.sources.snapshot_file import SnapshotFileSource
from perpstats.sources.stats_server import StatsServerClient

__all__ = ["MarketDataSource", "SnapshotFileSource", "StatsServerClient"]
