from perpstats.market_data.refresh_monitor import RefreshMonitor
from perpstats.market_data.snapshot_store import DashboardState, SnapshotStore

__all__ = ["DashboardState", "RefreshMonitor", "SnapshotStore"]
