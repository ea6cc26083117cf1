"""Tests for component wiring in perpstats.main."""

import json
from pathlib import Path

import pytest

from perpstats.config import AppSettings, ChainSettings
from perpstats.main import _build_components
from perpstats.market_data import RefreshMonitor
from perpstats.numeric import expand
from perpstats.numeric.constants import USD_DECIMALS
from perpstats.sources import SnapshotFileSource, StatsServerClient


class TestBuildComponents:
    def test_without_stats_server(self, mock_settings: AppSettings) -> None:
        components = _build_components(mock_settings)

        assert isinstance(components["source"], SnapshotFileSource)
        assert components["stats_client"] is None
        monitor = components["refresh_monitor"]
        assert isinstance(monitor, RefreshMonitor)
        assert monitor.chain == components["chain"]

    def test_with_stats_server(self, mock_settings: AppSettings) -> None:
        settings = mock_settings.model_copy(
            update={"chain": ChainSettings(stats_server_url="https://stats.test", chain_id=1, chain_name="Mainnet")}
        )
        components = _build_components(settings)

        assert isinstance(components["stats_client"], StatsServerClient)
        assert components["chain"].chain_id == 1

    @pytest.mark.asyncio
    async def test_wired_monitor_publishes(
        self, mock_settings: AppSettings, tmp_path: Path, raw_sections: dict, now: float
    ) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(raw_sections), encoding="utf-8")
        settings = mock_settings.model_copy(update={"chain": ChainSettings(snapshot_path=str(path))})
        components = _build_components(settings)

        await components["refresh_monitor"].refresh_once(now=now)

        state = components["store"].current()
        assert state is not None
        assert state.snapshot.market_cap == expand(5_000_000, USD_DECIMALS)
