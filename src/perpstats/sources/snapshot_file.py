"""Raw-data source backed by a JSON snapshot on disk.

Useful for replaying a captured cycle and for running the dashboard without
chain access. The file is re-read on every fetch so an external process can
replace it between cycles. Top-level keys mirror MarketDataSource methods:

    {"tokenStates": {...}, "prices": [...], "supplies": {...},
     "staking": {...}, "fees": {...}, "aums": [...],
     "volumeStats": {...}, "bars": [...]}
"""

import asyncio
import json
from pathlib import Path
from typing import Any

from perpstats.exceptions import SnapshotValidationError
from perpstats.logging import get_logger
from perpstats.sources.client import MarketDataSource

logger = get_logger(__name__)


class SnapshotFileSource(MarketDataSource):
    """Serves each raw read from one section of a JSON file.

    Args:
        path: Location of the snapshot file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        try:
            with self._path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise SnapshotValidationError(f"{self._path}: invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise SnapshotValidationError(f"{self._path}: top level must be an object")
        return data

    async def _section(self, key: str) -> Any:
        """Read one section; a missing section raises so the slot goes Unknown."""
        data = await asyncio.to_thread(self._read)
        if key not in data:
            raise SnapshotValidationError(f"{self._path}: missing section {key!r}")
        logger.debug("snapshot_section_read", path=str(self._path), section=key)
        return data[key]

    async def fetch_token_states(self) -> dict[str, Any]:
        return await self._section("tokenStates")

    async def fetch_price_observations(self) -> list[dict[str, Any]]:
        return await self._section("prices")

    async def fetch_supplies(self) -> dict[str, Any]:
        return await self._section("supplies")

    async def fetch_staking(self) -> dict[str, Any]:
        return await self._section("staking")

    async def fetch_fee_inputs(self) -> dict[str, Any]:
        return await self._section("fees")

    async def fetch_aums(self) -> list[Any]:
        return await self._section("aums")

    async def fetch_volume_stats(self) -> dict[str, Any]:
        return await self._section("volumeStats")

    async def fetch_price_bars(self) -> list[dict[str, Any]]:
        return await self._section("bars")
