"""Stats-server client for trading volume and open interest.

The stats server indexes protocol events that are impractical to read from
contracts each cycle. Uses urllib.request (stdlib) in a worker thread; the
three endpoints are small JSON documents.

Endpoints (relative to the configured base URL):
    /position_stats  -> {"totalLongPositionSizes": "...", "totalShortPositionSizes": "..."}
    /hourly_volume   -> [{"data": {"timestamp": ..., "token": ..., "volume": "..."}}, ...]
    /total_volume    -> [{"data": {"volume": "..."}}, ...]

A failed endpoint is logged and reported as absent, so its figures go
Unknown for the cycle while the other endpoints still apply.
"""

import asyncio
import json
import urllib.request
from typing import Any

from perpstats.logging import get_logger

logger = get_logger(__name__)

ENDPOINTS = {
    "positionStats": "/position_stats",
    "hourlyVolume": "/hourly_volume",
    "totalVolume": "/total_volume",
}


class StatsServerClient:
    """Fetches volume and position stats over HTTP.

    Args:
        base_url: Stats server root, e.g. "https://stats.example.io".
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _get_json(self, path: str) -> Any:
        """GET one endpoint; returns None on any transport or decode error."""
        url = f"{self._base_url}{path}"
        headers = {"Accept": "application/json", "User-Agent": "perpstats/0.1"}
        req = urllib.request.Request(url, headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                return json.loads(resp.read())
        except Exception as e:
            logger.warning("stats_server_fetch_error", url=url, error=str(e))
            return None

    async def fetch_volume_stats(self) -> dict[str, Any]:
        """Fetch all endpoints concurrently into the volume-stats wire shape."""
        keys = list(ENDPOINTS)
        results = await asyncio.gather(
            *(asyncio.to_thread(self._get_json, ENDPOINTS[key]) for key in keys)
        )
        payload = {key: value for key, value in zip(keys, results) if value is not None}
        logger.debug("stats_server_fetched", endpoints=sorted(payload))
        return payload
