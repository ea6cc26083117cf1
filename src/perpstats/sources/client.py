"""Abstract raw-data source interface.

Defines the contract for everything that delivers raw reads to the engine:
contract calls, indexer queries, REST snapshots. The engine depends only on
this interface; transport details stay in concrete implementations. Methods
return loosely-typed payloads that perpstats.sources.ingest validates.
"""

from abc import ABC, abstractmethod
from typing import Any


class MarketDataSource(ABC):
    """Abstract base class for raw market-data sources."""

    @abstractmethod
    async def fetch_token_states(self) -> dict[str, Any]:
        """Vault state per whitelisted token plus totalTokenWeights."""
        ...

    @abstractmethod
    async def fetch_price_observations(self) -> list[dict[str, Any]]:
        """Price observations per source and asset for this cycle."""
        ...

    @abstractmethod
    async def fetch_supplies(self) -> dict[str, Any]:
        """Circulating, total and index-token supply."""
        ...

    @abstractmethod
    async def fetch_staking(self) -> dict[str, Any]:
        """Staking totals, reward emission and amounts held in liquidity venues."""
        ...

    @abstractmethod
    async def fetch_fee_inputs(self) -> dict[str, Any]:
        """Fee ledger, ledger pending figure, live fee counters, spread fees."""
        ...

    @abstractmethod
    async def fetch_aums(self) -> list[Any]:
        """Low and high AUM estimates from the pool manager."""
        ...

    @abstractmethod
    async def fetch_volume_stats(self) -> dict[str, Any]:
        """Hourly volume, all-time volume and open interest."""
        ...

    @abstractmethod
    async def fetch_price_bars(self) -> list[dict[str, Any]]:
        """Index price history for the chart, oldest first."""
        ...

    async def close(self) -> None:
        """Release transport resources. Default: nothing to release."""
        return None
