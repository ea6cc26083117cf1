"""Configuration system using pydantic-settings with environment variable loading.

Settings are explicit objects handed to constructors. Nothing in the engine
reads configuration from module-level globals, so two sessions (e.g. two
chains) can run side by side with different settings.
"""

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


class ChainSettings(BaseSettings):
    """Chain identity and where its raw data comes from."""

    model_config = SettingsConfigDict(env_prefix="CHAIN_")

    chain_id: int = 42161
    chain_name: str = "Arbitrum"
    stats_server_url: str = ""  # empty disables the stats server client
    snapshot_path: str = "data/snapshot.json"
    request_timeout_seconds: float = 10.0


class PriceSettings(BaseSettings):
    """Canonical price selection across sources.

    The first source in source_priority that delivered an observation this
    cycle is canonical. The primary source should be listed first.
    """

    model_config = SettingsConfigDict(env_prefix="PRICE_")

    primary_source: str = "arbitrum"
    source_priority: list[str] = ["arbitrum", "mainnet"]
    use_last_known: bool = False  # reuse a source's previous value after a failed refresh
    last_known_max_age_seconds: float = 120.0


class FeeSettings(BaseSettings):
    """Fee ledger reconciliation."""

    model_config = SettingsConfigDict(env_prefix="FEES_")

    # Live counters are swept into the ledger at settlement; within this
    # window after the last ledger period they are not added again.
    ledger_settle_grace_seconds: int = 3600


class RefreshSettings(BaseSettings):
    """Polling cadence for raw external state."""

    model_config = SettingsConfigDict(env_prefix="REFRESH_")

    poll_interval_seconds: float = 30.0


class ChartSettings(BaseSettings):
    """Charting data-feed configuration."""

    model_config = SettingsConfigDict(env_prefix="CHART_")

    # 5m, 15m, 1h, 4h, 1d
    supported_resolutions: list[str] = ["5", "15", "60", "240", "1D"]


class DashboardSettings(BaseSettings):
    """JSON API server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


@dataclass
class ChainContext:
    """Identity of the session the engine is serving.

    Replaces per-chain client singletons: the context is created for the
    hosting session and discarded on account or network switch.
    """

    chain_id: int
    chain_name: str
    account: str | None = None

    @classmethod
    def from_settings(cls, settings: ChainSettings, account: str | None = None) -> "ChainContext":
        return cls(chain_id=settings.chain_id, chain_name=settings.chain_name, account=account)


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    chain: ChainSettings = ChainSettings()
    prices: PriceSettings = PriceSettings()
    fees: FeeSettings = FeeSettings()
    refresh: RefreshSettings = RefreshSettings()
    chart: ChartSettings = ChartSettings()
    dashboard: DashboardSettings = DashboardSettings()
