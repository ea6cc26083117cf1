"""Typed snapshots of the raw inputs the engine consumes.

CRITICAL: on-chain amounts are fixed-point ``Amount`` values (see
perpstats.numeric). Never use float for prices, pool amounts, or fees.

Every snapshot is frozen. A poll cycle produces new instances that replace the
previous ones wholesale; nothing here is mutated in place.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal

from perpstats.numeric import NOT_LOADED, Amount, Metric
from perpstats.numeric.constants import USD_DECIMALS


@dataclass(frozen=True)
class PriceObservation:
    """One source's price for one asset in one refresh cycle."""

    source: str  # e.g. "arbitrum", "mainnet"
    asset: str
    value: Amount  # USD, USD_DECIMALS
    observed_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TokenState:
    """Vault state for one whitelisted token."""

    address: str
    symbol: str
    decimals: int
    name: str = ""
    pool_amount: Metric = NOT_LOADED  # token decimals
    reserved_amount: Metric = NOT_LOADED  # token decimals
    usdg_amount: Metric = NOT_LOADED  # USDG_DECIMALS
    weight: Metric = NOT_LOADED  # raw configured weight, scale 0
    max_usdg_amount: Metric = NOT_LOADED  # USDG_DECIMALS, zero means unset
    guaranteed_usd: Metric = NOT_LOADED  # USD_DECIMALS
    min_price: Metric = NOT_LOADED  # USD_DECIMALS
    max_price: Metric = NOT_LOADED  # USD_DECIMALS
    is_stable: bool = False
    is_wrapped: bool = False


@dataclass(frozen=True)
class SupplyFigures:
    """Token supply reads, all at 18 decimals."""

    circulating: Metric = NOT_LOADED
    total: Metric = NOT_LOADED
    index_supply: Metric = NOT_LOADED  # pool index token (MLP)


@dataclass(frozen=True)
class StakingTotals:
    """Staking contract reads for the staked asset."""

    staked_asset: str = "MYC"
    reward_asset: str = "ETH"
    total_staked: Metric = NOT_LOADED  # staked asset decimals
    rewards_per_second: Metric = NOT_LOADED  # reward asset decimals
    # Staked amounts held outside the pool, e.g. in external liquidity venues.
    in_liquidity: dict[str, Metric] = field(default_factory=dict)


@dataclass(frozen=True)
class FeeLedgerEntry:
    """One settled fee period from the authoritative ledger (USD_DECIMALS)."""

    from_ts: int
    to_ts: int
    mint: Amount
    burn: Amount
    margin: Amount  # margin trading and liquidations
    swap: Amount

    @property
    def total(self) -> Amount:
        value = self.mint.value + self.burn.value + self.margin.value + self.swap.value
        return Amount(value, USD_DECIMALS)


@dataclass(frozen=True)
class FeeInputs:
    """Fee sources for one cycle.

    ``ledger`` is newest-first. ``pending`` is the ledger's own accrual for the
    open period, when the ledger reports one. ``counters`` are live per-token
    fee reserves keyed by token address, in token decimals.
    """

    ledger: tuple[FeeLedgerEntry, ...] | None = None
    pending: Metric = NOT_LOADED
    counters: dict[str, Metric] | None = None
    spread_captured: Metric = NOT_LOADED  # USD_DECIMALS


@dataclass(frozen=True)
class VolumeRecord:
    """Hourly volume for one token (USD_DECIMALS)."""

    timestamp: int
    token: str
    volume: Amount


@dataclass(frozen=True)
class VolumeStats:
    """Stats-server reads: hourly volume, all-time totals, open interest."""

    hourly: tuple[VolumeRecord, ...] | None = None  # newest-first
    totals: tuple[Amount, ...] | None = None
    total_long_positions: Metric = NOT_LOADED
    total_short_positions: Metric = NOT_LOADED


@dataclass(frozen=True)
class Bar:
    """One chart data point. ``time`` is unix seconds."""

    time: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    value: Decimal | None = None
    volume: Decimal | None = None


@dataclass(frozen=True)
class DistributionBucket:
    """One slice of a distribution pie. ``value`` is a percent with 2 places."""

    key: str
    label: str
    value: Decimal
    color: str
