"""Derived dashboard metrics computed from one cycle of raw reads.

All figures are fixed-point Amounts at USD_DECIMALS unless noted. Every
function propagates Unknown: a figure whose inputs are not loaded is itself
Unknown, never zero. The snapshot is rebuilt from scratch each cycle.
"""

import time
from dataclasses import dataclass, field
from typing import Sequence

from perpstats.config import FeeSettings, PriceSettings
from perpstats.distribution.aggregator import DistributionAggregator, DistributionResult
from perpstats.logging import get_logger
from perpstats.metrics.fees import FeeReconciliation, current_fees_usd, distributed_fees, total_fees
from perpstats.metrics.ratios import ratio_bps
from perpstats.metrics.volume import VolumeInfo, total_volume, volume_24h
from perpstats.models import (
    FeeInputs,
    PriceObservation,
    StakingTotals,
    SupplyFigures,
    TokenState,
    VolumeStats,
)
from perpstats.numeric import (
    NOT_LOADED,
    Amount,
    Metric,
    Unknown,
    add,
    div,
    expand,
    is_known,
    mul,
    rescale,
)
from perpstats.numeric.constants import SECONDS_PER_YEAR, USD_DECIMALS
from perpstats.pool.composition import PoolComposition, TokenRow, pool_composition, token_rows
from perpstats.pricing.reconciler import PriceReconciler, ReconciledPrice

logger = get_logger(__name__)


def market_cap(price: Metric, supply: Metric) -> Metric:
    """price * supply / 10**supply_decimals, at the price's scale."""
    if isinstance(price, Unknown):
        return price
    return rescale(mul(price, supply), price.decimals)


def fully_diluted_market_cap(price: Metric, total_supply: Metric) -> Metric:
    return market_cap(price, total_supply)


def assets_under_management(aums: Sequence[Amount] | None) -> Metric:
    """Midpoint of the pool valuation's low/high estimates."""
    if not aums:
        return NOT_LOADED
    return div(add(aums[0], aums[-1]), Amount(2, 0))


def staking_value(price: Metric, total_staked: Metric) -> Metric:
    return market_cap(price, total_staked)


def total_value_locked(aum: Metric, staked_value: Metric) -> Metric:
    return add(aum, staked_value)


def index_token_price(aum: Metric, index_supply: Metric) -> Metric:
    """Pool AUM per index token; 1 USD before the pool holds anything."""
    if isinstance(aum, Unknown):
        return aum
    if isinstance(index_supply, Unknown):
        return index_supply
    if aum.value <= 0 or index_supply.value <= 0:
        return expand(1, USD_DECIMALS)
    return rescale(div(aum, index_supply), USD_DECIMALS)


def staking_apr(
    asset_price: Metric,
    reward_price: Metric,
    rewards_per_second: Metric,
    total_staked: Metric,
) -> Metric:
    """Annualised reward value over staked value, as a percent-scale Amount (bps magnitude)."""
    annual_rewards = mul(rewards_per_second, Amount(SECONDS_PER_YEAR, 0))
    annual_rewards_usd = rescale(mul(annual_rewards, reward_price), USD_DECIMALS)
    staked_usd = staking_value(asset_price, total_staked)
    return ratio_bps(annual_rewards_usd, staked_usd)


@dataclass(frozen=True)
class RawCycle:
    """Validated inputs for one poll cycle."""

    tokens: tuple[TokenState, ...] | None = None
    total_token_weights: Metric = NOT_LOADED
    observations: tuple[PriceObservation, ...] = ()
    supplies: SupplyFigures = field(default_factory=SupplyFigures)
    staking: StakingTotals = field(default_factory=StakingTotals)
    fees: FeeInputs = field(default_factory=FeeInputs)
    aums: tuple[Amount, ...] | None = None
    volume: VolumeStats = field(default_factory=VolumeStats)


@dataclass(frozen=True)
class MetricSnapshot:
    """Everything the dashboard renders for one cycle. Never mutated."""

    cycle: int
    computed_at: float
    prices: dict[str, ReconciledPrice]
    token_price: Metric
    market_cap: Metric
    fully_diluted_market_cap: Metric
    aum: Metric
    index_price: Metric
    index_market_cap: Metric
    staking_value: Metric
    total_value_locked: Metric
    fees: FeeReconciliation
    spread_captured_fees: Metric
    total_fees: Metric
    staking_apr: Metric
    volume_24h: VolumeInfo
    total_volume: Metric
    long_open_interest: Metric
    short_open_interest: Metric
    pool: PoolComposition
    token_rows: tuple[TokenRow, ...]
    distribution: DistributionResult

    @property
    def inconsistent(self) -> bool:
        return self.distribution.inconsistent


class MetricsCalculator:
    """Single writer of MetricSnapshot.

    Args:
        price_settings: Canonical source priority and fallback policy.
        fee_settings: Ledger settlement window.
        aggregator: Distribution bucket configuration.
    """

    def __init__(
        self,
        price_settings: PriceSettings,
        fee_settings: FeeSettings,
        aggregator: DistributionAggregator | None = None,
    ) -> None:
        self._reconciler = PriceReconciler(price_settings)
        self._fee_settings = fee_settings
        self._aggregator = aggregator or DistributionAggregator()
        self._cycle = 0

    @property
    def reconciler(self) -> PriceReconciler:
        return self._reconciler

    def compute(self, raw: RawCycle, now: float | None = None) -> MetricSnapshot:
        """Recompute every derived figure from one cycle of raw reads."""
        now = time.time() if now is None else now
        self._cycle += 1

        staking = raw.staking
        assets = {staking.staked_asset, staking.reward_asset}
        assets.update(obs.asset for obs in raw.observations)
        prices = self._reconciler.reconcile_all(sorted(assets), raw.observations, now)

        token_price = prices[staking.staked_asset].canonical
        reward_price = prices[staking.reward_asset].canonical

        aum = assets_under_management(raw.aums)
        index_price = index_token_price(aum, raw.supplies.index_supply)
        staked_value = staking_value(token_price, staking.total_staked)

        live_fees = current_fees_usd(raw.tokens or (), raw.fees.counters)
        fees = distributed_fees(raw.fees, live_fees, now, self._fee_settings.ledger_settle_grace_seconds)

        distribution_parts: dict[str, Metric] = {"staked": staking.total_staked}
        distribution_parts.update(staking.in_liquidity)
        distribution = self._aggregator.aggregate(raw.supplies.total, distribution_parts)

        snapshot = MetricSnapshot(
            cycle=self._cycle,
            computed_at=now,
            prices=prices,
            token_price=token_price,
            market_cap=market_cap(token_price, raw.supplies.circulating),
            fully_diluted_market_cap=fully_diluted_market_cap(token_price, raw.supplies.total),
            aum=aum,
            index_price=index_price,
            index_market_cap=market_cap(index_price, raw.supplies.index_supply),
            staking_value=staked_value,
            total_value_locked=total_value_locked(aum, staked_value),
            fees=fees,
            spread_captured_fees=raw.fees.spread_captured,
            total_fees=total_fees(fees.distributed, raw.fees.spread_captured),
            staking_apr=staking_apr(token_price, reward_price, staking.rewards_per_second, staking.total_staked),
            volume_24h=volume_24h(raw.volume.hourly, now),
            total_volume=total_volume(raw.volume.totals),
            long_open_interest=raw.volume.total_long_positions,
            short_open_interest=raw.volume.total_short_positions,
            pool=pool_composition(raw.tokens),
            token_rows=token_rows(raw.tokens, raw.total_token_weights),
            distribution=distribution,
        )

        logger.debug(
            "metric_snapshot_computed",
            cycle=snapshot.cycle,
            token_price_known=is_known(token_price),
            aum_known=is_known(aum),
            inconsistent=snapshot.inconsistent,
        )
        return snapshot
