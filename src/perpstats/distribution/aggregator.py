"""Supply distribution buckets for the token distribution pie.

Shares are computed in integer basis points, each rounded down, and the
residual bucket ("in wallets") takes whatever is left, so a consistent bucket
set always sums to exactly 100.00. If the named parts exceed the total (reads
from different blocks can disagree) the residual is clamped to zero, shares
are normalised against the sum of parts instead, and the result is flagged
inconsistent.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Sequence

from perpstats.logging import get_logger
from perpstats.models import DistributionBucket
from perpstats.numeric import Amount, Metric, Unknown, bps_to_percent
from perpstats.numeric.constants import BASIS_POINTS_DIVISOR

logger = get_logger(__name__)


@dataclass(frozen=True)
class BucketCategory:
    key: str
    label: str
    color: str
    order: int  # tie-break for equal shares, lower first


STAKED = BucketCategory("staked", "staked", "#2d42fc", 0)
ARBITRUM_LIQUIDITY = BucketCategory("arbitrum_liquidity", "in Arbitrum liquidity", "#0598fa", 1)
MAINNET_LIQUIDITY = BucketCategory("mainnet_liquidity", "in Mainnet liquidity", "#4353fa", 2)
WALLETS = BucketCategory("wallets", "in wallets", "#5c0af5", 3)

DEFAULT_CATEGORIES = (STAKED, ARBITRUM_LIQUIDITY, MAINNET_LIQUIDITY)


@dataclass(frozen=True)
class DistributionResult:
    buckets: tuple[DistributionBucket, ...] = ()
    inconsistent: bool = False
    missing: tuple[str, ...] = ()  # categories whose input was Unknown

    @property
    def total(self) -> Decimal:
        return sum((b.value for b in self.buckets), Decimal("0"))


class DistributionAggregator:
    """Buckets a total into named categories plus a residual.

    Args:
        categories: Named categories, in tie-break order.
        residual: Category that absorbs the unaccounted remainder.
    """

    def __init__(
        self,
        categories: Sequence[BucketCategory] = DEFAULT_CATEGORIES,
        residual: BucketCategory = WALLETS,
    ) -> None:
        self._categories = tuple(categories)
        self._residual = residual

    def _bucket(self, category: BucketCategory, bps: int) -> DistributionBucket:
        return DistributionBucket(
            key=category.key,
            label=category.label,
            value=bps_to_percent(bps),
            color=category.color,
        )

    def aggregate(self, total: Metric, parts: Mapping[str, Metric]) -> DistributionResult:
        """Compute percentage buckets of total, sorted by share descending.

        Unknown or negative parts count as zero and are reported in
        ``missing``. An Unknown total produces no buckets at all.
        """
        all_keys = tuple(c.key for c in self._categories)
        if isinstance(total, Unknown):
            return DistributionResult(missing=all_keys)

        for key in parts:
            if key not in all_keys:
                logger.warning("distribution_unknown_category", key=key)

        scale = max([total.decimals] + [p.decimals for p in parts.values() if isinstance(p, Amount)])
        total_value = total.value * 10 ** (scale - total.decimals)

        values: dict[str, int] = {}
        missing: list[str] = []
        for category in self._categories:
            part = parts.get(category.key)
            if not isinstance(part, Amount) or part.value < 0:
                missing.append(category.key)
                values[category.key] = 0
                continue
            values[category.key] = part.value * 10 ** (scale - part.decimals)

        if total_value <= 0:
            buckets = [self._bucket(c, 0) for c in (*self._categories, self._residual)]
            return DistributionResult(buckets=tuple(buckets), missing=tuple(missing))

        part_sum = sum(values.values())
        inconsistent = part_sum > total_value
        denominator = total_value
        if inconsistent:
            logger.warning(
                "distribution_inconsistent",
                total=str(total_value),
                parts_sum=str(part_sum),
            )
            denominator = part_sum

        shares = {key: value * BASIS_POINTS_DIVISOR // denominator for key, value in values.items()}
        residual_bps = BASIS_POINTS_DIVISOR - sum(shares.values())

        ranked = [(self._bucket(c, shares[c.key]), c.order) for c in self._categories]
        ranked.append((self._bucket(self._residual, residual_bps), self._residual.order))
        ranked.sort(key=lambda item: (-item[0].value, item[1]))

        return DistributionResult(
            buckets=tuple(bucket for bucket, _ in ranked),
            inconsistent=inconsistent,
            missing=tuple(missing),
        )
