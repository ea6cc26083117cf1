"""Distribution aggregation for supply and volume breakdown charts."""

from perpstats.distribution.aggregator import (
    DEFAULT_CATEGORIES,
    WALLETS,
    BucketCategory,
    DistributionAggregator,
    DistributionResult,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "WALLETS",
    "BucketCategory",
    "DistributionAggregator",
    "DistributionResult",
]
