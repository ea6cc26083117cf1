"""Tests for DistributionAggregator percentage buckets."""

from decimal import Decimal

import pytest

from perpstats.distribution import DistributionAggregator
from perpstats.numeric import NOT_LOADED, Amount, expand


def supply(value: int) -> Amount:
    return expand(value, 18)


@pytest.fixture
def aggregator() -> DistributionAggregator:
    return DistributionAggregator()


def _values(result) -> list[tuple[str, Decimal]]:
    return [(b.key, b.value) for b in result.buckets]


class TestAggregate:
    def test_buckets_sum_to_100(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(
            supply(10_000_000),
            {
                "staked": supply(1_000_000),
                "arbitrum_liquidity": supply(500_000),
                "mainnet_liquidity": supply(250_000),
            },
        )
        assert _values(result) == [
            ("wallets", Decimal("82.50")),
            ("staked", Decimal("10.00")),
            ("arbitrum_liquidity", Decimal("5.00")),
            ("mainnet_liquidity", Decimal("2.50")),
        ]
        assert result.total == Decimal("100.00")
        assert result.inconsistent is False
        assert result.missing == ()

    def test_rounding_remainder_goes_to_residual(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(
            supply(3),
            {"staked": supply(1), "arbitrum_liquidity": supply(1), "mainnet_liquidity": supply(0)},
        )
        assert _values(result) == [
            ("wallets", Decimal("33.34")),
            ("staked", Decimal("33.33")),
            ("arbitrum_liquidity", Decimal("33.33")),
            ("mainnet_liquidity", Decimal("0.00")),
        ]
        assert result.total == Decimal("100.00")

    def test_labels_and_colors(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(supply(1), {"arbitrum_liquidity": supply(1)})
        bucket = next(b for b in result.buckets if b.key == "arbitrum_liquidity")
        assert bucket.label == "in Arbitrum liquidity"
        assert bucket.color == "#0598fa"

    def test_zero_total(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(supply(0), {"staked": supply(0)})
        assert len(result.buckets) == 4
        assert all(b.value == Decimal("0.00") for b in result.buckets)

    def test_unknown_total_has_no_buckets(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(NOT_LOADED, {"staked": supply(1)})
        assert result.buckets == ()
        assert result.missing == ("staked", "arbitrum_liquidity", "mainnet_liquidity")

    def test_unknown_part_counts_as_zero(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(
            supply(100),
            {"staked": supply(50), "arbitrum_liquidity": NOT_LOADED},
        )
        values = dict(_values(result))
        assert values["staked"] == Decimal("50.00")
        assert values["arbitrum_liquidity"] == Decimal("0.00")
        assert values["wallets"] == Decimal("50.00")
        assert result.missing == ("arbitrum_liquidity", "mainnet_liquidity")

    def test_negative_part_is_missing(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(supply(100), {"staked": Amount(-1, 18)})
        assert "staked" in result.missing
        assert all(b.value >= 0 for b in result.buckets)


class TestInconsistent:
    def test_renormalised_against_parts(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(
            supply(100),
            {"staked": supply(80), "arbitrum_liquidity": supply(40), "mainnet_liquidity": supply(0)},
        )
        assert result.inconsistent is True
        assert _values(result) == [
            ("staked", Decimal("66.66")),
            ("arbitrum_liquidity", Decimal("33.33")),
            ("wallets", Decimal("0.01")),
            ("mainnet_liquidity", Decimal("0.00")),
        ]
        assert result.total == Decimal("100.00")

    def test_overflow_flagged_not_raised(self, aggregator: DistributionAggregator) -> None:
        result = aggregator.aggregate(supply(100), {"staked": supply(101)})
        assert result.inconsistent is True
        assert result.missing == ("arbitrum_liquidity", "mainnet_liquidity")
        assert _values(result) == [
            ("staked", Decimal("100.00")),
            ("arbitrum_liquidity", Decimal("0.00")),
            ("mainnet_liquidity", Decimal("0.00")),
            ("wallets", Decimal("0.00")),
        ]
