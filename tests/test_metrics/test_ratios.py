"""Tests for utilization and index weight ratios."""

from dataclasses import replace

from perpstats.metrics.ratios import (
    DIVISION_BY_ZERO,
    WeightInfo,
    ratio_bps,
    safe_div,
    utilization,
    weight_text,
)
from perpstats.models import TokenState
from perpstats.numeric import NOT_LOADED, PLACEHOLDER, Amount, expand, from_raw
from perpstats.numeric.constants import USDG_DECIMALS

SUPPLY = expand(1000, USDG_DECIMALS)
TOTAL_WEIGHTS = from_raw(100000, 0)


class TestRatioBps:
    def test_percent_scale(self) -> None:
        assert ratio_bps(Amount(1, 0), Amount(3, 0)) == Amount(3333, 2)

    def test_zero_denominator_is_unknown_not_zero(self) -> None:
        result = ratio_bps(Amount(1, 0), Amount(0, 18))
        assert result == DIVISION_BY_ZERO
        assert result != Amount(0, 2)

    def test_unknown_inputs(self) -> None:
        assert ratio_bps(NOT_LOADED, Amount(1, 0)) is NOT_LOADED
        assert ratio_bps(Amount(1, 0), NOT_LOADED) is NOT_LOADED

    def test_safe_div(self) -> None:
        assert safe_div(Amount(1, 0), Amount(0, 0)) == DIVISION_BY_ZERO
        assert safe_div(Amount(6, 0), Amount(3, 0)) == Amount(2, 0)


class TestUtilization:
    def test_reserved_over_pool(self, eth_token: TokenState) -> None:
        assert utilization(eth_token) == Amount(2500, 2)

    def test_empty_pool(self, eth_token: TokenState) -> None:
        token = replace(eth_token, pool_amount=expand(0, 18))
        assert utilization(token) == DIVISION_BY_ZERO


class TestWeights:
    def test_above_target(self, eth_token: TokenState) -> None:
        info = weight_text(eth_token, SUPPLY, TOTAL_WEIGHTS)
        assert info.current == Amount(6000, 2)
        assert info.target == Amount(3000, 2)
        assert info.text == "60.00% / 30.00%"
        assert info.above_target is True
        assert info.below_target is False

    def test_below_target(self, usdc_token: TokenState) -> None:
        info = weight_text(usdc_token, SUPPLY, TOTAL_WEIGHTS)
        assert info.text == "40.00% / 70.00%"
        assert info.below_target is True

    def test_zero_usdg_is_known_zero(self, eth_token: TokenState) -> None:
        token = replace(eth_token, usdg_amount=expand(0, USDG_DECIMALS))
        info = weight_text(token, SUPPLY, TOTAL_WEIGHTS)
        assert info.current == Amount(0, 2)

    def test_unknown_renders_placeholder(self, eth_token: TokenState) -> None:
        info = weight_text(eth_token, NOT_LOADED, TOTAL_WEIGHTS)
        assert info.text == PLACEHOLDER
        assert info.below_target is None

    def test_weight_info_is_plain_value(self) -> None:
        info = WeightInfo(symbol="X", current=Amount(1234, 2), target=Amount(1234, 2))
        assert info.text == "12.34% / 12.34%"
        assert info.above_target is False
