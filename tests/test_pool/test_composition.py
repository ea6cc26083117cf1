"""Tests for index pool composition and the token table rows."""

from dataclasses import replace
from decimal import Decimal

from perpstats.models import TokenState
from perpstats.numeric import NOT_LOADED, Amount, expand
from perpstats.numeric.constants import DEFAULT_MAX_USDG_AMOUNT, USD_DECIMALS, USDG_DECIMALS
from perpstats.pool import adjusted_usdg_supply, pool_composition, token_rows
from perpstats.pool.composition import managed_amount, managed_usd, max_capacity


class TestAdjustedSupply:
    def test_excludes_wrapped(self, eth_token: TokenState, usdc_token: TokenState, weth_token: TokenState) -> None:
        supply = adjusted_usdg_supply([eth_token, usdc_token, weth_token])
        assert supply == expand(1000, USDG_DECIMALS)

    def test_skips_unknown_usdg(self, eth_token: TokenState, usdc_token: TokenState) -> None:
        unknown = replace(usdc_token, usdg_amount=NOT_LOADED)
        assert adjusted_usdg_supply([eth_token, unknown]) == expand(600, USDG_DECIMALS)

    def test_not_loaded(self) -> None:
        assert adjusted_usdg_supply(None) is NOT_LOADED


class TestPoolComposition:
    def test_shares_sorted_descending(self, eth_token: TokenState, usdc_token: TokenState, weth_token: TokenState) -> None:
        pool = pool_composition([usdc_token, weth_token, eth_token])
        assert [(s.symbol, s.value) for s in pool.shares] == [
            ("ETH", Decimal("60.00")),
            ("USDC", Decimal("40.00")),
        ]
        assert sum(s.weight_bps for s in pool.shares) == 10000
        assert pool.stablecoin_share_percent == "40.00"

    def test_empty_pool_stable_share(self, eth_token: TokenState) -> None:
        empty = replace(eth_token, usdg_amount=expand(0, USDG_DECIMALS))
        pool = pool_composition([empty])
        assert pool.shares == ()
        assert pool.stablecoin_share_percent == "0.00"

    def test_unknown_usdg_dropped(self, eth_token: TokenState, usdc_token: TokenState) -> None:
        pool = pool_composition([eth_token, replace(usdc_token, usdg_amount=NOT_LOADED)])
        assert [(s.symbol, s.value) for s in pool.shares] == [("ETH", Decimal("100.00"))]
        assert pool.stablecoin_share_percent == "0.00"

    def test_bps_sum_within_rounding(self, eth_token: TokenState) -> None:
        thirds = [
            replace(eth_token, symbol=f"T{i}", usdg_amount=expand(1, USDG_DECIMALS))
            for i in range(3)
        ]
        pool = pool_composition(thirds)
        assert 9997 <= sum(s.weight_bps for s in pool.shares) <= 10000


class TestTokenRows:
    def test_managed_usd_volatile(self, eth_token: TokenState) -> None:
        # (100 - 25) ETH * $2,000 + $10,000 guaranteed
        assert managed_usd(eth_token) == expand(160_000, USD_DECIMALS)
        assert managed_amount(eth_token) == expand(80, 18)

    def test_managed_usd_stable_uses_whole_pool(self, usdc_token: TokenState) -> None:
        assert managed_usd(usdc_token) == expand(400, USD_DECIMALS)
        assert managed_amount(usdc_token) == expand(400, 6)

    def test_max_capacity_default(self, eth_token: TokenState, usdc_token: TokenState) -> None:
        assert max_capacity(eth_token) == DEFAULT_MAX_USDG_AMOUNT
        assert max_capacity(usdc_token) == expand(50_000_000, USDG_DECIMALS)

    def test_rows(self, eth_token: TokenState, usdc_token: TokenState, weth_token: TokenState) -> None:
        rows = token_rows([eth_token, usdc_token, weth_token], Amount(100000, 0))
        assert [r.symbol for r in rows] == ["ETH", "USDC"]
        eth = rows[0]
        assert eth.utilization == Amount(2500, 2)
        assert eth.weight.text == "60.00% / 30.00%"

    def test_rows_not_loaded(self) -> None:
        assert token_rows(None, Amount(1, 0)) == ()
