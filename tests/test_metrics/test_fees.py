"""Tests for fee reconciliation between the ledger and live counters.

All amounts are exact USD_DECIMALS fixed-point values.
"""

from dataclasses import replace

import pytest

from perpstats.metrics.fees import current_fees_usd, distributed_fees, ledger_category_totals, total_fees
from perpstats.models import FeeInputs, FeeLedgerEntry, TokenState
from perpstats.numeric import NOT_LOADED, expand
from perpstats.numeric.constants import USD_DECIMALS

NOW = 1_700_000_000


def usd(value: int | str):
    return expand(value, USD_DECIMALS)


def _ledger(to_ts: int) -> tuple[FeeLedgerEntry, ...]:
    return (
        FeeLedgerEntry(
            from_ts=to_ts - 86400,
            to_ts=to_ts,
            mint=usd(100),
            burn=usd(50),
            margin=usd(300),
            swap=usd(25),
        ),
    )


class TestCurrentFeesUsd:
    def test_values_counters_at_min_price(self, eth_token: TokenState, usdc_token: TokenState) -> None:
        counters = {"0xeth": expand("0.5", 18), "0xusdc": expand(10, 6)}
        # 0.5 ETH * 2000 + 10 USDC * 1
        assert current_fees_usd([eth_token, usdc_token], counters) == usd(1010)

    def test_skips_unpriced_tokens(self, eth_token: TokenState, usdc_token: TokenState) -> None:
        unpriced = replace(eth_token, min_price=NOT_LOADED)
        counters = {"0xeth": expand("0.5", 18), "0xusdc": expand(10, 6)}
        assert current_fees_usd([unpriced, usdc_token], counters) == usd(10)

    def test_counters_not_loaded(self, eth_token: TokenState) -> None:
        assert current_fees_usd([eth_token], None) is NOT_LOADED


class TestDistributedFees:
    def test_adds_live_after_grace_period(self) -> None:
        inputs = FeeInputs(ledger=_ledger(NOW - 7200), pending=usd(20))
        result = distributed_fees(inputs, usd(30), NOW, settle_grace_seconds=3600)
        assert result.settled == usd(475)
        assert result.current_period == usd(30)
        assert result.distributed == usd(505)
        assert result.included_live is True

    def test_pending_wins_when_larger(self) -> None:
        inputs = FeeInputs(ledger=_ledger(NOW - 7200), pending=usd(40))
        result = distributed_fees(inputs, usd(30), NOW, settle_grace_seconds=3600)
        assert result.distributed == usd(515)

    def test_recent_settlement_ignores_live(self) -> None:
        """Counters were just swept into the ledger; adding them would double count."""
        inputs = FeeInputs(ledger=_ledger(NOW - 600), pending=usd(20))
        result = distributed_fees(inputs, usd(30), NOW, settle_grace_seconds=3600)
        assert result.current_period == usd(20)
        assert result.distributed == usd(495)
        assert result.included_live is False

    def test_missing_pending_counts_as_zero(self) -> None:
        inputs = FeeInputs(ledger=_ledger(NOW - 7200))
        result = distributed_fees(inputs, usd(30), NOW)
        assert result.distributed == usd(505)

    def test_ledger_not_loaded(self) -> None:
        result = distributed_fees(FeeInputs(), usd(30), NOW)
        assert result.settled is NOT_LOADED
        assert result.distributed is NOT_LOADED
        assert result.live == usd(30)

    def test_category_totals(self) -> None:
        totals = ledger_category_totals(_ledger(NOW) + _ledger(NOW - 86400))
        assert totals == {
            "mint": usd(200),
            "burn": usd(100),
            "margin": usd(600),
            "swap": usd(50),
        }

    @pytest.mark.parametrize(
        "spread, expected",
        [(usd(5), usd(510)), (NOT_LOADED, NOT_LOADED)],
    )
    def test_total_fees(self, spread, expected) -> None:
        assert total_fees(usd(505), spread) == expected
