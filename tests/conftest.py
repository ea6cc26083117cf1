"""Shared test fixtures for the perpstats engine."""

import pytest

from perpstats.config import AppSettings, FeeSettings, PriceSettings, RefreshSettings
from perpstats.models import TokenState
from perpstats.numeric import expand, from_raw
from perpstats.numeric.constants import USD_DECIMALS, USDG_DECIMALS


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (debug logging, fast polling)."""
    return AppSettings(
        log_level="DEBUG",
        prices=PriceSettings(primary_source="arbitrum", source_priority=["arbitrum", "mainnet"]),
        fees=FeeSettings(),
        refresh=RefreshSettings(poll_interval_seconds=0.01),
    )


@pytest.fixture
def eth_token() -> TokenState:
    """Volatile index token: 100 ETH pooled, 25 reserved, $2,000 min price."""
    return TokenState(
        address="0xeth",
        symbol="ETH",
        name="Ethereum",
        decimals=18,
        pool_amount=expand(100, 18),
        reserved_amount=expand(25, 18),
        usdg_amount=expand(600, USDG_DECIMALS),
        weight=from_raw(30000, 0),
        max_usdg_amount=expand(0, USDG_DECIMALS),
        guaranteed_usd=expand(10000, USD_DECIMALS),
        min_price=expand(2000, USD_DECIMALS),
        max_price=expand(2002, USD_DECIMALS),
    )


@pytest.fixture
def usdc_token() -> TokenState:
    """Stable index token with 6 decimals."""
    return TokenState(
        address="0xusdc",
        symbol="USDC",
        name="USD Coin",
        decimals=6,
        pool_amount=expand(400, 6),
        reserved_amount=expand(100, 6),
        usdg_amount=expand(400, USDG_DECIMALS),
        weight=from_raw(70000, 0),
        max_usdg_amount=expand(50_000_000, USDG_DECIMALS),
        guaranteed_usd=expand(0, USD_DECIMALS),
        min_price=expand(1, USD_DECIMALS),
        max_price=expand(1, USD_DECIMALS),
        is_stable=True,
    )


@pytest.fixture
def weth_token() -> TokenState:
    """Wrapped native token; listed under ETH and excluded from index figures."""
    return TokenState(
        address="0xweth",
        symbol="WETH",
        decimals=18,
        usdg_amount=expand(999, USDG_DECIMALS),
        is_wrapped=True,
    )


# ---------------------------------------------------------------------------
# One cycle of raw reads, in the wire shape the sources deliver
# ---------------------------------------------------------------------------

NOW = 1_700_001_000  # 1699999200 is the current hour boundary


@pytest.fixture
def now() -> float:
    return float(NOW)


@pytest.fixture
def raw_sections() -> dict:
    """Raw payload per source section.

    Expected headline figures for this cycle:
      MYC price 1.00 (arbitrum), market cap 5,000,000, FDMC 10,000,000
      AUM 1,100, index price 1.10, staked value 1,000,000, APR 63.07%
      fees: settled 475, live 1,010, distributed 1,485, total 1,490
      24h volume 150, total volume 1,500
      distribution: wallets 82.50, staked 10.00, arbitrum 5.00, mainnet 2.50
      pool: ETH 60.00, USDC 40.00, stablecoin share 40.00
      chart: 24h high 1.05, low 0.94, index price change +9.09%
    """
    e18 = 10**18
    e30 = 10**30
    return {
        "tokenStates": {
            "tokens": [
                {
                    "address": "0xETH",
                    "symbol": "ETH",
                    "name": "Ethereum",
                    "decimals": 18,
                    "poolAmount": str(100 * e18),
                    "reservedAmount": str(25 * e18),
                    "usdgAmount": str(600 * e18),
                    "weight": "30000",
                    "maxUsdgAmount": "0",
                    "guaranteedUsd": str(10000 * e30),
                    "minPrice": str(2000 * e30),
                    "maxPrice": str(2002 * e30),
                },
                {
                    "address": "0xUSDC",
                    "symbol": "USDC",
                    "name": "USD Coin",
                    "decimals": 6,
                    "poolAmount": str(400 * 10**6),
                    "reservedAmount": str(100 * 10**6),
                    "usdgAmount": str(400 * e18),
                    "weight": "70000",
                    "maxUsdgAmount": str(50_000_000 * e18),
                    "guaranteedUsd": "0",
                    "minPrice": str(e30),
                    "maxPrice": str(e30),
                    "isStable": True,
                },
            ],
            "totalTokenWeights": "100000",
        },
        "prices": [
            {"source": "arbitrum", "asset": "MYC", "value": str(e30), "observedAt": NOW},
            {"source": "mainnet", "asset": "MYC", "value": str(11 * 10**29), "observedAt": NOW},
            {"source": "arbitrum", "asset": "ETH", "value": str(2000 * e30), "observedAt": NOW},
        ],
        "supplies": {
            "circulating": str(5_000_000 * e18),
            "total": str(10_000_000 * e18),
            "indexSupply": str(1000 * e18),
        },
        "staking": {
            "stakedAsset": "MYC",
            "rewardAsset": "ETH",
            "totalStaked": str(1_000_000 * e18),
            "rewardsPerSecond": str(10**13),
            "inLiquidity": {
                "arbitrum_liquidity": str(500_000 * e18),
                "mainnet_liquidity": str(250_000 * e18),
            },
        },
        "fees": {
            "ledger": [
                {
                    "from": NOW - 90000,
                    "to": NOW - 7200,
                    "mint": "100",
                    "burn": "50",
                    "marginAndLiquidation": "300",
                    "swap": "25",
                }
            ],
            "pending": "20",
            "counters": {"0xeth": str(5 * 10**17), "0xusdc": str(10 * 10**6)},
            "counterDecimals": {"0xusdc": 6},
            "spreadCaptured": "5",
        },
        "aums": [str(1000 * e30), str(1200 * e30)],
        "volumeStats": {
            "hourlyVolume": [
                {"data": {"timestamp": 1699999200, "token": "ETH", "volume": str(100 * e30)}},
                {"data": {"timestamp": 1699912800, "token": "USDC", "volume": str(50 * e30)}},
            ],
            "totalVolume": [
                {"data": {"volume": str(1000 * e30)}},
                {"data": {"volume": str(500 * e30)}},
            ],
            "positionStats": {
                "totalLongPositionSizes": str(300 * e30),
                "totalShortPositionSizes": str(200 * e30),
            },
        },
        "bars": [
            {"time": NOW - 3600, "open": "1.00", "high": "1.02", "low": "0.94", "close": "1.00"},
            {"time": NOW, "open": "1.00", "high": "1.05", "low": "0.99", "close": "1.01"},
        ],
    }
