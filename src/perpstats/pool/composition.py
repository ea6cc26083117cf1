"""Index pool composition: per-token weight shares and stablecoin share.

Weights are measured in the pool's internal accounting unit (usdgAmount),
which normalises each token's contribution independent of its decimals.
Wrapped tokens are listed under their native token and are excluded here.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from perpstats.metrics.ratios import WeightInfo, current_weight_bps, safe_div, utilization, weight_text
from perpstats.models import TokenState
from perpstats.numeric import (
    NOT_LOADED,
    Amount,
    Metric,
    Unknown,
    add,
    bps_to_percent,
    is_known,
    mul,
    rescale,
    sub,
)
from perpstats.numeric.constants import DEFAULT_MAX_USDG_AMOUNT, USD_DECIMALS, USDG_DECIMALS


@dataclass(frozen=True)
class PoolShare:
    symbol: str
    name: str
    weight_bps: int
    value: Decimal  # percent, 2 places
    is_stable: bool = False


@dataclass(frozen=True)
class PoolComposition:
    shares: tuple[PoolShare, ...]
    stablecoin_share_percent: str
    adjusted_usdg_supply: Metric


@dataclass(frozen=True)
class TokenRow:
    """One row of the index composition table."""

    symbol: str
    name: str
    pool_amount: Metric
    managed_amount: Metric
    managed_usd: Metric
    utilization: Metric
    weight: WeightInfo
    max_capacity: Amount


def _index_tokens(tokens: Iterable[TokenState]) -> list[TokenState]:
    return [t for t in tokens if not t.is_wrapped]


def adjusted_usdg_supply(tokens: Sequence[TokenState] | None) -> Metric:
    """Sum of usdgAmount over index tokens; tokens with no usdg read are skipped."""
    if tokens is None:
        return NOT_LOADED
    total: Metric = Amount(0, USDG_DECIMALS)
    for token in _index_tokens(tokens):
        if is_known(token.usdg_amount):
            total = add(total, token.usdg_amount)
    return total


def pool_composition(tokens: Sequence[TokenState] | None) -> PoolComposition:
    """Weight share of each index token, sorted descending, plus stablecoin share."""
    supply = adjusted_usdg_supply(tokens)
    shares: list[PoolShare] = []
    stable_total = Decimal("0")
    total = Decimal("0")

    for token in _index_tokens(tokens or ()):
        weight = current_weight_bps(token, supply)
        if isinstance(weight, Unknown):
            continue
        percent = bps_to_percent(weight.value)
        if token.is_stable:
            stable_total += percent
        total += percent
        shares.append(
            PoolShare(
                symbol=token.symbol,
                name=token.name or token.symbol,
                weight_bps=weight.value,
                value=percent,
                is_stable=token.is_stable,
            )
        )

    if total > 0:
        stable_percent = str((stable_total * 100 / total).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    else:
        stable_percent = "0.00"

    shares.sort(key=lambda s: s.value, reverse=True)
    return PoolComposition(
        shares=tuple(shares),
        stablecoin_share_percent=stable_percent,
        adjusted_usdg_supply=supply,
    )


def managed_usd(token: TokenState) -> Metric:
    """USD value the pool manages for a token: available value plus guaranteed USD.

    Stablecoins count the whole pool amount as available, since reserves for
    shorts are paid out in them rather than set aside.
    """
    available = token.pool_amount if token.is_stable else sub(token.pool_amount, token.reserved_amount)
    available_usd = rescale(mul(available, token.min_price), USD_DECIMALS)
    return add(available_usd, token.guaranteed_usd)


def managed_amount(token: TokenState) -> Metric:
    """managed_usd expressed in token units at the token's min price."""
    return rescale(safe_div(managed_usd(token), token.min_price), token.decimals)


def max_capacity(token: TokenState) -> Amount:
    """Configured usdg cap, or the protocol default when unset or zero."""
    cap = token.max_usdg_amount
    if isinstance(cap, Amount) and cap.value > 0:
        return cap
    return DEFAULT_MAX_USDG_AMOUNT


def token_rows(
    tokens: Sequence[TokenState] | None,
    total_token_weights: Metric,
) -> tuple[TokenRow, ...]:
    """Build the composition table rows for every index token."""
    if tokens is None:
        return ()
    supply = adjusted_usdg_supply(tokens)
    return tuple(
        TokenRow(
            symbol=token.symbol,
            name=token.name or token.symbol,
            pool_amount=token.pool_amount,
            managed_amount=managed_amount(token),
            managed_usd=managed_usd(token),
            utilization=utilization(token),
            weight=weight_text(token, supply, total_token_weights),
            max_capacity=max_capacity(token),
        )
        for token in _index_tokens(tokens)
    )
