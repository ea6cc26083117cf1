"""Fee totals reconciled between the settled ledger and live pool counters.

The ledger is authoritative but lags real-time accrual: a period only shows
up once it settles. Live fee counters on the vault cover the open period.
For the open period the larger of the two figures is used, so the total never
under-reports. Right after a settlement the counters have just been swept into
the ledger, so within ``ledger_settle_grace_seconds`` of the newest ledger
period they are not added again.
"""

from dataclasses import dataclass
from typing import Iterable

from perpstats.models import FeeInputs, FeeLedgerEntry, TokenState
from perpstats.numeric import (
    NOT_LOADED,
    Amount,
    Metric,
    Unknown,
    add,
    is_known,
    maximum,
    mul,
    rescale,
)
from perpstats.numeric.constants import USD_DECIMALS

FEE_CATEGORIES = ("mint", "burn", "margin", "swap")


@dataclass(frozen=True)
class FeeReconciliation:
    """Fee figures for one cycle (USD_DECIMALS)."""

    settled: Metric
    current_period: Metric
    live: Metric
    distributed: Metric
    by_category: dict[str, Metric]
    included_live: bool = False


def current_fees_usd(
    tokens: Iterable[TokenState],
    counters: dict[str, Metric] | None,
) -> Metric:
    """Value live per-token fee reserves at each token's minimum price.

    Tokens without a counter or a known min price are skipped, matching how
    the vault's own fee view treats unpriced tokens.
    """
    if counters is None:
        return NOT_LOADED

    total: Metric = Amount(0, USD_DECIMALS)
    for token in tokens:
        fee = counters.get(token.address)
        if fee is None or isinstance(fee, Unknown) or not is_known(token.min_price):
            continue
        # token decimals * USD_DECIMALS -> USD_DECIMALS
        total = add(total, rescale(mul(fee, token.min_price), USD_DECIMALS))
    return total


def ledger_category_totals(ledger: Iterable[FeeLedgerEntry] | None) -> dict[str, Metric]:
    """Sum each fee category (mint, burn, margin, swap) across ledger periods."""
    if ledger is None:
        return {category: NOT_LOADED for category in FEE_CATEGORIES}
    totals = {category: 0 for category in FEE_CATEGORIES}
    for entry in ledger:
        for category in FEE_CATEGORIES:
            totals[category] += rescale(getattr(entry, category), USD_DECIMALS).value
    return {category: Amount(value, USD_DECIMALS) for category, value in totals.items()}


def distributed_fees(
    inputs: FeeInputs,
    live: Metric,
    now: float,
    settle_grace_seconds: int = 3600,
) -> FeeReconciliation:
    """Reconcile settled ledger fees with the open period's accrual.

    Args:
        inputs: Ledger entries (newest-first), ledger pending figure, counters.
        live: Live counter valuation from current_fees_usd().
        now: Current unix time.
        settle_grace_seconds: Window after the newest ledger period during
            which live counters are assumed already settled.

    Returns:
        FeeReconciliation; everything is Unknown when the ledger is not loaded.
    """
    by_category = ledger_category_totals(inputs.ledger)
    if inputs.ledger is None:
        return FeeReconciliation(
            settled=NOT_LOADED,
            current_period=NOT_LOADED,
            live=live,
            distributed=NOT_LOADED,
            by_category=by_category,
        )

    settled: Metric = Amount(0, USD_DECIMALS)
    for value in by_category.values():
        settled = add(settled, value)

    pending: Metric = inputs.pending if is_known(inputs.pending) else Amount(0, USD_DECIMALS)
    latest_to = max((entry.to_ts for entry in inputs.ledger), default=None)
    include_live = (
        latest_to is not None
        and now - latest_to > settle_grace_seconds
        and is_known(live)
    )

    current = maximum(pending, live) if include_live else pending
    return FeeReconciliation(
        settled=settled,
        current_period=current,
        live=live,
        distributed=add(settled, current),
        by_category=by_category,
        included_live=include_live,
    )


def total_fees(distributed: Metric, spread_captured: Metric) -> Metric:
    return add(distributed, spread_captured)
