"""Basis-point ratios for pool tokens: utilization and index weights.

Ratios come back as ``Amount`` at scale 2, so the magnitude is the bps figure
and the amount reads directly as a percentage (``Amount(1234, 2)`` = 12.34%).
A zero denominator yields ``Unknown(DIVISION_BY_ZERO)``: the presentation
layer may show it as 0%, but it stays distinguishable from a true zero.
"""

from dataclasses import dataclass

from perpstats.exceptions import DivisionByZero
from perpstats.models import TokenState
from perpstats.numeric import (
    PLACEHOLDER,
    Amount,
    Metric,
    Unknown,
    UnknownReason,
    compare,
    div,
    format_amount,
    rescale,
)
from perpstats.numeric.constants import BASIS_POINTS_DIVISOR

DIVISION_BY_ZERO = Unknown(UnknownReason.DIVISION_BY_ZERO)


def safe_div(numerator: Metric, denominator: Metric) -> Metric:
    """Divide, converting a zero divisor into Unknown."""
    try:
        return div(numerator, denominator)
    except DivisionByZero:
        return DIVISION_BY_ZERO


def ratio_bps(numerator: Metric, denominator: Metric) -> Metric:
    """numerator * 10000 / denominator, truncated, as a percent-scale Amount."""
    if isinstance(numerator, Unknown):
        return numerator
    if isinstance(denominator, Unknown):
        return denominator
    if denominator.is_zero():
        return DIVISION_BY_ZERO
    scale = max(numerator.decimals, denominator.decimals)
    num = rescale(numerator, scale)
    den = rescale(denominator, scale)
    quotient = div(Amount(num.value * BASIS_POINTS_DIVISOR, 0), Amount(den.value, 0))
    return Amount(quotient.value, 2)


def utilization(token: TokenState) -> Metric:
    """Share of the pool reserved for open positions, in bps."""
    return ratio_bps(token.reserved_amount, token.pool_amount)


def current_weight_bps(token: TokenState, adjusted_usdg_supply: Metric) -> Metric:
    return ratio_bps(token.usdg_amount, adjusted_usdg_supply)


def target_weight_bps(token: TokenState, total_token_weights: Metric) -> Metric:
    return ratio_bps(token.weight, total_token_weights)


@dataclass(frozen=True)
class WeightInfo:
    """Current vs. target index weight for one token."""

    symbol: str
    current: Metric
    target: Metric

    @property
    def text(self) -> str:
        if isinstance(self.current, Unknown) or isinstance(self.target, Unknown):
            return PLACEHOLDER
        return f"{format_amount(self.current, 2)}% / {format_amount(self.target, 2)}%"

    @property
    def below_target(self) -> bool | None:
        if isinstance(self.current, Unknown) or isinstance(self.target, Unknown):
            return None
        return compare(self.current, self.target) < 0

    @property
    def above_target(self) -> bool | None:
        if isinstance(self.current, Unknown) or isinstance(self.target, Unknown):
            return None
        return compare(self.current, self.target) > 0


def weight_text(
    token: TokenState,
    adjusted_usdg_supply: Metric,
    total_token_weights: Metric,
) -> WeightInfo:
    """Current weight (usdg share) and target weight (configured share) for a token."""
    return WeightInfo(
        symbol=token.symbol,
        current=current_weight_bps(token, adjusted_usdg_supply),
        target=target_weight_bps(token, total_token_weights),
    )
