"""24h high/low and price change shown under the index price chart."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from perpstats.models import Bar
from perpstats.numeric import Amount, Metric, Unknown, add, div
from perpstats.numeric.constants import SECONDS_PER_DAY

TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class PriceChange24h:
    high: Decimal | None = None
    low: Decimal | None = None
    reference_open: Decimal | None = None  # open of the earliest bar in the window
    delta: Decimal | None = None
    delta_percentage: Decimal | None = None

    @property
    def delta_percentage_text(self) -> str | None:
        if self.delta_percentage is None:
            return None
        if self.delta_percentage == 0:
            return "0.00"
        text = f"{self.delta_percentage.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)}%"
        return f"+{text}" if self.delta_percentage > 0 else text


def average_price(min_price: Metric, max_price: Metric) -> Metric:
    """Midpoint of the vault's min and max price."""
    return div(add(min_price, max_price), Amount(2, 0))


def price_change_24h(
    bars: Sequence[Bar],
    min_price: Metric,
    max_price: Metric,
    now: float,
) -> PriceChange24h:
    """Compute 24h high, low and change against the current average price.

    Args:
        bars: Chart series, oldest first.
        min_price: Current vault min price (USD_DECIMALS).
        max_price: Current vault max price (USD_DECIMALS).
        now: Current unix time.

    Returns:
        PriceChange24h; the delta fields stay None when there is no bar in
        the window or the current price is unknown or zero.
    """
    threshold = now - SECONDS_PER_DAY
    high: Decimal | None = None
    low: Decimal | None = None
    reference_open: Decimal | None = None

    for bar in reversed(bars):
        if bar.time < threshold:
            break
        high = bar.high if high is None else max(high, bar.high)
        low = bar.low if low is None else min(low, bar.low)
        reference_open = bar.open

    average = average_price(min_price, max_price)
    if reference_open is None or isinstance(average, Unknown):
        return PriceChange24h(high=high, low=low, reference_open=reference_open)

    current = average.to_decimal().quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    if current == 0:
        return PriceChange24h(high=high, low=low, reference_open=reference_open)

    delta = current - reference_open
    return PriceChange24h(
        high=high,
        low=low,
        reference_open=reference_open,
        delta=delta,
        delta_percentage=delta * 100 / current,
    )
