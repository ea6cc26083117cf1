"""Trading volume and open interest from stats-server reads."""

from dataclasses import dataclass, field
from typing import Sequence

from perpstats.models import VolumeRecord
from perpstats.numeric import NOT_LOADED, Amount, Metric, sum_amounts
from perpstats.numeric.constants import SECONDS_PER_DAY, SECONDS_PER_HOUR, USD_DECIMALS


@dataclass(frozen=True)
class VolumeInfo:
    """Rolling 24h volume, total and per token (USD_DECIMALS)."""

    total: Metric
    by_token: dict[str, Amount] = field(default_factory=dict)


def volume_24h(hourly: Sequence[VolumeRecord] | None, now: float) -> VolumeInfo:
    """Sum hourly volume over the last 24 whole hours.

    The window starts at the current hour boundary minus 24h. Records are
    newest-first, so iteration stops at the first record before the window.
    """
    if not hourly:
        return VolumeInfo(total=NOT_LOADED)

    min_time = int(now // SECONDS_PER_HOUR) * SECONDS_PER_HOUR - SECONDS_PER_DAY

    by_token: dict[str, int] = {}
    total = 0
    for record in hourly:
        if record.timestamp < min_time:
            break
        by_token[record.token] = by_token.get(record.token, 0) + record.volume.value
        total += record.volume.value

    return VolumeInfo(
        total=Amount(total, USD_DECIMALS),
        by_token={token: Amount(v, USD_DECIMALS) for token, v in by_token.items()},
    )


def total_volume(totals: Sequence[Amount] | None) -> Metric:
    """All-time volume across every recorded period."""
    if totals is None:
        return NOT_LOADED
    return sum_amounts(totals, USD_DECIMALS)
