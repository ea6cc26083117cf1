"""Tests for 24h and all-time volume."""

from perpstats.metrics.volume import total_volume, volume_24h
from perpstats.models import VolumeRecord
from perpstats.numeric import NOT_LOADED, Amount, expand
from perpstats.numeric.constants import USD_DECIMALS

HOUR_BOUNDARY = 1699999200
NOW = HOUR_BOUNDARY + 1800
WINDOW_START = HOUR_BOUNDARY - 86400


def _record(ts: int, token: str, volume: int) -> VolumeRecord:
    return VolumeRecord(timestamp=ts, token=token, volume=expand(volume, USD_DECIMALS))


class TestVolume24h:
    def test_sums_window_per_token(self) -> None:
        hourly = [
            _record(HOUR_BOUNDARY, "ETH", 100),
            _record(HOUR_BOUNDARY - 3600, "ETH", 20),
            _record(WINDOW_START, "USDC", 50),
            _record(WINDOW_START - 3600, "ETH", 1000),
        ]
        info = volume_24h(hourly, NOW)
        assert info.total == expand(170, USD_DECIMALS)
        assert info.by_token == {
            "ETH": expand(120, USD_DECIMALS),
            "USDC": expand(50, USD_DECIMALS),
        }

    def test_stops_at_first_older_record(self) -> None:
        hourly = [
            _record(HOUR_BOUNDARY, "ETH", 100),
            _record(WINDOW_START - 1, "ETH", 1000),
            _record(HOUR_BOUNDARY, "ETH", 7),
        ]
        assert volume_24h(hourly, NOW).total == expand(100, USD_DECIMALS)

    def test_not_loaded(self) -> None:
        assert volume_24h(None, NOW).total is NOT_LOADED
        assert volume_24h([], NOW).total is NOT_LOADED


class TestTotalVolume:
    def test_sum(self) -> None:
        totals = [expand(1000, USD_DECIMALS), expand(500, USD_DECIMALS)]
        assert total_volume(totals) == expand(1500, USD_DECIMALS)

    def test_empty_is_known_zero(self) -> None:
        assert total_volume([]) == Amount(0, USD_DECIMALS)

    def test_not_loaded(self) -> None:
        assert total_volume(None) is NOT_LOADED
