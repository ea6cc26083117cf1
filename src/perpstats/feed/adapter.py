"""Datafeed adapter for the embeddable charting widget.

The widget drives this object through callbacks: it calls an operation and
waits for the matching callback, so results are never returned directly.
The feed serves a single contiguous window of bars that is already fully
loaded. Requests for earlier pages are answered with ``noData`` rather than
partial pagination, and live updates are not wired: subscriptions are
recorded but never pushed to.
"""

from dataclasses import asdict, dataclass
from typing import Any, Callable, Mapping, Sequence

from perpstats.exceptions import BarSeriesError, MalformedSymbolError
from perpstats.feed.scheduler import AsyncioScheduler, Scheduler
from perpstats.logging import get_logger
from perpstats.models import Bar
from perpstats.sources.ingest import parse_flag

logger = get_logger(__name__)

# 5m, 15m, 1h, 4h, 1d
DEFAULT_RESOLUTIONS: tuple[str, ...] = ("5", "15", "60", "240", "1D")

FIAT_QUOTES = ("USD", "EUR", "JPY", "AUD", "GBP", "KRW", "CNY")
FIAT_PRICE_SCALE = 100
DEFAULT_PRICE_SCALE = 100000

ResultCallback = Callable[[list[dict[str, Any]], dict[str, Any]], None]
ErrorCallback = Callable[[str], None]


@dataclass(frozen=True)
class SymbolInfo:
    """Symbol descriptor in the widget's format (see to_dict)."""

    name: str
    full_name: str
    description: str
    ticker: str
    pricescale: int
    supported_resolutions: tuple[str, ...]
    type: str = "crypto"
    session: str = "24x7"
    timezone: str = "Etc/UTC"
    format: str = "price"
    exchange: str = ""
    listed_exchange: str = ""
    minmov: int = 1
    minmov2: int = 0
    has_intraday: bool = True

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["supported_resolutions"] = list(self.supported_resolutions)
        return data


@dataclass(frozen=True)
class PeriodParams:
    """Range the widget asks for in getBars."""

    from_ts: int = 0
    to_ts: int = 0
    count_back: int = 0
    first_data_request: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PeriodParams":
        """Parse the widget's camelCase periodParams object."""
        return cls(
            from_ts=int(data.get("from", 0)),
            to_ts=int(data.get("to", 0)),
            count_back=int(data.get("countBack", 0)),
            first_data_request=parse_flag(data.get("firstDataRequest"), True),
        )


@dataclass
class Subscription:
    subscriber_id: str
    symbol: str
    resolution: str
    on_realtime: Callable[..., Any]
    on_reset_cache_needed: Callable[[], Any] | None = None


@dataclass(frozen=True)
class ParsedSymbol:
    exchange: str
    market: str
    base: str
    quote: str


def parse_symbol(symbol_name: str) -> ParsedSymbol:
    """Split "<exchange>:<base>/<quote>" into its parts.

    Raises:
        MalformedSymbolError: no market component, or the market has no quote.
    """
    exchange, sep, market = symbol_name.partition(":")
    if not sep or not market:
        raise MalformedSymbolError(f"symbol has no market component: {symbol_name!r}")
    base, sep, quote = market.partition("/")
    if not sep or not base or not quote:
        raise MalformedSymbolError(f"market has no quote currency: {symbol_name!r}")
    return ParsedSymbol(exchange=exchange, market=market, base=base, quote=quote)


def price_scale_for(quote: str) -> int:
    """Fiat-like quotes (including USD stablecoins such as USDT) display 2 places, others 5."""
    if any(fiat in quote for fiat in FIAT_QUOTES):
        return FIAT_PRICE_SCALE
    return DEFAULT_PRICE_SCALE


def validate_bars(bars: Sequence[Bar]) -> tuple[Bar, ...]:
    """Check the series is strictly increasing by time with no duplicates."""
    previous: int | None = None
    for index, bar in enumerate(bars):
        if previous is not None and bar.time <= previous:
            raise BarSeriesError(
                f"bar {index} at time={bar.time} does not follow time={previous}"
            )
        previous = bar.time
    return tuple(bars)


def bar_to_widget(bar: Bar) -> dict[str, Any]:
    """Widget bar dict; the widget expects time in milliseconds."""
    data: dict[str, Any] = {
        "time": bar.time * 1000,
        "open": bar.open,
        "high": bar.high,
        "low": bar.low,
        "close": bar.close,
    }
    if bar.value is not None:
        data["value"] = bar.value
    if bar.volume is not None:
        data["volume"] = bar.volume
    return data


class ChartDataFeed:
    """Implements the widget's datafeed protocol over a fixed bar series.

    Args:
        bars: Series oldest-first, strictly increasing by time.
        scheduler: Defers every callback to a later turn.
        supported_resolutions: Resolutions advertised in onReady and resolveSymbol.

    Raises:
        BarSeriesError: if the series is out of order or has duplicates.
    """

    def __init__(
        self,
        bars: Sequence[Bar],
        scheduler: Scheduler,
        supported_resolutions: Sequence[str] = DEFAULT_RESOLUTIONS,
    ) -> None:
        self._bars = validate_bars(bars)
        self._scheduler = scheduler
        self._resolutions = tuple(supported_resolutions)
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def bars(self) -> tuple[Bar, ...]:
        return self._bars

    def configuration(self) -> dict[str, Any]:
        return {"supported_resolutions": list(self._resolutions)}

    def on_ready(self, callback: Callable[[dict[str, Any]], Any]) -> None:
        self._scheduler.call_soon(callback, self.configuration())

    def search_symbols(
        self,
        user_input: str,
        exchange: str,
        symbol_type: str,
        on_result: Callable[..., Any],
    ) -> None:
        """Symbol search is not offered; the callback is never invoked."""
        logger.debug("search_symbols_ignored", user_input=user_input)

    def symbol_info(self, symbol_name: str) -> SymbolInfo:
        parsed = parse_symbol(symbol_name)
        return SymbolInfo(
            name=parsed.market,
            full_name=symbol_name,
            description=parsed.market,
            ticker=parsed.market,
            pricescale=price_scale_for(parsed.quote),
            supported_resolutions=self._resolutions,
        )

    def resolve_symbol(
        self,
        symbol_name: str,
        on_resolved: Callable[[dict[str, Any]], Any],
        on_error: ErrorCallback | None = None,
    ) -> None:
        try:
            info = self.symbol_info(symbol_name)
        except MalformedSymbolError as exc:
            logger.warning("resolve_symbol_failed", symbol=symbol_name, error=str(exc))
            if on_error is not None:
                self._scheduler.call_soon(on_error, str(exc))
            return
        logger.debug("symbol_resolved", symbol=symbol_name, pricescale=info.pricescale)
        self._scheduler.call_soon(on_resolved, info.to_dict())

    def get_bars(
        self,
        symbol_info: Mapping[str, Any],
        resolution: str,
        period_params: PeriodParams | Mapping[str, Any],
        on_result: ResultCallback,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Deliver the whole series on the first request, noData afterwards.

        The count the widget asks for (countBack) is not enforced in either
        direction: no padding when short, no truncation when long.
        """
        if isinstance(period_params, PeriodParams):
            params = period_params
        else:
            try:
                params = PeriodParams.from_dict(period_params)
            except (TypeError, ValueError, AttributeError) as exc:
                logger.warning("get_bars_malformed_request", error=str(exc))
                if on_error is not None:
                    self._scheduler.call_soon(on_error, f"malformed period params: {exc}")
                return

        if not self._bars or not params.first_data_request:
            self._scheduler.call_soon(on_result, [], {"noData": True})
            return

        bars = [bar_to_widget(bar) for bar in self._bars]
        logger.debug(
            "bars_served",
            resolution=resolution,
            count=len(bars),
            count_back=params.count_back,
        )
        self._scheduler.call_soon(on_result, bars, {"noData": False})

    def subscribe_bars(
        self,
        symbol_info: Mapping[str, Any],
        resolution: str,
        on_realtime: Callable[..., Any],
        subscriber_id: str,
        on_reset_cache_needed: Callable[[], Any] | None = None,
    ) -> None:
        """Record a subscription. No realtime feed is wired, so it is never pushed to."""
        replaced = subscriber_id in self._subscriptions
        self._subscriptions[subscriber_id] = Subscription(
            subscriber_id=subscriber_id,
            symbol=str(symbol_info.get("name", "")),
            resolution=resolution,
            on_realtime=on_realtime,
            on_reset_cache_needed=on_reset_cache_needed,
        )
        logger.debug("bars_subscribed", subscriber_id=subscriber_id, replaced=replaced)

    def unsubscribe_bars(self, subscriber_id: str) -> None:
        """Drop a subscription; unknown ids are ignored."""
        if self._subscriptions.pop(subscriber_id, None) is not None:
            logger.debug("bars_unsubscribed", subscriber_id=subscriber_id)

    def has_subscription(self, subscriber_id: str) -> bool:
        return subscriber_id in self._subscriptions

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)


def generate_data_feed(
    bars: Sequence[Bar] | None,
    scheduler: Scheduler | None = None,
    supported_resolutions: Sequence[str] = DEFAULT_RESOLUTIONS,
) -> ChartDataFeed | None:
    """Build a feed once bars are loaded; None while they are not."""
    if bars is None:
        return None
    return ChartDataFeed(bars, scheduler or AsyncioScheduler(), supported_resolutions)
