"""Validation of raw source payloads into typed snapshots.

This is the only place loosely-typed data enters the engine. On-chain
integers arrive as base-10 strings (or ints) and are wrapped at their native
scale; ledger and chart figures arrive as human-readable decimal strings.

A field that is absent becomes NOT_LOADED. A field that is present but
unparseable becomes Unknown(INVALID) and is logged; it is never coerced to
zero. Records that cannot be identified at all (a token with no address, a
price with no source) are logged and skipped. A payload whose top-level
shape is wrong raises SnapshotValidationError.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from perpstats.exceptions import SnapshotValidationError
from perpstats.logging import get_logger
from perpstats.models import (
    Bar,
    FeeInputs,
    FeeLedgerEntry,
    PriceObservation,
    StakingTotals,
    SupplyFigures,
    TokenState,
    VolumeRecord,
    VolumeStats,
)
from perpstats.numeric import NOT_LOADED, Amount, Metric, Unknown, UnknownReason, expand, from_raw
from perpstats.numeric.constants import (
    INDEX_TOKEN_DECIMALS,
    TOKEN_DECIMALS,
    USD_DECIMALS,
    USDG_DECIMALS,
)

logger = get_logger(__name__)

INVALID = Unknown(UnknownReason.INVALID)


def _require_mapping(payload: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise SnapshotValidationError(f"{what} payload must be an object, got {type(payload).__name__}")
    return payload


def _require_list(payload: Any, what: str) -> list[Any]:
    if not isinstance(payload, list):
        raise SnapshotValidationError(f"{what} payload must be a list, got {type(payload).__name__}")
    return payload


def raw_amount(record: Mapping[str, Any], key: str, decimals: int) -> Metric:
    """Read an on-chain integer field at its native scale."""
    raw = record.get(key)
    if raw is None:
        return NOT_LOADED
    try:
        return from_raw(raw, decimals)
    except (TypeError, ValueError):
        logger.warning("invalid_raw_amount", field=key, raw=raw)
        return INVALID


def human_amount(record: Mapping[str, Any], key: str, decimals: int) -> Metric:
    """Read a human-readable decimal field and expand it to the given scale."""
    raw = record.get(key)
    if raw is None:
        return NOT_LOADED
    try:
        return expand(raw, decimals)
    except (TypeError, ValueError):
        logger.warning("invalid_decimal_amount", field=key, raw=raw)
        return INVALID


def parse_flag(raw: Any, default: bool) -> bool:
    """Read a boolean field. JSON booleans and the strings "true"/"false" are accepted.

    Raises:
        ValueError: for any other value.
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
        return raw.strip().lower() == "true"
    raise ValueError(f"not a boolean: {raw!r}")


def _decimal(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise ValueError("bool is not a number")
    value = Decimal(str(raw))
    if not value.is_finite():
        raise ValueError(f"not finite: {raw!r}")
    return value


def parse_token_states(payload: Any) -> tuple[tuple[TokenState, ...], Metric]:
    """Parse vault token state and the vault's totalTokenWeights."""
    data = _require_mapping(payload, "token states")
    records = _require_list(data.get("tokens", []), "tokens")

    tokens: list[TokenState] = []
    for record in records:
        if not isinstance(record, Mapping) or not record.get("address") or not record.get("symbol"):
            logger.warning("token_record_skipped", record=record)
            continue
        try:
            decimals = int(record.get("decimals", TOKEN_DECIMALS))
        except (TypeError, ValueError):
            logger.warning("token_record_skipped", symbol=record.get("symbol"), reason="bad decimals")
            continue
        try:
            is_stable = parse_flag(record.get("isStable"), False)
            is_wrapped = parse_flag(record.get("isWrapped"), False)
        except ValueError:
            logger.warning("token_record_skipped", symbol=record.get("symbol"), reason="bad flag")
            continue

        tokens.append(
            TokenState(
                address=str(record["address"]).lower(),
                symbol=str(record["symbol"]),
                decimals=decimals,
                name=str(record.get("name", record["symbol"])),
                pool_amount=raw_amount(record, "poolAmount", decimals),
                reserved_amount=raw_amount(record, "reservedAmount", decimals),
                usdg_amount=raw_amount(record, "usdgAmount", USDG_DECIMALS),
                weight=raw_amount(record, "weight", 0),
                max_usdg_amount=raw_amount(record, "maxUsdgAmount", USDG_DECIMALS),
                guaranteed_usd=raw_amount(record, "guaranteedUsd", USD_DECIMALS),
                min_price=raw_amount(record, "minPrice", USD_DECIMALS),
                max_price=raw_amount(record, "maxPrice", USD_DECIMALS),
                is_stable=is_stable,
                is_wrapped=is_wrapped,
            )
        )

    total_weights = raw_amount(data, "totalTokenWeights", 0)
    logger.debug("token_states_parsed", count=len(tokens), skipped=len(records) - len(tokens))
    return tuple(tokens), total_weights


def parse_price_observations(payload: Any, default_observed_at: float) -> tuple[PriceObservation, ...]:
    """Parse per-source prices (USD_DECIMALS integers). Unpriced records are dropped."""
    records = _require_list(payload, "price observations")

    observations: list[PriceObservation] = []
    for record in records:
        if not isinstance(record, Mapping) or not record.get("source") or not record.get("asset"):
            logger.warning("price_observation_skipped", record=record)
            continue
        value = raw_amount(record, "value", USD_DECIMALS)
        if isinstance(value, Unknown):
            logger.warning(
                "price_observation_skipped",
                source=record["source"],
                asset=record["asset"],
                reason=value.reason.value,
            )
            continue
        try:
            observed_at = float(record.get("observedAt", default_observed_at))
        except (TypeError, ValueError):
            observed_at = default_observed_at
        observations.append(
            PriceObservation(
                source=str(record["source"]),
                asset=str(record["asset"]),
                value=value,
                observed_at=observed_at,
            )
        )
    return tuple(observations)


def parse_supplies(payload: Any) -> SupplyFigures:
    data = _require_mapping(payload, "supplies")
    return SupplyFigures(
        circulating=raw_amount(data, "circulating", TOKEN_DECIMALS),
        total=raw_amount(data, "total", TOKEN_DECIMALS),
        index_supply=raw_amount(data, "indexSupply", INDEX_TOKEN_DECIMALS),
    )


def parse_staking(payload: Any) -> StakingTotals:
    """Parse staking totals; inLiquidity maps bucket key to staked-asset amount."""
    data = _require_mapping(payload, "staking")
    in_liquidity_raw = data.get("inLiquidity") or {}
    if not isinstance(in_liquidity_raw, Mapping):
        raise SnapshotValidationError("staking inLiquidity must be an object")

    return StakingTotals(
        staked_asset=str(data.get("stakedAsset", "MYC")),
        reward_asset=str(data.get("rewardAsset", "ETH")),
        total_staked=raw_amount(data, "totalStaked", TOKEN_DECIMALS),
        rewards_per_second=raw_amount(data, "rewardsPerSecond", TOKEN_DECIMALS),
        in_liquidity={
            str(key): raw_amount(in_liquidity_raw, key, TOKEN_DECIMALS) for key in in_liquidity_raw
        },
    )


def _ledger_entry(record: Any) -> FeeLedgerEntry | None:
    if not isinstance(record, Mapping):
        return None
    try:
        from_ts = int(record["from"])
        to_ts = int(record["to"])
        amounts = {
            name: expand(record[key], USD_DECIMALS)
            for name, key in (
                ("mint", "mint"),
                ("burn", "burn"),
                ("margin", "marginAndLiquidation"),
                ("swap", "swap"),
            )
        }
    except (KeyError, TypeError, ValueError):
        return None
    return FeeLedgerEntry(from_ts=from_ts, to_ts=to_ts, **amounts)


def parse_fee_inputs(payload: Any) -> FeeInputs:
    """Parse the fee ledger (newest-first), pending accrual, and live counters.

    Ledger amounts are USD decimal strings. Counters are raw token amounts
    keyed by token address. A single malformed ledger period makes the whole
    ledger Unknown: a partial ledger would under-report settled fees.
    """
    data = _require_mapping(payload, "fee inputs")

    ledger: tuple[FeeLedgerEntry, ...] | None = None
    raw_ledger = data.get("ledger")
    if raw_ledger is not None:
        entries = [_ledger_entry(record) for record in _require_list(raw_ledger, "fee ledger")]
        if any(entry is None for entry in entries):
            logger.warning("fee_ledger_invalid", periods=len(entries))
        else:
            ledger = tuple(sorted(entries, key=lambda e: e.to_ts, reverse=True))  # type: ignore[union-attr]

    counters: dict[str, Metric] | None = None
    raw_counters = data.get("counters")
    if raw_counters is not None:
        if not isinstance(raw_counters, Mapping):
            raise SnapshotValidationError("fee counters must be an object keyed by token address")
        decimals = data.get("counterDecimals") or {}
        counters = {
            str(address).lower(): raw_amount(raw_counters, address, int(decimals.get(address, TOKEN_DECIMALS)))
            for address in raw_counters
        }

    return FeeInputs(
        ledger=ledger,
        pending=human_amount(data, "pending", USD_DECIMALS),
        counters=counters,
        spread_captured=human_amount(data, "spreadCaptured", USD_DECIMALS),
    )


def parse_aums(payload: Any) -> tuple[Amount, ...] | None:
    """Low and high AUM (USD_DECIMALS). Any invalid entry makes the pair Unknown."""
    records = _require_list(payload, "aums")
    if not records:
        return None
    aums: list[Amount] = []
    for raw in records:
        try:
            aums.append(from_raw(raw, USD_DECIMALS))
        except (TypeError, ValueError):
            logger.warning("invalid_aum", raw=raw)
            return None
    return tuple(aums)


def parse_volume_stats(payload: Any) -> VolumeStats:
    """Parse stats-server reads in their wire shape.

    ``hourlyVolume`` and ``totalVolume`` are lists of ``{"data": {...}}``
    records, newest-first; ``positionStats`` holds open interest sums.
    """
    data = _require_mapping(payload, "volume stats")

    hourly: tuple[VolumeRecord, ...] | None = None
    raw_hourly = data.get("hourlyVolume")
    if raw_hourly is not None:
        records: list[VolumeRecord] = []
        for item in _require_list(raw_hourly, "hourlyVolume"):
            record = item.get("data", item) if isinstance(item, Mapping) else None
            if not isinstance(record, Mapping):
                logger.warning("volume_record_skipped", record=item)
                continue
            volume = raw_amount(record, "volume", USD_DECIMALS)
            try:
                timestamp = int(record["timestamp"])
            except (KeyError, TypeError, ValueError):
                timestamp = None
            if timestamp is None or isinstance(volume, Unknown):
                logger.warning("volume_record_skipped", record=record)
                continue
            records.append(VolumeRecord(timestamp=timestamp, token=str(record.get("token", "")), volume=volume))
        hourly = tuple(sorted(records, key=lambda r: r.timestamp, reverse=True))

    totals: tuple[Amount, ...] | None = None
    raw_totals = data.get("totalVolume")
    if raw_totals is not None:
        amounts: list[Amount] = []
        for item in _require_list(raw_totals, "totalVolume"):
            record = item.get("data", item) if isinstance(item, Mapping) else {}
            volume = raw_amount(record, "volume", USD_DECIMALS)
            if isinstance(volume, Unknown):
                logger.warning("total_volume_invalid", record=item)
                break
            amounts.append(volume)
        else:
            totals = tuple(amounts)

    position_stats = data.get("positionStats") or {}
    if not isinstance(position_stats, Mapping):
        raise SnapshotValidationError("positionStats must be an object")

    return VolumeStats(
        hourly=hourly,
        totals=totals,
        total_long_positions=raw_amount(position_stats, "totalLongPositionSizes", USD_DECIMALS),
        total_short_positions=raw_amount(position_stats, "totalShortPositionSizes", USD_DECIMALS),
    )


def parse_bars(payload: Any) -> tuple[Bar, ...]:
    """Parse chart bars, dropping malformed ones and enforcing strict time order.

    Bars sharing a timestamp keep the last one delivered.
    """
    records = _require_list(payload, "price bars")

    by_time: dict[int, Bar] = {}
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("bar_skipped", record=record)
            continue
        try:
            close = _decimal(record.get("close", record.get("value")))
            bar = Bar(
                time=int(record["time"]),
                open=_decimal(record.get("open", close)),
                high=_decimal(record.get("high", close)),
                low=_decimal(record.get("low", close)),
                close=close,
                value=_decimal(record["value"]) if record.get("value") is not None else None,
                volume=_decimal(record["volume"]) if record.get("volume") is not None else None,
            )
        except (KeyError, TypeError, ValueError, InvalidOperation):
            logger.warning("bar_skipped", record=record)
            continue
        by_time[bar.time] = bar

    bars = tuple(by_time[t] for t in sorted(by_time))
    if len(bars) != len(records):
        logger.debug("bars_normalised", received=len(records), kept=len(bars))
    return bars
