"""Fixed-point numeric layer shared by every other component."""

from perpstats.numeric.fixed_point import (
    NOT_LOADED,
    PLACEHOLDER,
    Amount,
    Metric,
    Unknown,
    UnknownReason,
    add,
    bps_to_percent,
    compare,
    div,
    expand,
    format_amount,
    from_raw,
    is_known,
    maximum,
    mul,
    rescale,
    sub,
    sum_amounts,
)

__all__ = [
    "NOT_LOADED",
    "PLACEHOLDER",
    "Amount",
    "Metric",
    "Unknown",
    "UnknownReason",
    "add",
    "bps_to_percent",
    "compare",
    "div",
    "expand",
    "format_amount",
    "from_raw",
    "is_known",
    "maximum",
    "mul",
    "rescale",
    "sub",
    "sum_amounts",
]
