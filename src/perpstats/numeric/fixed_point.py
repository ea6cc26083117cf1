"""Fixed-point decimal arithmetic on integer magnitudes.

CRITICAL: amounts that represent money never pass through float. An Amount is
an int magnitude with an explicit scale, so ``Amount(1234, 3)`` is 1.234.

Missing inputs are modelled with ``Unknown`` rather than zero. Every binary
operation here returns an Unknown operand unchanged, so a figure that depends
on something not yet loaded stays Unknown all the way to the presentation
layer, where it renders as a placeholder.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Union

from perpstats.exceptions import DivisionByZero

PLACEHOLDER = "..."


class UnknownReason(str, Enum):
    """Why a figure has no value."""

    NOT_LOADED = "not_loaded"  # upstream read missing or still in flight
    DIVISION_BY_ZERO = "division_by_zero"
    INVALID = "invalid"  # raw input failed validation
    UPSTREAM = "upstream"  # derived from another Unknown


@dataclass(frozen=True)
class Unknown:
    """A figure that cannot be stated. Distinct from a known zero."""

    reason: UnknownReason = UnknownReason.NOT_LOADED

    def __str__(self) -> str:
        return PLACEHOLDER


NOT_LOADED = Unknown(UnknownReason.NOT_LOADED)


@dataclass(frozen=True)
class Amount:
    """Integer magnitude plus implicit decimal scale."""

    value: int
    decimals: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Amount magnitude must be int, got {type(self.value).__name__}")
        if self.decimals < 0:
            raise ValueError(f"decimals must be >= 0, got {self.decimals}")

    def is_zero(self) -> bool:
        return self.value == 0

    def to_decimal(self) -> Decimal:
        """Exact Decimal view, independent of the active decimal context."""
        return Decimal(f"{self.value}e-{self.decimals}")

    def __str__(self) -> str:
        return format_amount(self, self.decimals)


Metric = Union[Amount, Unknown]


def is_known(value: Metric) -> bool:
    return isinstance(value, Amount)


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division truncating toward zero (big-number semantics)."""
    quotient = abs(numerator) // abs(denominator)
    return -quotient if (numerator < 0) != (denominator < 0) else quotient


def _round_half_away(numerator: int, denominator: int) -> int:
    """Divide non-negative ints, rounding half away from zero."""
    quotient, remainder = divmod(numerator, denominator)
    if 2 * remainder >= denominator:
        quotient += 1
    return quotient


def expand(value: int | str | Decimal | float, decimals: int) -> Amount:
    """Scale a human-readable value to an Amount with the given decimals.

    ``expand(1, 18)`` is 10**18 at scale 18. Fractional digits beyond the
    scale round half away from zero. Floats go through ``str`` first so the
    shortest repr is used, never the binary expansion.
    """
    if isinstance(value, bool):
        raise TypeError("expand() does not accept bool")
    if isinstance(value, int):
        return Amount(value * 10**decimals, decimals)

    try:
        parsed = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal number: {value!r}") from exc
    if not parsed.is_finite():
        raise ValueError(f"not a finite number: {value!r}")

    sign, digits, exponent = parsed.as_tuple()
    coefficient = int("".join(str(d) for d in digits)) if digits else 0
    shift = exponent + decimals
    if shift >= 0:
        magnitude = coefficient * 10**shift
    else:
        magnitude = _round_half_away(coefficient, 10**-shift)
    return Amount(-magnitude if sign else magnitude, decimals)


def from_raw(raw: int | str, decimals: int) -> Amount:
    """Wrap a raw on-chain integer (int or base-10 string) at its native scale."""
    if isinstance(raw, bool):
        raise TypeError("from_raw() does not accept bool")
    if isinstance(raw, int):
        return Amount(raw, decimals)
    text = str(raw).strip()
    try:
        magnitude = int(text, 10)
    except ValueError as exc:
        raise ValueError(f"not an integer magnitude: {raw!r}") from exc
    return Amount(magnitude, decimals)


def rescale(amount: Metric, decimals: int) -> Metric:
    """Change scale; reducing it truncates toward zero."""
    if isinstance(amount, Unknown):
        return amount
    if decimals >= amount.decimals:
        return Amount(amount.value * 10 ** (decimals - amount.decimals), decimals)
    return Amount(_trunc_div(amount.value, 10 ** (amount.decimals - decimals)), decimals)


def _aligned(a: Amount, b: Amount) -> tuple[int, int, int]:
    scale = max(a.decimals, b.decimals)
    return (
        a.value * 10 ** (scale - a.decimals),
        b.value * 10 ** (scale - b.decimals),
        scale,
    )


def add(a: Metric, b: Metric) -> Metric:
    if isinstance(a, Unknown):
        return a
    if isinstance(b, Unknown):
        return b
    av, bv, scale = _aligned(a, b)
    return Amount(av + bv, scale)


def sub(a: Metric, b: Metric) -> Metric:
    if isinstance(a, Unknown):
        return a
    if isinstance(b, Unknown):
        return b
    av, bv, scale = _aligned(a, b)
    return Amount(av - bv, scale)


def mul(a: Metric, b: Metric) -> Metric:
    """Product at the larger of the two scales, truncated toward zero."""
    if isinstance(a, Unknown):
        return a
    if isinstance(b, Unknown):
        return b
    scale = max(a.decimals, b.decimals)
    return Amount(_trunc_div(a.value * b.value, 10 ** min(a.decimals, b.decimals)), scale)


def div(a: Metric, b: Metric) -> Metric:
    """Quotient at the larger of the two scales, truncated toward zero.

    Raises:
        DivisionByZero: if b is a known zero. Callers check the divisor or
            convert the failure; it is never silently mapped to zero here.
    """
    if isinstance(a, Unknown):
        return a
    if isinstance(b, Unknown):
        return b
    if b.value == 0:
        raise DivisionByZero(f"division of {a} by zero")
    scale = max(a.decimals, b.decimals)
    return Amount(_trunc_div(a.value * 10 ** (scale + b.decimals - a.decimals), b.value), scale)


def compare(a: Amount, b: Amount) -> int:
    """Return -1, 0 or 1 comparing two known amounts across scales."""
    av, bv, _ = _aligned(a, b)
    return (av > bv) - (av < bv)


def maximum(a: Metric, b: Metric) -> Metric:
    if isinstance(a, Unknown):
        return a
    if isinstance(b, Unknown):
        return b
    winner = a if compare(a, b) >= 0 else b
    return rescale(winner, max(a.decimals, b.decimals))


def sum_amounts(values: Iterable[Metric], decimals: int) -> Metric:
    """Sum a sequence; any Unknown member makes the total Unknown."""
    total: Metric = Amount(0, decimals)
    for value in values:
        total = add(total, value)
    return total


def bps_to_percent(bps: int) -> Decimal:
    """Basis points as a two-place percentage, e.g. 1234 -> Decimal("12.34")."""
    return Amount(bps, 2).to_decimal().quantize(Decimal("0.01"))


def format_amount(
    amount: Metric | int,
    display_decimals: int = 2,
    with_commas: bool = False,
    decimals: int | None = None,
) -> str:
    """Render an amount rounded half away from zero to display_decimals.

    Args:
        amount: Amount, Unknown, or a bare int magnitude (then decimals is required).
        display_decimals: Digits after the decimal point in the output.
        with_commas: Group the integer part in thousands.
        decimals: Scale override; required for bare ints.

    Returns:
        The formatted string, or the placeholder for Unknown.
    """
    if isinstance(amount, Unknown):
        return PLACEHOLDER
    if isinstance(amount, Amount):
        magnitude = amount.value
        scale = amount.decimals if decimals is None else decimals
    else:
        if decimals is None:
            raise ValueError("decimals is required when formatting a bare int")
        magnitude = amount
        scale = decimals

    if display_decimals >= scale:
        digits = abs(magnitude) * 10 ** (display_decimals - scale)
    else:
        digits = _round_half_away(abs(magnitude), 10 ** (scale - display_decimals))

    int_part, frac_part = divmod(digits, 10**display_decimals)
    text = f"{int_part:,}" if with_commas else str(int_part)
    if display_decimals > 0:
        text = f"{text}.{str(frac_part).zfill(display_decimals)}"
    if magnitude < 0 and digits != 0:
        text = f"-{text}"
    return text
