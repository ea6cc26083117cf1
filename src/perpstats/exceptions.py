"""Exceptions for the dashboard engine.

Missing or still-loading data is NOT an exception: it is modelled as an
``Unknown`` value (see perpstats.numeric.fixed_point) and propagates through
arithmetic. The classes here cover conditions that a caller must detect and
convert, and live in one module to avoid circular imports.
"""


class EngineError(Exception):
    """Base exception for all engine errors."""


class DivisionByZero(EngineError, ZeroDivisionError):
    """Raised by fixed-point division when the divisor magnitude is zero."""


class StaleSourceDiscarded(EngineError):
    """Raised when a refresh response arrives out of sequence or after its context was invalidated."""

    def __init__(self, source: str, seq: int, last_applied: int, reason: str = "stale") -> None:
        super().__init__(f"{reason} response from {source}: seq={seq} last_applied={last_applied}")
        self.source = source
        self.seq = seq
        self.last_applied = last_applied
        self.reason = reason


class SnapshotValidationError(EngineError, ValueError):
    """Raised when a raw payload fails validation at the ingestion boundary."""


class MalformedSymbolError(EngineError, ValueError):
    """Raised when a chart symbol has no market component."""


class BarSeriesError(EngineError, ValueError):
    """Raised when a bar series is not strictly increasing by time."""
