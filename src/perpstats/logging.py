"""Structured logging for the dashboard engine (structlog over stdlib logging).

Chain identity is bound through structlog.contextvars so every event emitted
during a refresh cycle carries the chain it belongs to, including events from
coroutines started inside that cycle.
"""

import logging
import os
from typing import Any

import structlog

from perpstats.numeric.fixed_point import Amount, Unknown


def render_fixed_point(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Show Amount as its human value and Unknown as its reason."""
    for key, value in event_dict.items():
        if isinstance(value, Amount):
            event_dict[key] = str(value.to_decimal())
        elif isinstance(value, Unknown):
            event_dict[key] = f"unknown:{value.reason.value}"
    return event_dict


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Configure structlog rendering and route it through the root logger.

    Args:
        log_level: Root logger level name.
        log_format: "json" for machine-readable output, anything else for
            console output. Defaults to the LOG_FORMAT environment variable.
    """
    if log_format is None:
        log_format = os.environ.get("LOG_FORMAT", "console")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            render_fixed_point,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format.lower()),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def bind_chain_context(chain_id: int, chain_name: str) -> None:
    """Attach chain identity to all log events in the current context."""
    structlog.contextvars.bind_contextvars(chain_id=chain_id, chain=chain_name)


def clear_chain_context() -> None:
    """Drop chain identity after an account or network switch."""
    structlog.contextvars.unbind_contextvars("chain_id", "chain")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
