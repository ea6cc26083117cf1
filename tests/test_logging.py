"""Tests for the structlog setup and the fixed-point event processor."""

import logging
from decimal import Decimal

import structlog

from perpstats.logging import bind_chain_context, clear_chain_context, render_fixed_point, setup_logging
from perpstats.numeric import NOT_LOADED, expand


class TestRenderFixedPoint:
    def test_amount_and_unknown_values(self) -> None:
        event = render_fixed_point(None, "info", {"event": "x", "aum": expand("1100.5", 30), "price": NOT_LOADED})
        assert Decimal(event["aum"]) == Decimal("1100.5")
        assert event["price"] == "unknown:not_loaded"

    def test_other_values_untouched(self) -> None:
        event = render_fixed_point(None, "info", {"event": "x", "cycle": 3})
        assert event == {"event": "x", "cycle": 3}


class TestSetupLogging:
    def test_single_root_handler(self) -> None:
        setup_logging("DEBUG", log_format="json")
        setup_logging("WARNING", log_format="json")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_chain_context_bound_and_cleared(self) -> None:
        bind_chain_context(42161, "Arbitrum")
        assert structlog.contextvars.get_contextvars()["chain_id"] == 42161
        clear_chain_context()
        assert "chain_id" not in structlog.contextvars.get_contextvars()
