"""Tests for RefreshSequencer ordering and cancellation."""

import pytest

from perpstats.exceptions import StaleSourceDiscarded
from perpstats.pricing import RefreshSequencer


@pytest.fixture
def sequencer() -> RefreshSequencer:
    return RefreshSequencer()


class TestOrdering:
    def test_in_order_responses_apply(self, sequencer: RefreshSequencer) -> None:
        first = sequencer.begin("prices")
        second = sequencer.begin("prices")
        assert sequencer.accept(first)
        assert sequencer.accept(second)
        assert sequencer.last_applied("prices") == 2

    def test_late_response_is_discarded(self, sequencer: RefreshSequencer) -> None:
        """Responses A then B issued, B lands first: A must not overwrite B."""
        a = sequencer.begin("prices")
        b = sequencer.begin("prices")
        assert sequencer.accept(b)
        assert not sequencer.accept(a)
        assert sequencer.last_applied("prices") == b.seq

    def test_check_raises_with_context(self, sequencer: RefreshSequencer) -> None:
        a = sequencer.begin("supplies")
        b = sequencer.begin("supplies")
        sequencer.commit(b)
        with pytest.raises(StaleSourceDiscarded) as exc_info:
            sequencer.check(a)
        assert exc_info.value.source == "supplies"
        assert exc_info.value.seq == 1
        assert exc_info.value.last_applied == 2
        assert exc_info.value.reason == "stale"

    def test_sources_are_independent(self, sequencer: RefreshSequencer) -> None:
        prices = sequencer.begin("prices")
        sequencer.begin("prices")
        supplies = sequencer.begin("supplies")
        assert sequencer.accept(supplies)
        assert sequencer.accept(prices)


class TestInvalidate:
    def test_in_flight_tickets_are_cancelled(self, sequencer: RefreshSequencer) -> None:
        ticket = sequencer.begin("prices")
        sequencer.invalidate()
        with pytest.raises(StaleSourceDiscarded) as exc_info:
            sequencer.check(ticket)
        assert exc_info.value.reason == "cancelled"

    def test_new_tickets_apply_after_invalidate(self, sequencer: RefreshSequencer) -> None:
        sequencer.begin("prices")
        sequencer.invalidate()
        fresh = sequencer.begin("prices")
        assert fresh.epoch == 1
        assert sequencer.accept(fresh)
