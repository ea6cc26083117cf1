"""Ordering guard for overlapping refresh cycles.

Refresh cycles are not mutually exclusive: a new cycle can start before the
previous one's responses land. Each fetch takes a ticket; a response is
applied only if its ticket is newer than the last one applied for the same
logical source and was issued under the current context epoch. Switching
account or network bumps the epoch, which cancels everything in flight.
"""

from collections import defaultdict
from dataclasses import dataclass

from perpstats.exceptions import StaleSourceDiscarded
from perpstats.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RefreshTicket:
    source: str
    seq: int
    epoch: int


class RefreshSequencer:
    """Issues per-source sequence numbers and rejects out-of-order responses."""

    def __init__(self) -> None:
        self._issued: dict[str, int] = defaultdict(int)
        self._last_applied: dict[str, int] = {}
        self._epoch = 0

    @property
    def epoch(self) -> int:
        return self._epoch

    def begin(self, source: str) -> RefreshTicket:
        """Issue the next ticket for a source."""
        self._issued[source] += 1
        return RefreshTicket(source=source, seq=self._issued[source], epoch=self._epoch)

    def last_applied(self, source: str) -> int:
        return self._last_applied.get(source, 0)

    def check(self, ticket: RefreshTicket) -> None:
        """Raise StaleSourceDiscarded if the ticket may not be applied."""
        last = self.last_applied(ticket.source)
        if ticket.epoch != self._epoch:
            raise StaleSourceDiscarded(ticket.source, ticket.seq, last, reason="cancelled")
        if ticket.seq <= last:
            raise StaleSourceDiscarded(ticket.source, ticket.seq, last)

    def commit(self, ticket: RefreshTicket) -> None:
        """Record a ticket as applied. Checks it first."""
        self.check(ticket)
        self._last_applied[ticket.source] = ticket.seq

    def accept(self, ticket: RefreshTicket) -> bool:
        """Commit the ticket if it is current; log and return False otherwise."""
        try:
            self.commit(ticket)
        except StaleSourceDiscarded as exc:
            logger.debug(
                "stale_source_discarded",
                source=exc.source,
                seq=exc.seq,
                last_applied=exc.last_applied,
                reason=exc.reason,
            )
            return False
        return True

    def invalidate(self) -> None:
        """Cancel every in-flight response (account or network switch)."""
        self._epoch += 1
        logger.info("refresh_context_invalidated", epoch=self._epoch)
