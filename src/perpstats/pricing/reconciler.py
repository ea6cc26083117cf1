"""Canonical price selection across independent price sources.

One asset can be priced by several venues in the same cycle (its own chain's
oracle, a cross-chain reference). The headline price is always attributable
to a single venue: the first source in the configured priority that reported
this cycle. Other sources are kept alongside for display ("price on X / price
on Y") and never averaged in.
"""

import time
from dataclasses import dataclass, field
from typing import Iterable

from perpstats.config import PriceSettings
from perpstats.logging import get_logger
from perpstats.models import PriceObservation
from perpstats.numeric import NOT_LOADED, Metric, is_known

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconciledPrice:
    """Canonical price for one asset plus every source's value for this cycle."""

    asset: str
    canonical: Metric
    canonical_source: str | None
    by_source: dict[str, Metric] = field(default_factory=dict)
    used_last_known: tuple[str, ...] = ()

    def price_on(self, source: str) -> Metric:
        return self.by_source.get(source, NOT_LOADED)


class PriceReconciler:
    """Merges per-source observations into one canonical price per asset.

    Stateless per poll unless ``use_last_known`` is enabled, in which case a
    source that failed to refresh may reuse its previous observation for at
    most ``last_known_max_age_seconds``.

    Args:
        settings: Source priority and last-known fallback configuration.
    """

    def __init__(self, settings: PriceSettings) -> None:
        self._settings = settings
        self._priority = [settings.primary_source] + [
            s for s in settings.source_priority if s != settings.primary_source
        ]
        self._last_known: dict[tuple[str, str], PriceObservation] = {}

    @property
    def priority(self) -> list[str]:
        return list(self._priority)

    def _fallback(self, asset: str, source: str, now: float) -> PriceObservation | None:
        previous = self._last_known.get((asset, source))
        if previous is None:
            return None
        age = now - previous.observed_at
        if age > self._settings.last_known_max_age_seconds:
            logger.debug("last_known_price_expired", asset=asset, source=source, age=age)
            return None
        return previous

    def reconcile(
        self,
        asset: str,
        observations: Iterable[PriceObservation],
        now: float | None = None,
    ) -> ReconciledPrice:
        """Select the canonical price for one asset.

        Args:
            asset: Asset symbol the observations belong to.
            observations: This cycle's observations. Entries for other assets
                are ignored; duplicates per source keep the newest.
            now: Current unix time, used to bound last-known reuse.

        Returns:
            ReconciledPrice whose canonical value is Unknown when no
            prioritised source has a value.
        """
        now = time.time() if now is None else now

        current: dict[str, PriceObservation] = {}
        for obs in observations:
            if obs.asset != asset:
                continue
            existing = current.get(obs.source)
            if existing is None or obs.observed_at > existing.observed_at:
                current[obs.source] = obs

        by_source: dict[str, Metric] = {}
        used_last_known: list[str] = []
        for source in self._priority:
            obs = current.get(source)
            if obs is None and self._settings.use_last_known:
                obs = self._fallback(asset, source, now)
                if obs is not None:
                    used_last_known.append(source)
            by_source[source] = obs.value if obs is not None else NOT_LOADED

        # Unprioritised sources are displayed but never canonical.
        for source, obs in current.items():
            by_source.setdefault(source, obs.value)

        if self._settings.use_last_known:
            for source, obs in current.items():
                self._last_known[(asset, source)] = obs

        canonical_source = next((s for s in self._priority if is_known(by_source[s])), None)
        canonical = by_source[canonical_source] if canonical_source is not None else NOT_LOADED

        if used_last_known:
            logger.info(
                "price_last_known_reused",
                asset=asset,
                sources=used_last_known,
            )

        return ReconciledPrice(
            asset=asset,
            canonical=canonical,
            canonical_source=canonical_source,
            by_source=by_source,
            used_last_known=tuple(used_last_known),
        )

    def reconcile_all(
        self,
        assets: Iterable[str],
        observations: Iterable[PriceObservation],
        now: float | None = None,
    ) -> dict[str, ReconciledPrice]:
        """Reconcile every expected asset; assets with no observation come back Unknown."""
        observations = list(observations)
        return {asset: self.reconcile(asset, observations, now) for asset in assets}
