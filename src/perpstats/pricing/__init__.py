"""Price reconciliation across sources and refresh ordering."""

from perpstats.pricing.reconciler import PriceReconciler, ReconciledPrice
from perpstats.pricing.sequencer import RefreshSequencer, RefreshTicket

__all__ = ["PriceReconciler", "ReconciledPrice", "RefreshSequencer", "RefreshTicket"]
