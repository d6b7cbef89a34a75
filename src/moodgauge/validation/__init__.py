"""Auto-confirmation: thresholds, routing and the outcome ledger."""

from .thresholds import ThresholdRegistry, initial_config
from .ledger import OutcomeLedger
from .engine import AutoConfirmationEngine, dominant_factors, decision_id_for

__all__ = [
    "ThresholdRegistry",
    "initial_config",
    "OutcomeLedger",
    "AutoConfirmationEngine",
    "dominant_factors",
    "decision_id_for",
]
