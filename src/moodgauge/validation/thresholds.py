"""Versioned threshold configurations with atomic activation."""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from moodgauge.config.settings import DecisionSettings, ScoringSettings
from moodgauge.domain.exceptions import UnknownThresholdVersionError
from moodgauge.domain.models import ThresholdConfig

logger = logging.getLogger(__name__)


def initial_config(
    decision: Optional[DecisionSettings] = None,
    scoring: Optional[ScoringSettings] = None,
) -> ThresholdConfig:
    """Version 1, built from the decision and scoring settings."""
    decision = decision or DecisionSettings()
    scoring = scoring or ScoringSettings()
    return ThresholdConfig(
        version=1,
        approve_cutoff=decision.approve_cutoff,
        reject_cutoff=decision.reject_cutoff,
        significance_adjustments=decision.significance_adjustments,
        force_review_tiers=decision.force_review_tiers,
        factor_weights=decision.confidence_weights,
        mood_weights=scoring.mood_weights,
        created_at=datetime.now(timezone.utc),
        note="initial",
    )


class ThresholdRegistry:
    """
    Every ThresholdConfig ever activated, and a pointer to the active one.

    Configs are frozen, so readers take the current reference without locking;
    writers replace the reference under a lock. Old versions are never dropped.
    """

    def __init__(self, initial: Optional[ThresholdConfig] = None):
        initial = initial or initial_config()
        self._lock = threading.Lock()
        self._history: Dict[int, ThresholdConfig] = {initial.version: initial}
        self._active = initial

    @property
    def active(self) -> ThresholdConfig:
        return self._active

    def get(self, version: Optional[int] = None) -> ThresholdConfig:
        if version is None:
            return self._active
        try:
            return self._history[version]
        except KeyError:
            raise UnknownThresholdVersionError(version).add_suggestion(
                f"Known versions: {sorted(self._history)}"
            ) from None

    def versions(self) -> List[int]:
        return sorted(self._history)

    def history(self) -> List[ThresholdConfig]:
        return [self._history[v] for v in self.versions()]

    def swap(self, proposed: ThresholdConfig) -> ThresholdConfig:
        """Store `proposed` as the next version and activate it; returns the stored config."""
        with self._lock:
            parent = self._active
            stored = replace(
                proposed,
                version=max(self._history) + 1,
                parent_version=parent.version,
                created_at=proposed.created_at or datetime.now(timezone.utc),
            )
            self._history[stored.version] = stored
            self._active = stored
        logger.info(
            "[thresholds] activated v%d (parent v%d): approve=%.2f reject=%.2f",
            stored.version, parent.version, stored.approve_cutoff, stored.reject_cutoff,
        )
        return stored
