"""Safety-bounded threshold calibration from human-validated outcomes."""

import logging
import threading
from dataclasses import dataclass, asdict, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from moodgauge.config.settings import CalibrationSettings
from moodgauge.domain.exceptions import CalibrationInProgressError, CalibrationSafetyViolation
from moodgauge.domain.models import DecisionOutcome, HumanOutcome, OutcomeRecord, ThresholdConfig
from moodgauge.utils.numeric import clamp
from moodgauge.utils.timing import section_timer
from moodgauge.validation.ledger import OutcomeLedger
from moodgauge.validation.thresholds import ThresholdRegistry

logger = logging.getLogger(__name__)


@dataclass
class CalibrationMetrics:
    sample_size: int
    agreement_rate: float
    false_positive_rate: float          # overturned approvals / all outcomes
    false_negative_rate: float          # overturned rejections / all outcomes
    approvals: int = 0
    rejections: int = 0
    reviews: int = 0
    factor_accuracy: Dict[str, float] = field(default_factory=dict)
    mood_bias: Optional[float] = None   # mean(engine mood - human mood)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CalibrationReport:
    previous_version: int
    config: ThresholdConfig
    metrics: CalibrationMetrics
    predicted_approval_rate: Optional[float] = None
    changes: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    applied: bool = False
    reason: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "previous_version": self.previous_version,
            "config": self.config.to_dict(),
            "metrics": self.metrics.as_dict(),
            "predicted_approval_rate": self.predicted_approval_rate,
            "changes": {k: list(v) for k, v in self.changes.items()},
            "applied": self.applied,
            "reason": self.reason,
        }


def _rate(flags: Sequence[bool]) -> float:
    return float(np.mean(flags)) if len(flags) else 0.0


def _normalise(weights: Mapping[str, float]) -> Dict[str, float]:
    total = sum(weights.values())
    out = {k: round(v / total, 4) for k, v in weights.items()}
    top = max(out, key=out.get)
    out[top] = round(1.0 - sum(v for k, v in out.items() if k != top), 6)
    return out


def compute_metrics(records: Sequence[OutcomeRecord], strong_factor: float = 0.7, min_support: int = 1) -> CalibrationMetrics:
    approved = [r for r in records if r.decision.outcome is DecisionOutcome.AUTO_APPROVE]
    rejected = [r for r in records if r.decision.outcome is DecisionOutcome.AUTO_REJECT]
    false_positives = sum(r.human_outcome is HumanOutcome.REJECTED for r in approved)
    false_negatives = sum(r.human_outcome is HumanOutcome.VALIDATED for r in rejected)
    n = len(records)

    # A factor is credited when it was strong on a correct decision, over
    # every decision that carried it.
    accuracy: Dict[str, float] = {}
    factor_names = sorted({k for r in records for k in r.decision.reasoning.factor_values})
    for name in factor_names:
        credited = [
            r.agrees and r.decision.reasoning.factor_values[name] > strong_factor
            for r in records if name in r.decision.reasoning.factor_values
        ]
        if len(credited) >= min_support:
            accuracy[name] = round(_rate(credited), 4)

    rated = [(r.engine_mood, r.human_mood) for r in records if r.engine_mood is not None and r.human_mood is not None]
    bias = round(float(np.mean([e - h for e, h in rated])), 4) if rated else None

    return CalibrationMetrics(
        sample_size=n,
        agreement_rate=round(_rate([r.agrees for r in records]), 4),
        false_positive_rate=round(false_positives / n, 4) if n else 0.0,
        false_negative_rate=round(false_negatives / n, 4) if n else 0.0,
        approvals=len(approved),
        rejections=len(rejected),
        reviews=len(records) - len(approved) - len(rejected),
        factor_accuracy=accuracy,
        mood_bias=bias,
    )


def predicted_approval_rate(records: Sequence[OutcomeRecord], config: ThresholdConfig) -> float:
    """Share of the batch that `config` would auto-approve."""
    approvals = [
        not config.forces_review(r.decision.significance_tier)
        and r.decision.confidence > config.approve_cutoff_for(r.decision.significance_tier)
        for r in records
    ]
    return round(_rate(approvals), 4)


class Calibrator:
    """
    Turns a batch of outcomes into the next ThresholdConfig version.

    Every change is bounded by `max_step`. A batch whose agreement rate is
    too low, or whose proposal would move the predicted auto-approval rate
    out of the safety band, is refused with CalibrationSafetyViolation and
    the active version stays in place. Only one run may be in flight.
    """

    def __init__(
        self,
        registry: ThresholdRegistry,
        ledger: Optional[OutcomeLedger] = None,
        settings: Optional[CalibrationSettings] = None,
    ):
        self.registry = registry
        self.ledger = ledger
        self.settings = settings or CalibrationSettings()
        self._run_lock = threading.Lock()
        self.last_run: Optional[datetime] = None
        self.last_report: Optional[CalibrationReport] = None

    def is_due(self, now: Optional[datetime] = None) -> bool:
        if self.last_run is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now - self.last_run >= timedelta(days=self.settings.cadence_days)

    # --- proposal pieces ---------------------------------------------------

    def _cutoffs(self, active: ThresholdConfig, m: CalibrationMetrics) -> Tuple[float, float]:
        s = self.settings
        approve, reject = active.approve_cutoff, active.reject_cutoff
        lo, hi = s.approve_bounds

        if m.approvals and m.false_positive_rate > s.error_tolerance:
            approve = min(hi, approve + s.max_step)
        elif m.approvals and m.false_positive_rate < s.tighten_below and m.agreement_rate > s.tighten_agreement:
            approve = max(lo, approve - min(s.tighten_step, s.max_step))

        if m.rejections and m.false_negative_rate > s.error_tolerance:
            reject = max(s.reject_floor, reject - s.max_step)

        return round(approve, 4), round(reject, 4)

    def _factor_weights(self, active: ThresholdConfig, m: CalibrationMetrics) -> Dict[str, float]:
        s = self.settings
        current = dict(active.factor_weights)
        if not current or not m.factor_accuracy:
            return current
        scaled = dict(current)
        for name, acc in m.factor_accuracy.items():
            if name not in scaled:
                continue
            if acc > s.factor_accuracy_high:
                scaled[name] *= s.factor_boost
            elif acc < s.factor_accuracy_low:
                scaled[name] *= s.factor_dampen
        if scaled == current:
            return current
        proposed = _normalise(scaled)
        bounded = {k: clamp(v, current[k] - s.max_step, current[k] + s.max_step) for k, v in proposed.items()}
        return _normalise(bounded)

    def _mood_weights(self, active: ThresholdConfig, m: CalibrationMetrics) -> Dict[str, float]:
        s = self.settings
        current = dict(active.mood_weights)
        if m.mood_bias is None or abs(m.mood_bias) <= s.mood_bias_trigger or "sentiment" not in current:
            return current
        lo, hi = s.sentiment_weight_bounds
        old = current["sentiment"]
        # engine reads higher than humans -> lean less on sentiment, and vice versa
        new = clamp(old - s.max_step if m.mood_bias > 0 else old + s.max_step, lo, hi)
        if new == old:
            return current
        rest = 1.0 - old
        out = {k: (v * (1.0 - new) / rest if rest else v) for k, v in current.items() if k != "sentiment"}
        out["sentiment"] = new
        return _normalise(out)

    def _violation(self, message: str, metric: str, observed: float, bounds: tuple) -> CalibrationSafetyViolation:
        err = CalibrationSafetyViolation(
            message,
            metric=metric,
            observed=observed,
            bounds=bounds,
            active_version=self.registry.active.version,
        )
        logger.error("[calibration] refused: %s (active stays v%d)", message, self.registry.active.version)
        return err

    # --- runs -------------------------------------------------------------

    def run(self, outcome_batch: Optional[Sequence[OutcomeRecord]] = None) -> CalibrationReport:
        if not self._run_lock.acquire(blocking=False):
            raise CalibrationInProgressError()
        try:
            with section_timer("calibration", logger):
                return self._run(outcome_batch)
        finally:
            self._run_lock.release()

    def _run(self, outcome_batch: Optional[Sequence[OutcomeRecord]]) -> CalibrationReport:
        s = self.settings
        from_ledger = outcome_batch is None
        if from_ledger:
            records: List[OutcomeRecord] = self.ledger.pending_outcomes() if self.ledger is not None else []
        else:
            records = list(outcome_batch)

        active = self.registry.active
        metrics = compute_metrics(records, strong_factor=s.factor_strong)
        self.last_run = datetime.now(timezone.utc)

        if len(records) < s.min_sample_size:
            logger.warning(
                "[calibration] %d outcome(s), need %d; keeping v%d",
                len(records), s.min_sample_size, active.version,
            )
            self.last_report = CalibrationReport(active.version, active, metrics, reason="insufficient_sample")
            return self.last_report

        logger.info(
            "[calibration] n=%d agreement=%.3f fp=%.3f fn=%.3f",
            metrics.sample_size, metrics.agreement_rate,
            metrics.false_positive_rate, metrics.false_negative_rate,
        )
        if metrics.agreement_rate < s.min_agreement:
            raise self._violation(
                f"agreement rate {metrics.agreement_rate:.2f} below {s.min_agreement:.2f}",
                "agreement_rate", metrics.agreement_rate, (s.min_agreement, 1.0),
            )

        approve, reject = self._cutoffs(active, metrics)
        proposed = replace(
            active,
            approve_cutoff=approve,
            reject_cutoff=reject,
            factor_weights=self._factor_weights(active, metrics),
            mood_weights=self._mood_weights(active, metrics),
            created_at=None,
            note=f"calibrated from {metrics.sample_size} outcomes",
        )

        changes = {}
        for name in ("approve_cutoff", "reject_cutoff"):
            if getattr(proposed, name) != getattr(active, name):
                changes[name] = (getattr(active, name), getattr(proposed, name))
        for group in ("factor_weights", "mood_weights"):
            before, after = getattr(active, group), getattr(proposed, group)
            for k in after:
                if not np.isclose(after[k], before.get(k, 0.0)):
                    changes[f"{group}.{k}"] = (before.get(k, 0.0), after[k])

        rate = predicted_approval_rate(records, proposed)
        lo, hi = s.safety_band
        if not lo <= rate <= hi:
            raise self._violation(
                f"predicted auto-approval rate {rate:.2f} outside {lo:.2f}-{hi:.2f}",
                "predicted_auto_approval_rate", rate, s.safety_band,
            )

        if not changes:
            logger.info("[calibration] no adjustment needed; keeping v%d", active.version)
            report = CalibrationReport(active.version, active, metrics, rate, reason="no_change")
        else:
            stored = self.registry.swap(proposed)
            for name, (old, new) in sorted(changes.items()):
                logger.info("[calibration] %s: %.4f -> %.4f", name, old, new)
            report = CalibrationReport(active.version, stored, metrics, rate, changes, applied=True, reason="applied")

        if from_ledger and self.ledger is not None:
            self.ledger.mark_consumed(records)
        self.last_report = report
        return report

    def recalibrate(self, outcome_batch: Optional[Sequence[OutcomeRecord]] = None) -> ThresholdConfig:
        """
        The config active after the run.

        A new version is created only when the batch calls for an adjustment.
        A safe batch that needs none, or one below `min_sample_size`, returns
        the active version unchanged; `run()` reports which case applied in
        `CalibrationReport.reason`.
        """
        return self.run(outcome_batch).config
