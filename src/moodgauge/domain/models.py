"""Core domain entities for mood scoring and auto-confirmation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Optional, Dict, Any, Tuple, Mapping, FrozenSet, TYPE_CHECKING

from moodgauge.domain.exceptions import InvalidIndicatorRangeError, ConfigurationError

if TYPE_CHECKING:
    from moodgauge.models.trajectory import Direction, TransitionType


class FactorKind(Enum):
    """The five independent signal sources feeding a mood score."""
    SENTIMENT = "sentiment"
    PSYCHOLOGICAL = "psychological"
    RELATIONSHIP = "relationship"
    CONVERSATIONAL = "conversational"
    HISTORICAL = "historical"


class UncertaintyArea(Enum):
    SIGNAL_DISAGREEMENT = "signal_disagreement"
    MIXED_SENTIMENT = "mixed_sentiment"
    MISSING_RELATIONSHIP_CONTEXT = "missing_relationship_context"
    MISSING_BASELINE = "missing_baseline"
    MISSING_EXTRACTION_CONFIDENCE = "missing_extraction_confidence"
    SPARSE_TEXT = "sparse_text"


# uncertainty areas that count towards the ambiguity cap on confidence
AMBIGUITY_AREAS = frozenset({
    UncertaintyArea.MIXED_SENTIMENT.value,
    UncertaintyArea.MISSING_RELATIONSHIP_CONTEXT.value,
    UncertaintyArea.MISSING_BASELINE.value,
    UncertaintyArea.MISSING_EXTRACTION_CONFIDENCE.value,
})


class DecisionOutcome(Enum):
    AUTO_APPROVE = "auto_approve"
    REVIEW_REQUIRED = "review_required"
    AUTO_REJECT = "auto_reject"


class HumanOutcome(Enum):
    VALIDATED = "validated"
    REJECTED = "rejected"


class PriorityTier(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """0 for the most urgent tier."""
        return list(PriorityTier).index(self)


def _require_range(name: str, value: float, lo: float, hi: float) -> None:
    if value is None or not lo <= value <= hi:
        raise InvalidIndicatorRangeError(
            f"{name} must be within [{lo}, {hi}], got {value}",
            field_name=name,
            value=value,
            allowed=(lo, hi),
        )


# allowed ranges for raw components that are not plain [0, 1] intensities
COMPONENT_RANGES = {
    "baseline": (0.0, 10.0),
    "deviation": (-10.0, 10.0),
}


@dataclass(frozen=True)
class SignalReading:
    """One extractor's output: a [0, 1] sub-score plus the evidence behind it."""
    kind: FactorKind
    score: float
    evidence: Tuple[str, ...] = ()
    components: Mapping[str, float] = field(default_factory=dict)
    flags: FrozenSet[str] = frozenset()

    def __post_init__(self):
        _require_range(f"{self.kind.value}.score", self.score, 0.0, 1.0)
        for name, value in self.components.items():
            lo, hi = COMPONENT_RANGES.get(name, (0.0, 1.0))
            _require_range(f"{self.kind.value}.{name}", value, lo, hi)
        object.__setattr__(self, "evidence", tuple(self.evidence))
        object.__setattr__(self, "components", MappingProxyType(dict(self.components)))
        object.__setattr__(self, "flags", frozenset(self.flags))

    @property
    def evidence_count(self) -> int:
        return len(self.evidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "score": self.score,
            "evidence": list(self.evidence),
            "components": dict(self.components),
            "flags": sorted(self.flags),
        }


@dataclass(frozen=True)
class EmotionalIndicators:
    """The five sub-scores for one scored item."""
    sentiment: SignalReading
    psychological: SignalReading
    relationship: SignalReading
    conversational: SignalReading
    historical: SignalReading

    def __post_init__(self):
        for kind in FactorKind:
            reading = getattr(self, kind.value)
            if reading.kind is not kind:
                raise InvalidIndicatorRangeError(
                    f"{kind.value} slot holds a {reading.kind.value} reading",
                    field_name=kind.value,
                )

    def readings(self) -> Dict[FactorKind, SignalReading]:
        return {kind: getattr(self, kind.value) for kind in FactorKind}

    def scores(self) -> Dict[str, float]:
        return {kind.value: getattr(self, kind.value).score for kind in FactorKind}

    @property
    def flags(self) -> FrozenSet[str]:
        out = set()
        for reading in self.readings().values():
            out |= reading.flags
        return frozenset(out)

    def to_dict(self) -> Dict[str, Any]:
        return {kind.value: getattr(self, kind.value).to_dict() for kind in FactorKind}


@dataclass(frozen=True)
class MoodScore:
    """A 0-10 mood value with its confidence, descriptors and open questions."""
    value: float
    confidence: float
    descriptors: Tuple[str, ...] = ()
    uncertainty_areas: FrozenSet[str] = frozenset()

    def __post_init__(self):
        _require_range("mood.value", self.value, 0.0, 10.0)
        _require_range("mood.confidence", self.confidence, 0.0, 1.0)
        object.__setattr__(self, "descriptors", tuple(self.descriptors))
        object.__setattr__(self, "uncertainty_areas", frozenset(self.uncertainty_areas))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "confidence": self.confidence,
            "descriptors": list(self.descriptors),
            "uncertainty_areas": sorted(self.uncertainty_areas),
        }


@dataclass(frozen=True)
class MoodObservation:
    """A mood score placed on one participant's timeline.

    `supporters` lists the other participants whose support or empathy
    preceded this observation; mood-repair detection relies on it.
    """
    participant_id: str
    timestamp: datetime
    score: MoodScore
    item_id: Optional[str] = None
    supporters: Tuple[str, ...] = ()

    @property
    def value(self) -> float:
        return self.score.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "timestamp": self.timestamp.isoformat(),
            "score": self.score.to_dict(),
            "item_id": self.item_id,
            "supporters": list(self.supporters),
        }


@dataclass(frozen=True)
class TimeContext:
    start: datetime
    end: datetime
    participant_id: str
    from_item: Optional[str] = None
    to_item: Optional[str] = None

    @property
    def elapsed(self) -> timedelta:
        return self.end - self.start

    @property
    def hours(self) -> float:
        return self.elapsed.total_seconds() / 3600.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "participant_id": self.participant_id,
            "from_item": self.from_item,
            "to_item": self.to_item,
        }


@dataclass(frozen=True)
class MoodDelta:
    """A significant transition between two mood scores of one participant."""
    from_mood: float
    to_mood: float
    magnitude: float
    direction: "Direction"
    transition_type: "TransitionType"
    significance: float
    confidence: float
    time_context: TimeContext
    velocity: float = 0.0          # mood points per hour

    def __post_init__(self):
        _require_range("delta.from_mood", self.from_mood, 0.0, 10.0)
        _require_range("delta.to_mood", self.to_mood, 0.0, 10.0)
        _require_range("delta.significance", self.significance, 0.0, 1.0)
        _require_range("delta.confidence", self.confidence, 0.0, 1.0)

    @property
    def participant_id(self) -> str:
        return self.time_context.participant_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_mood": self.from_mood,
            "to_mood": self.to_mood,
            "magnitude": self.magnitude,
            "direction": self.direction.value,
            "transition_type": self.transition_type.value,
            "significance": self.significance,
            "confidence": self.confidence,
            "time_context": self.time_context.to_dict(),
            "velocity": self.velocity,
        }


@dataclass(frozen=True)
class DecisionReasoning:
    """Which rule fired and which confidence factors drove it."""
    rule: str
    approve_cutoff: float
    reject_cutoff: float
    tier: str
    dominant_factors: Tuple[str, ...] = ()
    factor_values: Mapping[str, float] = field(default_factory=dict)
    notes: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "factor_values", MappingProxyType(dict(self.factor_values)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule,
            "approve_cutoff": self.approve_cutoff,
            "reject_cutoff": self.reject_cutoff,
            "tier": self.tier,
            "dominant_factors": list(self.dominant_factors),
            "factor_values": dict(self.factor_values),
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class ValidationDecision:
    decision_id: str
    item_id: str
    outcome: DecisionOutcome
    confidence: float
    significance: float                       # 0..1
    significance_tier: PriorityTier
    reasoning: DecisionReasoning
    threshold_version: int
    review_priority: Optional[PriorityTier] = None
    decided_by: str = "engine"
    supersedes: Optional[str] = None
    decided_at: Optional[datetime] = None

    def __post_init__(self):
        _require_range("decision.confidence", self.confidence, 0.0, 1.0)
        _require_range("decision.significance", self.significance, 0.0, 1.0)
        if self.review_priority is not None and self.outcome is not DecisionOutcome.REVIEW_REQUIRED:
            raise InvalidIndicatorRangeError(
                "review_priority is only set on review_required decisions",
                field_name="review_priority",
                value=self.review_priority.value,
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decision_id": self.decision_id,
            "item_id": self.item_id,
            "outcome": self.outcome.value,
            "confidence": self.confidence,
            "significance": self.significance,
            "significance_tier": self.significance_tier.value,
            "reasoning": self.reasoning.to_dict(),
            "threshold_version": self.threshold_version,
            "review_priority": self.review_priority.value if self.review_priority else None,
            "decided_by": self.decided_by,
            "supersedes": self.supersedes,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }


@dataclass(frozen=True)
class ThresholdConfig:
    """One immutable version of the auto-confirmation thresholds and weights."""
    version: int
    approve_cutoff: float
    reject_cutoff: float
    significance_adjustments: Mapping[str, float] = field(default_factory=dict)
    force_review_tiers: Tuple[str, ...] = ()
    factor_weights: Mapping[str, float] = field(default_factory=dict)
    mood_weights: Mapping[str, float] = field(default_factory=dict)
    parent_version: Optional[int] = None
    created_at: Optional[datetime] = None
    note: str = ""

    def __post_init__(self):
        for name in ("significance_adjustments", "factor_weights", "mood_weights"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, "force_review_tiers", tuple(self.force_review_tiers))
        self.validate()

    def validate(self) -> None:
        if not 0.0 <= self.reject_cutoff < self.approve_cutoff <= 1.0:
            raise ConfigurationError(
                f"Need 0 <= reject ({self.reject_cutoff}) < approve ({self.approve_cutoff}) <= 1",
                config_field="threshold_config.cutoffs"
            )
        for name in ("factor_weights", "mood_weights"):
            weights = getattr(self, name)
            if weights and abs(sum(weights.values()) - 1.0) > 1e-6:
                raise ConfigurationError(
                    f"{name} must sum to 1.0",
                    config_field=f"threshold_config.{name}"
                )

    def approve_cutoff_for(self, tier: PriorityTier) -> float:
        """Base approve cutoff raised by the tier's significance adjustment."""
        return max(self.approve_cutoff, self.significance_adjustments.get(tier.value, 0.0))

    def forces_review(self, tier: PriorityTier) -> bool:
        return tier.value in self.force_review_tiers

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "approve_cutoff": self.approve_cutoff,
            "reject_cutoff": self.reject_cutoff,
            "significance_adjustments": dict(self.significance_adjustments),
            "force_review_tiers": list(self.force_review_tiers),
            "factor_weights": dict(self.factor_weights),
            "mood_weights": dict(self.mood_weights),
            "parent_version": self.parent_version,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "note": self.note,
        }


@dataclass(frozen=True)
class OutcomeRecord:
    """A human verdict on an engine decision."""
    decision: ValidationDecision
    human_outcome: HumanOutcome
    recorded_at: datetime
    superseding_decision_id: str
    human_mood: Optional[float] = None
    engine_mood: Optional[float] = None

    @property
    def agrees(self) -> bool:
        """Reviews defer to the human, so they always count as agreement."""
        outcome = self.decision.outcome
        if outcome is DecisionOutcome.AUTO_APPROVE:
            return self.human_outcome is HumanOutcome.VALIDATED
        if outcome is DecisionOutcome.AUTO_REJECT:
            return self.human_outcome is HumanOutcome.REJECTED
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decision_id": self.decision.decision_id,
            "human_outcome": self.human_outcome.value,
            "recorded_at": self.recorded_at.isoformat(),
            "superseding_decision_id": self.superseding_decision_id,
            "human_mood": self.human_mood,
            "engine_mood": self.engine_mood,
        }
