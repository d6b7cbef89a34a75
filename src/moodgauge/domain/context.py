"""Read-only context assembled once per analysis request."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, FrozenSet, Sequence, Dict, Any

import numpy as np

from moodgauge.domain.exceptions import InvalidIndicatorRangeError


@dataclass(frozen=True)
class ParticipantProfile:
    participant_id: str
    display_name: Optional[str] = None
    vulnerability: float = 0.0       # 0..1, raises review significance


@dataclass(frozen=True)
class RelationshipDynamics:
    """What is known about the relationship between the speaker and the other participants."""
    closeness: Optional[float] = None          # 0..1
    history_months: Optional[float] = None
    relationship_type: Optional[str] = None    # "family", "friend", "partner", ...
    importance: Optional[float] = None         # 0..1

    def __post_init__(self):
        for name in ("closeness", "importance"):
            value = getattr(self, name)
            if value is not None and not 0.0 <= value <= 1.0:
                raise InvalidIndicatorRangeError(
                    f"relationship.{name} must be within [0, 1], got {value}",
                    field_name=f"relationship.{name}",
                    value=value,
                    allowed=(0.0, 1.0),
                )
        if self.history_months is not None and self.history_months < 0:
            raise InvalidIndicatorRangeError(
                "relationship.history_months cannot be negative",
                field_name="relationship.history_months",
                value=self.history_months,
            )

    @property
    def completeness(self) -> float:
        """Fraction of the relationship fields that are known."""
        known = [self.closeness, self.history_months, self.relationship_type, self.importance]
        return sum(v is not None for v in known) / len(known)

    @property
    def history_depth(self) -> float:
        """Shared history on a 0..1 scale; two years or more counts as full."""
        if self.history_months is None:
            return 0.5
        return min(1.0, self.history_months / 24.0)


@dataclass(frozen=True)
class EmotionalBaseline:
    typical_mood: float
    mood_range: Tuple[float, float]
    stability: float                 # 0..1, 1 = very stable
    sample_size: int = 0

    @classmethod
    def from_history(cls, values: Sequence[float]) -> Optional["EmotionalBaseline"]:
        """Baseline from past mood values; None when there is no history."""
        arr = np.asarray(list(values), dtype=float)
        if arr.size == 0:
            return None
        std = float(np.std(arr)) if arr.size > 1 else 0.0
        return cls(
            typical_mood=round(float(np.mean(arr)), 2),
            mood_range=(float(np.min(arr)), float(np.max(arr))),
            stability=round(max(0.0, min(1.0, 1.0 - std / 5.0)), 3),
            sample_size=int(arr.size),
        )


@dataclass(frozen=True)
class ConversationTurn:
    participant_id: str
    text: str
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class EmotionalContext:
    """Everything the extractors may consult besides the text itself."""
    participant: ParticipantProfile
    relationship: Optional[RelationshipDynamics] = None
    baseline: Optional[EmotionalBaseline] = None
    tags: FrozenSet[str] = frozenset()
    pattern_refs: Tuple[str, ...] = ()
    turns: Tuple[ConversationTurn, ...] = ()
    extraction_confidence: Optional[float] = None
    urgent: bool = False

    def __post_init__(self):
        if self.extraction_confidence is not None and not 0.0 <= self.extraction_confidence <= 1.0:
            raise InvalidIndicatorRangeError(
                f"extraction_confidence must be within [0, 1], got {self.extraction_confidence}",
                field_name="extraction_confidence",
                value=self.extraction_confidence,
                allowed=(0.0, 1.0),
            )
        object.__setattr__(self, "tags", frozenset(self.tags))
        object.__setattr__(self, "pattern_refs", tuple(self.pattern_refs))
        object.__setattr__(self, "turns", tuple(self.turns))

    @property
    def participant_id(self) -> str:
        return self.participant.participant_id

    @classmethod
    def build(
        cls,
        participant_id: str,
        *,
        relationship: Optional[RelationshipDynamics] = None,
        mood_history: Sequence[float] = (),
        tags: Sequence[str] = (),
        pattern_refs: Sequence[str] = (),
        turns: Sequence[ConversationTurn] = (),
        extraction_confidence: Optional[float] = None,
        urgent: bool = False,
        vulnerability: float = 0.0,
    ) -> "EmotionalContext":
        return cls(
            participant=ParticipantProfile(participant_id, vulnerability=vulnerability),
            relationship=relationship,
            baseline=EmotionalBaseline.from_history(mood_history),
            tags=frozenset(tags),
            pattern_refs=tuple(pattern_refs),
            turns=tuple(turns),
            extraction_confidence=extraction_confidence,
            urgent=urgent,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "has_relationship": self.relationship is not None,
            "has_baseline": self.baseline is not None,
            "tags": sorted(self.tags),
            "pattern_refs": list(self.pattern_refs),
            "extraction_confidence": self.extraction_confidence,
            "urgent": self.urgent,
        }
