""" Specifies the classes describing mood trajectories """

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Tuple, Optional, Dict, Any, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from moodgauge.domain.models import MoodDelta, MoodObservation


class Direction(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class TransitionType(Enum):
    GRADUAL = "gradual"
    SUDDEN = "sudden"
    RECOVERY = "recovery"
    DECLINE = "decline"


class TrajectoryState(Enum):
    STABLE = "stable"
    RISING = "rising"
    FALLING = "falling"
    OSCILLATING = "oscillating"


class TrajectoryEvent(Enum):
    """Input alphabet of the trajectory state machine."""
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class PatternType(Enum):
    RECOVERY = "recovery"
    DECLINE = "decline"
    PLATEAU = "plateau"
    OSCILLATION = "oscillation"


@dataclass(frozen=True)
class StepChange:
    """Change between two consecutive observations of one participant."""
    index: int
    start: datetime
    end: datetime
    from_mood: float
    to_mood: float

    @property
    def change(self) -> float:
        return round(self.to_mood - self.from_mood, 6)

    @property
    def magnitude(self) -> float:
        return abs(self.change)


@dataclass(frozen=True)
class MoodPattern:
    """A window-level pattern over consecutive steps."""
    pattern_type: PatternType
    participant_id: str
    start: datetime
    end: datetime
    step_count: int
    net_change: float
    confidence: float

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern_type": self.pattern_type.value,
            "participant_id": self.participant_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration_seconds": self.duration.total_seconds(),
            "step_count": self.step_count,
            "net_change": self.net_change,
            "confidence": self.confidence,
        }

    # -------- factories --------
    @classmethod
    def _base(
        cls,
        *,
        pattern_type: PatternType,
        participant_id: str,
        steps: Sequence[StepChange],
        confidence: float,
    ) -> "MoodPattern":
        return cls(
            pattern_type=pattern_type,
            participant_id=participant_id,
            start=steps[0].start,
            end=steps[-1].end,
            step_count=len(steps),
            net_change=round(steps[-1].to_mood - steps[0].from_mood, 3),
            confidence=round(confidence, 3),
        )

    @classmethod
    def recovery(cls, participant_id: str, steps: Sequence[StepChange], confidence: float) -> "MoodPattern":
        return cls._base(pattern_type=PatternType.RECOVERY, participant_id=participant_id,
                         steps=steps, confidence=confidence)

    @classmethod
    def decline(cls, participant_id: str, steps: Sequence[StepChange], confidence: float) -> "MoodPattern":
        return cls._base(pattern_type=PatternType.DECLINE, participant_id=participant_id,
                         steps=steps, confidence=confidence)

    @classmethod
    def plateau(cls, participant_id: str, steps: Sequence[StepChange], confidence: float) -> "MoodPattern":
        return cls._base(pattern_type=PatternType.PLATEAU, participant_id=participant_id,
                         steps=steps, confidence=confidence)

    @classmethod
    def oscillation(cls, participant_id: str, steps: Sequence[StepChange], confidence: float) -> "MoodPattern":
        return cls._base(pattern_type=PatternType.OSCILLATION, participant_id=participant_id,
                         steps=steps, confidence=confidence)


@dataclass(frozen=True)
class MoodRepair:
    """A recovery helped along by another participant's support."""
    delta: "MoodDelta"
    supporters: Tuple[str, ...]
    preceding_decline: float
    effectiveness: float            # 0..1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delta": self.delta.to_dict(),
            "supporters": list(self.supporters),
            "preceding_decline": self.preceding_decline,
            "effectiveness": self.effectiveness,
        }


@dataclass(frozen=True)
class DeltaAnalysis:
    """Everything the detector learned from one participant's score sequence."""
    participant_id: Optional[str]
    deltas: Tuple["MoodDelta", ...] = ()
    states: Tuple[TrajectoryState, ...] = ()
    patterns: Tuple[MoodPattern, ...] = ()
    repairs: Tuple[MoodRepair, ...] = ()
    turning_points: Tuple["MoodObservation", ...] = ()
    typical_cadence_seconds: Optional[float] = None
    insufficient_data: bool = False

    @property
    def final_state(self) -> TrajectoryState:
        return self.states[-1] if self.states else TrajectoryState.STABLE

    @classmethod
    def insufficient(cls, participant_id: Optional[str]) -> "DeltaAnalysis":
        return cls(participant_id=participant_id, insufficient_data=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "deltas": [d.to_dict() for d in self.deltas],
            "states": [s.value for s in self.states],
            "patterns": [p.to_dict() for p in self.patterns],
            "repairs": [r.to_dict() for r in self.repairs],
            "turning_points": [o.to_dict() for o in self.turning_points],
            "typical_cadence_seconds": self.typical_cadence_seconds,
            "insufficient_data": self.insufficient_data,
        }
