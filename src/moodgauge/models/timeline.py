""" Specifies the Timeline result classes """

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Tuple, Optional, Dict, Any, List

from moodgauge.domain.exceptions import ParameterValidationError


class TimeWindow(Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def span(self) -> timedelta:
        return timedelta(days={"week": 7, "month": 30, "quarter": 90, "year": 365}[self.value])

    @classmethod
    def coerce(cls, window) -> "TimeWindow":
        if isinstance(window, cls):
            return window
        try:
            return cls(str(window).lower())
        except ValueError:
            raise ParameterValidationError(
                f"Unknown timeline window {window!r}",
                parameter_name="window",
            ).add_suggestion(f"Use one of: {', '.join(w.value for w in cls)}") from None


class TimelineEntryKind(Enum):
    SCORE = "score"
    DELTA = "delta"
    KEY_MOMENT = "key_moment"


class TrajectoryDirection(Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    VOLATILE = "volatile"


@dataclass(frozen=True)
class TimelineEntry:
    timestamp: datetime
    participant_id: str
    kind: TimelineEntryKind
    value: float                        # mood value, or delta magnitude
    label: str
    significance: Optional[float] = None
    payload: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "participant_id": self.participant_id,
            "kind": self.kind.value,
            "value": self.value,
            "label": self.label,
            "significance": self.significance,
            "payload": self.payload,
        }


@dataclass(frozen=True)
class ParticipantTimeline:
    participant_id: str
    entries: Tuple[TimelineEntry, ...] = ()
    key_moments: Tuple[TimelineEntry, ...] = ()
    insufficient_data: bool = False
    average_mood: Optional[float] = None
    mood_range: Optional[Tuple[float, float]] = None
    direction: Optional[TrajectoryDirection] = None

    @classmethod
    def empty(cls, participant_id: str) -> "ParticipantTimeline":
        return cls(participant_id=participant_id, insufficient_data=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "entries": [e.to_dict() for e in self.entries],
            "key_moments": [e.to_dict() for e in self.key_moments],
            "insufficient_data": self.insufficient_data,
            "average_mood": self.average_mood,
            "mood_range": list(self.mood_range) if self.mood_range else None,
            "direction": self.direction.value if self.direction else None,
        }


@dataclass(frozen=True)
class Timeline:
    window: TimeWindow
    start: Optional[datetime]
    end: Optional[datetime]
    participants: Dict[str, ParticipantTimeline] = field(default_factory=dict)
    insufficient_data: bool = False
    truncated: bool = False

    @property
    def entries(self) -> List[TimelineEntry]:
        """All participants' entries in one chronological list."""
        out = [e for p in self.participants.values() for e in p.entries]
        return sorted(out, key=lambda e: (e.timestamp, e.participant_id))

    @property
    def is_empty(self) -> bool:
        return not any(p.entries for p in self.participants.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window": self.window.value,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "participants": {pid: p.to_dict() for pid, p in self.participants.items()},
            "insufficient_data": self.insufficient_data,
            "truncated": self.truncated,
        }
