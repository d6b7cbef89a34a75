"""Transition predicates and the trajectory state machine."""
from typing import Dict, Optional, Sequence, Tuple

from moodgauge.config.settings import DeltaSettings
from moodgauge.models.trajectory import (
    Direction,
    TransitionType,
    TrajectoryEvent,
    TrajectoryState,
)


def _magnitude(change: float) -> float:
    # six decimals absorbs float noise from differences like 6.8 - 3.1
    return round(abs(change), 6)


class TransitionClassifier:
    """
    Rules for classifying the change between two consecutive mood scores.
    Every predicate takes the thresholds explicitly so each can be tested alone.
    """
    @staticmethod
    def is_significant(change: float, settings: DeltaSettings) -> bool:
        """Only changes at or above the significance threshold are ever surfaced."""
        return _magnitude(change) >= settings.significance_threshold

    @staticmethod
    def direction(change: float) -> Direction:
        if change > 0:
            return Direction.POSITIVE
        if change < 0:
            return Direction.NEGATIVE
        return Direction.NEUTRAL

    @staticmethod
    def is_recovery(from_mood: float, to_mood: float, prior_baseline: float, settings: DeltaSettings) -> bool:
        """Negative-to-positive swing starting from a low baseline."""
        return (
            to_mood > from_mood
            and from_mood < settings.midpoint < to_mood
            and prior_baseline <= settings.low_baseline
        )

    @staticmethod
    def is_decline(from_mood: float, to_mood: float, settings: DeltaSettings) -> bool:
        """Positive-to-negative swing."""
        return to_mood < from_mood and to_mood < settings.midpoint < from_mood

    @staticmethod
    def is_sudden(
        change: float,
        elapsed_seconds: float,
        cadence_seconds: Optional[float],
        settings: DeltaSettings,
    ) -> bool:
        """
        Large and fast: at or above the sudden threshold, and not slower than
        `cadence_multiplier` times the conversation's usual gap between scores.
        """
        if _magnitude(change) < settings.sudden_threshold:
            return False
        if not cadence_seconds:
            return True
        return elapsed_seconds <= settings.cadence_multiplier * cadence_seconds

    @staticmethod
    def classify(
        from_mood: float,
        to_mood: float,
        *,
        prior_baseline: float,
        elapsed_seconds: float,
        cadence_seconds: Optional[float],
        settings: DeltaSettings,
    ) -> TransitionType:
        if TransitionClassifier.is_recovery(from_mood, to_mood, prior_baseline, settings):
            return TransitionType.RECOVERY
        if TransitionClassifier.is_decline(from_mood, to_mood, settings):
            return TransitionType.DECLINE
        if TransitionClassifier.is_sudden(to_mood - from_mood, elapsed_seconds, cadence_seconds, settings):
            return TransitionType.SUDDEN
        return TransitionType.GRADUAL

    @staticmethod
    def event_for(change: float, settings: DeltaSettings) -> TrajectoryEvent:
        if not TransitionClassifier.is_significant(change, settings):
            return TrajectoryEvent.FLAT
        return TrajectoryEvent.UP if change > 0 else TrajectoryEvent.DOWN

    @staticmethod
    def count_flips(events: Sequence[TrajectoryEvent]) -> int:
        """Sign reversals between consecutive non-flat events."""
        moves = [e for e in events if e is not TrajectoryEvent.FLAT]
        return sum(a is not b for a, b in zip(moves, moves[1:]))


# (state, event) -> next state, before the oscillation check
TRANSITIONS: Dict[Tuple[TrajectoryState, TrajectoryEvent], TrajectoryState] = {
    (TrajectoryState.STABLE, TrajectoryEvent.UP): TrajectoryState.RISING,
    (TrajectoryState.STABLE, TrajectoryEvent.DOWN): TrajectoryState.FALLING,
    (TrajectoryState.STABLE, TrajectoryEvent.FLAT): TrajectoryState.STABLE,
    (TrajectoryState.RISING, TrajectoryEvent.UP): TrajectoryState.RISING,
    (TrajectoryState.RISING, TrajectoryEvent.DOWN): TrajectoryState.FALLING,
    (TrajectoryState.RISING, TrajectoryEvent.FLAT): TrajectoryState.STABLE,
    (TrajectoryState.FALLING, TrajectoryEvent.UP): TrajectoryState.RISING,
    (TrajectoryState.FALLING, TrajectoryEvent.DOWN): TrajectoryState.FALLING,
    (TrajectoryState.FALLING, TrajectoryEvent.FLAT): TrajectoryState.STABLE,
    (TrajectoryState.OSCILLATING, TrajectoryEvent.UP): TrajectoryState.RISING,
    (TrajectoryState.OSCILLATING, TrajectoryEvent.DOWN): TrajectoryState.FALLING,
    (TrajectoryState.OSCILLATING, TrajectoryEvent.FLAT): TrajectoryState.STABLE,
}


class TrajectoryStateMachine:
    """
    stable / rising / falling / oscillating over one participant's scores.

    Significant rises and falls move the machine to rising / falling, a
    sub-threshold change returns it to stable. Any significant move that
    leaves at least `oscillation_flips` reversals within the last
    `oscillation_window` steps lands in oscillating instead.
    """

    def __init__(self, settings: Optional[DeltaSettings] = None):
        self.settings = settings or DeltaSettings()
        self.state = TrajectoryState.STABLE
        self._recent: list = []

    def feed(self, change: float) -> TrajectoryState:
        event = TransitionClassifier.event_for(change, self.settings)
        self._recent.append(event)
        self._recent = self._recent[-self.settings.oscillation_window:]

        nxt = TRANSITIONS[(self.state, event)]
        if event is not TrajectoryEvent.FLAT and (
            TransitionClassifier.count_flips(self._recent) >= self.settings.oscillation_flips
        ):
            nxt = TrajectoryState.OSCILLATING
        self.state = nxt
        return nxt

    def run(self, changes: Sequence[float]) -> Tuple[TrajectoryState, ...]:
        return tuple(self.feed(c) for c in changes)
