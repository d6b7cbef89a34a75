"""Detect significant mood transitions within one participant's timeline."""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

import numpy as np

from moodgauge.config.settings import DeltaSettings
from moodgauge.domain.exceptions import InsufficientDataError, ParameterValidationError
from moodgauge.domain.models import MoodDelta, MoodObservation, TimeContext
from moodgauge.models.trajectory import DeltaAnalysis, StepChange, TransitionType
from moodgauge.utils.numeric import clamp01

from .classifier import TransitionClassifier, TrajectoryStateMachine
from .patterns import MoodRepairDetector, PatternClassifier

logger = logging.getLogger(__name__)

# scales delta significance by how telling the transition type is
TYPE_WEIGHT = {
    TransitionType.RECOVERY: 1.0,
    TransitionType.DECLINE: 1.0,
    TransitionType.SUDDEN: 0.95,
    TransitionType.GRADUAL: 0.85,
}


def _require_points(observations: Sequence[MoodObservation], n: int = 2) -> None:
    if len(observations) < n:
        raise InsufficientDataError(
            f"Need at least {n} mood scores, got {len(observations)}",
            required=n,
            available=len(observations),
        )


def turning_points(observations: Sequence[MoodObservation]) -> List[MoodObservation]:
    """Strict local maxima and minima (end points excluded)."""
    out = []
    for prev, cur, nxt in zip(observations, observations[1:], observations[2:]):
        if (cur.value > prev.value and cur.value > nxt.value) or (
            cur.value < prev.value and cur.value < nxt.value
        ):
            out.append(cur)
    return out


class DeltaDetector:
    """
    Walks one participant's scores in time order, feeding each step to the
    trajectory state machine and surfacing a MoodDelta for every step at or
    above the significance threshold.
    """

    def __init__(self, settings: Optional[DeltaSettings] = None):
        self.settings = settings or DeltaSettings()
        self.patterns = PatternClassifier(self.settings)

    def typical_cadence(self, observations: Sequence[MoodObservation]) -> Optional[float]:
        """Median seconds between consecutive scores."""
        gaps = [
            (b.timestamp - a.timestamp).total_seconds()
            for a, b in zip(observations, observations[1:])
        ]
        if not gaps:
            return None
        median = float(np.median(gaps))
        return median if median > 0 else None

    def _delta(
        self,
        prev: MoodObservation,
        cur: MoodObservation,
        prior_values: Sequence[float],
        cadence: Optional[float],
    ) -> MoodDelta:
        change = cur.value - prev.value
        magnitude = round(abs(change), 6)
        ctx = TimeContext(
            start=prev.timestamp,
            end=cur.timestamp,
            participant_id=cur.participant_id,
            from_item=prev.item_id,
            to_item=cur.item_id,
        )
        transition = TransitionClassifier.classify(
            prev.value,
            cur.value,
            prior_baseline=float(np.mean(prior_values)),
            elapsed_seconds=ctx.elapsed.total_seconds(),
            cadence_seconds=cadence,
            settings=self.settings,
        )
        significance = min(1.0, magnitude / self.settings.significance_scale) * TYPE_WEIGHT[transition]
        confidence = (
            (prev.score.confidence + cur.score.confidence) / 2.0
            * (0.85 + 0.15 * min(1.0, magnitude / 3.0))
        )
        velocity = round(change / ctx.hours, 2) if ctx.hours > 0 else 0.0
        return MoodDelta(
            from_mood=prev.value,
            to_mood=cur.value,
            magnitude=magnitude,
            direction=TransitionClassifier.direction(change),
            transition_type=transition,
            significance=round(clamp01(significance), 3),
            confidence=round(clamp01(confidence), 3),
            time_context=ctx,
            velocity=velocity,
        )

    def analyse(self, observations: Sequence[MoodObservation]) -> DeltaAnalysis:
        """Full analysis for one participant; sparse input yields a flagged empty result."""
        participants = {o.participant_id for o in observations}
        if len(participants) > 1:
            raise ParameterValidationError(
                f"analyse() takes one participant's scores, got {len(participants)}",
                parameter_name="observations",
            ).add_suggestion("Use detect() or group the scores per participant first")
        participant_id = next(iter(participants), None)

        ordered = sorted(observations, key=lambda o: o.timestamp)
        try:
            _require_points(ordered)
        except InsufficientDataError as e:
            logger.debug("[delta] %s: %s", participant_id, e.message)
            return DeltaAnalysis.insufficient(participant_id)

        cadence = self.typical_cadence(ordered)
        machine = TrajectoryStateMachine(self.settings)
        steps, states, deltas, ends = [], [], [], []
        for i, (prev, cur) in enumerate(zip(ordered, ordered[1:])):
            step = StepChange(i, prev.timestamp, cur.timestamp, prev.value, cur.value)
            steps.append(step)
            states.append(machine.feed(step.change))
            if TransitionClassifier.is_significant(step.change, self.settings):
                deltas.append(self._delta(prev, cur, [o.value for o in ordered[:i + 1]], cadence))
                ends.append(i + 1)

        analysis = DeltaAnalysis(
            participant_id=participant_id,
            deltas=tuple(deltas),
            states=tuple(states),
            patterns=self.patterns.classify(participant_id, steps, states),
            repairs=MoodRepairDetector.detect(ordered, list(zip(ends, deltas))),
            turning_points=tuple(turning_points(ordered)),
            typical_cadence_seconds=cadence,
        )
        logger.debug(
            "[delta] %s: %d scores, %d deltas, %d patterns, final state %s",
            participant_id, len(ordered), len(deltas), len(analysis.patterns), analysis.final_state.value,
        )
        return analysis

    def analyse_all(self, observations: Sequence[MoodObservation]) -> Dict[str, DeltaAnalysis]:
        grouped: Dict[str, List[MoodObservation]] = defaultdict(list)
        for obs in observations:
            grouped[obs.participant_id].append(obs)
        return {pid: self.analyse(obs) for pid, obs in grouped.items()}

    def detect(self, observations: Sequence[MoodObservation]) -> List[MoodDelta]:
        """Significant deltas for every participant in the sequence, in time order."""
        deltas = [d for a in self.analyse_all(observations).values() for d in a.deltas]
        return sorted(deltas, key=lambda d: (d.time_context.end, d.participant_id))
