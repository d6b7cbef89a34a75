"""Window-level mood patterns and mood-repair detection."""
import logging
from itertools import groupby
from typing import List, Optional, Sequence, Tuple

import numpy as np

from moodgauge.config.settings import DeltaSettings
from moodgauge.domain.models import MoodDelta, MoodObservation
from moodgauge.models.trajectory import (
    MoodPattern,
    MoodRepair,
    StepChange,
    TrajectoryState,
    TransitionType,
)
from moodgauge.utils.numeric import clamp01

logger = logging.getLogger(__name__)


def _consistency(steps: Sequence[StepChange]) -> float:
    """1.0 when every step has the same size, lower as sizes spread."""
    sizes = np.array([s.magnitude for s in steps], dtype=float)
    mean = float(sizes.mean()) if sizes.size else 0.0
    if mean == 0.0:
        return 1.0
    return clamp01(1.0 - float(sizes.std()) / mean)


class PatternClassifier:
    """
    Reads patterns off the trajectory state sequence:

    - recovery: at least `min_run_length` consecutive steps in `rising`
    - decline: at least `min_run_length` consecutive steps in `falling`
    - plateau: at least `min_run_length` consecutive `stable` steps that follow
      a significant step
    - oscillation: any `oscillating` stretch, together with the steps whose
      reversals triggered it
    """

    def __init__(self, settings: Optional[DeltaSettings] = None):
        self.settings = settings or DeltaSettings()

    def _confidence(self, steps: Sequence[StepChange], plateau: bool = False) -> float:
        length = min(1.0, len(steps) / (2.0 * self.settings.min_run_length))
        if plateau:
            mean = float(np.mean([s.magnitude for s in steps]))
            consistency = clamp01(1.0 - mean / self.settings.significance_threshold)
        else:
            consistency = _consistency(steps)
        return 0.5 * length + 0.5 * consistency

    def classify(
        self,
        participant_id: str,
        steps: Sequence[StepChange],
        states: Sequence[TrajectoryState],
    ) -> Tuple[MoodPattern, ...]:
        patterns: List[MoodPattern] = []
        min_run = self.settings.min_run_length
        pos = 0
        for state, group in groupby(states):
            n = len(list(group))
            run = list(steps[pos:pos + n])
            if state is TrajectoryState.RISING and n >= min_run:
                patterns.append(MoodPattern.recovery(participant_id, run, self._confidence(run)))
            elif state is TrajectoryState.FALLING and n >= min_run:
                patterns.append(MoodPattern.decline(participant_id, run, self._confidence(run)))
            elif state is TrajectoryState.STABLE and n >= min_run and pos > 0:
                patterns.append(MoodPattern.plateau(participant_id, run, self._confidence(run, plateau=True)))
            elif state is TrajectoryState.OSCILLATING:
                lead = max(0, pos - self.settings.oscillation_flips)
                window = list(steps[lead:pos + n])
                patterns.append(MoodPattern.oscillation(participant_id, window, self._confidence(window)))
            pos += n
        for p in patterns:
            logger.debug("[patterns] %s %s over %d steps", participant_id, p.pattern_type.value, p.step_count)
        return tuple(patterns)


class MoodRepairDetector:
    """Recoveries that follow support or empathy from someone else."""

    @staticmethod
    def detect(
        observations: Sequence[MoodObservation],
        deltas: Sequence[Tuple[int, MoodDelta]],
    ) -> Tuple[MoodRepair, ...]:
        """`deltas` pairs each delta with the position of its closing observation."""
        repairs = []
        for end_idx, delta in deltas:
            if delta.transition_type is not TransitionType.RECOVERY or not 0 < end_idx < len(observations):
                continue
            start_idx = end_idx - 1
            supporters = tuple(
                s for s in observations[end_idx].supporters if s != delta.participant_id
            )
            if not supporters:
                continue
            peak = max(o.value for o in observations[:start_idx + 1])
            decline = round(peak - delta.from_mood, 6)
            effectiveness = min(1.0, delta.magnitude / decline) if decline > 0 else 1.0
            repairs.append(MoodRepair(
                delta=delta,
                supporters=supporters,
                preceding_decline=decline,
                effectiveness=round(effectiveness, 3),
            ))
        return tuple(repairs)
