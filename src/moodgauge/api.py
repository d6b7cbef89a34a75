"""
Programmatic surface for collaborating services.

The scoring functions are pure. `decide` stamps the active threshold
version and registers the decision; `record_outcome` and `recalibrate`
are the only calls that change shared state.
"""

import logging
import threading
from typing import Iterable, Optional, Sequence, Set, Tuple, Union

from moodgauge.calibration import Calibrator
from moodgauge.classification import DeltaDetector
from moodgauge.config.settings import current_settings
from moodgauge.domain.context import EmotionalContext
from moodgauge.domain.models import (
    EmotionalIndicators,
    HumanOutcome,
    MoodDelta,
    MoodObservation,
    MoodScore,
    OutcomeRecord,
    ThresholdConfig,
    ValidationDecision,
)
from moodgauge.models.timeline import Timeline, TimeWindow
from moodgauge.scoring import ConfidenceCalculator, FeatureBuilder, MoodScoreCalculator
from moodgauge.significance import SignificanceWeighter
from moodgauge.timeline import TimelineBuilder
from moodgauge.validation import AutoConfirmationEngine, OutcomeLedger, ThresholdRegistry, initial_config
from moodgauge.validation.engine import ConfidenceInput, SignificanceInput

logger = logging.getLogger(__name__)

_registry: Optional[ThresholdRegistry] = None
_ledger: Optional[OutcomeLedger] = None
_engine: Optional[AutoConfirmationEngine] = None
_calibrator: Optional[Calibrator] = None
_init_lock = threading.Lock()


def _components():
    global _registry, _ledger, _engine, _calibrator
    with _init_lock:
        if _engine is None:
            settings = current_settings()
            _registry = ThresholdRegistry(initial_config(settings.decision, settings.scoring))
            _ledger = OutcomeLedger()
            _engine = AutoConfirmationEngine(_registry, _ledger, SignificanceWeighter(settings.significance))
            _calibrator = Calibrator(_registry, _ledger, settings.calibration)
    return _registry, _ledger, _engine, _calibrator


def reset() -> None:
    """Drop the process-wide registry, ledger and calibrator (picks up new settings)."""
    global _registry, _ledger, _engine, _calibrator
    with _init_lock:
        _registry = _ledger = _engine = _calibrator = None


def registry() -> ThresholdRegistry:
    return _components()[0]


def ledger() -> OutcomeLedger:
    return _components()[1]


def calibrator() -> Calibrator:
    return _components()[3]


def _confidence_calculator() -> ConfidenceCalculator:
    settings = current_settings()
    return ConfidenceCalculator(
        weights=registry().active.factor_weights,
        settings=settings.confidence,
        disagreement_threshold=settings.scoring.disagreement_threshold,
    )


def score_mood(text: str, context: Optional[EmotionalContext] = None) -> MoodScore:
    settings = current_settings()
    indicators = FeatureBuilder(settings.scoring.saturation_rate).build(text, context)
    assessment = _confidence_calculator().assess(indicators, context)
    mood = MoodScoreCalculator(weights=registry().active.mood_weights, settings=settings.scoring)
    return mood.calculate(indicators, assessment)


def calculate_confidence(
    indicators: EmotionalIndicators,
    context: Optional[EmotionalContext] = None,
) -> Tuple[float, Set[str]]:
    return _confidence_calculator().calculate(indicators, context)


def detect_deltas(score_sequence: Sequence[MoodObservation]) -> list[MoodDelta]:
    return DeltaDetector(current_settings().delta).detect(score_sequence)


def build_timeline(
    events: Iterable[Union[MoodObservation, MoodDelta]],
    window: Union[TimeWindow, str, None] = None,
    limit: Optional[int] = None,
) -> Timeline:
    return TimelineBuilder(current_settings().timeline).build(events, window, limit)


def decide(
    item_id: str,
    indicators: Optional[EmotionalIndicators],
    confidence: ConfidenceInput,
    significance: SignificanceInput,
    threshold_version: Optional[int] = None,
) -> ValidationDecision:
    return _components()[2].decide(item_id, indicators, confidence, significance, threshold_version)


def record_outcome(
    decision_id: str,
    human_outcome: Union[HumanOutcome, str],
    *,
    human_mood: Optional[float] = None,
    engine_mood: Optional[float] = None,
) -> OutcomeRecord:
    return ledger().record(decision_id, human_outcome, human_mood=human_mood, engine_mood=engine_mood)


def recalibrate(outcome_batch: Optional[Sequence[OutcomeRecord]] = None) -> ThresholdConfig:
    """
    Run calibration on `outcome_batch`, or on the ledger's unconsumed outcomes.

    Returns the active config afterwards, which is the previous version when
    no adjustment was needed.
    """
    return calibrator().recalibrate(outcome_batch)
