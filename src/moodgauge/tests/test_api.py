from datetime import timedelta

import pytest

import moodgauge
from moodgauge import api
from moodgauge.config import settings as settings_module
from moodgauge.config.settings import DecisionSettings, Settings
from moodgauge.domain.context import EmotionalContext
from moodgauge.domain.exceptions import AmbiguousContextWarning, UnknownDecisionError
from moodgauge.domain.models import DecisionOutcome, MoodScore
from moodgauge.scoring.features import FeatureBuilder


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    monkeypatch.setattr(settings_module, "_settings", None)
    api.reset()
    yield
    api.reset()


def test_package_exports():
    assert moodgauge.score_mood is api.score_mood
    assert moodgauge.recalibrate is api.recalibrate


def test_score_mood_without_context_warns():
    with pytest.warns(AmbiguousContextWarning):
        score = api.score_mood("I am happy")
    assert isinstance(score, MoodScore)
    assert "missing_relationship_context" in score.uncertainty_areas


@pytest.mark.filterwarnings("ignore::UserWarning")
@pytest.mark.parametrize("text", [
    "",
    "I am extremely happy, so grateful and full of joy!!!",
    "I hate this, I am angry, scared, lonely and hopeless",
    "It feels bittersweet, nostalgic and a bit confusing",
])
def test_scores_stay_in_range(text, full_relationship):
    ctx = EmotionalContext.build("p1", relationship=full_relationship, mood_history=[2.0, 9.0])
    score = api.score_mood(text, ctx)
    assert 0.0 <= score.value <= 10.0
    assert 0.0 <= score.confidence <= 1.0


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_score_mood_is_deterministic(full_context):
    assert api.score_mood("I am happy", full_context) == api.score_mood("I am happy", full_context)


def test_calculate_confidence(scenario_components, full_context):
    with pytest.warns(AmbiguousContextWarning):
        confidence, areas = api.calculate_confidence(FeatureBuilder.from_components(scenario_components), full_context)
    assert confidence == pytest.approx(0.85)
    assert {"mixed_sentiment", "signal_disagreement"} <= areas


def test_detect_deltas_and_timeline(make_obs):
    obs = [make_obs(3.1, 0), make_obs(6.8, 15)]
    deltas = api.detect_deltas(obs)
    assert len(deltas) == 1
    timeline = api.build_timeline(obs + deltas, window="week")
    assert len(timeline.participants["p1"].key_moments) == 1


def test_decide_registers_with_active_version():
    decision = api.decide("m1", None, 0.6, "low")
    assert decision.threshold_version == api.registry().active.version
    assert decision.decision_id in api.ledger()


def test_record_outcome_for_unknown_decision():
    with pytest.raises(UnknownDecisionError):
        api.record_outcome("missing", "validated")


def test_feedback_loop_moves_thresholds():
    def feed(prefix, confidence, human, n):
        for i in range(n):
            decision = api.decide(f"{prefix}{i}", None, confidence, "low")
            api.record_outcome(decision.decision_id, human, human_mood=5.0, engine_mood=5.2)

    feed("ok", 0.9, "validated", 12)
    feed("bad", 0.9, "rejected", 2)
    feed("rej", 0.3, "rejected", 5)
    feed("rev", 0.6, "validated", 1)

    config = api.recalibrate()
    assert config.version == 2
    assert config.approve_cutoff == pytest.approx(0.80)
    assert api.registry().active is config
    assert api.decide("late", None, 0.78, "low").outcome is DecisionOutcome.REVIEW_REQUIRED


def test_reset_picks_up_new_settings(monkeypatch):
    monkeypatch.setattr(settings_module, "_settings", Settings(decision=DecisionSettings(approve_cutoff=0.8)))
    api.reset()
    assert api.decide("m", None, 0.78, "low").outcome is DecisionOutcome.REVIEW_REQUIRED
