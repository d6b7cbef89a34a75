import itertools
from datetime import datetime, timedelta

import pytest

from moodgauge.domain.context import EmotionalContext, RelationshipDynamics
from moodgauge.domain.models import (
    DecisionOutcome,
    DecisionReasoning,
    MoodObservation,
    MoodScore,
    PriorityTier,
    ValidationDecision,
)


@pytest.fixture
def scenario_components():
    """Indicator components for a mixed, stressed but well-supported message."""
    return {
        "sentiment": {"positive": 0.3, "negative": 0.6, "neutral": 0.1},
        "psychological": {"stress": 0.7, "coping": 0.4, "resilience": 0.6},
        "relationship": {"support": 0.8, "intimacy": 0.7},
        "conversational": {"flow": 0.5, "engagement": 0.6},
        "historical": {"baseline": 5.2, "deviation": -1.8},
    }


@pytest.fixture
def full_relationship():
    return RelationshipDynamics(closeness=0.8, history_months=24, relationship_type="friend", importance=0.7)


@pytest.fixture
def full_context(full_relationship):
    return EmotionalContext.build("p1", relationship=full_relationship, extraction_confidence=0.95)


@pytest.fixture
def t0():
    return datetime(2024, 3, 1, 10, 0, 0)


@pytest.fixture
def make_obs(t0):
    """Factory: make_obs(value, minutes=0, participant_id="p1", confidence=0.8, supporters=())."""
    def _make(value, minutes=0, participant_id="p1", confidence=0.8, supporters=(), item_id=None):
        return MoodObservation(
            participant_id=participant_id,
            timestamp=t0 + timedelta(minutes=minutes),
            score=MoodScore(value=value, confidence=confidence),
            item_id=item_id,
            supporters=tuple(supporters),
        )
    return _make


@pytest.fixture
def make_decision():
    """Factory for engine decisions with unique ids; review decisions get their tier as priority."""
    counter = itertools.count(1)

    def _make(outcome=DecisionOutcome.REVIEW_REQUIRED, confidence=0.6, tier=PriorityTier.LOW,
              significance=0.2, item_id=None, factors=None):
        n = next(counter)
        outcome = DecisionOutcome(outcome) if isinstance(outcome, str) else outcome
        tier = PriorityTier(tier) if isinstance(tier, str) else tier
        return ValidationDecision(
            decision_id=f"d{n}",
            item_id=item_id or f"item{n}",
            outcome=outcome,
            confidence=confidence,
            significance=significance,
            significance_tier=tier,
            reasoning=DecisionReasoning(
                rule="test",
                approve_cutoff=0.75,
                reject_cutoff=0.5,
                tier=tier.value,
                factor_values=factors or {},
            ),
            threshold_version=1,
            review_priority=tier if outcome is DecisionOutcome.REVIEW_REQUIRED else None,
        )
    return _make
