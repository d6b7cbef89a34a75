import pytest

from moodgauge.classification import DeltaDetector
from moodgauge.config.settings import SignificanceSettings
from moodgauge.domain.context import EmotionalContext, RelationshipDynamics
from moodgauge.domain.models import PriorityTier
from moodgauge.significance import SignificanceAssessment, SignificanceWeighter, novelty


@pytest.fixture
def weighter():
    return SignificanceWeighter()


class TestAssess:

    def test_everything_maxed_is_critical(self, weighter):
        result = weighter.assess(magnitude=5.0, relationship_importance=1.0, novelty=1.0, urgent=True)
        assert result.score == pytest.approx(10.0)
        assert result.tier is PriorityTier.CRITICAL
        assert result.dominant == ("magnitude", "relationship")

    def test_relationship_only(self, weighter):
        result = weighter.assess(relationship_importance=0.2)
        assert result.score == pytest.approx(0.5)
        assert result.tier is PriorityTier.LOW
        assert result.dominant == ("relationship",)

    def test_urgency_is_at_least_high(self, weighter):
        result = weighter.assess(urgent=True)
        assert result.score == pytest.approx(2.75)
        assert result.tier is PriorityTier.HIGH

    def test_mixed_factors(self, weighter):
        result = weighter.assess(magnitude=2.5, relationship_importance=0.8, novelty=0.5)
        assert result.score == pytest.approx(5.0)
        assert result.tier is PriorityTier.MEDIUM
        assert result.normalised == pytest.approx(0.5)

    def test_magnitude_is_capped(self, weighter):
        assert weighter.assess(magnitude=9.0).factors["magnitude"] == 1.0
        assert weighter.assess(magnitude=-2.5).factors["magnitude"] == pytest.approx(0.5)

    @pytest.mark.parametrize("score,tier", [
        (8.0, PriorityTier.CRITICAL),
        (7.99, PriorityTier.HIGH),
        (6.0, PriorityTier.HIGH),
        (4.0, PriorityTier.MEDIUM),
        (3.99, PriorityTier.LOW),
    ])
    def test_tier_cutoffs(self, weighter, score, tier):
        assert weighter.tier_for(score) is tier

    def test_custom_cutoffs(self):
        weighter = SignificanceWeighter(SignificanceSettings(tier_cutoffs={"critical": 9.0, "high": 3.0, "medium": 1.0}))
        assert weighter.tier_for(5.0) is PriorityTier.HIGH


class TestNovelty:

    def test_partial_overlap(self):
        assert novelty(["a", "b"], ["b", "c"]) == pytest.approx(2 / 3)

    def test_nothing_seen_is_fully_novel(self):
        assert novelty(["a"], []) == 1.0

    def test_repeat_is_not_novel(self):
        assert novelty(["a"], ["a"]) == 0.0


class TestAssessItem:

    def test_vulnerability_raises_relationship_factor(self, weighter):
        ctx = EmotionalContext.build(
            "p1", relationship=RelationshipDynamics(importance=0.4), vulnerability=0.6
        )
        result = weighter.assess_item(ctx)
        assert result.factors["relationship"] == pytest.approx(0.7)

    def test_closeness_stands_in_for_importance(self, weighter):
        ctx = EmotionalContext.build("p1", relationship=RelationshipDynamics(closeness=0.9))
        assert weighter.assess_item(ctx).factors["relationship"] == pytest.approx(0.9)

    def test_delta_and_urgency_flow_through(self, weighter, make_obs):
        (delta,) = DeltaDetector().detect([make_obs(3.1, 0), make_obs(6.8, 15)])
        ctx = EmotionalContext.build("p1", urgent=True)
        result = weighter.assess_item(ctx, delta=delta, descriptors=["unsettled"], seen_descriptors=["content"])
        assert result.factors == pytest.approx({
            "magnitude": 0.74, "relationship": 0.5, "novelty": 1.0, "urgency": 1.0,
        })
        assert result.score == pytest.approx(7.71)
        assert result.tier is PriorityTier.HIGH

    def test_without_context(self, weighter):
        result = weighter.assess_item(None)
        assert result.factors["relationship"] == 0.5
        assert result.factors["urgency"] == 0.0


def test_from_tier():
    result = SignificanceAssessment.from_tier("high")
    assert result.tier is PriorityTier.HIGH
    assert result.normalised == pytest.approx(0.7)
    assert result.as_dict()["tier"] == "high"
    with pytest.raises(ValueError):
        SignificanceAssessment.from_tier("urgent")
