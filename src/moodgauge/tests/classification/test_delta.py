import pytest

from moodgauge.classification import DeltaDetector
from moodgauge.config.settings import DeltaSettings
from moodgauge.domain.exceptions import ParameterValidationError
from moodgauge.models.trajectory import Direction, TrajectoryState, TransitionType


@pytest.fixture
def detector():
    return DeltaDetector()


def test_recovery_after_support(detector, make_obs):
    deltas = detector.detect([make_obs(3.1, 0), make_obs(6.8, 15)])
    assert len(deltas) == 1
    delta = deltas[0]
    assert delta.magnitude == pytest.approx(3.7)
    assert delta.direction is Direction.POSITIVE
    assert delta.transition_type is TransitionType.RECOVERY
    assert delta.significance == pytest.approx(0.925)
    assert delta.velocity == pytest.approx(14.8)
    assert delta.confidence == pytest.approx(0.8)
    assert delta.participant_id == "p1"


@pytest.mark.parametrize("to_mood,expected", [(6.49, 0), (6.5, 1)])
def test_significance_threshold_is_inclusive(detector, make_obs, to_mood, expected):
    deltas = detector.detect([make_obs(5.0, 0), make_obs(to_mood, 30)])
    assert len(deltas) == expected
    if deltas:
        assert deltas[0].transition_type is TransitionType.GRADUAL


def test_decline(detector, make_obs):
    (delta,) = detector.detect([make_obs(7.0, 0), make_obs(3.0, 30)])
    assert delta.transition_type is TransitionType.DECLINE
    assert delta.direction is Direction.NEGATIVE
    assert delta.velocity == pytest.approx(-8.0)


def test_sudden_versus_gradual_depends_on_cadence(detector, make_obs):
    (sudden,) = detector.detect([make_obs(5.0, 0), make_obs(7.5, 1)])
    assert sudden.transition_type is TransitionType.SUDDEN

    slow = [make_obs(5.0, 0), make_obs(5.2, 1), make_obs(5.4, 2), make_obs(8.0, 60)]
    (gradual,) = detector.detect(slow)
    assert gradual.transition_type is TransitionType.GRADUAL


def test_recovery_needs_a_low_baseline(detector, make_obs):
    obs = [make_obs(8.0, 0), make_obs(8.0, 15), make_obs(3.1, 30), make_obs(6.8, 45)]
    types = [d.transition_type for d in detector.detect(obs)]
    assert types == [TransitionType.DECLINE, TransitionType.SUDDEN]


def test_insufficient_data_is_flagged_not_raised(detector, make_obs):
    analysis = detector.analyse([make_obs(5.0)])
    assert analysis.insufficient_data
    assert analysis.deltas == ()
    assert analysis.final_state is TrajectoryState.STABLE
    assert detector.detect([]) == []


def test_analyse_rejects_mixed_participants(detector, make_obs):
    with pytest.raises(ParameterValidationError):
        detector.analyse([make_obs(3.0, 0, "p1"), make_obs(7.0, 10, "p2")])


def test_participants_are_never_compared_with_each_other(detector, make_obs):
    obs = [
        make_obs(3.0, 0, "p1"),
        make_obs(9.0, 5, "p2"),
        make_obs(3.2, 10, "p1"),
        make_obs(9.1, 15, "p2"),
        make_obs(4.0, 20, "p2"),
    ]
    deltas = detector.detect(obs)
    assert [(d.participant_id, d.transition_type) for d in deltas] == [("p2", TransitionType.DECLINE)]


def test_unordered_input_is_sorted(detector, make_obs):
    deltas = detector.detect([make_obs(6.8, 15), make_obs(3.1, 0)])
    assert deltas[0].direction is Direction.POSITIVE


def test_analysis_collects_everything(detector, make_obs):
    obs = [make_obs(v, 15 * i) for i, v in enumerate([2.0, 9.0, 1.0, 6.0])]
    analysis = detector.analyse(obs)
    assert len(analysis.deltas) == 3
    assert analysis.typical_cadence_seconds == 900.0
    assert [o.value for o in analysis.turning_points] == [9.0, 1.0]
    assert analysis.to_dict()["participant_id"] == "p1"


def test_custom_threshold(make_obs):
    detector = DeltaDetector(DeltaSettings(significance_threshold=0.5, sudden_threshold=2.0, minor_tolerance=0.2))
    assert len(detector.detect([make_obs(5.0, 0), make_obs(5.6, 30)])) == 1


def test_delta_names_the_items_it_joins(detector, make_obs):
    (delta,) = detector.detect([make_obs(7.0, 0, item_id="a"), make_obs(3.0, 30, item_id="b")])
    assert (delta.time_context.from_item, delta.time_context.to_item) == ("a", "b")
    assert delta.to_dict()["time_context"]["to_item"] == "b"
