from datetime import timedelta

import pytest

from moodgauge.classification import DeltaDetector
from moodgauge.domain.exceptions import ParameterValidationError
from moodgauge.models.timeline import TimelineEntryKind, TimeWindow, TrajectoryDirection
from moodgauge.timeline import TimelineBuilder, trajectory_direction

DAY = 24 * 60


@pytest.fixture
def builder():
    return TimelineBuilder()


def test_empty_input_is_insufficient(builder):
    timeline = builder.build([])
    assert timeline.insufficient_data
    assert timeline.start is None
    assert timeline.is_empty


def test_entries_are_chronological_with_key_moments(builder, make_obs):
    obs = [make_obs(v, DAY * i) for i, v in enumerate([5.0, 8.0, 4.0, 6.0])]
    timeline = builder.build(reversed(obs))
    p1 = timeline.participants["p1"]
    stamps = [e.timestamp for e in p1.entries]
    assert stamps == sorted(stamps)
    assert [e.label for e in p1.key_moments] == ["peak", "low point"]
    assert p1.average_mood == pytest.approx(5.75)
    assert p1.mood_range == (4.0, 8.0)
    assert p1.direction is TrajectoryDirection.VOLATILE


def test_window_ends_at_newest_event(builder, make_obs):
    obs = [make_obs(5.0, 0), make_obs(6.0, DAY * 40), make_obs(7.0, DAY * 41)]
    timeline = builder.build(obs, window="week")
    assert timeline.window is TimeWindow.WEEK
    assert timeline.end - timeline.start == timedelta(days=7)
    values = [e.value for e in timeline.participants["p1"].entries]
    assert values == [6.0, 7.0]


def test_single_point_is_insufficient(builder, make_obs):
    timeline = builder.build([make_obs(5.0)])
    assert timeline.insufficient_data
    assert timeline.participants["p1"].entries == ()


def test_limit_keeps_newest_scores(builder, make_obs):
    obs = [make_obs(5.0 + 0.1 * i, 60 * i) for i in range(5)]
    timeline = builder.build(obs, limit=2)
    assert timeline.truncated
    assert [e.value for e in timeline.entries] == pytest.approx([5.3, 5.4])


def test_significant_delta_becomes_key_moment(builder, make_obs):
    obs = [make_obs(3.1, 0), make_obs(6.8, 15)]
    deltas = DeltaDetector().detect(obs)
    timeline = builder.build(obs + deltas)
    kinds = [e.kind for e in timeline.entries]
    assert kinds == [
        TimelineEntryKind.SCORE,
        TimelineEntryKind.SCORE,
        TimelineEntryKind.DELTA,
        TimelineEntryKind.KEY_MOMENT,
    ]
    assert timeline.participants["p1"].key_moments[0].label == "key recovery (positive)"


def test_participants_are_kept_apart(builder, make_obs):
    obs = [make_obs(3.0, 0, "p1"), make_obs(4.0, 10, "p1"), make_obs(8.0, 5, "p2")]
    timeline = builder.build(obs)
    assert not timeline.participants["p1"].insufficient_data
    assert timeline.participants["p2"].insufficient_data
    assert not timeline.insufficient_data


def test_invalid_arguments(builder, make_obs):
    with pytest.raises(ParameterValidationError):
        builder.build([make_obs(5.0)], window="fortnight")
    with pytest.raises(ParameterValidationError):
        builder.build([make_obs(5.0)], limit=0)
    with pytest.raises(ParameterValidationError):
        builder.build(["not an event"])


@pytest.mark.parametrize("values,direction", [
    ([3.0, 4.0, 5.0], TrajectoryDirection.IMPROVING),
    ([6.0, 5.5, 4.5], TrajectoryDirection.DECLINING),
    ([5.0, 5.2, 5.1], TrajectoryDirection.STABLE),
    ([2.0, 8.0, 2.0, 8.0], TrajectoryDirection.VOLATILE),
])
def test_trajectory_direction(values, direction):
    assert trajectory_direction(values) is direction
