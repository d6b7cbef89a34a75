import pytest

from moodgauge.classification import TrajectoryStateMachine, TransitionClassifier
from moodgauge.config.settings import DeltaSettings
from moodgauge.models.trajectory import Direction, TrajectoryEvent, TrajectoryState, TransitionType

S = DeltaSettings()


class TestTransitionClassifier:

    @pytest.mark.parametrize("change,expected", [(1.49, False), (1.5, True), (-1.5, True), (0.0, False)])
    def test_is_significant(self, change, expected):
        assert TransitionClassifier.is_significant(change, S) is expected

    def test_float_noise_does_not_hide_a_boundary_change(self):
        assert TransitionClassifier.is_significant(6.5 - 5.0, S)
        assert TransitionClassifier.is_significant(4.6 - 3.1, S)

    def test_direction(self):
        assert TransitionClassifier.direction(2.0) is Direction.POSITIVE
        assert TransitionClassifier.direction(-2.0) is Direction.NEGATIVE
        assert TransitionClassifier.direction(0.0) is Direction.NEUTRAL

    def test_recovery(self):
        assert TransitionClassifier.is_recovery(3.1, 6.8, 3.1, S)
        assert not TransitionClassifier.is_recovery(3.1, 6.8, 6.0, S)
        assert not TransitionClassifier.is_recovery(5.0, 7.0, 3.0, S)

    def test_decline(self):
        assert TransitionClassifier.is_decline(7.0, 3.0, S)
        assert not TransitionClassifier.is_decline(4.0, 2.0, S)

    def test_sudden(self):
        assert TransitionClassifier.is_sudden(2.0, 60, None, S)
        assert TransitionClassifier.is_sudden(2.0, 120, 60, S)
        assert not TransitionClassifier.is_sudden(2.0, 121, 60, S)
        assert not TransitionClassifier.is_sudden(1.9, 1, 60, S)

    def test_classify_precedence(self):
        kwargs = dict(elapsed_seconds=60, cadence_seconds=60, settings=S)
        assert TransitionClassifier.classify(3.0, 7.0, prior_baseline=3.0, **kwargs) is TransitionType.RECOVERY
        assert TransitionClassifier.classify(7.0, 3.0, prior_baseline=7.0, **kwargs) is TransitionType.DECLINE
        assert TransitionClassifier.classify(5.0, 8.0, prior_baseline=5.0, **kwargs) is TransitionType.SUDDEN
        assert TransitionClassifier.classify(5.0, 6.5, prior_baseline=5.0, **kwargs) is TransitionType.GRADUAL

    def test_count_flips_ignores_flat_steps(self):
        up, down, flat = TrajectoryEvent.UP, TrajectoryEvent.DOWN, TrajectoryEvent.FLAT
        assert TransitionClassifier.count_flips([up, flat, down, flat, up]) == 2
        assert TransitionClassifier.count_flips([up, up, up]) == 0


class TestTrajectoryStateMachine:

    def test_rise_then_settle(self):
        states = TrajectoryStateMachine().run([2, 2, 0])
        assert states == (TrajectoryState.RISING, TrajectoryState.RISING, TrajectoryState.STABLE)

    def test_repeated_reversals_oscillate(self):
        states = TrajectoryStateMachine().run([2, -2, 2, -2])
        assert states == (
            TrajectoryState.RISING,
            TrajectoryState.FALLING,
            TrajectoryState.RISING,
            TrajectoryState.OSCILLATING,
        )

    def test_oscillation_ends_on_flat_step(self):
        machine = TrajectoryStateMachine()
        machine.run([2, -2, 2, -2])
        assert machine.feed(0.1) is TrajectoryState.STABLE

    def test_small_changes_stay_stable(self):
        assert set(TrajectoryStateMachine().run([0.5, -0.5, 1.0])) == {TrajectoryState.STABLE}
