"""Mood transition detection and pattern classification."""

from .classifier import TransitionClassifier, TrajectoryStateMachine
from .delta import DeltaDetector
from .patterns import PatternClassifier, MoodRepairDetector

__all__ = [
    "TransitionClassifier",
    "TrajectoryStateMachine",
    "DeltaDetector",
    "PatternClassifier",
    "MoodRepairDetector",
]
