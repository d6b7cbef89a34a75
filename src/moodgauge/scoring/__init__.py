"""Mood and confidence scoring."""

from .confidence import ConfidenceCalculator
from .mood import MoodScoreCalculator
from .models import ConfidenceAssessment
from .features import FeatureBuilder

__all__ = [
    "ConfidenceCalculator",
    "MoodScoreCalculator",
    "ConfidenceAssessment",
    "FeatureBuilder",
]
