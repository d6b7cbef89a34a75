"""Core domain models."""

from .models import (
    FactorKind,
    UncertaintyArea,
    DecisionOutcome,
    HumanOutcome,
    PriorityTier,
    SignalReading,
    EmotionalIndicators,
    MoodScore,
    MoodObservation,
    TimeContext,
    MoodDelta,
    DecisionReasoning,
    ValidationDecision,
    ThresholdConfig,
    OutcomeRecord,
)
from .context import (
    ParticipantProfile,
    RelationshipDynamics,
    EmotionalBaseline,
    ConversationTurn,
    EmotionalContext,
)

__all__ = [
    "FactorKind",
    "UncertaintyArea",
    "DecisionOutcome",
    "HumanOutcome",
    "PriorityTier",
    "SignalReading",
    "EmotionalIndicators",
    "MoodScore",
    "MoodObservation",
    "TimeContext",
    "MoodDelta",
    "DecisionReasoning",
    "ValidationDecision",
    "ThresholdConfig",
    "OutcomeRecord",
    "ParticipantProfile",
    "RelationshipDynamics",
    "EmotionalBaseline",
    "ConversationTurn",
    "EmotionalContext",
]
