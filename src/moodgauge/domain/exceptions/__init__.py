"""Custom exceptions for the moodgauge package."""

# Base exceptions
from .base import (
    moodgaugeError,
    ConfigurationError,
)

# Scoring exceptions
from .scoring import (
    ScoringError,
    InvalidIndicatorRangeError,
    InsufficientDataError,
    AmbiguousContextWarning,
)

# Calibration exceptions
from .calibration import (
    CalibrationError,
    CalibrationSafetyViolation,
    CalibrationInProgressError,
    UnknownThresholdVersionError,
)

# Validation exceptions
from .validation import (
    ValidationError,
    UnknownDecisionError,
    ReviewClaimError,
    ParameterValidationError,
)

# Processing exceptions
from .processing import (
    ProcessingError,
    BatchProcessingError,
)

__all__ = [
    # Base
    "moodgaugeError",
    "ConfigurationError",

    # Scoring
    "ScoringError",
    "InvalidIndicatorRangeError",
    "InsufficientDataError",
    "AmbiguousContextWarning",

    # Calibration
    "CalibrationError",
    "CalibrationSafetyViolation",
    "CalibrationInProgressError",
    "UnknownThresholdVersionError",

    # Validation
    "ValidationError",
    "UnknownDecisionError",
    "ReviewClaimError",
    "ParameterValidationError",

    # Processing
    "ProcessingError",
    "BatchProcessingError",
]
