"""Feedback-driven threshold calibration."""

from .calibrator import (
    Calibrator,
    CalibrationMetrics,
    CalibrationReport,
    compute_metrics,
    predicted_approval_rate,
)

__all__ = [
    "Calibrator",
    "CalibrationMetrics",
    "CalibrationReport",
    "compute_metrics",
    "predicted_approval_rate",
]
