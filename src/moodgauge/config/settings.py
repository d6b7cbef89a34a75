"""Core configuration settings for moodgauge."""

import os
import math
import logging
from pathlib import Path
from typing import Optional, Dict, Tuple
from dataclasses import dataclass, field
from enum import Enum

from moodgauge.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MOOD_FACTORS = ("sentiment", "psychological", "relationship", "conversational", "historical")
CONFIDENCE_FACTORS = ("extraction", "coherence", "relationship_completeness", "baseline_consistency")
TIERS = ("critical", "high", "medium", "low")
WINDOWS = ("week", "month", "quarter", "year")


class LogLevel(Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _check_weights(weights: Dict[str, float], expected: Tuple[str, ...], config_field: str) -> None:
    missing = set(expected) - set(weights)
    if missing:
        raise ConfigurationError(
            f"Missing weights: {sorted(missing)}",
            config_field=config_field
        ).add_suggestion(f"Provide a weight for each of: {', '.join(expected)}")
    if any(w < 0 for w in weights.values()):
        raise ConfigurationError("Weights must be non-negative", config_field=config_field)
    if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-6):
        raise ConfigurationError(
            f"Weights must sum to 1.0 (got {sum(weights.values()):.4f})",
            config_field=config_field
        ).add_suggestion("Normalise the weights before loading them")


def _check_unit(value: float, config_field: str) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(
            f"{config_field} must be within [0, 1], got {value}",
            config_field=config_field
        )


@dataclass
class ScoringSettings:
    """Mood-score weighting and descriptor rules."""
    mood_weights: Dict[str, float] = field(default_factory=lambda: {
        "sentiment": 0.35,
        "psychological": 0.25,
        "relationship": 0.20,
        "conversational": 0.15,
        "historical": 0.05,
    })
    disagreement_threshold: float = 0.5
    descriptor_magnitude: float = 0.25
    descriptor_min_evidence: int = 2
    saturation_rate: float = 0.6

    def validate(self) -> None:
        """Validate scoring settings."""
        _check_weights(self.mood_weights, MOOD_FACTORS, "scoring.mood_weights")
        _check_unit(self.disagreement_threshold, "scoring.disagreement_threshold")
        if not 0.0 < self.descriptor_magnitude <= 0.5:
            raise ConfigurationError(
                "descriptor_magnitude must be within (0, 0.5]",
                config_field="scoring.descriptor_magnitude"
            )
        if self.saturation_rate <= 0:
            raise ConfigurationError(
                "saturation_rate must be positive",
                config_field="scoring.saturation_rate"
            )


@dataclass
class ConfidenceSettings:
    """Confidence estimation."""
    default_extraction_confidence: float = 0.5
    mixed_sentiment_floor: float = 0.25
    ambiguity_cap: float = 0.70
    ambiguity_cap_flags: int = 2

    def validate(self) -> None:
        """Validate confidence settings."""
        _check_unit(self.default_extraction_confidence, "confidence.default_extraction_confidence")
        _check_unit(self.mixed_sentiment_floor, "confidence.mixed_sentiment_floor")
        _check_unit(self.ambiguity_cap, "confidence.ambiguity_cap")
        if self.ambiguity_cap_flags < 1:
            raise ConfigurationError(
                "ambiguity_cap_flags must be at least 1",
                config_field="confidence.ambiguity_cap_flags"
            )


@dataclass
class DeltaSettings:
    """Transition detection and pattern classification."""
    significance_threshold: float = 1.5
    sudden_threshold: float = 2.0
    cadence_multiplier: float = 2.0
    midpoint: float = 5.0
    low_baseline: float = 4.5
    minor_tolerance: float = 0.5
    significance_scale: float = 4.0
    min_run_length: int = 2
    oscillation_flips: int = 3
    oscillation_window: int = 6

    def validate(self) -> None:
        """Validate delta settings."""
        if self.significance_threshold <= 0:
            raise ConfigurationError(
                "significance_threshold must be positive",
                config_field="delta.significance_threshold"
            )
        if self.sudden_threshold < self.significance_threshold:
            raise ConfigurationError(
                "sudden_threshold cannot be below significance_threshold",
                config_field="delta.sudden_threshold"
            ).add_suggestion("Sudden transitions are a subset of significant ones")
        if self.minor_tolerance >= self.significance_threshold:
            raise ConfigurationError(
                "minor_tolerance must be below significance_threshold",
                config_field="delta.minor_tolerance"
            )
        if self.min_run_length < 1 or self.oscillation_flips < 1:
            raise ConfigurationError(
                "run lengths must be at least 1",
                config_field="delta.min_run_length"
            )
        if self.oscillation_window <= self.oscillation_flips:
            raise ConfigurationError(
                "oscillation_window must be larger than oscillation_flips",
                config_field="delta.oscillation_window"
            )


@dataclass
class TimelineSettings:
    """Timeline windowing."""
    default_window: str = "month"
    max_events: int = 50
    key_moment_threshold: float = 0.75

    def validate(self) -> None:
        """Validate timeline settings."""
        if self.default_window not in WINDOWS:
            raise ConfigurationError(
                f"Invalid timeline window: {self.default_window}",
                config_field="timeline.default_window"
            ).add_suggestion(f"Use one of: {', '.join(WINDOWS)}")
        if self.max_events <= 0:
            raise ConfigurationError(
                "max_events must be positive",
                config_field="timeline.max_events"
            )
        _check_unit(self.key_moment_threshold, "timeline.key_moment_threshold")


@dataclass
class SignificanceSettings:
    """Emotional-significance weighting and tiering."""
    factor_weights: Dict[str, float] = field(default_factory=lambda: {
        "magnitude": 0.40,
        "relationship": 0.25,
        "novelty": 0.20,
        "urgency": 0.15,
    })
    magnitude_scale: float = 5.0
    tier_cutoffs: Dict[str, float] = field(default_factory=lambda: {
        "critical": 8.0,
        "high": 6.0,
        "medium": 4.0,
    })

    def validate(self) -> None:
        """Validate significance settings."""
        _check_weights(
            self.factor_weights,
            ("magnitude", "relationship", "novelty", "urgency"),
            "significance.factor_weights"
        )
        if self.magnitude_scale <= 0:
            raise ConfigurationError(
                "magnitude_scale must be positive",
                config_field="significance.magnitude_scale"
            )
        cuts = [self.tier_cutoffs.get(t) for t in ("critical", "high", "medium")]
        if None in cuts or not cuts[0] > cuts[1] > cuts[2] >= 0:
            raise ConfigurationError(
                "tier_cutoffs must define critical > high > medium >= 0",
                config_field="significance.tier_cutoffs"
            )


@dataclass
class DecisionSettings:
    """Initial auto-confirmation thresholds (version 1 of the threshold config)."""
    approve_cutoff: float = 0.75
    reject_cutoff: float = 0.50
    significance_adjustments: Dict[str, float] = field(default_factory=lambda: {
        "critical": 0.90,
        "high": 0.85,
    })
    force_review_tiers: Tuple[str, ...] = ()
    confidence_weights: Dict[str, float] = field(default_factory=lambda: {
        "extraction": 0.40,
        "coherence": 0.15,
        "relationship_completeness": 0.25,
        "baseline_consistency": 0.20,
    })

    def validate(self) -> None:
        """Validate decision settings."""
        _check_unit(self.approve_cutoff, "decision.approve_cutoff")
        _check_unit(self.reject_cutoff, "decision.reject_cutoff")
        if self.reject_cutoff >= self.approve_cutoff:
            raise ConfigurationError(
                "reject_cutoff must be below approve_cutoff",
                config_field="decision.reject_cutoff"
            )
        for tier, cutoff in self.significance_adjustments.items():
            if tier not in TIERS:
                raise ConfigurationError(
                    f"Unknown significance tier: {tier}",
                    config_field="decision.significance_adjustments"
                ).add_suggestion(f"Use one of: {', '.join(TIERS)}")
            _check_unit(cutoff, f"decision.significance_adjustments.{tier}")
        for tier in self.force_review_tiers:
            if tier not in TIERS:
                raise ConfigurationError(
                    f"Unknown significance tier: {tier}",
                    config_field="decision.force_review_tiers"
                )
        _check_weights(self.confidence_weights, CONFIDENCE_FACTORS, "decision.confidence_weights")


@dataclass
class ReviewQueueSettings:
    """Human review queue."""
    visibility_timeout_seconds: float = 900.0

    def validate(self) -> None:
        if self.visibility_timeout_seconds <= 0:
            raise ConfigurationError(
                "visibility_timeout_seconds must be positive",
                config_field="review_queue.visibility_timeout_seconds"
            )


@dataclass
class CalibrationSettings:
    """Feedback-driven threshold calibration."""
    max_step: float = 0.05
    safety_band: Tuple[float, float] = (0.50, 0.85)
    min_agreement: float = 0.60
    min_sample_size: int = 5
    cadence_days: int = 7
    approve_bounds: Tuple[float, float] = (0.65, 0.95)
    reject_floor: float = 0.30
    error_tolerance: float = 0.05
    tighten_below: float = 0.02
    tighten_agreement: float = 0.90
    tighten_step: float = 0.02
    factor_strong: float = 0.70
    factor_accuracy_high: float = 0.80
    factor_accuracy_low: float = 0.50
    factor_boost: float = 1.1
    factor_dampen: float = 0.9
    mood_bias_trigger: float = 1.0
    sentiment_weight_bounds: Tuple[float, float] = (0.10, 0.60)

    def validate(self) -> None:
        """Validate calibration settings."""
        if not 0.0 < self.max_step <= 0.05:
            raise ConfigurationError(
                "max_step must be within (0, 0.05]",
                config_field="calibration.max_step"
            ).add_suggestion("Large steps make the thresholds oscillate")
        lo, hi = self.safety_band
        if not 0.0 <= lo < hi <= 1.0:
            raise ConfigurationError(
                f"Invalid safety band: {self.safety_band}",
                config_field="calibration.safety_band"
            )
        lo, hi = self.approve_bounds
        if not 0.0 <= lo < hi <= 1.0:
            raise ConfigurationError(
                f"Invalid approve bounds: {self.approve_bounds}",
                config_field="calibration.approve_bounds"
            )
        _check_unit(self.min_agreement, "calibration.min_agreement")
        if self.min_sample_size < 1:
            raise ConfigurationError(
                "min_sample_size must be at least 1",
                config_field="calibration.min_sample_size"
            )
        if self.cadence_days <= 0:
            raise ConfigurationError(
                "cadence_days must be positive",
                config_field="calibration.cadence_days"
            )


@dataclass
class ProcessingSettings:
    """Batch runner configuration."""
    chunk_size: int = 200
    max_workers: int = field(default_factory=lambda: os.cpu_count() or 4)

    def validate(self) -> None:
        """Validate processing settings."""
        if self.chunk_size <= 0:
            raise ConfigurationError(
                "chunk_size must be positive",
                config_field="processing.chunk_size"
            )
        if self.max_workers <= 0:
            raise ConfigurationError(
                "max_workers must be positive",
                config_field="processing.max_workers"
            )


@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    log_dir: Optional[Path] = None
    console_output: bool = True
    quiet_console: bool = True

    def validate(self) -> None:
        """Validate logging settings."""
        if self.log_dir and self.log_dir.exists() and not self.log_dir.is_dir():
            raise ConfigurationError(
                f"Log path is not a directory: {self.log_dir}",
                config_field="logging.log_dir"
            ).add_suggestion("Point log_dir at a directory or leave it unset")


@dataclass
class Settings:
    """Main configuration settings for moodgauge."""

    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    confidence: ConfidenceSettings = field(default_factory=ConfidenceSettings)
    delta: DeltaSettings = field(default_factory=DeltaSettings)
    timeline: TimelineSettings = field(default_factory=TimelineSettings)
    significance: SignificanceSettings = field(default_factory=SignificanceSettings)
    decision: DecisionSettings = field(default_factory=DecisionSettings)
    review_queue: ReviewQueueSettings = field(default_factory=ReviewQueueSettings)
    calibration: CalibrationSettings = field(default_factory=CalibrationSettings)
    processing: ProcessingSettings = field(default_factory=ProcessingSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    debug_mode: bool = False

    def validate(self) -> None:
        """Validate all configuration settings."""
        try:
            self.scoring.validate()
            self.confidence.validate()
            self.delta.validate()
            self.timeline.validate()
            self.significance.validate()
            self.decision.validate()
            self.review_queue.validate()
            self.calibration.validate()
            self.processing.validate()
            self.logging.validate()

            self._validate_calibration_bounds()

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Configuration validation failed: {str(e)}"
            ) from e

    def _validate_calibration_bounds(self) -> None:
        """The initial approve cutoff must sit inside the range calibration may move it."""
        lo, hi = self.calibration.approve_bounds
        if not lo <= self.decision.approve_cutoff <= hi:
            raise ConfigurationError(
                f"approve_cutoff {self.decision.approve_cutoff} outside calibration bounds {self.calibration.approve_bounds}",
                config_field="decision.approve_cutoff"
            )
        if self.decision.reject_cutoff < self.calibration.reject_floor:
            raise ConfigurationError(
                f"reject_cutoff {self.decision.reject_cutoff} below calibration floor {self.calibration.reject_floor}",
                config_field="decision.reject_cutoff"
            )

    def to_dict(self) -> dict:
        """Convert settings to dictionary for debugging."""
        return {
            'scoring': {
                'mood_weights': dict(self.scoring.mood_weights),
                'disagreement_threshold': self.scoring.disagreement_threshold,
            },
            'delta': {
                'significance_threshold': self.delta.significance_threshold,
                'sudden_threshold': self.delta.sudden_threshold,
            },
            'decision': {
                'approve_cutoff': self.decision.approve_cutoff,
                'reject_cutoff': self.decision.reject_cutoff,
                'significance_adjustments': dict(self.decision.significance_adjustments),
            },
            'calibration': {
                'max_step': self.calibration.max_step,
                'safety_band': list(self.calibration.safety_band),
                'cadence_days': self.calibration.cadence_days,
            },
            'processing': {
                'chunk_size': self.processing.chunk_size,
                'max_workers': self.processing.max_workers,
            },
            'logging': {
                'level': self.logging.level.value,
                'log_dir': str(self.logging.log_dir) if self.logging.log_dir else None,
            },
            'runtime': {
                'debug_mode': self.debug_mode,
            },
        }

# Global settings instance
_settings: Optional[Settings] = None

def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    settings.validate()
    _settings = settings
    logger.info("Configuration loaded and validated successfully")

def current_settings() -> Settings:
    """Global settings when initialised, otherwise the defaults."""
    return _settings if _settings is not None else Settings()
