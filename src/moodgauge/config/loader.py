"""Configuration loading from option objects and system defaults."""

import os
import logging
from pathlib import Path
from dataclasses import replace
from moodgauge.config.settings import (
    Settings, ScoringSettings, ConfidenceSettings, DeltaSettings,
    TimelineSettings, SignificanceSettings, DecisionSettings,
    ReviewQueueSettings, CalibrationSettings, ProcessingSettings,
    LoggingSettings, LogLevel
)
from moodgauge.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

class ConfigurationLoader:
    """Loads configuration from an options object (argparse Namespace, SimpleNamespace...)."""

    def load_from_options(self, options) -> Settings:
        """Overlay any recognised attributes of `options` on the defaults."""
        try:
            settings = self.load_defaults()

            scoring_updates = {}
            if getattr(options, 'mood_weights', None):
                scoring_updates['mood_weights'] = dict(options.mood_weights)
            if getattr(options, 'disagreement_threshold', None) is not None:
                scoring_updates['disagreement_threshold'] = float(options.disagreement_threshold)

            delta_updates = {}
            if getattr(options, 'significance_threshold', None) is not None:
                delta_updates['significance_threshold'] = float(options.significance_threshold)
            if getattr(options, 'sudden_threshold', None) is not None:
                delta_updates['sudden_threshold'] = float(options.sudden_threshold)

            timeline_updates = {}
            if getattr(options, 'timeline_window', None):
                timeline_updates['default_window'] = str(options.timeline_window).lower()
            if getattr(options, 'max_events', None):
                timeline_updates['max_events'] = int(options.max_events)

            decision_updates = {}
            if getattr(options, 'approve_cutoff', None) is not None:
                decision_updates['approve_cutoff'] = float(options.approve_cutoff)
            if getattr(options, 'reject_cutoff', None) is not None:
                decision_updates['reject_cutoff'] = float(options.reject_cutoff)
            if getattr(options, 'force_review_tiers', None):
                decision_updates['force_review_tiers'] = tuple(options.force_review_tiers)

            queue_updates = {}
            if getattr(options, 'visibility_timeout', None):
                queue_updates['visibility_timeout_seconds'] = float(options.visibility_timeout)

            calibration_updates = {}
            if getattr(options, 'calibration_cadence_days', None):
                calibration_updates['cadence_days'] = int(options.calibration_cadence_days)
            if getattr(options, 'safety_band', None):
                lo, hi = options.safety_band
                calibration_updates['safety_band'] = (float(lo), float(hi))

            processing_updates = {}
            if getattr(options, 'chunk_size', None):
                processing_updates['chunk_size'] = int(options.chunk_size)
            if getattr(options, 'max_workers', None):
                processing_updates['max_workers'] = int(options.max_workers)

            logging_updates = {}
            if getattr(options, 'log_dir', None):
                logging_updates['log_dir'] = Path(options.log_dir)
            if getattr(options, 'debug', False):
                logging_updates['level'] = LogLevel.DEBUG
            if hasattr(options, 'quiet'):
                logging_updates['quiet_console'] = bool(options.quiet)

            return replace(
                settings,
                scoring=replace(settings.scoring, **scoring_updates),
                delta=replace(settings.delta, **delta_updates),
                timeline=replace(settings.timeline, **timeline_updates),
                decision=replace(settings.decision, **decision_updates),
                review_queue=replace(settings.review_queue, **queue_updates),
                calibration=replace(settings.calibration, **calibration_updates),
                processing=replace(settings.processing, **processing_updates),
                logging=replace(settings.logging, **logging_updates),
                debug_mode=bool(getattr(options, 'debug', False)),
            )

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load configuration from options: {str(e)}"
            ) from e

    def load_defaults(self) -> Settings:
        """Load default configuration settings."""
        return Settings(
            scoring=ScoringSettings(),
            confidence=ConfidenceSettings(),
            delta=DeltaSettings(),
            timeline=TimelineSettings(),
            significance=SignificanceSettings(),
            decision=DecisionSettings(),
            review_queue=ReviewQueueSettings(),
            calibration=CalibrationSettings(),
            processing=ProcessingSettings(
                chunk_size=200,
                max_workers=os.cpu_count() or 4,
            ),
            logging=LoggingSettings(
                level=LogLevel.INFO,
                log_dir=None,
                console_output=True,
                quiet_console=True,
            ),
            debug_mode=False,
        )

def configure_from_options(options) -> Settings:
    """Main entry point to configure settings from an options object."""
    loader = ConfigurationLoader()
    settings = loader.load_from_options(options)
    settings.validate()
    return settings
