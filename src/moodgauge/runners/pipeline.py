import os
import time
import logging
import psutil
from tqdm import tqdm
from collections import Counter, defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from moodgauge.classification.delta import DeltaDetector
from moodgauge.config.loader import configure_from_options
from moodgauge.config.settings import Settings, current_settings
from moodgauge.domain.context import EmotionalContext
from moodgauge.domain.exceptions import (
    moodgaugeError,
    ParameterValidationError,
    ProcessingError,
    BatchProcessingError,
)
from moodgauge.domain.models import DecisionOutcome, MoodDelta, MoodObservation, MoodScore, ThresholdConfig, ValidationDecision
from moodgauge.models.trajectory import DeltaAnalysis
from moodgauge.scoring import ConfidenceCalculator, FeatureBuilder, MoodScoreCalculator
from moodgauge.significance import ReviewQueue, SignificanceWeighter
from moodgauge.utils.itertools import chunked
from moodgauge.utils.logging import setup_logging
from moodgauge.utils.timing import section_timer, timeit
from moodgauge import api
from moodgauge.validation import AutoConfirmationEngine, OutcomeLedger, ThresholdRegistry

logger = logging.getLogger(__name__)
summary_logger = logging.getLogger("moodgauge.summary")


@dataclass(frozen=True)
class ScoringRequest:
    """One candidate memory to score and route."""
    item_id: str
    participant_id: str
    text: str
    timestamp: datetime
    context: Optional[EmotionalContext] = None
    supporters: Tuple[str, ...] = ()


@dataclass
class PipelineResult:
    """Pipeline execution result."""
    n_requests: int
    n_participants: int
    threshold_version: int
    decisions: List[ValidationDecision] = field(default_factory=list)
    scores: Dict[str, MoodScore] = field(default_factory=dict)
    analyses: Dict[str, DeltaAnalysis] = field(default_factory=dict)
    outcome_counts: Dict[str, int] = field(default_factory=dict)
    failed_participants: List[str] = field(default_factory=list)
    processing_time: float = 0.0
    peak_rss_mb: float = 0.0

    @property
    def review_items(self) -> List[ValidationDecision]:
        return [d for d in self.decisions if d.outcome is DecisionOutcome.REVIEW_REQUIRED]


@dataclass
class _ParticipantOutcome:
    participant_id: str
    decisions: List[ValidationDecision]
    scores: Dict[str, MoodScore]
    analysis: DeltaAnalysis


class MoodValidationPipeline:
    """
    Scores, tracks and routes a batch of candidate memories.

    Participants are independent and run in parallel, one worker per
    participant timeline. Within a participant, items are handled in
    chronological order because delta detection depends on the previous
    score. The whole batch is decided against the threshold version that
    was active when the run started.

    Unless told otherwise the pipeline shares the process-wide threshold
    registry and outcome ledger of `moodgauge.api`, so recalibrated
    thresholds apply to the next batch and batch decisions can receive
    human verdicts.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine: Optional[AutoConfirmationEngine] = None,
        queue: Optional[ReviewQueue] = None,
        registry: Optional[ThresholdRegistry] = None,
        ledger: Optional[OutcomeLedger] = None,
    ):
        self.settings = settings or current_settings()
        if engine is None:
            engine = AutoConfirmationEngine(
                registry if registry is not None else api.registry(),
                ledger if ledger is not None else api.ledger(),
                weighter=SignificanceWeighter(self.settings.significance),
            )
        self.engine = engine
        self.queue = queue if queue is not None else ReviewQueue(self.settings.review_queue)
        self.features = FeatureBuilder(self.settings.scoring.saturation_rate)
        self.detector = DeltaDetector(self.settings.delta)
        self.process = psutil.Process(os.getpid())
        self.start_time = None

        self.metrics = {
            'items_scored': 0,
            'participants_processed': 0,
            'participants_failed': 0,
            'deltas_detected': 0,
            'items_enqueued': 0,
            'outcomes': Counter(),
            'processing_time': 0.0,
            'peak_rss_mb': 0.0,
        }

    # --- per participant ---------------------------------------------------

    def _calculators(self, config: ThresholdConfig) -> Tuple[ConfidenceCalculator, MoodScoreCalculator]:
        confidence = ConfidenceCalculator(
            weights=config.factor_weights,
            settings=self.settings.confidence,
            disagreement_threshold=self.settings.scoring.disagreement_threshold,
        )
        mood = MoodScoreCalculator(weights=config.mood_weights, settings=self.settings.scoring)
        return confidence, mood

    def _context_for(self, request: ScoringRequest) -> EmotionalContext:
        if request.context is None:
            return EmotionalContext.build(request.participant_id)
        if request.context.participant_id != request.participant_id:
            raise ParameterValidationError(
                f"Context for {request.item_id} belongs to {request.context.participant_id}, "
                f"not {request.participant_id}",
                parameter_name="context",
            )
        return request.context

    def _process_participant(
        self,
        participant_id: str,
        requests: Sequence[ScoringRequest],
        config: ThresholdConfig,
    ) -> _ParticipantOutcome:
        confidence_calc, mood_calc = self._calculators(config)
        ordered = sorted(requests, key=lambda r: r.timestamp)

        scored = []
        for req in ordered:
            context = self._context_for(req)
            indicators = self.features.build(req.text, context)
            assessment = confidence_calc.assess(indicators, context)
            score = mood_calc.calculate(indicators, assessment)
            obs = MoodObservation(participant_id, req.timestamp, score, req.item_id, tuple(req.supporters))
            scored.append((req, context, indicators, assessment, obs))

        analysis = self.detector.analyse([s[-1] for s in scored])
        delta_into: Dict[str, MoodDelta] = {d.time_context.to_item: d for d in analysis.deltas}

        decisions = []
        seen_descriptors: List[str] = []
        for req, context, indicators, assessment, obs in scored:
            significance = self.engine.weighter.assess_item(
                context,
                delta=delta_into.get(req.item_id),
                descriptors=obs.score.descriptors,
                seen_descriptors=seen_descriptors,
            )
            seen_descriptors.extend(obs.score.descriptors)
            decision = self.engine.decide(req.item_id, indicators, assessment, significance, config.version)
            if decision.outcome is DecisionOutcome.REVIEW_REQUIRED:
                self.queue.enqueue(decision, significance.score)
            decisions.append(decision)

        return _ParticipantOutcome(
            participant_id=participant_id,
            decisions=decisions,
            scores={req.item_id: obs.score for req, *_, obs in scored},
            analysis=analysis,
        )

    # --- batch -------------------------------------------------------------

    def run(self, requests: Sequence[ScoringRequest]) -> PipelineResult:
        """Execute the complete pipeline."""
        self.start_time = time.time()
        show_progress = not os.getenv('NO_PROGRESS', '').lower() in ['1', 'true', 'yes']
        pbar = None

        try:
            grouped: Dict[str, List[ScoringRequest]] = defaultdict(list)
            for req in requests:
                grouped[req.participant_id].append(req)
            config = self.engine.registry.active
            result = PipelineResult(
                n_requests=len(requests),
                n_participants=len(grouped),
                threshold_version=config.version,
            )
            if not grouped:
                logger.warning("[pipeline] Empty batch")
                return self._finalize(result)

            pbar = tqdm(total=len(grouped), desc="Participants", unit="pt", ncols=100, disable=not show_progress)
            workers = max(1, min(self.settings.processing.max_workers, len(grouped)))

            with section_timer(f"Scoring {len(requests)} items for {len(grouped)} participants", logger):
                with ThreadPoolExecutor(max_workers=workers) as pool:
                    for chunk in chunked(sorted(grouped), self.settings.processing.chunk_size):
                        futures = {
                            pool.submit(self._process_participant, pid, grouped[pid], config): pid
                            for pid in chunk
                        }
                        for future in as_completed(futures):
                            pid = futures[future]
                            try:
                                outcome = future.result()
                            except moodgaugeError:
                                raise
                            except Exception as e:
                                logger.error("[pipeline] participant %s failed: %s", pid, e)
                                self.metrics['participants_failed'] += 1
                                result.failed_participants.append(pid)
                            else:
                                self._collect(result, outcome)
                            pbar.update(1)
                            self._memory_report(f"after {pid}")

            if self.metrics['participants_processed'] == 0:
                raise BatchProcessingError(
                    "No participant timeline was processed successfully",
                    batch_size=len(grouped),
                    failed_count=self.metrics['participants_failed'],
                )
            return self._finalize(result)

        except moodgaugeError:
            raise
        except Exception as e:
            exc = ProcessingError(
                f"Unexpected pipeline error: {str(e)}",
                stage="pipeline_execution"
            )
            exc.add_context('elapsed_time', time.time() - self.start_time)
            raise exc from e
        finally:
            if pbar is not None:
                pbar.close()

    def _collect(self, result: PipelineResult, outcome: _ParticipantOutcome) -> None:
        result.decisions.extend(outcome.decisions)
        result.scores.update(outcome.scores)
        result.analyses[outcome.participant_id] = outcome.analysis
        self.metrics['participants_processed'] += 1
        self.metrics['items_scored'] += len(outcome.scores)
        self.metrics['deltas_detected'] += len(outcome.analysis.deltas)
        for d in outcome.decisions:
            self.metrics['outcomes'][d.outcome.value] += 1
            if d.outcome is DecisionOutcome.REVIEW_REQUIRED:
                self.metrics['items_enqueued'] += 1

    def _finalize(self, result: PipelineResult) -> PipelineResult:
        elapsed_time = time.time() - self.start_time
        self.metrics['processing_time'] = elapsed_time
        result.processing_time = elapsed_time
        result.outcome_counts = dict(self.metrics['outcomes'])
        result.peak_rss_mb = self.metrics['peak_rss_mb']
        result.decisions.sort(key=lambda d: d.item_id)
        summary_logger.info(f"[shutdown] Pipeline completed in {elapsed_time:.2f} seconds")
        self._log_final_metrics()
        return result

    def _memory_report(self, label: str) -> None:
        try:
            rss = self.process.memory_info().rss / 1e6  # MB
        except psutil.Error as e:
            logger.debug(f"[mem] Could not get memory info: {e}")
            return
        self.metrics['peak_rss_mb'] = max(self.metrics['peak_rss_mb'], rss)
        logger.debug(f"[mem] {label} RSS={rss:.1f}MB")

    def _log_final_metrics(self) -> None:
        logger.info("="*60)
        logger.info("PIPELINE METRICS")
        logger.info("="*60)
        logger.info(f"Items scored:        {self.metrics['items_scored']:,}")
        logger.info(f"Participants ok:     {self.metrics['participants_processed']:,}")
        logger.info(f"Participants failed: {self.metrics['participants_failed']:,}")
        logger.info(f"Deltas detected:     {self.metrics['deltas_detected']:,}")
        logger.info(f"Queued for review:   {self.metrics['items_enqueued']:,}")
        for outcome, count in sorted(self.metrics['outcomes'].items()):
            logger.info(f"  {outcome}: {count:,}")
        logger.info(f"Processing time:     {self.metrics['processing_time']:.2f}s")
        if self.metrics['processing_time'] > 0:
            rate = self.metrics['items_scored'] / self.metrics['processing_time']
            logger.info(f"Processing rate:     {rate:.1f} items/second")
        logger.info(f"Peak RSS:            {self.metrics['peak_rss_mb']:.1f}MB")
        logger.info("="*60)


@timeit(logger, "run_validation_batch")
def run_validation_batch(
    requests: Sequence[ScoringRequest],
    settings: Optional[Settings] = None,
    log_dir: Optional[Path] = None,
    options=None,
) -> PipelineResult:
    """
    Batch entry point: configures logging, then runs the pipeline.

    `options` (an argparse Namespace or any attribute object) is overlaid on
    the defaults when no explicit `settings` are given.
    """
    if settings is None:
        settings = configure_from_options(options) if options is not None else current_settings()
    setup_logging(
        log_dir=log_dir or settings.logging.log_dir,
        console=settings.logging.console_output,
        level=settings.logging.level.value,
        quiet_console=settings.logging.quiet_console,
        console_level="ERROR",
    )
    return MoodValidationPipeline(settings).run(requests)
