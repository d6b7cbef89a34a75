"""Decisions and the human verdicts recorded against them."""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set, Union

from moodgauge.domain.exceptions import ParameterValidationError, UnknownDecisionError
from moodgauge.domain.models import DecisionOutcome, HumanOutcome, OutcomeRecord, ValidationDecision

logger = logging.getLogger(__name__)


def _coerce_outcome(value: Union[HumanOutcome, str]) -> HumanOutcome:
    if isinstance(value, HumanOutcome):
        return value
    try:
        return HumanOutcome(value)
    except ValueError:
        raise ParameterValidationError(
            f"Unknown human outcome: {value!r}",
            parameter_name="human_outcome",
            expected_type="HumanOutcome",
        ).add_suggestion("Use 'validated' or 'rejected'") from None


class OutcomeLedger:
    """
    Append-only record of engine decisions.

    A human verdict never edits the original decision: it adds a superseding
    decision made by "human" and an OutcomeRecord that calibration consumes.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._decisions: Dict[str, ValidationDecision] = {}
        self._outcomes: List[OutcomeRecord] = []
        self._consumed: Set[str] = set()

    def register(self, decision: ValidationDecision) -> None:
        with self._lock:
            self._decisions[decision.decision_id] = decision

    def get(self, decision_id: str) -> ValidationDecision:
        try:
            return self._decisions[decision_id]
        except KeyError:
            raise UnknownDecisionError(decision_id) from None

    def _superseding_id(self, decision_id: str) -> str:
        n = sum(1 for d in self._decisions.values() if d.supersedes == decision_id)
        return f"{decision_id}:human" if n == 0 else f"{decision_id}:human{n + 1}"

    def __contains__(self, decision_id: str) -> bool:
        return decision_id in self._decisions

    def record(
        self,
        decision_id: str,
        human_outcome: Union[HumanOutcome, str],
        *,
        human_mood: Optional[float] = None,
        engine_mood: Optional[float] = None,
        recorded_at: Optional[datetime] = None,
    ) -> OutcomeRecord:
        outcome = _coerce_outcome(human_outcome)
        with self._lock:
            original = self._decisions.get(decision_id)
            if original is None:
                raise UnknownDecisionError(decision_id)
            superseding = replace(
                original,
                decision_id=self._superseding_id(decision_id),
                outcome=DecisionOutcome.AUTO_APPROVE if outcome is HumanOutcome.VALIDATED else DecisionOutcome.AUTO_REJECT,
                review_priority=None,
                decided_by="human",
                supersedes=decision_id,
                decided_at=recorded_at or datetime.now(timezone.utc),
            )
            self._decisions[superseding.decision_id] = superseding
            record = OutcomeRecord(
                decision=original,
                human_outcome=outcome,
                recorded_at=superseding.decided_at,
                superseding_decision_id=superseding.decision_id,
                human_mood=human_mood,
                engine_mood=engine_mood,
            )
            self._outcomes.append(record)

        if not record.agrees:
            logger.info("[ledger] %s overturned: engine %s, human %s",
                        decision_id, original.outcome.value, outcome.value)
        return record

    def outcomes(self) -> List[OutcomeRecord]:
        with self._lock:
            return list(self._outcomes)

    def pending_outcomes(self) -> List[OutcomeRecord]:
        """Outcomes not yet fed to a calibration run."""
        with self._lock:
            return [r for r in self._outcomes if r.superseding_decision_id not in self._consumed]

    def mark_consumed(self, records: Iterable[OutcomeRecord]) -> None:
        with self._lock:
            self._consumed.update(r.superseding_decision_id for r in records)
