"""Priority queue of items awaiting human review."""

import heapq
import itertools
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from moodgauge.config.settings import ReviewQueueSettings
from moodgauge.domain.exceptions import ParameterValidationError, ReviewClaimError
from moodgauge.domain.models import DecisionOutcome, PriorityTier, ValidationDecision

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewItem:
    decision: ValidationDecision
    significance_score: float          # 0..10
    sequence: int

    @property
    def item_id(self) -> str:
        return self.decision.item_id

    @property
    def tier(self) -> PriorityTier:
        return self.decision.review_priority or self.decision.significance_tier

    def sort_key(self) -> Tuple[int, float, int]:
        return (self.tier.rank, -self.significance_score, self.sequence)


@dataclass(frozen=True)
class ReviewClaim:
    token: str
    item: ReviewItem
    reviewer_id: str
    expires_at: float


class ReviewQueue:
    """
    Ordered by tier, then significance, then arrival.

    A claimed item is invisible to other reviewers until it is completed,
    released, or its visibility timeout lapses; lapsed claims go back on the
    queue the next time anyone touches it.
    """

    def __init__(
        self,
        settings: Optional[ReviewQueueSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or ReviewQueueSettings()
        self._clock = clock
        self._lock = threading.Lock()
        self._heap: List[Tuple[Tuple[int, float, int], ReviewItem]] = []
        self._claims: Dict[str, ReviewClaim] = {}
        self._known: Dict[str, ReviewItem] = {}
        self._seq = itertools.count()

    def _push(self, item: ReviewItem) -> None:
        heapq.heappush(self._heap, (item.sort_key(), item))

    def _reap_expired(self) -> None:
        now = self._clock()
        for token, claim in list(self._claims.items()):
            if claim.expires_at <= now:
                del self._claims[token]
                self._push(claim.item)
                logger.info("[queue] claim on %s by %s expired; item returned", claim.item.item_id, claim.reviewer_id)

    def enqueue(self, decision: ValidationDecision, significance_score: Optional[float] = None) -> bool:
        """Add a review_required decision; False if the item is already queued or claimed."""
        if decision.outcome is not DecisionOutcome.REVIEW_REQUIRED:
            raise ParameterValidationError(
                f"Only review_required decisions are queued, got {decision.outcome.value}",
                parameter_name="decision",
            )
        score = 10.0 * decision.significance if significance_score is None else significance_score
        with self._lock:
            if decision.item_id in self._known:
                logger.warning("[queue] %s already queued; ignoring duplicate", decision.item_id)
                return False
            item = ReviewItem(decision=decision, significance_score=score, sequence=next(self._seq))
            self._known[decision.item_id] = item
            self._push(item)
        return True

    def claim(self, reviewer_id: str) -> Optional[ReviewClaim]:
        """Take the highest-priority unclaimed item, or None when nothing is waiting."""
        with self._lock:
            self._reap_expired()
            if not self._heap:
                return None
            _, item = heapq.heappop(self._heap)
            claim = ReviewClaim(
                token=uuid.uuid4().hex,
                item=item,
                reviewer_id=reviewer_id,
                expires_at=self._clock() + self.settings.visibility_timeout_seconds,
            )
            self._claims[claim.token] = claim
        logger.debug("[queue] %s claimed %s", reviewer_id, item.item_id)
        return claim

    def _take(self, token: str) -> ReviewClaim:
        self._reap_expired()
        claim = self._claims.pop(token, None)
        if claim is None:
            raise ReviewClaimError(
                "Claim is unknown, already finished, or expired",
                token=token,
            ).add_suggestion("Claim the item again")
        return claim

    def release(self, token: str) -> ReviewItem:
        """Give a claimed item back without reviewing it."""
        with self._lock:
            claim = self._take(token)
            self._push(claim.item)
        return claim.item

    def complete(self, token: str) -> ReviewItem:
        """Finish a review; the item leaves the queue for good."""
        with self._lock:
            claim = self._take(token)
            del self._known[claim.item.item_id]
        return claim.item

    def __len__(self) -> int:
        with self._lock:
            self._reap_expired()
            return len(self._heap)

    @property
    def in_flight(self) -> int:
        with self._lock:
            self._reap_expired()
            return len(self._claims)

    def peek(self) -> Optional[ReviewItem]:
        with self._lock:
            self._reap_expired()
            return self._heap[0][1] if self._heap else None

    def distribution(self) -> Dict[str, int]:
        """Queued and claimed items per tier."""
        with self._lock:
            counts = {tier.value: 0 for tier in PriorityTier}
            for item in self._known.values():
                counts[item.tier.value] += 1
            return counts
