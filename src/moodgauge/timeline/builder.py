"""Chronological, windowed timelines of scores, deltas and key moments."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from moodgauge.config.settings import TimelineSettings
from moodgauge.domain.exceptions import ParameterValidationError
from moodgauge.domain.models import MoodDelta, MoodObservation
from moodgauge.models.timeline import (
    ParticipantTimeline,
    Timeline,
    TimelineEntry,
    TimelineEntryKind,
    TimeWindow,
    TrajectoryDirection,
)

logger = logging.getLogger(__name__)

TimelineEvent = Union[MoodObservation, MoodDelta]

_KIND_ORDER = {
    TimelineEntryKind.SCORE: 0,
    TimelineEntryKind.DELTA: 1,
    TimelineEntryKind.KEY_MOMENT: 2,
}


def _timestamp(event: TimelineEvent) -> datetime:
    if isinstance(event, MoodObservation):
        return event.timestamp
    if isinstance(event, MoodDelta):
        return event.time_context.end
    raise ParameterValidationError(
        f"Unsupported timeline event: {type(event).__name__}",
        parameter_name="events",
        expected_type="MoodObservation | MoodDelta",
    )


def trajectory_direction(values: Sequence[float], volatility_limit: float = 1.5) -> TrajectoryDirection:
    steps = np.diff(np.asarray(values, dtype=float))
    if steps.size and float(np.std(steps)) > volatility_limit:
        return TrajectoryDirection.VOLATILE
    change = values[-1] - values[0]
    if change >= 1.0:
        return TrajectoryDirection.IMPROVING
    if change <= -1.0:
        return TrajectoryDirection.DECLINING
    return TrajectoryDirection.STABLE


class TimelineBuilder:
    """
    Selects events inside a window ending at the newest event (or `now`),
    tags key moments, trims to an event ceiling and orders everything by time.

    Key moments are local extrema of a participant's mood series plus deltas
    whose significance reaches `key_moment_threshold`.
    """

    def __init__(self, settings: Optional[TimelineSettings] = None):
        self.settings = settings or TimelineSettings()

    def _score_entry(self, obs: MoodObservation) -> TimelineEntry:
        label = obs.score.descriptors[0] if obs.score.descriptors else "mood"
        return TimelineEntry(
            timestamp=obs.timestamp,
            participant_id=obs.participant_id,
            kind=TimelineEntryKind.SCORE,
            value=obs.value,
            label=label,
            payload=obs.to_dict(),
        )

    def _delta_entry(self, delta: MoodDelta, kind: TimelineEntryKind = TimelineEntryKind.DELTA) -> TimelineEntry:
        prefix = "key " if kind is TimelineEntryKind.KEY_MOMENT else ""
        return TimelineEntry(
            timestamp=delta.time_context.end,
            participant_id=delta.participant_id,
            kind=kind,
            value=delta.magnitude,
            label=f"{prefix}{delta.transition_type.value} ({delta.direction.value})",
            significance=delta.significance,
            payload=delta.to_dict(),
        )

    def _extrema(self, observations: Sequence[MoodObservation]) -> List[TimelineEntry]:
        out = []
        for prev, cur, nxt in zip(observations, observations[1:], observations[2:]):
            if cur.value > prev.value and cur.value > nxt.value:
                label = "peak"
            elif cur.value < prev.value and cur.value < nxt.value:
                label = "low point"
            else:
                continue
            prominence = abs(cur.value - prev.value) + abs(cur.value - nxt.value)
            out.append(TimelineEntry(
                timestamp=cur.timestamp,
                participant_id=cur.participant_id,
                kind=TimelineEntryKind.KEY_MOMENT,
                value=cur.value,
                label=label,
                significance=round(min(1.0, prominence / 10.0), 3),
                payload=cur.to_dict(),
            ))
        return out

    def _participant(
        self,
        participant_id: str,
        observations: List[MoodObservation],
        deltas: List[MoodDelta],
    ) -> Tuple[ParticipantTimeline, List[TimelineEntry]]:
        observations.sort(key=lambda o: o.timestamp)
        points = {o.timestamp for o in observations}
        for d in deltas:
            points.update((d.time_context.start, d.time_context.end))
        if len(points) < 2:
            logger.debug("[timeline] %s: %d data point(s) in window", participant_id, len(points))
            return ParticipantTimeline.empty(participant_id), []

        entries = [self._score_entry(o) for o in observations]
        entries += [self._delta_entry(d) for d in deltas]
        key_moments = self._extrema(observations)
        key_moments += [
            self._delta_entry(d, TimelineEntryKind.KEY_MOMENT)
            for d in deltas
            if d.significance >= self.settings.key_moment_threshold
        ]

        values = [o.value for o in observations]
        summary = ParticipantTimeline(
            participant_id=participant_id,
            average_mood=round(float(np.mean(values)), 2) if values else None,
            mood_range=(min(values), max(values)) if values else None,
            direction=trajectory_direction(values) if len(values) >= 2 else None,
        )
        return summary, entries + key_moments

    @staticmethod
    def _priority(entry: TimelineEntry) -> tuple:
        """Key moments first, then deltas by significance, then the newest scores."""
        if entry.kind is TimelineEntryKind.KEY_MOMENT:
            return (0, -(entry.significance or 0.0), -entry.timestamp.timestamp())
        if entry.kind is TimelineEntryKind.DELTA:
            return (1, -(entry.significance or 0.0), -entry.timestamp.timestamp())
        return (2, 0.0, -entry.timestamp.timestamp())

    def build(
        self,
        events: Iterable[TimelineEvent],
        window: Union[TimeWindow, str, None] = None,
        limit: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Timeline:
        window = TimeWindow.coerce(window or self.settings.default_window)
        limit = self.settings.max_events if limit is None else limit
        if limit <= 0:
            raise ParameterValidationError("limit must be positive", parameter_name="limit")

        events = list(events)
        if not events:
            return Timeline(window=window, start=None, end=None, insufficient_data=True)

        end = now or max(_timestamp(e) for e in events)
        start = end - window.span
        observations: Dict[str, List[MoodObservation]] = defaultdict(list)
        deltas: Dict[str, List[MoodDelta]] = defaultdict(list)
        for event in events:
            ts = _timestamp(event)
            if not start <= ts <= end:
                continue
            if isinstance(event, MoodObservation):
                observations[event.participant_id].append(event)
            else:
                deltas[event.participant_id].append(event)

        summaries: Dict[str, ParticipantTimeline] = {}
        candidates: List[TimelineEntry] = []
        for pid in sorted(set(observations) | set(deltas)):
            summary, entries = self._participant(pid, observations[pid], deltas[pid])
            summaries[pid] = summary
            candidates.extend(entries)

        kept = sorted(candidates, key=self._priority)[:limit]
        truncated = len(kept) < len(candidates)
        if truncated:
            logger.info("[timeline] kept %d of %d events (limit %d)", len(kept), len(candidates), limit)
        kept.sort(key=lambda e: (e.timestamp, _KIND_ORDER[e.kind]))

        participants = {}
        for pid, summary in summaries.items():
            mine = tuple(e for e in kept if e.participant_id == pid)
            participants[pid] = ParticipantTimeline(
                participant_id=pid,
                entries=mine,
                key_moments=tuple(e for e in mine if e.kind is TimelineEntryKind.KEY_MOMENT),
                insufficient_data=summary.insufficient_data,
                average_mood=summary.average_mood,
                mood_range=summary.mood_range,
                direction=summary.direction,
            )

        return Timeline(
            window=window,
            start=start,
            end=end,
            participants=participants,
            insufficient_data=all(p.insufficient_data for p in participants.values()),
            truncated=truncated,
        )
