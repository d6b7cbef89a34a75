"""The five signal extractors.

Each extractor is a pure function ``(text, context) -> SignalReading``. The raw
components an extractor measures are turned into its [0, 1] sub-score by the
matching normaliser, which is also used when callers hand in components
directly (see ``reading_from_components``).
"""

import re
import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from moodgauge.domain.models import FactorKind, SignalReading, UncertaintyArea
from moodgauge.domain.context import EmotionalContext
from moodgauge.utils.numeric import clamp01, clamp, saturate
from . import lexicon

logger = logging.getLogger(__name__)

DEFAULT_RATE = 0.6

_PATTERN_CACHE: Dict[str, "re.Pattern[str]"] = {}


def _pattern(term: str) -> "re.Pattern[str]":
    pat = _PATTERN_CACHE.get(term)
    if pat is None:
        pat = re.compile(r"(?<![\w'])" + re.escape(term) + r"(?![\w'])")
        _PATTERN_CACHE[term] = pat
    return pat


def _preceding_words(text: str, pos: int, n: int = 3) -> List[str]:
    return re.findall(r"[\w']+", text[:pos])[-n:]


def _matches(text: str, terms: Mapping[str, float]) -> List[Tuple[str, float, int]]:
    """(term, weight, offset) for every occurrence of every term."""
    found = []
    for term, weight in terms.items():
        for m in _pattern(term).finditer(text):
            found.append((term, weight, m.start()))
    return sorted(found, key=lambda t: t[2])


def _modifier(prev: Sequence[str]) -> float:
    if not prev:
        return 1.0
    two = " ".join(prev[-2:])
    if two in lexicon.DIMINISHERS:
        return lexicon.DIMINISHERS[two]
    last = prev[-1]
    return lexicon.AMPLIFIERS.get(last, lexicon.DIMINISHERS.get(last, 1.0))


def _total(text: str, terms: Mapping[str, float], evidence: List[str], label: str) -> float:
    total = 0.0
    for term, weight, _ in _matches(text, terms):
        total += abs(weight)
        evidence.append(f"{label}:{term}")
    return total


# ---------------------------------------------------------------- normalisers

def normalise_sentiment(c: Mapping[str, float]) -> float:
    pos = c.get("positive", 0.0)
    neg = c.get("negative", 0.0)
    neutral = c.get("neutral", clamp01(1.0 - pos - neg))
    return clamp01(0.5 + 0.5 * (pos - neg) * (1.0 - neutral))


def normalise_psychological(c: Mapping[str, float]) -> float:
    protective = [c[k] for k in ("coping", "resilience", "support", "growth") if k in c]
    level = float(np.mean(protective)) if protective else 0.5
    return clamp01(level * (1.0 - c.get("stress", 0.0)))


def normalise_relationship(c: Mapping[str, float]) -> float:
    return clamp01((c.get("support", 0.5) + c.get("intimacy", 0.5)) / 2.0)


def normalise_conversational(c: Mapping[str, float]) -> float:
    return clamp01(0.4 * c.get("flow", 0.5) + 0.6 * c.get("engagement", 0.5))


def normalise_historical(c: Mapping[str, float]) -> float:
    return clamp01((c.get("baseline", 5.0) + c.get("deviation", 0.0)) / 10.0)


NORMALISERS: Dict[FactorKind, Callable[[Mapping[str, float]], float]] = {
    FactorKind.SENTIMENT: normalise_sentiment,
    FactorKind.PSYCHOLOGICAL: normalise_psychological,
    FactorKind.RELATIONSHIP: normalise_relationship,
    FactorKind.CONVERSATIONAL: normalise_conversational,
    FactorKind.HISTORICAL: normalise_historical,
}


def reading_from_components(
    kind: FactorKind,
    components: Mapping[str, float],
    evidence: Sequence[str] = (),
    flags: Sequence[str] = (),
) -> SignalReading:
    """Build a reading from already-measured components.

    Component ranges are checked by ``SignalReading`` before anything is
    stored, so an out-of-range input raises rather than being clamped.
    """
    return SignalReading(
        kind=kind,
        score=round(NORMALISERS[kind](components), 4),
        evidence=tuple(evidence),
        components=dict(components),
        flags=frozenset(flags),
    )


# ---------------------------------------------------------------- extractors

def extract_sentiment(text: str, context: Optional[EmotionalContext] = None, *,
                      rate: float = DEFAULT_RATE) -> SignalReading:
    """Positive and negative intensity measured separately, so both can be high."""
    lowered = (text or "").lower()
    pos_total = neg_total = 0.0
    evidence: List[str] = []

    polar = {**lexicon.POSITIVE_WORDS, **lexicon.NEGATIVE_WORDS}
    for term, valence, offset in _matches(lowered, polar):
        prev = _preceding_words(lowered, offset)
        value = valence * _modifier(prev)
        negated = any(w in lexicon.NEGATIONS for w in prev)
        if negated:
            value = -0.5 * value
        if value > 0:
            pos_total += value
        else:
            neg_total += -value
        evidence.append(f"{'positive' if value > 0 else 'negative'}:{'not ' if negated else ''}{term}")

    for term, valence, _ in _matches(lowered, lexicon.COMPLEX_WORDS):
        weight = 0.5 * max(abs(valence), 0.2)
        pos_total += weight
        neg_total += weight
        evidence.append(f"complex:{term}")

    exclaims = min(lowered.count("!"), 3)
    if exclaims and evidence:
        pos_total *= 1.0 + 0.1 * exclaims
        neg_total *= 1.0 + 0.1 * exclaims

    positive = round(saturate(pos_total, rate), 4)
    negative = round(saturate(neg_total, rate), 4)
    neutral = round(clamp01(1.0 - positive - negative), 4)
    flags = [] if evidence else [UncertaintyArea.SPARSE_TEXT.value]
    return reading_from_components(
        FactorKind.SENTIMENT,
        {"positive": positive, "negative": negative, "neutral": neutral},
        evidence,
        flags,
    )


def extract_psychological(text: str, context: Optional[EmotionalContext] = None, *,
                          rate: float = DEFAULT_RATE) -> SignalReading:
    """Coping, resilience, support and growth markers against stress markers.

    Protective markers pull their component from the neutral 0.5 towards 1.0
    with diminishing returns; stress markers build a separate damping term.
    """
    lowered = (text or "").lower()
    evidence: List[str] = []

    totals = {
        "coping": _total(lowered, lexicon.COPING_MARKERS, evidence, "coping"),
        "resilience": _total(lowered, lexicon.RESILIENCE_MARKERS, evidence, "resilience"),
        "support": _total(lowered, lexicon.SUPPORT_MARKERS, evidence, "support"),
        "growth": _total(lowered, lexicon.GROWTH_MARKERS, evidence, "growth"),
    }
    stress_total = _total(lowered, lexicon.STRESS_MARKERS, evidence, "stress")
    stress_total += _total(lowered, lexicon.DEFEAT_MARKERS, evidence, "defeat")

    components = {k: round(0.5 + 0.5 * saturate(v, rate), 4) for k, v in totals.items()}
    components["stress"] = round(saturate(stress_total, rate), 4)
    return reading_from_components(FactorKind.PSYCHOLOGICAL, components, evidence)


def extract_relationship(text: str, context: Optional[EmotionalContext] = None, *,
                         rate: float = DEFAULT_RATE) -> SignalReading:
    rel = context.relationship if context is not None else None
    if rel is None:
        return SignalReading(
            kind=FactorKind.RELATIONSHIP,
            score=0.5,
            evidence=("relationship metadata unavailable",),
            flags=frozenset({UncertaintyArea.MISSING_RELATIONSHIP_CONTEXT.value}),
        )

    lowered = (text or "").lower()
    evidence: List[str] = []
    closeness = rel.closeness if rel.closeness is not None else 0.5
    if rel.closeness is not None:
        evidence.append(f"closeness:{rel.closeness:.2f}")
    if rel.history_months is not None:
        evidence.append(f"history:{rel.history_months:g} months")

    supportive = _total(lowered, lexicon.SUPPORT_PHRASES, evidence, "support")
    conflict = _total(lowered, lexicon.CONFLICT_PHRASES, evidence, "conflict")
    intimate = _total(lowered, lexicon.INTIMACY_PHRASES, evidence, "intimacy")

    tone = 0.5 + 0.5 * saturate(supportive, rate) - 0.5 * saturate(conflict, rate)
    support = clamp01(0.5 * closeness + 0.5 * tone)
    intimacy = clamp01(0.6 * closeness + 0.4 * rel.history_depth + 0.2 * saturate(intimate, rate))
    return reading_from_components(
        FactorKind.RELATIONSHIP,
        {"support": round(support, 4), "intimacy": round(intimacy, 4)},
        evidence,
    )


def _turn_flow(context: Optional[EmotionalContext]) -> Optional[float]:
    """Turn-taking balance and alternation; None when there are too few turns."""
    turns = context.turns if context is not None else ()
    if len(turns) < 2:
        return None
    speakers = [t.participant_id for t in turns]
    _, counts = np.unique(speakers, return_counts=True)
    if len(counts) < 2:
        return 0.2
    shares = counts / counts.sum()
    balance = 1.0 - float(shares.max() - shares.min())
    alternation = sum(a != b for a, b in zip(speakers, speakers[1:])) / (len(speakers) - 1)
    return clamp01(0.5 * balance + 0.5 * alternation)


def extract_conversational(text: str, context: Optional[EmotionalContext] = None, *,
                           rate: float = DEFAULT_RATE) -> SignalReading:
    lowered = (text or "").lower()
    words = re.findall(r"[\w']+", lowered)
    evidence: List[str] = []

    questions = lowered.count("?")
    disclosures = sum(len(_pattern(p).findall(lowered)) for p in lexicon.SELF_DISCLOSURE)
    if questions:
        evidence.append(f"questions:{questions}")
    if disclosures:
        evidence.append(f"self_disclosure:{disclosures}")
    if len(words) >= 25:
        evidence.append(f"length:{len(words)} words")

    engagement = saturate(len(words) / 25.0 + 0.5 * questions + 0.7 * disclosures, rate + 0.2)

    flow = _turn_flow(context)
    if flow is None:
        flow = 0.5
    else:
        evidence.append(f"turns:{len(context.turns)}")

    return reading_from_components(
        FactorKind.CONVERSATIONAL,
        {"flow": round(flow, 4), "engagement": round(engagement, 4)},
        evidence,
    )


def extract_historical(text: str, context: Optional[EmotionalContext] = None, *,
                       rate: float = DEFAULT_RATE) -> SignalReading:
    """How far the text's mood sits from the participant's usual mood.

    A stable baseline damps the deviation, since one message rarely moves a
    settled mood far.
    """
    baseline = context.baseline if context is not None else None
    if baseline is None:
        return SignalReading(
            kind=FactorKind.HISTORICAL,
            score=0.5,
            evidence=("no mood history",),
            flags=frozenset({UncertaintyArea.MISSING_BASELINE.value}),
        )

    estimate = 10.0 * extract_sentiment(text, context, rate=rate).score
    deviation = clamp((estimate - baseline.typical_mood) * (1.0 - 0.5 * baseline.stability), -10.0, 10.0)
    evidence = [
        f"baseline:{baseline.typical_mood:.1f} over {baseline.sample_size} scores",
        f"deviation:{deviation:+.2f}",
    ]
    return reading_from_components(
        FactorKind.HISTORICAL,
        {"baseline": baseline.typical_mood, "deviation": round(deviation, 2)},
        evidence,
    )


EXTRACTORS: Dict[FactorKind, Callable[..., SignalReading]] = {
    FactorKind.SENTIMENT: extract_sentiment,
    FactorKind.PSYCHOLOGICAL: extract_psychological,
    FactorKind.RELATIONSHIP: extract_relationship,
    FactorKind.CONVERSATIONAL: extract_conversational,
    FactorKind.HISTORICAL: extract_historical,
}
