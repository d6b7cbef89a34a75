"""Keyword lexicons used by the signal extractors.

Valences are in [-1, 1]; marker strengths in (0, 1]. Multi-word entries are
matched as phrases, single words on word boundaries.
"""

from typing import Dict

POSITIVE_WORDS: Dict[str, float] = {
    "happy": 0.8,
    "joy": 0.9,
    "excited": 0.7,
    "grateful": 0.8,
    "love": 0.9,
    "proud": 0.7,
    "content": 0.6,
    "peaceful": 0.6,
    "hope": 0.7,
    "hopeful": 0.7,
    "relief": 0.6,
    "relieved": 0.6,
    "glad": 0.6,
}

NEGATIVE_WORDS: Dict[str, float] = {
    "sad": -0.7,
    "angry": -0.8,
    "frustrated": -0.7,
    "anxious": -0.6,
    "worried": -0.6,
    "disappointed": -0.7,
    "stressed": -0.7,
    "lonely": -0.8,
    "fear": -0.8,
    "scared": -0.7,
    "hate": -0.9,
    "hurt": -0.7,
}

# complex emotions carry a mild valence but count as evidence for both polarities
COMPLEX_WORDS: Dict[str, float] = {
    "confused": -0.3,
    "overwhelmed": -0.5,
    "nostalgic": 0.2,
    "bittersweet": 0.1,
}

AMPLIFIERS: Dict[str, float] = {
    "very": 1.5,
    "really": 1.3,
    "so": 1.3,
    "extremely": 1.8,
    "incredibly": 1.7,
    "deeply": 1.5,
}

DIMINISHERS: Dict[str, float] = {
    "slightly": 0.6,
    "somewhat": 0.7,
    "kind of": 0.7,
    "a bit": 0.6,
    "a little": 0.6,
}

NEGATIONS = frozenset({"not", "never", "no", "don't", "dont", "isn't", "wasn't", "can't", "cannot"})

# psychological markers: (category, strength)
COPING_MARKERS: Dict[str, float] = {
    "plan": 0.8,
    "solve": 0.9,
    "tackle": 0.8,
    "strategy": 0.7,
    "breathe": 0.7,
    "mindfulness": 0.8,
    "calm": 0.6,
    "relax": 0.6,
    "purpose": 0.9,
    "meaning": 0.9,
    "lesson": 0.7,
}

RESILIENCE_MARKERS: Dict[str, float] = {
    "overcome": 0.9,
    "resilient": 0.9,
    "strong": 0.7,
    "recover": 0.8,
    "adapt": 0.7,
    "flexible": 0.6,
    "persevere": 0.8,
    "endure": 0.7,
}

# erode resilience; counted as stress evidence
DEFEAT_MARKERS: Dict[str, float] = {
    "defeated": 0.8,
    "hopeless": 0.9,
    "give up": 0.8,
    "weak": 0.6,
}

STRESS_MARKERS: Dict[str, float] = {
    "heart racing": 0.8,
    "exhausted": 0.6,
    "tense": 0.6,
    "overwhelmed": 0.8,
    "anxious": 0.7,
    "stressed": 0.7,
    "breaking down": 0.9,
    "cannot focus": 0.7,
    "can't focus": 0.7,
    "mind racing": 0.7,
    "forgetting": 0.6,
    "isolating": 0.7,
    "avoiding": 0.6,
    "not sleeping": 0.7,
}

SUPPORT_MARKERS: Dict[str, float] = {
    "listening": 0.8,
    "advice": 0.7,
    "helping": 0.8,
    "feedback": 0.7,
}

GROWTH_MARKERS: Dict[str, float] = {
    "growth": 0.8,
    "emotional maturity": 0.9,
    "self-awareness": 0.8,
    "relationship skills": 0.8,
    "resilience building": 0.9,
    "learned": 0.6,
}

# relationship phrases: positive values support, negative values conflict
SUPPORT_PHRASES: Dict[str, float] = {
    "help": 0.7,
    "support": 0.8,
    "there for you": 0.9,
    "here for you": 0.9,
    "understand": 0.7,
    "listen": 0.6,
}

CONFLICT_PHRASES: Dict[str, float] = {
    "argument": -0.7,
    "fight": -0.8,
    "disagree": -0.5,
    "upset with": -0.6,
}

INTIMACY_PHRASES: Dict[str, float] = {
    "trust": 0.7,
    "love you": 0.9,
    "miss you": 0.6,
    "safe with": 0.8,
    "open up": 0.7,
    "vulnerable": 0.6,
}

SELF_DISCLOSURE = ("i feel", "i felt", "i'm feeling", "honestly", "to be honest")
