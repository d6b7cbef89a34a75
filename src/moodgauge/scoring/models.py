"""Data models for confidence scoring."""

from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Dict, Any, List

@dataclass
class ConfidenceAssessment:
    confidence: float                       # 0..1, two decimals
    uncertainty_areas: List[str]            # sorted, unique
    factors: Dict[str, float]               # factor -> raw value in [0, 1]
    contributors: Dict[str, float]          # factor -> weighted contribution
    capped: bool = False                    # ambiguity cap applied
    notes: List[str] = field(default_factory=list)

    @property
    def dominant_factor(self) -> str | None:
        if not self.contributors:
            return None
        return max(self.contributors, key=self.contributors.get)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
