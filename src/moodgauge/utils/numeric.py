"""Small numeric helpers shared by the scoring stages."""

import math
from typing import Iterable, Optional

import numpy as np


def _isnum(x) -> bool:
    return x is not None and isinstance(x, (int, float)) and not (isinstance(x, float) and math.isnan(x))

def _nz(x, default=0.0):
    return x if _isnum(x) else default

def clamp01(x: Optional[float]) -> float:
    return 0.0 if x is None else max(0.0, min(1.0, x))

def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))

def saturate(total: float, rate: float) -> float:
    """Bounded accumulation: grows with `total` but never reaches 1.0.

    0 -> 0.0, and each extra unit of evidence adds less than the previous one.
    """
    if total <= 0:
        return 0.0
    return 1.0 - math.exp(-rate * total)

def max_pairwise_gap(values: Iterable[float]) -> float:
    """Largest absolute difference between any two values (0.0 for < 2 values)."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size < 2:
        return 0.0
    return float(np.max(np.abs(np.subtract.outer(arr, arr))))
