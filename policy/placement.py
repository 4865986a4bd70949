from __future__ import annotations
from typing import Callable, Dict, Optional

import numpy as np

from memory.encoding import iter_holes

# (words_needed, hole_list) -> word offset of the chosen hole, or None
Strategy = Callable[[int, Optional[np.ndarray]], Optional[int]]

def best_fit(words_needed: int, hole_list: Optional[np.ndarray]) -> Optional[int]:
    """Smallest hole that fits; the first of equal candidates wins."""
    offset = None
    best = None
    for start, length in iter_holes(hole_list):
        if length >= words_needed and (best is None or length < best):
            offset, best = start, length
    return offset

def worst_fit(words_needed: int, hole_list: Optional[np.ndarray]) -> Optional[int]:
    """Largest hole that fits; the first of equal candidates wins."""
    offset = None
    worst = -1
    for start, length in iter_holes(hole_list):
        if length >= words_needed and length > worst:
            offset, worst = start, length
    return offset

STRATEGIES: Dict[str, Strategy] = {
    'best': best_fit,
    'worst': worst_fit,
}

def get_strategy(name: str) -> Strategy:
    try:
        return STRATEGIES[name]
    except KeyError:
        raise KeyError(f"unknown strategy {name!r}, expected one of {sorted(STRATEGIES)}") from None
