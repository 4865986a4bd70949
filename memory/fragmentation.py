from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import numpy as np

from memory.encoding import iter_holes

@dataclass
class FragMetrics:
    total_free: int
    lfe: int
    external_frag: float
    entropy: float
    hole_count: int

def _entropy(sizes: np.ndarray) -> float:
    total = sizes.sum()
    if total <= 0:
        return 0.0
    p = sizes / total
    return float(-(p * np.log2(p)).sum())

def compute_metrics(hole_list: Optional[np.ndarray]) -> FragMetrics:
    sizes = np.array([size for _, size in iter_holes(hole_list)], dtype=np.float64)
    if sizes.size == 0:
        return FragMetrics(0, 0, 0.0, 0.0, 0)
    total_free = int(sizes.sum())
    lfe = int(sizes.max())
    external = max(0.0, 1.0 - lfe/total_free)
    return FragMetrics(total_free, lfe, external, _entropy(sizes), int(sizes.size))
