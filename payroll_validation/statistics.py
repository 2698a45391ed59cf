"""Descriptive statistics used by the salary, demographic and anomaly validators."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class DistributionStats:
    count: int
    mean: float
    median: float
    std: float
    minimum: float
    maximum: float
    q1: float
    q3: float
    skewness: float
    coefficient_of_variation: float

    def to_dict(self) -> Dict[str, float]:
        return {k: round(v, 4) if isinstance(v, float) else v for k, v in asdict(self).items()}


def percentile(values: Sequence[float], q: float) -> float:
    """Percentile with linear interpolation between closest ranks."""
    if not values:
        raise ValueError("percentile of an empty sequence")
    return float(np.percentile(np.asarray(values, dtype=float), q))


def iqr_bounds(values: Sequence[float], multiplier: float = 1.5) -> Tuple[float, float, float, float]:
    """Return ``(q1, q3, lower, upper)`` Tukey fences."""
    q1 = percentile(values, 25)
    q3 = percentile(values, 75)
    spread = q3 - q1
    return q1, q3, q1 - multiplier * spread, q3 + multiplier * spread


def skewness(values: Sequence[float]) -> float:
    """Population skewness: mean of cubed z-scores."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    std = arr.std()
    if std == 0:
        return 0.0
    return float(np.mean(((arr - arr.mean()) / std) ** 3))


def coefficient_of_variation(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    mean = arr.mean()
    if mean == 0:
        return 0.0
    return float(arr.std() / abs(mean))


def zscores(values: Sequence[float]) -> List[float]:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return []
    std = arr.std()
    if std == 0:
        return [0.0] * int(arr.size)
    return [float(z) for z in (arr - arr.mean()) / std]


def describe(values: Iterable[float]) -> DistributionStats:
    """Summary statistics (population variance) of a non-empty sample."""
    data = [float(v) for v in values]
    if not data:
        raise ValueError("describe() needs at least one value")
    arr = np.asarray(data)
    return DistributionStats(
        count=len(data),
        mean=float(arr.mean()),
        median=float(np.median(arr)),
        std=float(arr.std()),
        minimum=float(arr.min()),
        maximum=float(arr.max()),
        q1=percentile(data, 25),
        q3=percentile(data, 75),
        skewness=skewness(data),
        coefficient_of_variation=coefficient_of_variation(data),
    )


def shannon_diversity(counts: Dict[str, int]) -> int:
    """Shannon entropy of group counts normalized to 0-100 by ``log(#groups)``."""
    groups = list(counts.values())
    total = sum(groups)
    if total == 0 or len(groups) < 2:
        return 0
    entropy = 0.0
    for count in groups:
        if count > 0:
            share = count / total
            entropy -= share * math.log(share)
    return int(round(entropy / math.log(len(groups)) * 100))
