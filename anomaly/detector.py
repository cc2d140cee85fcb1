"""
anomaly/detector.py

Z-score outlier flagging over a numeric series.

Statistics are population statistics (``ddof=0``). A point is anomalous when
``|z| >= threshold``; ``z`` is defined as 0 when the standard deviation is 0,
so a flat series never divides by zero and never flags anything at a
positive threshold.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

import numpy as np

DEFAULT_Z_THRESHOLD = 3.0


@dataclass(frozen=True)
class Anomaly:
    index: int
    value: float
    z: float


@dataclass(frozen=True)
class AnomalyReport:
    mean: float = 0.0
    std: float = 0.0
    anomalies: list[Anomaly] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mean": self.mean,
            "std": self.std,
            "anomalies": [{"index": a.index, "value": a.value, "z": a.z} for a in self.anomalies],
        }


def detect_anomalies(series: Iterable[Any], threshold: float = DEFAULT_Z_THRESHOLD) -> AnomalyReport:
    """
    Flag the points of *series* whose absolute z-score reaches *threshold*.

    Non-numeric and non-finite entries keep their index but are excluded from
    the statistics and never flagged. An empty (or all-invalid) series yields
    ``AnomalyReport(0, 0, [])``.
    """

    indexed = [(index, _as_finite(value)) for index, value in enumerate(series)]
    valid = [(index, value) for index, value in indexed if value is not None]
    if not valid:
        return AnomalyReport()

    values = np.asarray([value for _, value in valid], dtype=np.float64)
    mean = float(np.mean(values))
    std = float(np.std(values))
    if not math.isfinite(std) or np.ptp(values) == 0:
        std = 0.0

    limit = float(threshold) if threshold is not None else DEFAULT_Z_THRESHOLD
    anomalies: list[Anomaly] = []
    for index, value in valid:
        z = 0.0 if std == 0 else (value - mean) / std
        if abs(z) >= limit:
            anomalies.append(Anomaly(index=index, value=value, z=z))
    return AnomalyReport(mean=mean, std=std, anomalies=anomalies)


def _as_finite(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None
