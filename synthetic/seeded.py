"""
synthetic/seeded.py

Deterministic pseudo-random source shared by every synthetic data path.

The same integer seed always yields the same value in ``[0, 1)``, so mock
dashboards and tests are reproducible across processes and machines.
"""

from __future__ import annotations

import math


def seeded_random(seed: float) -> float:
    """
    Return ``frac(sin(seed) * 10000)``.
    """

    x = math.sin(seed) * 10000
    return x - math.floor(x)


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round to *ndigits* decimals with ties going towards +inf.

    Built-in ``round`` rounds ties to even (``round(0.25, 1) == 0.2``); chart
    labels and exports expect ``0.3``.
    """

    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor
