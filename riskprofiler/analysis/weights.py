"""Portfolio weight helpers shared by the analysis engines.

Weights are recomputed from ``total_value`` on every call and never cached.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from riskprofiler.models import Holding


def total_value(holdings: Sequence[Holding]) -> float:
    return float(sum(h.total_value for h in holdings))


def portfolio_weights(holdings: Sequence[Holding]) -> np.ndarray:
    """Per-holding fraction of total value; all zeros when the total is zero."""
    values = np.array([h.total_value for h in holdings], dtype=float)
    total = values.sum()
    if total == 0:
        return np.zeros(len(values))
    return values / total


def sector_weights(holdings: Sequence[Holding]) -> dict[str, float]:
    """Sector -> summed weight, in order of first appearance."""
    weights: dict[str, float] = {}
    for holding, w in zip(holdings, portfolio_weights(holdings)):
        weights[holding.sector] = weights.get(holding.sector, 0.0) + float(w)
    return weights


def _safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safe division that returns *default* for zero denominators or non-finite results."""
    if abs(denominator) < 1e-12:
        return default
    result = numerator / denominator
    if not np.isfinite(result):
        return default
    return float(result)
