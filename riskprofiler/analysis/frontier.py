"""Correlation matrix and efficient-frontier generation.

The frontier is a heuristic sweep, not a quadratic-programming optimiser:
for each target return a tilted, randomly perturbed weight vector is scored
and the dominated points are filtered out afterwards.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from riskprofiler.analysis.covariance import LookupCorrelationProvider, SampleCorrelationProvider
from riskprofiler.config import analytics_setting
from riskprofiler.data_sources.market_stats import MarketStatisticsProvider
from riskprofiler.models import CorrelationMatrix, FrontierPoint, Holding
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("frontier")

# Randomised correlation bands (low, high)
_SAME_SECTOR_BAND = (0.7, 0.9)
_CROSS_SECTOR_BAND = (0.2, 0.5)

# Weight tilt coefficients
_RETURN_TILT = 0.15
_VOLATILITY_TILT = 0.1
_VOLATILITY_ANCHOR = 0.25
_WEIGHT_NOISE = 0.2
_RISK_NOISE = 0.1
_RETURN_NOISE = 0.05

CORRELATION_METHODS = ("sector_table", "banded", "sample")


def pareto_filter(points: Sequence[FrontierPoint]) -> list[FrontierPoint]:
    """Keep points whose return strictly beats every lower-risk point."""
    efficient: list[FrontierPoint] = []
    best = -np.inf
    for point in sorted(points, key=lambda p: p.risk):
        if point.expected_return > best:
            efficient.append(point)
            best = point.expected_return
    return efficient


class FrontierGenerator:
    """Correlation matrices and efficient-frontier points for a holdings list.

    Args:
        stats: Market statistics (per-symbol mean/volatility, sector table).
        min_return / max_return: Target return sweep
            (default ``analytics.frontier.min_return`` / ``max_return``).
        seed: Seed for the random components. Every call restarts from it,
            so repeated calls with the same inputs agree.
    """

    def __init__(
        self,
        stats: MarketStatisticsProvider | None = None,
        min_return: float | None = None,
        max_return: float | None = None,
        seed: int | None = None,
    ) -> None:
        self.stats = stats or MarketStatisticsProvider.from_settings()
        self.min_return = (
            min_return if min_return is not None
            else analytics_setting("frontier", "min_return", default=0.05)
        )
        self.max_return = (
            max_return if max_return is not None
            else analytics_setting("frontier", "max_return", default=0.25)
        )
        self.seed = seed

    # ------------------------------------------------------------------
    #  Correlation matrix
    # ------------------------------------------------------------------
    def correlation_matrix(
        self, holdings: Sequence[Holding], method: str = "sector_table"
    ) -> CorrelationMatrix:
        """Holding-by-holding correlation with a unit diagonal.

        ``sector_table`` is deterministic; ``banded`` draws same-sector pairs
        from [0.7, 0.9] and cross-sector pairs from [0.2, 0.5]; ``sample``
        uses the return history where it exists.
        """
        symbols = [h.symbol for h in holdings]
        if method == "sector_table":
            matrix = LookupCorrelationProvider().correlation_matrix(holdings, self.stats)
        elif method == "banded":
            matrix = self._banded_matrix(holdings)
        elif method == "sample":
            matrix = SampleCorrelationProvider().correlation_matrix(holdings, self.stats)
        else:
            raise ValueError(
                f"Unknown correlation method '{method}', expected one of {CORRELATION_METHODS}"
            )
        return CorrelationMatrix(symbols=symbols, matrix=matrix)

    def _banded_matrix(self, holdings: Sequence[Holding]) -> np.ndarray:
        rng = np.random.default_rng(self.seed)
        n = len(holdings)
        matrix = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                same = holdings[i].sector == holdings[j].sector
                low, high = _SAME_SECTOR_BAND if same else _CROSS_SECTOR_BAND
                matrix[i, j] = matrix[j, i] = low + rng.random() * (high - low)
        return matrix

    # ------------------------------------------------------------------
    #  Efficient frontier
    # ------------------------------------------------------------------
    def efficient_frontier(
        self, holdings: Sequence[Holding], num_points: int = 20
    ) -> list[FrontierPoint]:
        if num_points < 1:
            raise ValueError(f"num_points must be at least 1, got {num_points}")
        if not holdings:
            return []

        rng = np.random.default_rng(self.seed)
        n = len(holdings)
        returns = np.array([self.stats.expected_return(h.symbol) for h in holdings])
        vols = np.array([self.stats.volatility(h.symbol) for h in holdings])
        corr = LookupCorrelationProvider().correlation_matrix(holdings, self.stats)
        cov = np.outer(vols, vols) * corr

        points: list[FrontierPoint] = []
        for target in np.linspace(self.min_return, self.max_return, num_points):
            raw = (
                1.0 / n
                + (returns - target) * _RETURN_TILT
                + (_VOLATILITY_ANCHOR - vols) * _VOLATILITY_TILT
                + (rng.random(n) - 0.5) * _WEIGHT_NOISE
            )
            weights = np.maximum(raw, 0.0)
            total = weights.sum()
            if total == 0:
                logger.debug("All weights clamped to zero at target %.3f, using equal weights", target)
                weights = np.full(n, 1.0 / n)
            else:
                weights = weights / total

            risk = float(np.sqrt(max(weights @ cov @ weights, 0.0)))
            ret = float(weights @ returns)
            risk *= 1 + (rng.random() - 0.5) * _RISK_NOISE
            ret *= 1 + (rng.random() - 0.5) * _RETURN_NOISE
            points.append(FrontierPoint(risk=risk, expected_return=ret))

        efficient = pareto_filter(points)
        logger.debug("Frontier: %d of %d points efficient", len(efficient), len(points))
        return efficient


def correlation_matrix(
    holdings: Sequence[Holding],
    stats: MarketStatisticsProvider | None = None,
    method: str = "sector_table",
    seed: int | None = None,
) -> CorrelationMatrix:
    return FrontierGenerator(stats=stats, seed=seed).correlation_matrix(holdings, method=method)


def efficient_frontier(
    holdings: Sequence[Holding],
    stats: MarketStatisticsProvider | None = None,
    num_points: int = 20,
    seed: int | None = None,
) -> list[FrontierPoint]:
    return FrontierGenerator(stats=stats, seed=seed).efficient_frontier(holdings, num_points)
