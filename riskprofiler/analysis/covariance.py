"""Covariance / correlation providers for the metrics and frontier engines.

Two interchangeable implementations:

``LookupCorrelationProvider``
    Diagonal = per-symbol variance, off-diagonal = a fixed placeholder
    covariance; correlations come from the sector-pair table. This is the
    reference behaviour the dashboard numbers were calibrated on.

``SampleCorrelationProvider``
    Pairwise sample statistics from the return history, falling back entry
    by entry to the lookup values where fewer than ``min_observations``
    overlapping observations exist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from riskprofiler.data_sources.market_stats import FALLBACK_VARIANCE, MarketStatisticsProvider
from riskprofiler.models import Holding
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("covariance")

DEFAULT_PLACEHOLDER_COVARIANCE = 0.01


class CorrelationProvider(ABC):
    """Builds holding-by-holding covariance and correlation matrices."""

    name: str = ""

    @abstractmethod
    def covariance_matrix(
        self, holdings: Sequence[Holding], stats: MarketStatisticsProvider
    ) -> np.ndarray:
        ...

    @abstractmethod
    def correlation_matrix(
        self, holdings: Sequence[Holding], stats: MarketStatisticsProvider
    ) -> np.ndarray:
        ...


class LookupCorrelationProvider(CorrelationProvider):
    name = "lookup"

    def __init__(self, placeholder_covariance: float = DEFAULT_PLACEHOLDER_COVARIANCE) -> None:
        self.placeholder_covariance = placeholder_covariance

    def covariance_matrix(self, holdings, stats):
        n = len(holdings)
        cov = np.full((n, n), self.placeholder_covariance, dtype=float)
        for i, h in enumerate(holdings):
            cov[i, i] = stats.variance(h.symbol)
        return cov

    def correlation_matrix(self, holdings, stats):
        n = len(holdings)
        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = stats.sector_correlation(holdings[i].sector, holdings[j].sector)
                corr[i, j] = rho
                corr[j, i] = stats.sector_correlation(holdings[j].sector, holdings[i].sector)
        return corr


class SampleCorrelationProvider(CorrelationProvider):
    """Pairwise statistics from return history with lookup fallback."""

    name = "sample"

    def __init__(
        self,
        min_observations: int = 2,
        fallback: CorrelationProvider | None = None,
    ) -> None:
        if min_observations < 2:
            raise ValueError("min_observations must be at least 2")
        self.min_observations = min_observations
        self.fallback = fallback or LookupCorrelationProvider()

    def _pairwise(self, holdings, stats, kind: str) -> np.ndarray:
        symbols = [h.symbol for h in holdings]
        unique = list(dict.fromkeys(symbols))
        frame = stats.returns_frame(unique)
        if kind == "cov":
            # pairwise-complete sample covariance rescaled to population (ddof=0),
            # matching MarketStatisticsProvider.variance on the diagonal
            present = frame.notna().astype(float)
            counts = present.T @ present
            table = frame.cov(min_periods=self.min_observations) * (counts - 1) / counts
        else:
            table = frame.corr(min_periods=self.min_observations)
        table = table.reindex(index=unique, columns=unique)
        idx = [unique.index(s) for s in symbols]
        return table.to_numpy(dtype=float)[np.ix_(idx, idx)]

    def covariance_matrix(self, holdings, stats):
        if not holdings:
            return np.zeros((0, 0))
        sample = self._pairwise(holdings, stats, "cov")
        fallback = self.fallback.covariance_matrix(holdings, stats)
        missing = np.isnan(sample)
        # a variance from fewer than min_observations points is not trusted
        short = np.isnan(np.diag(sample))
        fallback[short, short] = FALLBACK_VARIANCE
        if missing.any():
            logger.debug("Insufficient history for %d covariance entries, using lookup values",
                         int(missing.sum()))
        return np.where(missing, fallback, sample)

    def correlation_matrix(self, holdings, stats):
        if not holdings:
            return np.zeros((0, 0))
        sample = self._pairwise(holdings, stats, "corr")
        fallback = self.fallback.correlation_matrix(holdings, stats)
        corr = np.where(np.isnan(sample), fallback, sample)
        np.fill_diagonal(corr, 1.0)
        return corr


_PROVIDERS = {
    LookupCorrelationProvider.name: LookupCorrelationProvider,
    SampleCorrelationProvider.name: SampleCorrelationProvider,
}


def get_correlation_provider(name: str, **kwargs) -> CorrelationProvider:
    """Instantiate a provider by its settings name (``lookup`` or ``sample``)."""
    try:
        cls = _PROVIDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown correlation provider '{name}', expected one of {sorted(_PROVIDERS)}"
        ) from None
    return cls(**kwargs)
