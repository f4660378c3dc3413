"""Modern-portfolio-theory metrics for a holdings snapshot.

Expected return, volatility, Sharpe / Information / Treynor ratios, Jensen's
alpha, parametric VaR, beta, market correlation and drawdown. Per-symbol
statistics come from a MarketStatisticsProvider; sector-level statistics
(beta, correlation, drawdown) come from its overridable lookup tables.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from riskprofiler.analysis.covariance import (
    CorrelationProvider,
    get_correlation_provider,
)
from riskprofiler.analysis.weights import _safe_div, portfolio_weights
from riskprofiler.config import analytics_setting
from riskprofiler.data_sources.market_stats import MarketStatisticsProvider
from riskprofiler.models import Holding, PortfolioMetrics
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("metrics")

# One-tailed z-scores for parametric (Gaussian) VaR
_Z_95 = 1.645
_Z_99 = 2.326


class PortfolioMetricsEngine:
    """Compute PortfolioMetrics from holdings and market statistics.

    Args:
        stats: Market statistics; defaults to the settings-backed reference tables.
        correlation_provider: Covariance source; defaults to ``analytics.covariance``.
        risk_free_rate: Annual risk-free rate (default ``analytics.risk_free_rate``).
        market_return: Expected market return (default ``analytics.market_return``).
    """

    def __init__(
        self,
        stats: MarketStatisticsProvider | None = None,
        correlation_provider: CorrelationProvider | None = None,
        risk_free_rate: float | None = None,
        market_return: float | None = None,
    ) -> None:
        self.stats = stats or MarketStatisticsProvider.from_settings()
        if correlation_provider is None:
            name = analytics_setting("covariance", default="lookup")
            kwargs = {}
            if name == "lookup":
                kwargs["placeholder_covariance"] = analytics_setting(
                    "placeholder_covariance", default=0.01)
            correlation_provider = get_correlation_provider(name, **kwargs)
        self.correlation_provider = correlation_provider
        self.risk_free_rate = (
            risk_free_rate if risk_free_rate is not None
            else analytics_setting("risk_free_rate", default=0.06)
        )
        self.market_return = (
            market_return if market_return is not None
            else analytics_setting("market_return", default=0.12)
        )

    # ------------------------------------------------------------------
    #  Main entry point
    # ------------------------------------------------------------------
    def compute(self, holdings: Sequence[Holding]) -> PortfolioMetrics:
        if not holdings:
            return PortfolioMetrics()

        weights = portfolio_weights(holdings)
        if not weights.any():
            logger.warning("Portfolio total value is zero, returning zero metrics")
            return PortfolioMetrics()

        expected_return = self.expected_return(holdings, weights)
        volatility = self.volatility(holdings, weights)
        beta = self._weighted_sector_stat(holdings, weights, self.stats.sector_beta)
        correlation = self._weighted_sector_stat(holdings, weights, self.stats.market_correlation)
        max_drawdown = self._weighted_sector_stat(holdings, weights, self.stats.sector_drawdown)

        rf, rm = self.risk_free_rate, self.market_return
        if volatility == 0:
            logger.debug("Zero volatility, Sharpe and Information ratios reported as 0")

        return PortfolioMetrics(
            expected_return=expected_return,
            volatility=volatility,
            sharpe_ratio=_safe_div(expected_return - rf, volatility),
            var_95=expected_return - _Z_95 * volatility,
            var_99=expected_return - _Z_99 * volatility,
            beta=beta,
            correlation=correlation,
            max_drawdown=max_drawdown,
            information_ratio=_safe_div(expected_return - rm, volatility),
            treynor_ratio=_safe_div(expected_return - rf, beta),
            jensen_alpha=expected_return - (rf + beta * (rm - rf)),
        )

    # ------------------------------------------------------------------
    #  Components
    # ------------------------------------------------------------------
    def expected_return(self, holdings: Sequence[Holding], weights: np.ndarray) -> float:
        mu = np.array([self.stats.expected_return(h.symbol) for h in holdings])
        return float(weights @ mu)

    def volatility(self, holdings: Sequence[Holding], weights: np.ndarray) -> float:
        cov = self.correlation_provider.covariance_matrix(holdings, self.stats)
        variance = float(weights @ cov @ weights)
        # tiny negative values can appear from a non-PSD placeholder matrix
        return math.sqrt(max(variance, 0.0))

    @staticmethod
    def _weighted_sector_stat(holdings, weights, lookup) -> float:
        return float(sum(w * lookup(h.sector) for h, w in zip(holdings, weights)))


def calculate_portfolio_metrics(
    holdings: Sequence[Holding],
    stats: MarketStatisticsProvider | None = None,
    **kwargs,
) -> PortfolioMetrics:
    return PortfolioMetricsEngine(stats=stats, **kwargs).compute(holdings)
