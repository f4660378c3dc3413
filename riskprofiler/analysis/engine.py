"""Full analytics pass over one portfolio snapshot.

``PortfolioRiskAnalyzer`` wires every engine together from one settings
dict and returns plain dicts ready for serialisation by the caller.
"""

from __future__ import annotations

import time
from typing import Any, Iterable, Mapping

from riskprofiler.analysis.clustering import (
    IterativeKMeans,
    feature_clusters,
    get_clustering_strategy,
    sector_clusters,
)
from riskprofiler.analysis.covariance import get_correlation_provider
from riskprofiler.analysis.frontier import FrontierGenerator
from riskprofiler.analysis.metrics import PortfolioMetricsEngine
from riskprofiler.analysis.monte_carlo import MonteCarloSimulator
from riskprofiler.analysis.personality import PersonalityAnalyzer
from riskprofiler.analysis.recommendations import generate_recommendations
from riskprofiler.analysis.risk_score import RiskScorer, advisory_notes, sector_allocation
from riskprofiler.analysis.variates import get_variate_generator
from riskprofiler.config import SETTINGS, analytics_setting
from riskprofiler.data_sources.market_stats import MarketStatisticsProvider
from riskprofiler.models import Holding, coerce_holdings
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("engine")


class PortfolioRiskAnalyzer:
    """Run every analytics component once over a holdings snapshot.

    Args:
        stats: Market statistics; defaults to the reference tables with the
            ``market`` section of *settings* merged on top.
        settings: Settings dict (defaults to the loaded ``SETTINGS``).
        seed: Seed for Monte Carlo, frontier noise and k-means. ``None``
            gives a fresh random run each time.
    """

    def __init__(
        self,
        stats: MarketStatisticsProvider | None = None,
        settings: dict | None = None,
        seed: int | None = None,
    ) -> None:
        self.settings = settings if settings is not None else SETTINGS
        self.stats = stats or MarketStatisticsProvider.from_settings(self.settings)
        self.seed = seed

        def opt(*keys, default=None):
            return analytics_setting(*keys, default=default, settings=self.settings)

        provider_name = opt("covariance", default="lookup")
        provider_kwargs = {}
        if provider_name == "lookup":
            provider_kwargs["placeholder_covariance"] = opt("placeholder_covariance", default=0.01)

        self.scorer = RiskScorer()
        self.metrics_engine = PortfolioMetricsEngine(
            stats=self.stats,
            correlation_provider=get_correlation_provider(provider_name, **provider_kwargs),
            risk_free_rate=opt("risk_free_rate", default=0.06),
            market_return=opt("market_return", default=0.12),
        )
        self.simulator = MonteCarloSimulator(
            stats=self.stats,
            variate_generator=get_variate_generator(
                opt("monte_carlo", "variate", default="irwin_hall")),
            max_workers=opt("monte_carlo", "max_workers", default=4),
            chunk_size=opt("monte_carlo", "chunk_size", default=500),
        )
        self.frontier = FrontierGenerator(
            stats=self.stats,
            min_return=opt("frontier", "min_return", default=0.05),
            max_return=opt("frontier", "max_return", default=0.25),
            seed=seed,
        )
        strategy_name = opt("clustering", "strategy", default="single_pass")
        if strategy_name == IterativeKMeans.name:
            self.clustering = IterativeKMeans(max_iter=opt("clustering", "max_iter", default=100))
        else:
            self.clustering = get_clustering_strategy(strategy_name)
        self.personality_analyzer = PersonalityAnalyzer()

        self._horizon_days = opt("monte_carlo", "horizon_days", default=252)
        self._num_scenarios = opt("monte_carlo", "num_scenarios", default=5000)
        self._num_points = opt("frontier", "num_points", default=20)
        self._k = opt("clustering", "k", default=3)

    def coerce(self, holdings: Iterable[Holding | Mapping[str, Any]]) -> list[Holding]:
        """Accept Holding objects or producer dicts; missing sectors use the symbol map."""
        return coerce_holdings(holdings, sector_lookup=self.stats.sector_for)

    def analyze(
        self,
        holdings: Iterable[Holding | Mapping[str, Any]],
        include_paths: bool = False,
    ) -> dict[str, Any]:
        holdings = self.coerce(holdings)
        logger.info("Analysing portfolio with %d holdings", len(holdings))
        t0 = time.time()

        score = self.scorer.score(holdings)
        metrics = self.metrics_engine.compute(holdings)
        personality = self.personality_analyzer.analyze(holdings, metrics)
        monte_carlo = self.simulator.simulate(
            holdings,
            horizon_days=self._horizon_days,
            num_scenarios=self._num_scenarios,
            seed=self.seed,
            include_paths=include_paths,
        )

        results = {
            "risk_score": score.to_dict(),
            "sector_allocation": [a.to_dict() for a in sector_allocation(holdings)],
            "advisory_notes": advisory_notes(score, holdings),
            "metrics": metrics.to_dict(),
            "monte_carlo": monte_carlo.to_dict() if monte_carlo is not None else None,
            "risk_clusters": [c.to_dict() for c in sector_clusters(holdings)],
            "feature_clusters": [
                c.to_dict() for c in feature_clusters(
                    holdings, k=self._k, strategy=self.clustering, seed=self.seed)
            ],
            "personality": personality.to_dict(),
            "recommendations": [
                r.to_dict() for r in generate_recommendations(holdings, metrics, personality)
            ],
            "correlation": self.frontier.correlation_matrix(holdings).to_dict(),
            "efficient_frontier": [
                p.to_dict() for p in self.frontier.efficient_frontier(holdings, self._num_points)
            ],
        }
        logger.info("Analysis complete in %.2fs", time.time() - t0)
        return results
