"""RiskProfiler - portfolio risk analytics over a holdings snapshot."""

__version__ = "0.1.0"

from .models import (
    Holding,
    RiskScore,
    PortfolioMetrics,
    MonteCarloResult,
    RiskCluster,
    FeatureCluster,
    InvestorPersonality,
    Recommendation,
    coerce_holdings,
)
from .data_sources import MarketStatisticsProvider
from .analysis import (
    PortfolioRiskAnalyzer,
    calculate_risk_score,
    calculate_portfolio_metrics,
    run_monte_carlo,
    correlation_matrix,
    efficient_frontier,
    sector_clusters,
    feature_clusters,
    analyze_personality,
    generate_recommendations,
)
