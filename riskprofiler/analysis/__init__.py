from .risk_score import RiskScorer, calculate_risk_score, sector_allocation, advisory_notes
from .covariance import CorrelationProvider, LookupCorrelationProvider, SampleCorrelationProvider
from .metrics import PortfolioMetricsEngine, calculate_portfolio_metrics
from .variates import RandomVariateGenerator, IrwinHallGenerator, GaussianGenerator
from .monte_carlo import MonteCarloSimulator, run_monte_carlo
from .frontier import FrontierGenerator, correlation_matrix, efficient_frontier
from .clustering import (
    ClusteringStrategy, SinglePassKMeans, IterativeKMeans,
    sector_clusters, feature_clusters, kmeans,
)
from .personality import PersonalityAnalyzer, analyze_personality, extract_features
from .recommendations import generate_recommendations
from .engine import PortfolioRiskAnalyzer
