"""Rule-based portfolio recommendations.

Each rule inspects the holdings, metrics and personality independently and
yields at most one Recommendation. Rules run in a fixed order; the result is
stably sorted by priority so equal-priority items keep that order.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np

from riskprofiler.analysis.weights import portfolio_weights, sector_weights
from riskprofiler.models import (
    ExpectedImpact,
    Holding,
    InvestorPersonality,
    PortfolioMetrics,
    Priority,
    Recommendation,
    RecommendationAction,
    RecommendationType,
    RiskProfile,
)
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("recommendations")

MAX_POSITION_WEIGHT = 0.15
MAX_SECTOR_WEIGHT = 0.3
MIN_SHARPE = 0.5
MIN_SECTORS = 5
CONSERVATIVE_MAX_VOLATILITY = 0.2
AGGRESSIVE_MIN_RETURN = 0.12


class _Context:
    """Derived portfolio figures shared by the rules."""

    def __init__(self, holdings, metrics, personality):
        self.holdings = holdings
        self.metrics = metrics
        self.personality = personality
        weights = portfolio_weights(holdings)
        self.max_weight = float(weights.max()) if len(weights) else 0.0
        self.sector_weights = sector_weights(holdings)


RuleFn = Callable[[_Context], Optional[Recommendation]]


def _pct(weight: float) -> str:
    return f"{weight * 100:.1f}%"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _reduce_concentration(ctx: _Context) -> Recommendation | None:
    if ctx.max_weight <= MAX_POSITION_WEIGHT:
        return None
    return Recommendation(
        id="reduce-concentration",
        type=RecommendationType.REDUCE_RISK,
        priority=Priority.HIGH,
        title="Reduce Concentration Risk",
        description=(
            f"Your largest holding represents {_pct(ctx.max_weight)} of your portfolio, "
            "which exceeds recommended limits."
        ),
        expected_impact=ExpectedImpact(risk=-0.15, expected_return=-0.05, diversification=0.20),
        actions=[RecommendationAction(
            action="Consider reducing position size to below 10%",
            rationale="Reduces single-stock risk and improves diversification",
            expected_outcome="Lower portfolio volatility and reduced downside risk",
        )],
        confidence=0.90,
    )


def _diversify_sectors(ctx: _Context) -> Recommendation | None:
    if not ctx.sector_weights:
        return None
    # max() returns the first sector on ties
    sector = max(ctx.sector_weights, key=ctx.sector_weights.get)
    weight = ctx.sector_weights[sector]
    if weight <= MAX_SECTOR_WEIGHT:
        return None
    return Recommendation(
        id="diversify-sectors",
        type=RecommendationType.DIVERSIFY,
        priority=Priority.MEDIUM,
        title="Diversify Sector Allocation",
        description=f"Your {sector} sector represents {_pct(weight)} of your portfolio.",
        expected_impact=ExpectedImpact(risk=-0.10, expected_return=0.02, diversification=0.25),
        actions=[RecommendationAction(
            action="Consider adding positions in underrepresented sectors",
            rationale="Reduces sector-specific risk and improves portfolio resilience",
            expected_outcome="Better performance during sector rotations",
        )],
        confidence=0.85,
    )


def _improve_risk_return(ctx: _Context) -> Recommendation | None:
    if ctx.metrics.sharpe_ratio >= MIN_SHARPE:
        return None
    return Recommendation(
        id="improve-risk-return",
        type=RecommendationType.INCREASE_RETURN,
        priority=Priority.MEDIUM,
        title="Improve Risk-Adjusted Returns",
        description="Your portfolio has a low Sharpe ratio, indicating poor risk-adjusted performance.",
        expected_impact=ExpectedImpact(risk=0.05, expected_return=0.10, diversification=0.05),
        actions=[RecommendationAction(
            action="Review and potentially rebalance to higher-quality stocks",
            rationale="Focus on companies with better fundamentals and growth prospects",
            expected_outcome="Improved risk-adjusted returns over time",
        )],
        confidence=0.75,
    )


def _increase_diversification(ctx: _Context) -> Recommendation | None:
    unique_sectors = len(ctx.sector_weights)
    if unique_sectors >= MIN_SECTORS:
        return None
    return Recommendation(
        id="increase-diversification",
        type=RecommendationType.DIVERSIFY,
        priority=Priority.MEDIUM,
        title="Increase Portfolio Diversification",
        description=f"Your portfolio is concentrated in only {unique_sectors} sectors.",
        expected_impact=ExpectedImpact(risk=-0.08, expected_return=0.03, diversification=0.30),
        actions=[RecommendationAction(
            action="Consider adding positions in new sectors",
            rationale="Diversification reduces portfolio volatility and improves stability",
            expected_outcome="More consistent performance across market cycles",
        )],
        confidence=0.80,
    )


def _reduce_volatility(ctx: _Context) -> Recommendation | None:
    if not (ctx.personality.type == RiskProfile.CONSERVATIVE
            and ctx.metrics.volatility > CONSERVATIVE_MAX_VOLATILITY):
        return None
    return Recommendation(
        id="reduce-volatility",
        type=RecommendationType.REDUCE_RISK,
        priority=Priority.HIGH,
        title="Reduce Portfolio Volatility",
        description="Your portfolio volatility is high for a conservative investor.",
        expected_impact=ExpectedImpact(risk=-0.20, expected_return=-0.08, diversification=0.10),
        actions=[RecommendationAction(
            action="Consider adding defensive stocks or bonds",
            rationale="Aligns portfolio risk with your conservative investment style",
            expected_outcome="Lower portfolio volatility and more stable returns",
        )],
        confidence=0.85,
    )


def _increase_growth(ctx: _Context) -> Recommendation | None:
    if not (ctx.personality.type == RiskProfile.AGGRESSIVE
            and ctx.metrics.expected_return < AGGRESSIVE_MIN_RETURN):
        return None
    return Recommendation(
        id="increase-growth",
        type=RecommendationType.INCREASE_RETURN,
        priority=Priority.MEDIUM,
        title="Increase Growth Exposure",
        description="Your portfolio may benefit from higher-growth opportunities.",
        expected_impact=ExpectedImpact(risk=0.15, expected_return=0.15, diversification=0.05),
        actions=[RecommendationAction(
            action="Consider adding growth stocks or emerging market exposure",
            rationale="Aligns with your aggressive investment style and return objectives",
            expected_outcome="Higher potential returns, though with increased volatility",
        )],
        confidence=0.70,
    )


RULES: tuple[RuleFn, ...] = (
    _reduce_concentration,
    _diversify_sectors,
    _improve_risk_return,
    _increase_diversification,
    _reduce_volatility,
    _increase_growth,
)


def generate_recommendations(
    holdings: Sequence[Holding],
    metrics: PortfolioMetrics,
    personality: InvestorPersonality,
) -> list[Recommendation]:
    """Evaluate every rule and return the hits, highest priority first."""
    if not holdings or not np.any(portfolio_weights(holdings)):
        return []

    ctx = _Context(holdings, metrics, personality)
    hits = [rec for rec in (rule(ctx) for rule in RULES) if rec is not None]
    logger.debug("Recommendations triggered: %s", [r.id for r in hits])
    return sorted(hits, key=lambda r: r.priority.rank, reverse=True)
