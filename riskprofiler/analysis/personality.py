"""Investor personality profiling from portfolio characteristics.

A fixed 16-element feature vector is extracted from the holdings and their
PortfolioMetrics. The first nine features feed a weighted risk-tolerance
score in [0, 1] which decides the personality type; the remaining labels come
from threshold rules over the same features.
"""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from riskprofiler.analysis.weights import portfolio_weights, sector_weights
from riskprofiler.models import (
    Holding,
    InvestmentHorizon,
    InvestorPersonality,
    PortfolioMetrics,
    RiskProfile,
)
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("personality")

FEATURE_NAMES: tuple[str, ...] = (
    "expected_return",
    "volatility",
    "sharpe_ratio",
    "beta",
    "correlation",
    "max_weight",
    "top3_weight",
    "unique_sectors",
    "herfindahl_index",
    "sector_concentration",
    "num_holdings",
    "var_95",
    "max_drawdown",
    "information_ratio",
    "treynor_ratio",
    "jensen_alpha",
)

Features = dict[str, float]

# (feature, weight, normaliser) for the risk-tolerance score
_TOLERANCE_TERMS: tuple[tuple[str, float, Callable[[float], float]], ...] = (
    ("expected_return", 0.15, lambda x: min(x / 0.20, 1.0)),
    ("volatility", 0.20, lambda x: min(x / 0.30, 1.0)),
    ("sharpe_ratio", 0.10, lambda x: max(0.0, min(x / 2, 1.0))),
    ("beta", 0.10, lambda x: min(x / 1.5, 1.0)),
    ("correlation", 0.05, lambda x: x),
    ("max_weight", 0.15, lambda x: x),
    ("top3_weight", 0.10, lambda x: x),
    ("unique_sectors", 0.05, lambda x: min(x / 10, 1.0)),
    ("herfindahl_index", 0.10, lambda x: x),
)

# (upper bound exclusive, type, confidence)
_TYPE_BANDS = (
    (0.3, RiskProfile.CONSERVATIVE, 0.85),
    (0.7, RiskProfile.MODERATE, 0.80),
)
_TYPE_FALLBACK = (RiskProfile.AGGRESSIVE, 0.90)

Rule = tuple[Callable[[Features], bool], str]

CHARACTERISTIC_RULES: tuple[Rule, ...] = (
    (lambda f: f["max_weight"] > 0.15, "High concentration in individual stocks"),
    (lambda f: f["top3_weight"] > 0.4, "Top-heavy portfolio allocation"),
    (lambda f: f["unique_sectors"] < 5, "Limited sector diversification"),
    (lambda f: f["herfindahl_index"] > 0.3, "High portfolio concentration"),
    (lambda f: f["sharpe_ratio"] > 1.5, "Good risk-adjusted returns"),
    (lambda f: f["volatility"] < 0.15, "Low portfolio volatility"),
)

TRAIT_RULES: tuple[Rule, ...] = (
    (lambda f: f["max_weight"] > 0.2, "Concentration bias"),
    (lambda f: f["unique_sectors"] < 4, "Sector bias"),
    (lambda f: f["sharpe_ratio"] < 0.5, "Risk-inefficient allocation"),
)

_TYPE_CHARACTERISTICS = {
    RiskProfile.CONSERVATIVE: [
        "Preference for stable, dividend-paying stocks",
        "Focus on capital preservation",
    ],
    RiskProfile.AGGRESSIVE: [
        "Willingness to take higher risks for higher returns",
        "Growth-oriented investment strategy",
    ],
}

_TYPE_TRAITS = {
    RiskProfile.CONSERVATIVE: ["Loss aversion", "Preference for familiar investments"],
    RiskProfile.AGGRESSIVE: ["Overconfidence", "Momentum chasing"],
}

_PREFERRED_SECTOR_COUNT = 3


# ---------------------------------------------------------------------------
# Feature extraction
# ---------------------------------------------------------------------------

def extract_features(holdings: Sequence[Holding], metrics: PortfolioMetrics) -> np.ndarray:
    """16-element feature vector, ordered as FEATURE_NAMES."""
    weights = portfolio_weights(holdings)
    sectors = sector_weights(holdings)
    ranked = np.sort(weights)[::-1]

    return np.array([
        metrics.expected_return,
        metrics.volatility,
        metrics.sharpe_ratio,
        metrics.beta,
        metrics.correlation,
        float(ranked[0]) if len(ranked) else 0.0,
        float(ranked[:3].sum()),
        float(len(sectors)),
        float(np.sum(weights ** 2)),
        float(sum(w * w for w in sectors.values())),
        float(len(holdings)),
        metrics.var_95,
        metrics.max_drawdown,
        metrics.information_ratio,
        metrics.treynor_ratio,
        metrics.jensen_alpha,
    ], dtype=float)


def _named(features: Sequence[float]) -> Features:
    return dict(zip(FEATURE_NAMES, (float(v) for v in features)))


def risk_tolerance(features: Sequence[float]) -> float:
    """Weighted, normalised sum of the first nine features, clamped to [0, 1]."""
    named = _named(features)
    score = sum(weight * norm(named[name]) for name, weight, norm in _TOLERANCE_TERMS)
    return max(0.0, min(1.0, score))


def personality_type(tolerance: float) -> tuple[RiskProfile, float]:
    for upper, profile, confidence in _TYPE_BANDS:
        if tolerance < upper:
            return profile, confidence
    return _TYPE_FALLBACK


def _apply_rules(rules: Sequence[Rule], features: Features) -> list[str]:
    return [label for predicate, label in rules if predicate(features)]


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class PersonalityAnalyzer:
    """Classify the investor behind a portfolio."""

    def analyze(self, holdings: Sequence[Holding], metrics: PortfolioMetrics) -> InvestorPersonality:
        features = _named(extract_features(holdings, metrics))
        tolerance = risk_tolerance(list(features.values()))
        profile, confidence = personality_type(tolerance)
        logger.debug("Risk tolerance %.3f -> %s", tolerance, profile.value)

        return InvestorPersonality(
            type=profile,
            confidence=confidence,
            risk_tolerance=tolerance,
            investment_horizon=self._horizon(features, profile),
            characteristics=(
                _apply_rules(CHARACTERISTIC_RULES, features)
                + _TYPE_CHARACTERISTICS.get(profile, [])
            ),
            preferred_sectors=self._preferred_sectors(holdings),
            behavioral_traits=(
                _apply_rules(TRAIT_RULES, features) + _TYPE_TRAITS.get(profile, [])
            ),
        )

    @staticmethod
    def _horizon(features: Features, profile: RiskProfile) -> InvestmentHorizon:
        vol, beta = features["volatility"], features["beta"]
        if profile == RiskProfile.CONSERVATIVE or (vol < 0.15 and beta < 0.8):
            return InvestmentHorizon.LONG
        if profile == RiskProfile.AGGRESSIVE or (vol > 0.25 and beta > 1.2):
            return InvestmentHorizon.SHORT
        return InvestmentHorizon.MEDIUM

    @staticmethod
    def _preferred_sectors(holdings: Sequence[Holding]) -> list[str]:
        """Highest-weighted sectors; ties keep first-appearance order."""
        ranked = sorted(sector_weights(holdings).items(), key=lambda kv: kv[1], reverse=True)
        return [sector for sector, _ in ranked[:_PREFERRED_SECTOR_COUNT]]


def analyze_personality(holdings: Sequence[Holding], metrics: PortfolioMetrics) -> InvestorPersonality:
    return PersonalityAnalyzer().analyze(holdings, metrics)
