"""Tests for riskprofiler.analysis.personality -- features, tolerance, profiling."""

import numpy as np
import pytest

from riskprofiler.analysis.personality import (
    FEATURE_NAMES,
    PersonalityAnalyzer,
    analyze_personality,
    extract_features,
    personality_type,
    risk_tolerance,
)
from riskprofiler.models import Holding, InvestmentHorizon, PortfolioMetrics, RiskProfile


def _make_metrics(**kwargs):
    return PortfolioMetrics(**kwargs)


class TestExtractFeatures:

    def test_length_and_names(self, two_holdings):
        features = extract_features(two_holdings, _make_metrics())
        assert features.shape == (16,)
        assert len(FEATURE_NAMES) == 16

    def test_weight_features(self, two_holdings):
        named = dict(zip(FEATURE_NAMES, extract_features(two_holdings, _make_metrics())))
        w1, w2 = 250000 / 425000, 175000 / 425000
        assert named["max_weight"] == pytest.approx(w1)
        assert named["top3_weight"] == pytest.approx(1.0)
        assert named["unique_sectors"] == 2
        assert named["herfindahl_index"] == pytest.approx(w1 ** 2 + w2 ** 2)
        assert named["sector_concentration"] == pytest.approx(w1 ** 2 + w2 ** 2)
        assert named["num_holdings"] == 2

    def test_sector_concentration_differs_from_herfindahl(self, sample_holdings):
        named = dict(zip(FEATURE_NAMES, extract_features(sample_holdings, _make_metrics())))
        assert named["sector_concentration"] > named["herfindahl_index"]
        assert named["top3_weight"] == pytest.approx((320000 + 250000 + 210000) / 1497000)

    def test_metric_features_copied(self, two_holdings):
        metrics = _make_metrics(expected_return=0.1, volatility=0.2, sharpe_ratio=0.3, beta=0.9,
                                correlation=0.5, var_95=-0.2, max_drawdown=0.25,
                                information_ratio=-0.1, treynor_ratio=0.04, jensen_alpha=0.01)
        named = dict(zip(FEATURE_NAMES, extract_features(two_holdings, metrics)))
        for name in ("expected_return", "volatility", "sharpe_ratio", "beta", "correlation",
                     "var_95", "max_drawdown", "information_ratio", "treynor_ratio",
                     "jensen_alpha"):
            assert named[name] == getattr(metrics, name)

    def test_empty_holdings(self):
        features = extract_features([], _make_metrics())
        assert np.all(features == 0.0)


class TestRiskTolerance:

    def test_zero_features(self):
        assert risk_tolerance(np.zeros(16)) == 0.0

    def test_saturated_features_clamp_to_one(self):
        assert risk_tolerance(np.full(16, 100.0)) == 1.0

    def test_weighted_sum(self):
        # only the expected-return term: 0.15 * (0.1 / 0.2)
        features = np.zeros(16)
        features[0] = 0.1
        assert risk_tolerance(features) == pytest.approx(0.075)

    def test_negative_sharpe_floored(self):
        features = np.zeros(16)
        features[2] = -3.0
        assert risk_tolerance(features) == 0.0

    @pytest.mark.parametrize("tolerance, expected", [
        (0.0, (RiskProfile.CONSERVATIVE, 0.85)),
        (0.2999, (RiskProfile.CONSERVATIVE, 0.85)),
        (0.3, (RiskProfile.MODERATE, 0.80)),
        (0.6999, (RiskProfile.MODERATE, 0.80)),
        (0.7, (RiskProfile.AGGRESSIVE, 0.90)),
        (1.0, (RiskProfile.AGGRESSIVE, 0.90)),
    ])
    def test_type_bands(self, tolerance, expected):
        assert personality_type(tolerance) == expected


class TestPersonalityAnalyzer:

    def test_aggressive_single_stock(self):
        holdings = [Holding(symbol="X", total_value=1000.0, sector="IT")]
        metrics = _make_metrics(expected_return=0.3, volatility=0.35, sharpe_ratio=2.0,
                                beta=1.5, correlation=1.0)
        p = PersonalityAnalyzer().analyze(holdings, metrics)
        assert p.risk_tolerance == pytest.approx(0.955)
        assert p.type == RiskProfile.AGGRESSIVE
        assert p.confidence == 0.90
        assert p.investment_horizon == InvestmentHorizon.SHORT
        assert p.characteristics == [
            "High concentration in individual stocks",
            "Top-heavy portfolio allocation",
            "Limited sector diversification",
            "High portfolio concentration",
            "Good risk-adjusted returns",
            "Willingness to take higher risks for higher returns",
            "Growth-oriented investment strategy",
        ]
        assert p.behavioral_traits == [
            "Concentration bias", "Sector bias", "Overconfidence", "Momentum chasing",
        ]
        assert p.preferred_sectors == ["IT"]

    def test_conservative_diversified(self, diversified_holdings):
        p = analyze_personality(diversified_holdings, _make_metrics())
        assert p.risk_tolerance == pytest.approx(0.105)
        assert p.type == RiskProfile.CONSERVATIVE
        assert p.confidence == 0.85
        assert p.investment_horizon == InvestmentHorizon.LONG
        assert p.characteristics == [
            "Low portfolio volatility",
            "Preference for stable, dividend-paying stocks",
            "Focus on capital preservation",
        ]
        assert p.behavioral_traits == [
            "Risk-inefficient allocation", "Loss aversion", "Preference for familiar investments",
        ]

    def test_moderate_medium_horizon(self, diversified_holdings):
        metrics = _make_metrics(expected_return=0.2, volatility=0.2, beta=1.0, sharpe_ratio=0.7)
        p = analyze_personality(diversified_holdings, metrics)
        assert p.type == RiskProfile.MODERATE
        assert p.confidence == 0.80
        assert p.investment_horizon == InvestmentHorizon.MEDIUM
        assert p.characteristics == []
        assert p.behavioral_traits == []

    def test_moderate_long_horizon_when_calm(self, diversified_holdings):
        metrics = _make_metrics(expected_return=0.3, volatility=0.1, beta=0.5, sharpe_ratio=2.0,
                                correlation=1.0)
        p = analyze_personality(diversified_holdings, metrics)
        assert p.type == RiskProfile.MODERATE
        assert p.investment_horizon == InvestmentHorizon.LONG

    def test_preferred_sectors_top_three(self, sample_holdings):
        p = analyze_personality(sample_holdings, _make_metrics())
        assert p.preferred_sectors == ["Banking", "IT", "FMCG"]

    def test_empty_holdings(self):
        p = analyze_personality([], _make_metrics())
        assert p.type == RiskProfile.CONSERVATIVE
        assert p.preferred_sectors == []
        assert 0.0 <= p.risk_tolerance <= 1.0
