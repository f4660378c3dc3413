"""Tests for riskprofiler.models."""

import numpy as np
import pytest

from riskprofiler.models import (
    UNKNOWN_SECTOR,
    FrontierPoint,
    Holding,
    MonteCarloResult,
    Percentiles,
    Priority,
    RiskProfile,
    coerce_holdings,
)


class TestHolding:

    def test_total_value_derived(self):
        h = Holding.from_dict({"symbol": "TCS", "quantity": 50, "current_price": 3500})
        assert h.total_value == 175000.0
        assert h.name == "TCS"
        assert h.sector == UNKNOWN_SECTOR

    def test_explicit_total_value_kept(self):
        h = Holding.from_dict({"symbol": "TCS", "quantity": 1, "current_price": 1,
                               "total_value": 99.0})
        assert h.total_value == 99.0

    def test_missing_symbol(self):
        with pytest.raises(ValueError, match="missing a symbol"):
            Holding.from_dict({"quantity": 1})

    def test_sector_lookup_only_when_absent(self):
        lookup = {"INFY": "IT"}.get
        assert Holding.from_dict({"symbol": "INFY"}, lookup).sector == "IT"
        assert Holding.from_dict({"symbol": "INFY", "sector": "Tech"}, lookup).sector == "Tech"

    def test_coerce_mixed(self):
        h = Holding(symbol="A", total_value=1.0, sector="IT")
        out = coerce_holdings([h, {"symbol": "B", "total_value": 2.0}])
        assert out[0] is h
        assert out[1].symbol == "B"


class TestSerialisation:

    def test_enums_compare_to_strings(self):
        assert RiskProfile.AGGRESSIVE == "Aggressive"
        assert Priority.HIGH.rank > Priority.MEDIUM.rank > Priority.LOW.rank

    def test_frontier_point_uses_return_key(self):
        assert FrontierPoint(risk=0.1, expected_return=0.2).to_dict() == {"risk": 0.1, "return": 0.2}

    def test_scenarios_only_when_present(self):
        pct = Percentiles(1.0, 2.0, 3.0, 4.0, 5.0)
        result = MonteCarloResult(pct, 3.0, 1.0, 5.0, 2.0, 2, 1)
        assert "scenarios" not in result.to_dict()
        result.scenarios = np.array([[2.0, 1.0], [2.0, 5.0]])
        assert result.to_dict()["scenarios"] == [[2.0, 1.0], [2.0, 5.0]]
