"""Tests for riskprofiler.analysis.monte_carlo and analysis.variates."""

import math
import threading
import tracemalloc

import numpy as np
import pytest

from riskprofiler.analysis.monte_carlo import MonteCarloSimulator, _percentile, run_monte_carlo
from riskprofiler.analysis.variates import (
    GaussianGenerator,
    IrwinHallGenerator,
    get_variate_generator,
)
from riskprofiler.data_sources.market_stats import MarketStatisticsProvider
from riskprofiler.models import Holding


def _make_simulator(stats, **kwargs):
    kwargs.setdefault("variate_generator", IrwinHallGenerator())
    kwargs.setdefault("max_workers", 2)
    kwargs.setdefault("chunk_size", 50)
    return MonteCarloSimulator(stats=stats, **kwargs)


# ---------------------------------------------------------------------------
# Variate generators
# ---------------------------------------------------------------------------

class TestVariateGenerators:

    def test_irwin_hall_reference_scale(self):
        rng = np.random.default_rng(0)
        z = IrwinHallGenerator().standard_normal(rng, 200_000)
        bound = 2 / math.sqrt(12)
        assert z.min() >= -bound and z.max() <= bound
        assert z.mean() == pytest.approx(0.0, abs=0.005)
        # four uniforms summed: variance 4/12, scaled by 1/12
        assert z.std() == pytest.approx(1 / 6, rel=0.02)

    def test_irwin_hall_standardized(self):
        rng = np.random.default_rng(0)
        z = IrwinHallGenerator.standardized().standard_normal(rng, 200_000)
        assert z.std() == pytest.approx(1.0, rel=0.02)

    def test_irwin_hall_shape(self):
        rng = np.random.default_rng(0)
        assert IrwinHallGenerator().standard_normal(rng, (3, 4, 5)).shape == (3, 4, 5)

    def test_gaussian(self):
        rng = np.random.default_rng(0)
        z = GaussianGenerator().standard_normal(rng, 100_000)
        assert z.std() == pytest.approx(1.0, rel=0.02)

    def test_registry(self):
        assert isinstance(get_variate_generator("irwin_hall"), IrwinHallGenerator)
        assert isinstance(get_variate_generator("gaussian"), GaussianGenerator)
        with pytest.raises(ValueError, match="Unknown variate generator"):
            get_variate_generator("box_muller")

    def test_terms_validated(self):
        with pytest.raises(ValueError):
            IrwinHallGenerator(terms=0)


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

class TestSimulate:

    def test_single_scenario_collapses(self, reference_stats, two_holdings):
        result = _make_simulator(reference_stats).simulate(
            two_holdings, horizon_days=30, num_scenarios=1, seed=7)
        p = result.percentiles
        values = {p.p5, p.p25, p.p50, p.p75, p.p95,
                  result.expected_value, result.worst_case, result.best_case}
        assert len(values) == 1

    def test_percentiles_monotone(self, reference_stats, sample_holdings):
        result = _make_simulator(reference_stats).simulate(
            sample_holdings, horizon_days=60, num_scenarios=500, seed=1)
        p = result.percentiles
        assert result.worst_case <= p.p5 <= p.p25 <= p.p50 <= p.p75 <= p.p95 <= result.best_case
        assert result.worst_case <= result.expected_value <= result.best_case

    def test_percentile_index(self):
        # index floor(n * p) on the sorted values
        values = np.arange(10, dtype=float)
        assert _percentile(values, 0.05) == 0.0
        assert _percentile(values, 0.25) == 2.0
        assert _percentile(values, 0.50) == 5.0
        assert _percentile(values, 0.95) == 9.0

    def test_zero_volatility_is_deterministic_growth(self):
        stats = MarketStatisticsProvider(returns={"FLAT": [0.5, 0.5]})
        holdings = [Holding(symbol="FLAT", total_value=1000.0, sector="IT")]
        result = _make_simulator(stats).simulate(holdings, horizon_days=3, num_scenarios=20, seed=3)
        assert result.expected_value == pytest.approx(1000.0 * 1.5 ** 3)
        assert result.worst_case == pytest.approx(result.best_case)

    def test_seed_reproducible_across_worker_counts(self, reference_stats, sample_holdings):
        a = _make_simulator(reference_stats, max_workers=1).simulate(
            sample_holdings, horizon_days=20, num_scenarios=230, seed=42)
        b = _make_simulator(reference_stats, max_workers=4).simulate(
            sample_holdings, horizon_days=20, num_scenarios=230, seed=42)
        assert a.to_dict() == b.to_dict()

    def test_different_seeds_differ(self, reference_stats, two_holdings):
        sim = _make_simulator(reference_stats)
        a = sim.simulate(two_holdings, horizon_days=20, num_scenarios=100, seed=1)
        b = sim.simulate(two_holdings, horizon_days=20, num_scenarios=100, seed=2)
        assert a.expected_value != b.expected_value

    def test_include_paths(self, reference_stats, two_holdings):
        result = _make_simulator(reference_stats).simulate(
            two_holdings, horizon_days=10, num_scenarios=120, seed=5, include_paths=True)
        assert result.scenarios.shape == (120, 11)
        assert np.all(result.scenarios[:, 0] == 425000)
        assert result.best_case == pytest.approx(result.scenarios[:, -1].max())

    def test_paths_omitted_by_default(self, reference_stats, two_holdings):
        result = _make_simulator(reference_stats).simulate(
            two_holdings, horizon_days=10, num_scenarios=10, seed=5)
        assert result.scenarios is None
        assert "scenarios" not in result.to_dict()

    def test_result_metadata(self, reference_stats, two_holdings):
        result = _make_simulator(reference_stats).simulate(
            two_holdings, horizon_days=10, num_scenarios=75, seed=5)
        assert result.initial_value == 425000
        assert result.num_scenarios == 75
        assert result.horizon_days == 10

    def test_empty_holdings(self, reference_stats):
        result = _make_simulator(reference_stats).simulate([], horizon_days=5, num_scenarios=10, seed=0)
        assert result.expected_value == 0.0
        assert result.percentiles.p50 == 0.0

    def test_cancelled_returns_none(self, reference_stats, two_holdings):
        cancel = threading.Event()
        cancel.set()
        result = _make_simulator(reference_stats).simulate(
            two_holdings, horizon_days=10, num_scenarios=100, seed=1, cancel_event=cancel)
        assert result is None

    @pytest.mark.parametrize("kwargs", [
        {"num_scenarios": 0},
        {"num_scenarios": -5},
        {"horizon_days": 0},
    ])
    def test_invalid_arguments(self, reference_stats, two_holdings, kwargs):
        with pytest.raises(ValueError):
            _make_simulator(reference_stats).simulate(two_holdings, **kwargs)

    def test_run_monte_carlo_wrapper(self, reference_stats, two_holdings):
        result = run_monte_carlo(two_holdings, stats=reference_stats, horizon_days=5,
                                 num_scenarios=40, seed=9, chunk_size=10)
        assert result.num_scenarios == 40


# ---------------------------------------------------------------------------
# Construction and resource use
# ---------------------------------------------------------------------------

class TestSimulatorSettings:

    @pytest.mark.parametrize("kwargs", [
        {"chunk_size": 0},
        {"chunk_size": -1},
        {"max_workers": 0},
    ])
    def test_explicit_zero_rejected(self, reference_stats, kwargs):
        with pytest.raises(ValueError):
            MonteCarloSimulator(stats=reference_stats, **kwargs)

    def test_defaults_from_settings(self, reference_stats):
        sim = MonteCarloSimulator(stats=reference_stats)
        assert sim.chunk_size == 500
        assert sim.max_workers == 4

    def test_peak_memory_independent_of_horizon(self):
        stats = MarketStatisticsProvider()
        holdings = [Holding(symbol=f"S{i}", total_value=1000.0, sector="IT") for i in range(100)]
        sim = MonteCarloSimulator(stats=stats, variate_generator=IrwinHallGenerator(),
                                  max_workers=1, chunk_size=500)
        tracemalloc.start()
        try:
            result = sim.simulate(holdings, horizon_days=252, num_scenarios=500, seed=0)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        assert result.num_scenarios == 500
        # one day of uniform draws for 500 x 100 x 4 terms is 1.6 MB
        assert peak < 20_000_000
