"""Monte Carlo simulation of portfolio value paths.

Each scenario walks ``horizon_days`` steps. At every step each holding draws
``r = mu + sigma * Z`` from its own return statistics, the portfolio return
is the weighted sum, and the path value compounds multiplicatively.

Scenarios are independent, so they are split into fixed-size chunks and
run on a thread pool. Every chunk gets its own child generator spawned from
one ``SeedSequence``; a seeded run therefore gives the same result for any
number of workers.
"""

from __future__ import annotations

import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import numpy as np

from riskprofiler.analysis.variates import RandomVariateGenerator, get_variate_generator
from riskprofiler.analysis.weights import portfolio_weights, total_value
from riskprofiler.config import analytics_setting
from riskprofiler.data_sources.market_stats import MarketStatisticsProvider
from riskprofiler.models import Holding, MonteCarloResult, Percentiles
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("monte_carlo")

_PERCENTILES = (("p5", 0.05), ("p25", 0.25), ("p50", 0.50), ("p75", 0.75), ("p95", 0.95))


def _percentile(sorted_values: np.ndarray, p: float) -> float:
    """Value at index ``floor(n * p)`` of an ascending array."""
    n = len(sorted_values)
    return float(sorted_values[min(int(math.floor(n * p)), n - 1)])


class MonteCarloSimulator:
    """Simulate end-of-horizon portfolio values.

    Args:
        stats: Market statistics used for per-symbol mean and volatility.
        variate_generator: Source of standard-normal draws
            (default ``analytics.monte_carlo.variate``).
        max_workers: Thread pool size (default ``analytics.monte_carlo.max_workers``).
        chunk_size: Scenarios per task (default ``analytics.monte_carlo.chunk_size``).
    """

    def __init__(
        self,
        stats: MarketStatisticsProvider | None = None,
        variate_generator: RandomVariateGenerator | None = None,
        max_workers: int | None = None,
        chunk_size: int | None = None,
    ) -> None:
        self.stats = stats or MarketStatisticsProvider.from_settings()
        self.variate_generator = variate_generator or get_variate_generator(
            analytics_setting("monte_carlo", "variate", default="irwin_hall")
        )
        self.max_workers = (
            max_workers if max_workers is not None
            else analytics_setting("monte_carlo", "max_workers", default=4)
        )
        self.chunk_size = (
            chunk_size if chunk_size is not None
            else analytics_setting("monte_carlo", "chunk_size", default=500)
        )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {self.chunk_size}")

    # ------------------------------------------------------------------
    #  Main entry point
    # ------------------------------------------------------------------
    def simulate(
        self,
        holdings: Sequence[Holding],
        horizon_days: int = 252,
        num_scenarios: int = 5000,
        seed: int | None = None,
        include_paths: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> MonteCarloResult | None:
        """Run the simulation.

        Returns ``None`` when *cancel_event* is set before all scenarios
        finish; partial results are discarded.

        Raises:
            ValueError: if ``num_scenarios <= 0`` or ``horizon_days < 1``.
        """
        if num_scenarios <= 0:
            raise ValueError(f"num_scenarios must be positive, got {num_scenarios}")
        if horizon_days < 1:
            raise ValueError(f"horizon_days must be at least 1, got {horizon_days}")

        initial = total_value(holdings)
        weights = portfolio_weights(holdings)
        mu = np.array([self.stats.expected_return(h.symbol) for h in holdings], dtype=float)
        sigma = np.array([self.stats.volatility(h.symbol) for h in holdings], dtype=float)

        sizes = [self.chunk_size] * (num_scenarios // self.chunk_size)
        if num_scenarios % self.chunk_size:
            sizes.append(num_scenarios % self.chunk_size)
        child_seeds = np.random.SeedSequence(seed).spawn(len(sizes))

        logger.info(
            "Monte Carlo: %d scenarios x %d days x %d holdings (%d chunks, %s)",
            num_scenarios, horizon_days, len(holdings), len(sizes), self.variate_generator,
        )
        t0 = time.time()

        workers = max(1, min(self.max_workers, len(sizes)))
        executor = ThreadPoolExecutor(max_workers=workers)
        try:
            futures = [
                executor.submit(
                    self._run_chunk, np.random.default_rng(child), size, horizon_days,
                    mu, sigma, weights, initial, include_paths, cancel_event,
                )
                for child, size in zip(child_seeds, sizes)
            ]
            chunks = [f.result() for f in futures]
        except KeyboardInterrupt:
            logger.warning("Monte Carlo interrupted, shutting down executor")
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        else:
            executor.shutdown(wait=True)

        if any(c is None for c in chunks):
            logger.info("Monte Carlo cancelled after %.2fs", time.time() - t0)
            return None

        if include_paths:
            paths = np.vstack(chunks)
            final_values = paths[:, -1].copy()
        else:
            paths = None
            final_values = np.concatenate(chunks)

        final_sorted = np.sort(final_values)
        percentiles = Percentiles(**{name: _percentile(final_sorted, p) for name, p in _PERCENTILES})

        logger.info("Monte Carlo finished in %.2fs", time.time() - t0)
        return MonteCarloResult(
            percentiles=percentiles,
            expected_value=float(final_values.mean()),
            worst_case=float(final_sorted[0]),
            best_case=float(final_sorted[-1]),
            initial_value=initial,
            num_scenarios=num_scenarios,
            horizon_days=horizon_days,
            scenarios=paths,
        )

    # ------------------------------------------------------------------
    #  Worker
    # ------------------------------------------------------------------
    def _run_chunk(
        self,
        rng: np.random.Generator,
        size: int,
        horizon_days: int,
        mu: np.ndarray,
        sigma: np.ndarray,
        weights: np.ndarray,
        initial: float,
        keep_paths: bool,
        cancel_event: threading.Event | None,
    ) -> np.ndarray | None:
        """Simulate *size* scenarios; final values, or full paths if *keep_paths*.

        Walks the horizon one day at a time so memory stays at
        ``size x holdings`` draws per step, whatever the horizon.
        """
        n = len(mu)
        value = np.full(size, initial, dtype=float)
        paths = None
        if keep_paths:
            paths = np.empty((size, horizon_days + 1))
            paths[:, 0] = initial

        for day in range(1, horizon_days + 1):
            if cancel_event is not None and cancel_event.is_set():
                return None
            returns = self.variate_generator.standard_normal(rng, (size, n))
            returns *= sigma
            returns += mu
            value *= 1.0 + returns @ weights
            if paths is not None:
                paths[:, day] = value

        return paths if paths is not None else value


def run_monte_carlo(
    holdings: Sequence[Holding],
    stats: MarketStatisticsProvider | None = None,
    horizon_days: int = 252,
    num_scenarios: int = 5000,
    seed: int | None = None,
    **kwargs,
) -> MonteCarloResult | None:
    simulator = MonteCarloSimulator(
        stats=stats,
        variate_generator=kwargs.pop("variate_generator", None),
        max_workers=kwargs.pop("max_workers", None),
        chunk_size=kwargs.pop("chunk_size", None),
    )
    return simulator.simulate(holdings, horizon_days=horizon_days,
                              num_scenarios=num_scenarios, seed=seed, **kwargs)
