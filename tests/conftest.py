"""Shared pytest fixtures for the RiskProfiler test suite.

Holdings mirror the sample NSE portfolio used by the dashboard; market
statistics come from the built-in reference tables. Nothing here touches the
network or the settings file.
"""

import numpy as np
import pandas as pd
import pytest

from riskprofiler.data_sources.market_stats import MarketStatisticsProvider
from riskprofiler.models import Holding


def _holding(symbol, quantity, price, sector, name=None):
    return Holding(
        symbol=symbol,
        name=name or symbol,
        quantity=quantity,
        current_price=price,
        total_value=quantity * price,
        sector=sector,
    )


# ---------------------------------------------------------------------------
# 1. Holdings fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_holdings():
    """Eight-stock NSE portfolio, total value 1,497,000 across four sectors."""
    return [
        _holding("RELIANCE", 100, 2500, "Oil & Gas", "Reliance Industries Ltd"),
        _holding("TCS", 50, 3500, "IT", "Tata Consultancy Services"),
        _holding("HDFCBANK", 200, 1600, "Banking", "HDFC Bank Ltd"),
        _holding("INFY", 150, 1400, "IT", "Infosys Ltd"),
        _holding("ICICIBANK", 100, 900, "Banking", "ICICI Bank Ltd"),
        _holding("HINDUNILVR", 80, 2400, "FMCG", "Hindustan Unilever Ltd"),
        _holding("ITC", 200, 400, "FMCG", "ITC Ltd"),
        _holding("SBIN", 300, 600, "Banking", "State Bank of India"),
    ]


@pytest.fixture
def two_holdings():
    """RELIANCE 250,000 (Oil & Gas) + TCS 175,000 (IT)."""
    return [
        _holding("RELIANCE", 100, 2500, "Oil & Gas"),
        _holding("TCS", 50, 3500, "IT"),
    ]


@pytest.fixture
def diversified_holdings():
    """Ten equal positions in ten different sectors (10% each)."""
    sectors = [
        "Oil & Gas", "IT", "Banking", "FMCG", "Healthcare", "Automobiles",
        "Consumer Goods", "Financial Services", "Construction Materials",
        "Telecommunications",
    ]
    return [_holding(f"SYM{i}", 10, 1000, sector) for i, sector in enumerate(sectors)]


# ---------------------------------------------------------------------------
# 2. Market statistics fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def reference_stats():
    return MarketStatisticsProvider.reference()


@pytest.fixture
def sample_returns_frame():
    """Daily returns for three symbols with 252 observations, seeded at 42."""
    rng = np.random.default_rng(42)
    n = 252
    dates = pd.bdate_range(start="2023-01-02", periods=n)
    base = rng.normal(0.0004, 0.01, n)
    return pd.DataFrame(
        {
            "AAA": base + rng.normal(0, 0.005, n),
            "BBB": base + rng.normal(0, 0.005, n),
            "CCC": rng.normal(0.0002, 0.012, n),
        },
        index=dates,
    )
