"""Market statistics provider - per-symbol return history and sector tables.

The core never fetches market data. A provider is built from a static table
(the reference NSE data below), from settings overrides, or from a return
DataFrame supplied by the caller, and is then queried by the analysis
engines. Every query degrades to a documented fallback constant for unknown
symbols and sectors.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

import pandas as pd

from riskprofiler.models import UNKNOWN_SECTOR
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("market_stats")

# ---------------------------------------------------------------------------
# Fallbacks for symbols / sectors without data
# ---------------------------------------------------------------------------
FALLBACK_RETURN = 0.08
FALLBACK_VARIANCE = 0.04
FALLBACK_VOLATILITY = 0.20
FALLBACK_BETA = 1.0
FALLBACK_MARKET_CORRELATION = 0.6
FALLBACK_DRAWDOWN = 0.20
FALLBACK_PAIR_CORRELATION = 0.3

# ---------------------------------------------------------------------------
# Reference data (NSE large caps)
# ---------------------------------------------------------------------------
REFERENCE_RETURNS: dict[str, list[float]] = {
    "RELIANCE": [0.02, -0.01, 0.03, -0.02, 0.01, 0.04, -0.01, 0.02, 0.01, -0.03],
    "TCS": [0.01, 0.02, -0.01, 0.03, 0.01, -0.02, 0.02, 0.01, 0.03, -0.01],
    "HDFCBANK": [0.015, -0.005, 0.025, -0.015, 0.005, 0.035, -0.005, 0.015, 0.005, -0.025],
    "INFY": [0.012, 0.018, -0.008, 0.028, 0.008, -0.018, 0.018, 0.008, 0.028, -0.008],
    "ICICIBANK": [0.018, -0.008, 0.032, -0.018, 0.008, 0.042, -0.008, 0.018, 0.008, -0.032],
    "HINDUNILVR": [0.008, 0.012, -0.005, 0.022, 0.005, -0.012, 0.012, 0.005, 0.022, -0.005],
    "ITC": [0.006, 0.010, -0.004, 0.020, 0.004, -0.010, 0.010, 0.004, 0.020, -0.004],
    "SBIN": [0.020, -0.010, 0.040, -0.020, 0.010, 0.050, -0.010, 0.020, 0.010, -0.040],
}

DEFAULT_SECTOR_BETAS: dict[str, float] = {
    "Oil & Gas": 1.2,
    "IT": 0.8,
    "Banking": 1.1,
    "FMCG": 0.6,
    "Healthcare": 0.9,
    "Automobiles": 1.3,
    "Consumer Goods": 0.7,
    "Financial Services": 1.0,
    "Construction Materials": 1.4,
    "Telecommunications": 0.9,
}

DEFAULT_SECTOR_MARKET_CORRELATIONS: dict[str, float] = {
    "Oil & Gas": 0.7,
    "IT": 0.5,
    "Banking": 0.8,
    "FMCG": 0.3,
    "Healthcare": 0.4,
    "Automobiles": 0.9,
    "Consumer Goods": 0.4,
    "Financial Services": 0.8,
    "Construction Materials": 0.9,
    "Telecommunications": 0.6,
}

# Historical peak-to-trough drawdown, as a positive fraction
DEFAULT_SECTOR_DRAWDOWNS: dict[str, float] = {
    "Oil & Gas": 0.25,
    "IT": 0.15,
    "Banking": 0.30,
    "FMCG": 0.10,
    "Healthcare": 0.20,
    "Automobiles": 0.35,
    "Consumer Goods": 0.12,
    "Financial Services": 0.28,
    "Construction Materials": 0.40,
    "Telecommunications": 0.18,
}

_SECTOR_ORDER = (
    "Oil & Gas", "IT", "Banking", "FMCG", "Healthcare", "Automobiles",
    "Consumer Goods", "Financial Services", "Construction Materials",
    "Telecommunications",
)
# Rows/columns follow _SECTOR_ORDER; the table is symmetric.
_SECTOR_PAIR_ROWS = (
    (1.0, 0.2, 0.4, 0.1, 0.1, 0.3, 0.1, 0.4, 0.5, 0.2),
    (0.2, 1.0, 0.3, 0.1, 0.2, 0.1, 0.2, 0.3, 0.1, 0.4),
    (0.4, 0.3, 1.0, 0.2, 0.1, 0.3, 0.2, 0.8, 0.3, 0.2),
    (0.1, 0.1, 0.2, 1.0, 0.3, 0.2, 0.6, 0.2, 0.1, 0.1),
    (0.1, 0.2, 0.1, 0.3, 1.0, 0.1, 0.2, 0.1, 0.1, 0.1),
    (0.3, 0.1, 0.3, 0.2, 0.1, 1.0, 0.4, 0.3, 0.5, 0.1),
    (0.1, 0.2, 0.2, 0.6, 0.2, 0.4, 1.0, 0.2, 0.2, 0.1),
    (0.4, 0.3, 0.8, 0.2, 0.1, 0.3, 0.2, 1.0, 0.3, 0.2),
    (0.5, 0.1, 0.3, 0.1, 0.1, 0.5, 0.2, 0.3, 1.0, 0.1),
    (0.2, 0.4, 0.2, 0.1, 0.1, 0.1, 0.1, 0.2, 0.1, 1.0),
)
DEFAULT_SECTOR_PAIR_CORRELATIONS: dict[str, dict[str, float]] = {
    row_sector: dict(zip(_SECTOR_ORDER, row))
    for row_sector, row in zip(_SECTOR_ORDER, _SECTOR_PAIR_ROWS)
}

# Sector names match the keys of the sector tables above.
DEFAULT_SYMBOL_SECTORS: dict[str, str] = {
    "RELIANCE": "Oil & Gas",
    "TCS": "IT",
    "HDFCBANK": "Banking",
    "INFY": "IT",
    "ICICIBANK": "Banking",
    "HINDUNILVR": "FMCG",
    "ITC": "FMCG",
    "SBIN": "Banking",
    "BHARTIARTL": "Telecommunications",
    "KOTAKBANK": "Banking",
    "AXISBANK": "Banking",
    "ASIANPAINT": "Consumer Goods",
    "MARUTI": "Automobiles",
    "SUNPHARMA": "Healthcare",
    "TATAMOTORS": "Automobiles",
    "WIPRO": "IT",
    "ULTRACEMCO": "Construction Materials",
    "TITAN": "Consumer Goods",
    "BAJFINANCE": "Financial Services",
    "NESTLEIND": "FMCG",
}


def _merge_pair_table(
    base: Mapping[str, Mapping[str, float]],
    override: Mapping[str, Mapping[str, float]] | None,
) -> dict[str, dict[str, float]]:
    merged = {k: dict(v) for k, v in base.items()}
    for sector, row in (override or {}).items():
        merged.setdefault(sector, {}).update(row)
        # keep the table symmetric
        for other, value in row.items():
            merged.setdefault(other, {})[sector] = value
    return merged


class MarketStatisticsProvider:
    """Per-symbol return history plus sector -> statistic lookup tables.

    Args:
        returns: Historical per-period returns, either ``{symbol: [r, ...]}``
            or a DataFrame with one column per symbol.
        sector_betas / sector_market_correlations / sector_drawdowns:
            Overrides merged over the reference sector tables.
        sector_pair_correlations: Nested ``{sector: {sector: rho}}`` overrides.
        symbol_sectors: Overrides for the symbol -> sector map.
    """

    def __init__(
        self,
        returns: Mapping[str, Sequence[float]] | pd.DataFrame | None = None,
        sector_betas: Mapping[str, float] | None = None,
        sector_market_correlations: Mapping[str, float] | None = None,
        sector_drawdowns: Mapping[str, float] | None = None,
        sector_pair_correlations: Mapping[str, Mapping[str, float]] | None = None,
        symbol_sectors: Mapping[str, str] | None = None,
    ) -> None:
        self._returns: dict[str, pd.Series] = {}
        if isinstance(returns, pd.DataFrame):
            for col in returns.columns:
                self._returns[str(col)] = returns[col].dropna().astype(float)
        elif returns:
            for symbol, series in returns.items():
                self._returns[str(symbol)] = pd.Series(list(series), dtype=float).dropna()

        self.sector_betas = {**DEFAULT_SECTOR_BETAS, **(sector_betas or {})}
        self.sector_market_correlations = {
            **DEFAULT_SECTOR_MARKET_CORRELATIONS, **(sector_market_correlations or {})
        }
        self.sector_drawdowns = {**DEFAULT_SECTOR_DRAWDOWNS, **(sector_drawdowns or {})}
        self.sector_pair_correlations = _merge_pair_table(
            DEFAULT_SECTOR_PAIR_CORRELATIONS, sector_pair_correlations
        )
        self.symbol_sectors = {**DEFAULT_SYMBOL_SECTORS, **(symbol_sectors or {})}

    # ------------------------------------------------------------------
    #  Constructors
    # ------------------------------------------------------------------
    @classmethod
    def reference(cls) -> MarketStatisticsProvider:
        """Provider backed by the built-in reference tables."""
        return cls(returns=REFERENCE_RETURNS)

    @classmethod
    def from_settings(cls, settings: dict | None = None) -> MarketStatisticsProvider:
        """Reference tables with the ``market`` section of *settings* merged on top."""
        if settings is None:
            from riskprofiler.config import SETTINGS
            settings = SETTINGS
        market = settings.get("market") or {}
        returns = {**REFERENCE_RETURNS, **(market.get("returns") or {})}
        return cls(
            returns=returns,
            sector_betas=market.get("sector_betas"),
            sector_market_correlations=market.get("sector_market_correlations"),
            sector_drawdowns=market.get("sector_drawdowns"),
            sector_pair_correlations=market.get("sector_pair_correlations"),
            symbol_sectors=market.get("symbol_sectors"),
        )

    # ------------------------------------------------------------------
    #  Symbol statistics
    # ------------------------------------------------------------------
    @property
    def symbols(self) -> list[str]:
        return list(self._returns)

    def has_history(self, symbol: str) -> bool:
        return len(self._returns.get(symbol, ())) > 0

    def return_series(self, symbol: str) -> pd.Series:
        """Return series for *symbol* (empty when unknown)."""
        return self._returns.get(symbol, pd.Series(dtype=float))

    def returns_frame(self, symbols: Sequence[str]) -> pd.DataFrame:
        """Return series aligned by observation index, one column per symbol.

        Symbols without history appear as all-NaN columns.
        """
        frame = pd.DataFrame({s: self.return_series(s) for s in dict.fromkeys(symbols)})
        return frame.reindex(columns=list(dict.fromkeys(symbols)))

    def expected_return(self, symbol: str) -> float:
        """Mean of the return series, FALLBACK_RETURN for unknown symbols."""
        if not self.has_history(symbol):
            logger.debug("No return history for %s, using %.2f", symbol, FALLBACK_RETURN)
            return FALLBACK_RETURN
        return float(self._returns[symbol].mean())

    def variance(self, symbol: str) -> float:
        """Population variance of the return series, FALLBACK_VARIANCE when unknown."""
        if not self.has_history(symbol):
            return FALLBACK_VARIANCE
        return float(self._returns[symbol].var(ddof=0))

    def volatility(self, symbol: str) -> float:
        if not self.has_history(symbol):
            return FALLBACK_VOLATILITY
        return math.sqrt(self.variance(symbol))

    # ------------------------------------------------------------------
    #  Sector statistics
    # ------------------------------------------------------------------
    def sector_beta(self, sector: str) -> float:
        return float(self.sector_betas.get(sector, FALLBACK_BETA))

    def market_correlation(self, sector: str) -> float:
        return float(self.sector_market_correlations.get(sector, FALLBACK_MARKET_CORRELATION))

    def sector_drawdown(self, sector: str) -> float:
        return float(self.sector_drawdowns.get(sector, FALLBACK_DRAWDOWN))

    def sector_correlation(self, sector_a: str, sector_b: str) -> float:
        """Pairwise sector correlation from the lookup table."""
        return float(
            self.sector_pair_correlations.get(sector_a, {}).get(sector_b, FALLBACK_PAIR_CORRELATION)
        )

    def sector_for(self, symbol: str) -> str:
        return self.symbol_sectors.get(symbol, UNKNOWN_SECTOR)
