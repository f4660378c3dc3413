"""Value objects exchanged by the analytics core.

Every object here is created fresh for one analytics pass and handed back to
the caller; nothing in the core mutates them after construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

import numpy as np

UNKNOWN_SECTOR = "Unknown"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class RiskProfile(str, Enum):
    CONSERVATIVE = "Conservative"
    MODERATE = "Moderate"
    AGGRESSIVE = "Aggressive"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class InvestmentHorizon(str, Enum):
    SHORT = "Short"
    MEDIUM = "Medium"
    LONG = "Long"


class RecommendationType(str, Enum):
    REBALANCE = "rebalance"
    DIVERSIFY = "diversify"
    REDUCE_RISK = "reduce_risk"
    INCREASE_RETURN = "increase_return"
    SECTOR_SHIFT = "sector_shift"


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


# ---------------------------------------------------------------------------
# Holdings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Holding:
    """One position in the portfolio snapshot.

    ``total_value`` is authoritative; the producer is responsible for keeping
    it equal to ``quantity * current_price``.
    """

    symbol: str
    name: str = ""
    quantity: float = 0.0
    current_price: float = 0.0
    total_value: float = 0.0
    sector: str = UNKNOWN_SECTOR

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        sector_lookup: Callable[[str], str] | None = None,
    ) -> Holding:
        if not data.get("symbol"):
            raise ValueError(f"Holding is missing a symbol: {dict(data)!r}")
        symbol = str(data["symbol"])
        quantity = float(data.get("quantity") or 0.0)
        price = float(data.get("current_price") or 0.0)
        total = data.get("total_value")
        total_value = float(total) if total is not None else quantity * price

        sector = data.get("sector")
        if not sector and sector_lookup is not None:
            sector = sector_lookup(symbol)
        return cls(
            symbol=symbol,
            name=str(data.get("name") or symbol),
            quantity=quantity,
            current_price=price,
            total_value=total_value,
            sector=sector or UNKNOWN_SECTOR,
        )

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "quantity": self.quantity,
            "current_price": self.current_price,
            "total_value": self.total_value,
            "sector": self.sector,
        }


def coerce_holdings(
    items: Iterable[Holding | Mapping[str, Any]],
    sector_lookup: Callable[[str], str] | None = None,
) -> list[Holding]:
    """Accept Holding objects or producer dicts and return a list of Holding."""
    return [
        item if isinstance(item, Holding) else Holding.from_dict(item, sector_lookup)
        for item in items
    ]


# ---------------------------------------------------------------------------
# Risk score
# ---------------------------------------------------------------------------

@dataclass
class SectorAllocation:
    sector: str
    value: float
    percentage: float   # 0-100, 2dp

    def to_dict(self) -> dict:
        return {"sector": self.sector, "value": self.value, "percentage": self.percentage}


@dataclass
class RiskScore:
    overall_score: int = 0
    concentration_score: int = 0
    sector_score: int = 0
    diversification_score: int = 0
    risk_profile: RiskProfile = RiskProfile.CONSERVATIVE

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "concentration_score": self.concentration_score,
            "sector_score": self.sector_score,
            "diversification_score": self.diversification_score,
            "risk_profile": self.risk_profile.value,
        }


# ---------------------------------------------------------------------------
# MPT metrics
# ---------------------------------------------------------------------------

@dataclass
class PortfolioMetrics:
    expected_return: float = 0.0
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    var_95: float = 0.0
    var_99: float = 0.0
    beta: float = 0.0
    correlation: float = 0.0
    max_drawdown: float = 0.0
    information_ratio: float = 0.0
    treynor_ratio: float = 0.0
    jensen_alpha: float = 0.0

    def to_dict(self) -> dict:
        return {
            "expected_return": self.expected_return,
            "volatility": self.volatility,
            "sharpe_ratio": self.sharpe_ratio,
            "var_95": self.var_95,
            "var_99": self.var_99,
            "beta": self.beta,
            "correlation": self.correlation,
            "max_drawdown": self.max_drawdown,
            "information_ratio": self.information_ratio,
            "treynor_ratio": self.treynor_ratio,
            "jensen_alpha": self.jensen_alpha,
        }


# ---------------------------------------------------------------------------
# Monte Carlo
# ---------------------------------------------------------------------------

@dataclass
class Percentiles:
    p5: float
    p25: float
    p50: float
    p75: float
    p95: float

    def to_dict(self) -> dict:
        return {"p5": self.p5, "p25": self.p25, "p50": self.p50,
                "p75": self.p75, "p95": self.p95}


@dataclass
class MonteCarloResult:
    percentiles: Percentiles
    expected_value: float
    worst_case: float
    best_case: float
    initial_value: float
    num_scenarios: int
    horizon_days: int
    # (num_scenarios, horizon_days + 1); only kept when the caller asks for it
    scenarios: np.ndarray | None = None

    def to_dict(self) -> dict:
        out = {
            "percentiles": self.percentiles.to_dict(),
            "expected_value": self.expected_value,
            "worst_case": self.worst_case,
            "best_case": self.best_case,
            "initial_value": self.initial_value,
            "num_scenarios": self.num_scenarios,
            "horizon_days": self.horizon_days,
        }
        if self.scenarios is not None:
            out["scenarios"] = self.scenarios.tolist()
        return out


# ---------------------------------------------------------------------------
# Correlation / frontier
# ---------------------------------------------------------------------------

@dataclass
class CorrelationMatrix:
    symbols: list[str]
    matrix: np.ndarray

    def to_dict(self) -> dict:
        return {"symbols": list(self.symbols), "matrix": self.matrix.tolist()}


@dataclass
class FrontierPoint:
    risk: float
    expected_return: float

    def to_dict(self) -> dict:
        return {"risk": self.risk, "return": self.expected_return}


# ---------------------------------------------------------------------------
# Clusters
# ---------------------------------------------------------------------------

@dataclass
class RiskCluster:
    id: str
    name: str
    description: str
    risk_level: RiskLevel
    characteristics: list[str] = field(default_factory=list)
    holdings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "risk_level": self.risk_level.value,
            "characteristics": list(self.characteristics),
            "holdings": list(self.holdings),
        }


@dataclass
class FeatureCluster:
    """A k-means group over numeric holding features."""

    id: str
    name: str
    holdings: list[str] = field(default_factory=list)
    characteristics: list[str] = field(default_factory=list)
    centroid: list[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "holdings": list(self.holdings),
            "characteristics": list(self.characteristics),
            "centroid": list(self.centroid),
        }


# ---------------------------------------------------------------------------
# Personality / recommendations
# ---------------------------------------------------------------------------

@dataclass
class InvestorPersonality:
    type: RiskProfile
    confidence: float
    risk_tolerance: float
    investment_horizon: InvestmentHorizon
    characteristics: list[str] = field(default_factory=list)
    preferred_sectors: list[str] = field(default_factory=list)
    behavioral_traits: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "confidence": self.confidence,
            "risk_tolerance": self.risk_tolerance,
            "investment_horizon": self.investment_horizon.value,
            "characteristics": list(self.characteristics),
            "preferred_sectors": list(self.preferred_sectors),
            "behavioral_traits": list(self.behavioral_traits),
        }


@dataclass
class ExpectedImpact:
    """Signed fractional deltas a recommendation is expected to cause."""

    risk: float
    expected_return: float
    diversification: float

    def to_dict(self) -> dict:
        return {"risk": self.risk, "return": self.expected_return,
                "diversification": self.diversification}


@dataclass
class RecommendationAction:
    action: str
    rationale: str
    expected_outcome: str

    def to_dict(self) -> dict:
        return {"action": self.action, "rationale": self.rationale,
                "expected_outcome": self.expected_outcome}


@dataclass
class Recommendation:
    id: str
    type: RecommendationType
    priority: Priority
    title: str
    description: str
    expected_impact: ExpectedImpact
    actions: list[RecommendationAction] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "expected_impact": self.expected_impact.to_dict(),
            "actions": [a.to_dict() for a in self.actions],
            "confidence": self.confidence,
        }
