"""Holding-level risk score - concentration, sector exposure, diversification.

Scores run 0-100 where higher means riskier. Weights, thresholds and
half-up rounding are fixed and must not drift between releases.
"""

from __future__ import annotations

import math
from typing import Sequence

from riskprofiler.models import Holding, RiskProfile, RiskScore, SectorAllocation
from riskprofiler.analysis.weights import total_value
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("risk_score")

# (position percentage strictly above, score) - first match wins
_CONCENTRATION_BANDS: tuple[tuple[float, int], ...] = ((20.0, 100), (10.0, 80), (5.0, 60))

_SCORE_WEIGHTS = {
    "concentration": 0.4,
    "sector": 0.4,
    "diversification": 0.2,
}

_HERFINDAHL_CAP = 0.5
_AGGRESSIVE_ABOVE = 70
_MODERATE_ABOVE = 30


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def sector_allocation(holdings: Sequence[Holding]) -> list[SectorAllocation]:
    """Value and percentage (2dp) per sector, largest first.

    Sectors with equal value keep their order of first appearance.
    """
    total = total_value(holdings)
    if not holdings or total == 0:
        return []

    sector_values: dict[str, float] = {}
    for h in holdings:
        sector_values[h.sector] = sector_values.get(h.sector, 0.0) + h.total_value

    allocations = [
        SectorAllocation(
            sector=sector,
            value=value,
            percentage=_round_half_up((value / total) * 100 * 100) / 100,
        )
        for sector, value in sector_values.items()
    ]
    return sorted(allocations, key=lambda a: a.value, reverse=True)


def risk_profile_for(score: float) -> RiskProfile:
    if score > _AGGRESSIVE_ABOVE:
        return RiskProfile.AGGRESSIVE
    if score > _MODERATE_ABOVE:
        return RiskProfile.MODERATE
    return RiskProfile.CONSERVATIVE


class RiskScorer:
    """Score a holdings snapshot on concentration, sector mix and breadth."""

    def score(self, holdings: Sequence[Holding]) -> RiskScore:
        total = total_value(holdings)
        if not holdings or total == 0:
            logger.debug("Empty portfolio or zero total value, returning neutral score")
            return RiskScore()

        concentration = self._concentration_score(holdings, total)
        sector_risk = self._sector_risk(sector_allocation(holdings))
        diversification = self._diversification_score(holdings)

        overall = _round_half_up(
            concentration * _SCORE_WEIGHTS["concentration"]
            + sector_risk * _SCORE_WEIGHTS["sector"]
            + diversification * _SCORE_WEIGHTS["diversification"]
        )
        return RiskScore(
            overall_score=overall,
            concentration_score=concentration,
            sector_score=_round_half_up(sector_risk),
            diversification_score=diversification,
            risk_profile=risk_profile_for(overall),
        )

    @staticmethod
    def _concentration_score(holdings: Sequence[Holding], total: float) -> int:
        """Worst single position dominates: max band score across holdings."""
        worst = 0
        for h in holdings:
            pct = h.total_value / total * 100
            for threshold, band_score in _CONCENTRATION_BANDS:
                if pct > threshold:
                    worst = max(worst, band_score)
                    break
        return worst

    @staticmethod
    def _sector_risk(allocations: Sequence[SectorAllocation]) -> float:
        """Herfindahl index over sector percentages, scaled to 0-100 (unrounded)."""
        herfindahl = sum((a.percentage / 100) ** 2 for a in allocations)
        if herfindahl > _HERFINDAHL_CAP:
            return 100.0
        return herfindahl * 200

    @staticmethod
    def _diversification_score(holdings: Sequence[Holding]) -> int:
        unique_sectors = len({h.sector for h in holdings})
        return max(0, 100 - unique_sectors * 10)


def calculate_risk_score(holdings: Sequence[Holding]) -> RiskScore:
    return RiskScorer().score(holdings)


def advisory_notes(score: RiskScore, holdings: Sequence[Holding]) -> list[str]:
    """Short plain-language suggestions derived from a RiskScore."""
    notes: list[str] = []
    if score.concentration_score > 60:
        notes.append("Consider reducing concentration in top holdings to diversify risk")
    if score.sector_score > 60:
        notes.append("Diversify across more sectors to reduce sector concentration risk")
    if score.diversification_score > 60:
        notes.append("Add holdings from different sectors to improve diversification")
    if len(holdings) < 10:
        notes.append("Consider adding more holdings to improve portfolio diversification")
    if not notes:
        notes.append("Your portfolio shows good diversification. Maintain current allocation.")
    return notes
