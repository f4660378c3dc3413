"""Risk clustering - sector groups and k-means over numeric holding features."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np
from scipy.cluster.vq import kmeans2
from scipy.spatial.distance import cdist

from riskprofiler.analysis.weights import portfolio_weights, sector_weights
from riskprofiler.config import analytics_setting
from riskprofiler.models import FeatureCluster, Holding, RiskCluster, RiskLevel
from riskprofiler.utils.logger import setup_logger

logger = setup_logger("clustering")

# ---------------------------------------------------------------------------
# Sector clusters
# ---------------------------------------------------------------------------
_HIGH_SECTOR_WEIGHT = 0.3
_MEDIUM_SECTOR_WEIGHT = 0.15
_CONCENTRATED_HOLDING_WEIGHT = 0.1
_WHITESPACE = re.compile(r"\s+")

_LEVEL_CHARACTERISTICS = {
    RiskLevel.HIGH: ["High sector concentration", "Limited diversification", "Sector-specific risk"],
    RiskLevel.MEDIUM: ["Moderate sector concentration", "Some diversification", "Balanced risk"],
    RiskLevel.LOW: ["Low sector concentration", "Good diversification", "Well-balanced"],
}


def _sector_level(weight: float) -> RiskLevel:
    if weight > _HIGH_SECTOR_WEIGHT:
        return RiskLevel.HIGH
    if weight > _MEDIUM_SECTOR_WEIGHT:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def sector_clusters(holdings: Sequence[Holding]) -> list[RiskCluster]:
    """One cluster per sector, plus a concentration cluster for positions over 10%."""
    if not holdings:
        return []

    members: dict[str, list[str]] = {}
    for h in holdings:
        members.setdefault(h.sector, []).append(h.symbol)

    clusters = []
    for sector, weight in sector_weights(holdings).items():
        level = _sector_level(weight)
        slug = _WHITESPACE.sub("-", sector.lower())
        clusters.append(RiskCluster(
            id=f"cluster-{slug}",
            name=f"{sector} Cluster",
            description=f"Holdings in the {sector} sector with {level.value.lower()} risk profile",
            risk_level=level,
            characteristics=list(_LEVEL_CHARACTERISTICS[level]),
            holdings=members[sector],
        ))

    concentrated = [
        h.symbol for h, w in zip(holdings, portfolio_weights(holdings))
        if w > _CONCENTRATED_HOLDING_WEIGHT
    ]
    if concentrated:
        clusters.append(RiskCluster(
            id="cluster-concentration",
            name="High Concentration Risk",
            description="Holdings with individual weights exceeding 10% of portfolio",
            risk_level=RiskLevel.HIGH,
            characteristics=[
                "High individual stock concentration",
                "Single stock risk",
                "Limited diversification",
            ],
            holdings=concentrated,
        ))
    return clusters


# ---------------------------------------------------------------------------
# k-means strategies
# ---------------------------------------------------------------------------

class ClusteringStrategy(ABC):
    """Assigns each row of a feature matrix to one of ``k`` clusters."""

    name: str = ""

    @abstractmethod
    def fit(
        self, features: np.ndarray, k: int, rng: np.random.Generator
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(labels, centroids)``; labels index into centroids."""

    @staticmethod
    def _assign(features: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        # argmin keeps the lowest index on ties
        return cdist(features, centroids, metric="euclidean").argmin(axis=1)


class SinglePassKMeans(ClusteringStrategy):
    """Random centroids in [0, 1) and a single nearest-centroid assignment.

    Reproduces the reference dashboard; with unscaled features most points
    land in the same cluster.
    """

    name = "single_pass"

    def fit(self, features, k, rng):
        centroids = rng.random((k, features.shape[1]))
        return self._assign(features, centroids), centroids


class IterativeKMeans(ClusteringStrategy):
    """Lloyd's algorithm via ``scipy.cluster.vq.kmeans2``, seeded from data points.

    ``max_iter`` is the number of update passes; an empty cluster keeps its
    previous centroid.
    """

    name = "iterative"

    def __init__(self, max_iter: int = 100) -> None:
        if max_iter < 1:
            raise ValueError("max_iter must be at least 1")
        self.max_iter = max_iter

    def fit(self, features, k, rng):
        k = min(k, len(features))
        centroids, labels = kmeans2(
            features.astype(float), k, iter=self.max_iter, minit="points", rng=rng,
        )
        logger.debug("k-means fitted %d clusters over %d points", k, len(features))
        return labels, centroids


_STRATEGIES = {
    SinglePassKMeans.name: SinglePassKMeans,
    IterativeKMeans.name: IterativeKMeans,
}


def get_clustering_strategy(name: str, **kwargs) -> ClusteringStrategy:
    try:
        cls = _STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown clustering strategy '{name}', expected one of {sorted(_STRATEGIES)}"
        ) from None
    return cls(**kwargs)


def _default_strategy() -> ClusteringStrategy:
    name = analytics_setting("clustering", "strategy", default="single_pass")
    if name == IterativeKMeans.name:
        return IterativeKMeans(max_iter=analytics_setting("clustering", "max_iter", default=100))
    return get_clustering_strategy(name)


def _fit(features, k, strategy, seed) -> tuple[np.ndarray, np.ndarray]:
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    features = np.asarray(features, dtype=float)
    if features.ndim != 2:
        raise ValueError("features must be a 2-D array (rows = points)")
    strategy = strategy or _default_strategy()
    if len(features) == 0:
        return np.zeros(0, dtype=int), np.zeros((0, features.shape[1]))
    return strategy.fit(features, k, np.random.default_rng(seed))


def kmeans(
    features,
    k: int,
    strategy: ClusteringStrategy | None = None,
    seed: int | None = None,
) -> np.ndarray:
    """Cluster label for each row of *features*."""
    labels, _ = _fit(features, k, strategy, seed)
    return labels


# ---------------------------------------------------------------------------
# Feature clusters
# ---------------------------------------------------------------------------

def _feature_characteristics(members: Sequence[Holding]) -> list[str]:
    characteristics = []
    avg_value = sum(h.total_value for h in members) / len(members)
    if avg_value > 200_000:
        characteristics.append("High-value holdings")
    elif avg_value < 50_000:
        characteristics.append("Small-cap focus")

    unique_sectors = len({h.sector for h in members})
    if unique_sectors == 1:
        characteristics.append("Sector-specific cluster")
    elif unique_sectors > 3:
        characteristics.append("Diversified cluster")
    return characteristics


def feature_clusters(
    holdings: Sequence[Holding],
    k: int = 3,
    strategy: ClusteringStrategy | None = None,
    seed: int | None = None,
) -> list[FeatureCluster]:
    """k-means over ``[total_value, current_price, quantity]``.

    Only non-empty clusters are returned, numbered in label order.
    """
    features = np.array(
        [[h.total_value, h.current_price, h.quantity] for h in holdings], dtype=float
    ).reshape(len(holdings), 3)
    labels, centroids = _fit(features, k, strategy, seed)

    clusters = []
    for label in sorted(set(labels.tolist())):
        members = [h for h, lab in zip(holdings, labels) if lab == label]
        index = len(clusters)
        clusters.append(FeatureCluster(
            id=f"cluster-{index}",
            name=f"Risk Cluster {index + 1}",
            holdings=[h.symbol for h in members],
            characteristics=_feature_characteristics(members),
            centroid=[float(v) for v in centroids[label]],
        ))
    return clusters
