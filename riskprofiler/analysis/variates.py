"""Random variate generators for the Monte Carlo simulator.

The simulator only asks for arrays of approximately standard-normal draws;
which sampler produces them is a pluggable choice.

``IrwinHallGenerator``
    Sum of ``terms`` uniforms, centred and multiplied by ``scale``. With the
    default ``terms=4, scale=1/sqrt(12)`` this reproduces the reference
    dashboard numbers exactly. It is an approximation: the tails are bounded
    (``|Z| <= terms/2 * scale``) and, at the reference scale, the standard
    deviation is ``sqrt(terms/12) * scale = 1/6`` rather than 1. Use
    ``IrwinHallGenerator.standardized()`` for a unit-variance version.

``GaussianGenerator``
    numpy's exact normal sampler (ziggurat).
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np


class RandomVariateGenerator(ABC):
    """Produces arrays of (approximately) standard-normal variates."""

    name: str = ""

    @abstractmethod
    def standard_normal(self, rng: np.random.Generator, size) -> np.ndarray:
        ...


class IrwinHallGenerator(RandomVariateGenerator):
    name = "irwin_hall"

    def __init__(self, terms: int = 4, scale: float = 1 / math.sqrt(12)) -> None:
        if terms < 1:
            raise ValueError("terms must be at least 1")
        self.terms = terms
        self.scale = scale

    @classmethod
    def standardized(cls, terms: int = 4) -> IrwinHallGenerator:
        """Uniform-sum generator rescaled to unit variance."""
        return cls(terms=terms, scale=math.sqrt(12 / terms))

    def standard_normal(self, rng, size):
        shape = (size,) if isinstance(size, int) else tuple(size)
        total = rng.random(shape + (self.terms,)).sum(axis=-1)
        return (total - self.terms / 2) * self.scale

    def __repr__(self) -> str:
        return f"IrwinHallGenerator(terms={self.terms}, scale={self.scale:.6f})"


class GaussianGenerator(RandomVariateGenerator):
    name = "gaussian"

    def standard_normal(self, rng, size):
        return rng.standard_normal(size)

    def __repr__(self) -> str:
        return "GaussianGenerator()"


_GENERATORS = {
    IrwinHallGenerator.name: IrwinHallGenerator,
    GaussianGenerator.name: GaussianGenerator,
}


def get_variate_generator(name: str) -> RandomVariateGenerator:
    try:
        return _GENERATORS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown variate generator '{name}', expected one of {sorted(_GENERATORS)}"
        ) from None
