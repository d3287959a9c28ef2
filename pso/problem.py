from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from .base import Bounds, InvalidConfiguration

Objective = Callable[[np.ndarray], float]
Domain = Callable[[int], Tuple[float, float]]


@dataclass(frozen=True)
class Problem:
    """
    Minimisation problem: an objective over R^D and a closed interval per dimension.

    dimension is the objective's arity when it is known up front (None means
    the parameters decide it).
    """
    objective: Objective
    domain: Domain
    dimension: Optional[int] = None
    name: str = "objective"

    @classmethod
    def from_bounds(cls, objective: Objective, bounds: Sequence[Tuple[float, float]], name: str = "objective") -> "Problem":
        box = [(float(lo), float(hi)) for lo, hi in bounds]
        return cls(objective=objective, domain=lambda d: box[d], dimension=len(box), name=name)

    @classmethod
    def uniform(cls, objective: Objective, lower: float, upper: float, dimension: Optional[int] = None,
                name: str = "objective") -> "Problem":
        """Same interval on every dimension, as in [-5, 5]^D."""
        lo, hi = float(lower), float(upper)
        return cls(objective=objective, domain=lambda d: (lo, hi), dimension=dimension, name=name)

    def bounds(self, dimension: int) -> Bounds:
        if self.dimension is not None and self.dimension != dimension:
            raise InvalidConfiguration(
                f"dimension mismatch: problem '{self.name}' expects {self.dimension}, parameters give {dimension}"
            )
        out: Bounds = []
        for d in range(dimension):
            lo, hi = self.domain(d)
            lo, hi = float(lo), float(hi)
            if not (math.isfinite(lo) and math.isfinite(hi)):
                raise InvalidConfiguration(f"domain({d}) must be finite, got [{lo}, {hi}]")
            if lo > hi:
                raise InvalidConfiguration(f"domain({d}) has lower > upper: [{lo}, {hi}]")
            out.append((lo, hi))
        return out

    def evaluate(self, x: np.ndarray) -> float:
        """Objective value with NaN and +/-inf mapped to +inf."""
        f = float(self.objective(x))
        if not math.isfinite(f):
            return math.inf
        return f
