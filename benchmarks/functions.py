from __future__ import annotations
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from pso.base import InvalidConfiguration
from pso.problem import Problem


def sphere(x: np.ndarray) -> float:
    """Sum of squares. Minimum 0 at x = 0."""
    x = np.asarray(x, dtype=float)
    return float(np.sum(x * x))


def plane(x: np.ndarray) -> float:
    """Sum of coordinates; on a box the minimum sits in the lower corner."""
    return float(np.sum(np.asarray(x, dtype=float)))


def griewank(x: np.ndarray) -> float:
    """
    Griewank benchmark function.
    Global minimum at x = 0, f = 0. Bounds typically [-600, 600]^D.
    """
    x = np.asarray(x, dtype=float)
    s = np.sum(x * x) / 4000.0
    p = np.prod(np.cos(x / np.sqrt(np.arange(1, len(x) + 1, dtype=float))))
    return float(1.0 + s - p)


def rastrigin(x: np.ndarray) -> float:
    x = np.asarray(x, dtype=float)
    return float(10.0 * x.size + np.sum(x * x - 10.0 * np.cos(2.0 * np.pi * x)))


FUNCTIONS: Dict[str, Callable[[np.ndarray], float]] = {
    "sphere": sphere,
    "plane": plane,
    "griewank": griewank,
    "rastrigin": rastrigin,
}

DEFAULT_DOMAINS: Dict[str, Tuple[float, float]] = {
    "sphere": (-5.0, 5.0),
    "plane": (0.0, 600.0),
    "griewank": (-600.0, 600.0),
    "rastrigin": (-5.12, 5.12),
}


def make_problem(name: str, dim: int, lower: Optional[float] = None, upper: Optional[float] = None) -> Problem:
    """Benchmark as a Problem on a uniform box, default box unless overridden."""
    if name not in FUNCTIONS:
        raise InvalidConfiguration(f"Unknown function: {name}. Choose from {list(FUNCTIONS)}")
    lo, hi = DEFAULT_DOMAINS[name]
    lo = lo if lower is None else lower
    hi = hi if upper is None else upper
    return Problem.uniform(FUNCTIONS[name], lo, hi, dimension=dim, name=f"{name}_{dim}d")
