from __future__ import annotations
from typing import List, Tuple
import numpy as np

Bounds = List[Tuple[float, float]]


class InvalidConfiguration(ValueError):
    """Raised when a problem or parameter set cannot be run."""


def bounds_arrays(bounds: Bounds) -> Tuple[np.ndarray, np.ndarray]:
    lo = np.array([b[0] for b in bounds], dtype=float)
    hi = np.array([b[1] for b in bounds], dtype=float)
    return lo, hi


def project(x: np.ndarray, bounds: Bounds) -> np.ndarray:
    """Clip a position onto the search box. No reflection is done."""
    lo, hi = bounds_arrays(bounds)
    return np.minimum(np.maximum(x, lo), hi)


def clip_velocity(v: np.ndarray, vmax: float) -> np.ndarray:
    return np.clip(v, -vmax, vmax)
