from __future__ import annotations
import json
import math
import numbers
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .base import InvalidConfiguration

COST_UPDATE_POLICIES = ("improving", "always")

# short option names accepted by from_options (the CLI / config file spelling)
ALIASES = {
    "pop": "particle_count",
    "n_particles": "particle_count",
    "D": "dimension",
    "dim": "dimension",
    "vmax": "max_velocity",
    "iters": "iterations",
    "n_iters": "iterations",
}

PRESETS: Dict[str, Dict[str, Any]] = {
    # console demo: sphere on [-5, 5]^3
    "console": dict(particle_count=20, dimension=3, max_velocity=1.0, w=0.75, c1=2.0, c2=2.0, iterations=100),
    # animated window: plane sum(x) on [0, 600]^2
    "visual": dict(particle_count=50, dimension=2, max_velocity=2.0, w=0.75, c1=2.0, c2=2.0, iterations=200),
}


@dataclass(frozen=True)
class Parameters:
    """
    PSO settings for one run.

    - particle_count: swarm size (> 0)
    - dimension: search-space dimension (> 0), must match the problem
    - max_velocity: symmetric velocity clamp (>= 0; 0 freezes the swarm)
    - w: inertia weight
    - c1: cognitive coefficient (>= 0)
    - c2: social coefficient (>= 0)
    - iterations: steps performed by Engine.run (>= 0)
    - cost_update: "improving" keeps a particle's recorded cost unless a move
      improves on it; "always" tracks objective(position) after every move
    """
    particle_count: int
    dimension: int
    max_velocity: float
    w: float
    c1: float
    c2: float
    iterations: int
    cost_update: str = "improving"

    def validate(self) -> "Parameters":
        for name in ("particle_count", "dimension", "iterations"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, numbers.Integral):
                raise InvalidConfiguration(f"{name} must be an integer, got {type(v).__name__}")
        for name in ("max_velocity", "w", "c1", "c2"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, numbers.Real) or not math.isfinite(v):
                raise InvalidConfiguration(f"{name} must be a finite real number, got {v!r}")

        if self.particle_count <= 0:
            raise InvalidConfiguration(f"particle_count must be > 0, got {self.particle_count}")
        if self.dimension <= 0:
            raise InvalidConfiguration(f"dimension must be > 0, got {self.dimension}")
        if self.iterations < 0:
            raise InvalidConfiguration(f"iterations must be >= 0, got {self.iterations}")
        if self.max_velocity < 0:
            raise InvalidConfiguration(f"max_velocity must be >= 0, got {self.max_velocity}")
        if self.c1 < 0:
            raise InvalidConfiguration(f"c1 must be >= 0, got {self.c1}")
        if self.c2 < 0:
            raise InvalidConfiguration(f"c2 must be >= 0, got {self.c2}")
        if self.cost_update not in COST_UPDATE_POLICIES:
            raise InvalidConfiguration(
                f"cost_update must be one of {COST_UPDATE_POLICIES}, got {self.cost_update!r}"
            )
        return self

    def with_options(self, **overrides: Any) -> "Parameters":
        return replace(self, **_canonical(overrides))

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def preset(cls, name: str) -> "Parameters":
        return cls(**_preset_options(name))

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]] = None, base: str = "console") -> "Parameters":
        """Build from a loose options dict; missing keys come from the base preset."""
        merged = _preset_options(base)
        merged.update(_canonical(options or {}))
        return cls(**merged)

    @classmethod
    def from_json(cls, path: Union[str, Path], base: str = "console") -> "Parameters":
        with Path(path).open() as fh:
            try:
                options = json.load(fh)
            except json.JSONDecodeError as e:
                raise InvalidConfiguration(f"{path}: not valid JSON ({e})") from e
        if not isinstance(options, dict):
            raise InvalidConfiguration(f"{path}: expected a JSON object of parameters")
        return cls.from_options(options, base=base)


def _preset_options(name: str) -> Dict[str, Any]:
    if name not in PRESETS:
        raise InvalidConfiguration(f"unknown preset {name!r}, choose from {sorted(PRESETS)}")
    return dict(PRESETS[name])


def _canonical(options: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(Parameters)}
    out: Dict[str, Any] = {}
    for key, value in options.items():
        name = ALIASES.get(key, key)
        if name not in known:
            raise InvalidConfiguration(f"unknown parameter: {key}")
        out[name] = value
    return out
