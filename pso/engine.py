from __future__ import annotations
import enum
import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .base import Bounds, InvalidConfiguration, bounds_arrays, clip_velocity, project
from .parameters import Parameters
from .problem import Problem

logger = logging.getLogger(__name__)

Seed = Union[None, int, np.random.Generator]
StepCallback = Callable[[int, float, Dict[str, Any]], None]


@dataclass(frozen=True, eq=False)
class Snapshot:
    """A position and the cost recorded with it, copied by value."""
    x: np.ndarray
    f: float

    @classmethod
    def of(cls, x: np.ndarray, f: float) -> "Snapshot":
        x = np.array(x, dtype=float, copy=True)
        x.setflags(write=False)
        return cls(x=x, f=float(f))


@dataclass
class Particle:
    x: np.ndarray
    v: np.ndarray
    f: float
    pbest: Snapshot


@dataclass(frozen=True, eq=False)
class ParticleView:
    """
    What a renderer gets to see of one particle.

    is_global_best marks the particle whose move produced the current global
    best. The particle may have moved on since, so x and f need not equal the
    global best's position and cost.
    """
    index: int
    x: np.ndarray
    v: np.ndarray
    f: float
    pbest_f: float
    is_global_best: bool


class EngineState(enum.Enum):
    UNCONFIGURED = "unconfigured"
    INITIALIZED = "initialized"
    RUNNING = "running"
    DONE = "done"


class Engine:
    """
    Particle Swarm Optimisation (continuous, global-best topology).

    One seeded generator drives every draw of the run, so two engines built
    with the same seed and fed the same problem/parameters follow identical
    trajectories. Particles are updated one after another; a global best found
    by particle i is already visible to particle i+1 in the same step.
    """

    def __init__(self, seed: Seed = None):
        if isinstance(seed, np.random.Generator):
            self.rng = seed
        else:
            self.rng = np.random.default_rng(seed)

        self.status = EngineState.UNCONFIGURED
        self.problem: Optional[Problem] = None
        self.params: Optional[Parameters] = None
        self.bounds: Bounds = []
        self.swarm: List[Particle] = []
        self.global_best: Optional[Snapshot] = None
        self.gbest_index: int = -1
        self.iteration: int = 0
        self.evals_total: int = 0
        self._anomalies: int = 0

    # ------------------------------------------------------------------ setup
    def initialize(self, problem: Problem, params: Parameters) -> Tuple[List[Particle], Snapshot]:
        params.validate()
        bounds = problem.bounds(params.dimension)

        lo, hi = bounds_arrays(bounds)
        vmax = float(params.max_velocity)
        swarm: List[Particle] = []
        anomalies = 0
        # nothing is assigned to self until the whole swarm is built
        for i in range(params.particle_count):
            x = self.rng.uniform(lo, hi)
            v = self.rng.uniform(-vmax, vmax, params.dimension)
            f = problem.evaluate(x.copy())
            anomalies = self._note_anomaly(i, f, anomalies)
            swarm.append(Particle(x=x, v=v, f=f, pbest=Snapshot.of(x, f)))

        # first minimal index wins ties
        g = min(range(len(swarm)), key=lambda i: swarm[i].f)

        self.problem = problem
        self.params = params
        self.bounds = bounds
        self.evals_total = len(swarm)
        self._anomalies = anomalies
        self.swarm = swarm
        self.gbest_index = g
        self.global_best = Snapshot.of(swarm[g].x, swarm[g].f)
        self.iteration = 0
        self.status = EngineState.INITIALIZED

        logger.info(
            "initialized %s | particles=%d D=%d | gbest_f=%.6e",
            problem.name, params.particle_count, params.dimension, self.global_best.f,
        )
        return self.swarm, self.global_best

    # ------------------------------------------------------------------- loop
    def step(self) -> None:
        if self.status is EngineState.UNCONFIGURED:
            raise RuntimeError("Call initialize() before step()")

        p_ = self.params
        always = p_.cost_update == "always"
        for i, p in enumerate(self.swarm):
            r1, r2 = self.rng.random(2)
            g = self.global_best.x

            p.v = p_.w * p.v + p_.c1 * r1 * (p.pbest.x - p.x) + p_.c2 * r2 * (g - p.x)
            p.v = clip_velocity(p.v, p_.max_velocity)

            p.x = project(p.x + p.v, self.bounds)

            f = self.problem.evaluate(p.x.copy())
            self.evals_total += 1
            self._anomalies = self._note_anomaly(i, f, self._anomalies)
            if f < p.f or always:
                p.f = f
                if f < p.pbest.f:
                    p.pbest = Snapshot.of(p.x, f)

            if p.f < self.global_best.f:
                self.global_best = Snapshot.of(p.x, p.f)
                self.gbest_index = i

        self.iteration += 1
        self.status = EngineState.RUNNING
        logger.debug("iter %d | gbest_f=%.6e (particle %d)", self.iteration, self.global_best.f, self.gbest_index)

    def run(
        self,
        problem: Problem,
        params: Parameters,
        iterations: Optional[int] = None,
        callback: Optional[StepCallback] = None,
    ) -> Snapshot:
        n = params.iterations if iterations is None else iterations
        if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 0:
            raise InvalidConfiguration(f"iterations must be a non-negative integer, got {n!r}")

        self.initialize(problem, params)
        for _ in range(n):
            self.step()
            if callback:
                callback(self.iteration, self.global_best.f, self.state())
        self.status = EngineState.DONE

        logger.info(
            "done %s | iters=%d evals=%d | best=%.6e",
            problem.name, self.iteration, self.evals_total, self.global_best.f,
        )
        return self.global_best

    # ------------------------------------------------------------ inspection
    def best(self) -> Dict[str, Any]:
        self._require_swarm()
        return {"x": self.global_best.x.copy(), "f": float(self.global_best.f)}

    def state(self) -> Dict[str, Any]:
        self._require_swarm()
        costs = np.array([p.f for p in self.swarm], dtype=float)
        finite = costs[np.isfinite(costs)]
        if finite.size:
            f_best, f_mean, f_std = float(np.min(finite)), float(np.mean(finite)), float(np.std(finite))
        else:
            f_best, f_mean, f_std = math.inf, math.inf, 0.0
        return {
            "iter": self.iteration,
            "evals_total": self.evals_total,
            "f_best": f_best,
            "f_mean": f_mean,
            "f_std": f_std,
            "gbest_f": float(self.global_best.f),
            "gbest_x": self.global_best.x.copy(),
        }

    def views(self) -> List[ParticleView]:
        self._require_swarm()
        return [
            ParticleView(
                index=i,
                x=p.x.copy(),
                v=p.v.copy(),
                f=float(p.f),
                pbest_f=float(p.pbest.f),
                is_global_best=(i == self.gbest_index),
            )
            for i, p in enumerate(self.swarm)
        ]

    def positions(self) -> np.ndarray:
        self._require_swarm()
        return np.stack([p.x.copy() for p in self.swarm], axis=0)

    # --------------------------------------------------------------- helpers
    def _require_swarm(self) -> None:
        if self.status is EngineState.UNCONFIGURED:
            raise RuntimeError("Engine has no swarm yet, call initialize()")

    @staticmethod
    def _note_anomaly(i: int, f: float, seen: int) -> int:
        if f == math.inf:
            if seen == 0:
                logger.warning("particle %d: objective is not finite, treating cost as +inf", i)
            seen += 1
        return seen
