from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

# Project root: .../pso-engine
PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_ROOT = PROJECT_ROOT / "data"
RESULTS_ROOT = DATA_ROOT / "results"
FIGURES_ROOT = DATA_ROOT / "figures"

CONVERGENCE_FIELDS = ["iter", "evals", "f_best", "f_mean", "f_std", "gbest_f"]


@dataclass
class RunConfig:
    """Run configuration metadata stored with each run."""
    problem: str         # e.g. "sphere_3d", "griewank_5d"
    n_particles: int
    n_iters: int
    dim: int
    max_velocity: float
    w: float
    c1: float
    c2: float
    cost_update: str
    seed: Optional[int]


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def create_run_dir(problem: str, root: Optional[Path] = None) -> Path:
    """
    Create and return a unique directory for a single run.

    Structure:
        {root}/{problem}/run_YYYYmmdd_HHMMSS_XXXX/

    root defaults to data/results under the project.
    """
    base = Path(root) if root is not None else RESULTS_ROOT
    base = base / problem
    _ensure_dir(base)

    now = datetime.now()
    run_dir = base / f"run_{now.strftime('%Y%m%d_%H%M%S')}_{now.strftime('%f')[-4:]}"
    n = 1
    while run_dir.exists():
        run_dir = base / f"run_{now.strftime('%Y%m%d_%H%M%S')}_{now.strftime('%f')[-4:]}_{n}"
        n += 1
    _ensure_dir(run_dir)
    return run_dir


def save_convergence_csv(run_dir: Path, history: Sequence[Mapping[str, Any]]) -> Path:
    """
    Save per-iteration engine state (Engine.state() dicts) to CSV:
        iter, evals, f_best, f_mean, f_std, gbest_f
    """
    path = Path(run_dir) / "convergence.csv"
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CONVERGENCE_FIELDS)
        writer.writeheader()
        for st in history:
            writer.writerow({
                "iter": st["iter"],
                "evals": st["evals_total"],
                "f_best": f"{st['f_best']:.12e}",
                "f_mean": f"{st['f_mean']:.12e}",
                "f_std": f"{st['f_std']:.12e}",
                "gbest_f": f"{st['gbest_f']:.12e}",
            })
    return path


def save_swarm_csv(run_dir: Path, swarm_history: Sequence[Sequence[Any]]) -> Path:
    """
    Save swarm snapshots over time.

    swarm_history: one list of ParticleView per recorded iteration.

    CSV columns:
        iter, particle, is_gbest, cost, x1 .. xD
    """
    path = Path(run_dir) / "swarm.csv"
    dim = len(swarm_history[0][0].x) if swarm_history and swarm_history[0] else 0
    with path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["iter", "particle", "is_gbest", "cost"] + [f"x{d + 1}" for d in range(dim)])
        for it, views in enumerate(swarm_history):
            for view in views:
                writer.writerow(
                    [it, view.index, int(view.is_global_best), view.f] + [float(c) for c in view.x]
                )
    return path


def save_run_metadata(run_dir: Path, config: RunConfig, extra: Optional[Dict[str, Any]] = None) -> Path:
    """
    Save run configuration and optional extra info to metadata.json.
    """
    meta: Dict[str, Any] = asdict(config)
    if extra:
        meta.update(extra)

    path = Path(run_dir) / "metadata.json"
    with path.open("w") as f:
        json.dump(meta, f, indent=2)
    return path


def load_run_metadata(run_dir: Path) -> Dict[str, Any]:
    with (Path(run_dir) / "metadata.json").open() as f:
        return json.load(f)
