import os
from typing import List, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from utils.recorder import FIGURES_ROOT

BASE_FIG_DIR = str(FIGURES_ROOT)


def _ensure_dir(path: str):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)


def read_log(csv_path: str) -> pd.DataFrame:
    """Read a convergence.csv written by utils.recorder and coerce columns."""
    df = pd.read_csv(csv_path)
    # ensure numeric (they were formatted as strings for pretty printing)
    for c in ["f_best", "f_mean", "f_std", "gbest_f"]:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    return df


def plot_convergence(csv_path: str, outpath: Optional[str] = None, ykey: str = "gbest_f", title: str = "") -> str:
    """
    Convergence curve for a single run, log-scaled when every value is positive.
    ykey in {"gbest_f", "f_best", "f_mean"}; gbest_f is the global best so far.
    """
    df = read_log(csv_path)
    fig = plt.figure()
    ax = plt.gca()
    vals = df[ykey]
    if (vals <= 0).any() or not np.isfinite(vals).all():
        ax.plot(df["iter"], vals)
    else:
        ax.semilogy(df["iter"], vals)
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Best objective value")
    ax.grid(True, which="both", linestyle=":")
    ax.set_title(title or "PSO convergence")

    if outpath is None:
        # next to the CSV, one file per key
        outpath = os.path.join(os.path.dirname(csv_path), f"{ykey}_conv.png")
    _ensure_dir(outpath)
    fig.savefig(outpath, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return outpath


def plot_swarm_2d(swarm_history: Sequence[Sequence], bounds: Optional[List] = None,
                  outpath: Optional[str] = None) -> str:
    """
    Plot recorded swarm snapshots (lists of ParticleView, D == 2) as clouds.
    The last snapshot's global-best particle is drawn larger, in black.
    """
    if not swarm_history or len(swarm_history[-1][0].x) != 2:
        raise ValueError("plot_swarm_2d needs at least one snapshot of a 2-D swarm")

    fig = plt.figure()
    ax = plt.gca()
    for views in swarm_history[:-1]:
        pts = np.array([v.x for v in views])
        ax.scatter(pts[:, 0], pts[:, 1], s=8, alpha=0.25, color="gray")

    last = swarm_history[-1]
    pts = np.array([v.x for v in last if not v.is_global_best])
    if pts.size:
        ax.scatter(pts[:, 0], pts[:, 1], s=12, color="gray")
    for v in last:
        if v.is_global_best:
            ax.scatter([v.x[0]], [v.x[1]], s=48, color="black", label=f"global best ({v.f:.4g})")
    if bounds is not None:
        ax.set_xlim(bounds[0])
        ax.set_ylim(bounds[1])
    ax.set_xlabel("x1")
    ax.set_ylabel("x2")
    ax.set_title("PSO swarm trajectory (D=2)")
    ax.grid(True, linestyle=":")
    ax.legend(loc="upper right")

    if outpath is None:
        outpath = os.path.join(BASE_FIG_DIR, "swarm", "swarm2d.png")
    _ensure_dir(outpath)
    fig.savefig(outpath, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return outpath
