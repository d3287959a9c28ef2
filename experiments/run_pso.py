# experiments/run_pso.py
import argparse
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from benchmarks.functions import FUNCTIONS, make_problem
from pso.base import InvalidConfiguration
from pso.engine import Engine
from pso.parameters import COST_UPDATE_POLICIES, PRESETS, Parameters
from utils.logging import get_logger
from utils.recorder import (RunConfig, create_run_dir, save_convergence_csv,
                            save_run_metadata, save_swarm_csv)

PRESET_FUNCTION = {"console": "sphere", "visual": "plane"}

# CLI flag -> Parameters field
FLAG_FIELDS = {
    "particles": "particle_count",
    "dim": "dimension",
    "vmax": "max_velocity",
    "w": "w",
    "c1": "c1",
    "c2": "c2",
    "iters": "iterations",
    "cost_update": "cost_update",
}


def format_time(seconds: float) -> str:
    m, s = divmod(int(seconds), 60)
    h, m = divmod(m, 60)
    if h > 0:
        return f"{h}h {m:02d}m {s:02d}s"
    return f"{m}m {s:02d}s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Minimise a benchmark function with particle swarm optimisation.")
    parser.add_argument("--preset", choices=sorted(PRESETS), default="console",
                        help="Base parameter set (console: sphere 3D, visual: plane 2D)")
    parser.add_argument("--config", type=str, default=None, help="JSON file of parameters, applied over the preset")
    parser.add_argument("--function", choices=sorted(FUNCTIONS), default=None)
    parser.add_argument("--dim", type=int, default=None, help="Problem dimension")
    parser.add_argument("--particles", type=int, default=None)
    parser.add_argument("--vmax", type=float, default=None, help="Velocity clamp")
    parser.add_argument("--w", type=float, default=None)
    parser.add_argument("--c1", type=float, default=None)
    parser.add_argument("--c2", type=float, default=None)
    parser.add_argument("--iters", type=int, default=None)
    parser.add_argument("--cost-update", dest="cost_update", choices=COST_UPDATE_POLICIES, default=None)
    parser.add_argument("--lower", type=float, default=None, help="Override the domain lower bound")
    parser.add_argument("--upper", type=float, default=None, help="Override the domain upper bound")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--print-every", type=int, default=10, help="Progress line every N iterations (0 = off)")
    parser.add_argument("--out", type=str, default=None, help="Results root; writes convergence.csv + metadata.json")
    parser.add_argument("--trace", action="store_true", help="Also record every swarm snapshot to swarm.csv")
    parser.add_argument("--plot", action="store_true", help="Save convergence (and 2D swarm) figures with the results")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--logfile", type=str, default=None)
    return parser


def resolve_parameters(args: argparse.Namespace) -> Parameters:
    params = Parameters.preset(args.preset)
    if args.config:
        params = Parameters.from_json(args.config, base=args.preset)
    overrides: Dict[str, Any] = {
        field: getattr(args, flag) for flag, field in FLAG_FIELDS.items() if getattr(args, flag) is not None
    }
    return params.with_options(**overrides).validate()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = get_logger("pso", level=args.log_level, logfile=args.logfile)

    try:
        params = resolve_parameters(args)
        fname = args.function or PRESET_FUNCTION[args.preset]
        problem = make_problem(fname, params.dimension, lower=args.lower, upper=args.upper)
        engine = Engine(seed=args.seed)
        engine.initialize(problem, params)
    except (InvalidConfiguration, OSError) as e:
        logger.error(f"invalid configuration: {e}")
        return 2

    history: List[Dict[str, Any]] = [engine.state()]
    swarm_history: List[list] = [engine.views()] if args.trace else []
    start_time = time.time()

    try:
        for _ in range(params.iterations):
            engine.step()
            st = engine.state()
            history.append(st)
            if args.trace:
                swarm_history.append(engine.views())
            if args.print_every and st["iter"] % args.print_every == 0:
                print(f"[Iter {st['iter']}] Evals: {st['evals_total']} | Best: {st['gbest_f']:.6e} "
                      f"| Mean: {st['f_mean']:.6e} | Elapsed: {format_time(time.time() - start_time)}")
    except KeyboardInterrupt:
        print("\n!!! Interrupted by user. Stopping early and reporting the current best. !!!")

    best = engine.best()
    print("Optimal Solution:")
    print(f"Cost: {best['f']}")
    print(f"Position: [{', '.join(str(float(c)) for c in best['x'])}]")

    if args.out:
        run_dir = create_run_dir(problem.name, root=Path(args.out))
        conv = save_convergence_csv(run_dir, history)
        save_run_metadata(
            run_dir,
            RunConfig(
                problem=problem.name,
                n_particles=params.particle_count,
                n_iters=engine.iteration,
                dim=params.dimension,
                max_velocity=params.max_velocity,
                w=params.w,
                c1=params.c1,
                c2=params.c2,
                cost_update=params.cost_update,
                seed=args.seed,
            ),
            extra={"gbest_f": best["f"], "gbest_x": [float(c) for c in best["x"]],
                   "evals_total": engine.evals_total, "domain": list(engine.bounds[0])},
        )
        if args.trace:
            save_swarm_csv(run_dir, swarm_history)
        if args.plot:
            # matplotlib is only needed when figures are requested
            from experiments.plotting import plot_convergence, plot_swarm_2d
            plot_convergence(str(conv), title=f"Convergence ({problem.name}, pop={params.particle_count})")
            if args.trace and params.dimension == 2:
                plot_swarm_2d(swarm_history, bounds=engine.bounds, outpath=str(run_dir / "swarm2d.png"))
        logger.info(f"results saved to {run_dir}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
