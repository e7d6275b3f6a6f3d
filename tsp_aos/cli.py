import argparse
import json
import logging
import random
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import Dict

import torch

from tsp_aos.data import InstanceFormatError, is_valid_tsp_solution, load_instance
from tsp_aos.distances import build_distance_oracle
from tsp_aos.evolutionary import MODES, EvolutionConfig, GeneticOptimizer
from tsp_aos.solvers.base import SolveResult


RESULTS_DIR = Path("results/ga")

logger = logging.getLogger("tsp_aos.cli")


def log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def result_to_state(result: SolveResult) -> Dict:
    state = asdict(result)
    state["history"] = [[g, d] for g, d in result.history]
    state["gap"] = None if result.optimum is None else result.gap
    return state


def save_result(result: SolveResult, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result_to_state(result), indent=2))


def load_result(path: Path) -> SolveResult:
    state = json.loads(Path(path).read_text())
    state.pop("gap", None)
    state["history"] = [(int(g), float(d)) for g, d in state.get("history", [])]
    return SolveResult(**state)


def config_from_args(args) -> EvolutionConfig:
    return EvolutionConfig(
        mode=args.mode,
        ucb_c=args.ucb_c,
        population_size=args.population_size,
        elite_ratio=args.elite_ratio,
        generations=args.generations,
        mutation_rate=args.mutation_rate,
        crossover_rate=args.crossover_rate,
        two_opt_rate=args.two_opt_rate,
        k_neighbors=args.k_neighbors,
        random_seed=args.seed,
        log_interval=args.log_interval,
    )


def run(args) -> SolveResult:
    t0 = time.perf_counter()
    path = Path(args.instance)
    log(f"loading instance {path}")
    try:
        instance = load_instance(path)
    except (FileNotFoundError, InstanceFormatError) as exc:
        logger.error("%s", exc)
        raise SystemExit(1)
    cfg = config_from_args(args)
    device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
    oracle = build_distance_oracle(instance.x, instance.y, k=cfg.k_neighbors, device=device)
    if cfg.k_neighbors > 0:
        log(f"sparse distance cache built with k={cfg.k_neighbors} neighbours")
    log(f"{instance.name}: {instance.n} cities, oracle ready in {time.perf_counter() - t0:.2f}s")

    optimizer = GeneticOptimizer(cfg, oracle, instance.n, rng=random.Random(cfg.random_seed))
    result = optimizer.evolve()
    result.optimum = instance.optimum

    if is_valid_tsp_solution(result.tour, instance.n):
        log("valid solution found")
    else:
        logger.warning("invalid solution found")
    log(f"best distance: {result.length:.2f}")
    if result.optimum is not None:
        log(f"gap to known optimum: {result.gap:.2%}")
    log(f"runtime: {result.runtime:.2f}s")
    for name, stats in result.operator_stats.items():
        log(f"  {name}: pulls={stats['pulls']} mean_reward={stats['mean_reward']:.4f}")

    out_dir = Path(args.output_dir)
    out_path = out_dir / f"{instance.name}_{cfg.mode}.json"
    save_result(result, out_path)
    log(f"result written to {out_path}")
    return result


def show(args) -> None:
    path = Path(args.result)
    if not path.exists():
        print(f"No result found at {path}; run `tsp-aos run` first.")
        return
    result = load_result(path)
    n = len(result.tour)
    status = "valid" if is_valid_tsp_solution(result.tour, n) else "INVALID"
    print(f"solver={result.solver_name} length={result.length:.2f} cities={n} ({status})")
    print(f"generations={len(result.history)} runtime={result.runtime:.2f}s")
    if result.history:
        first, last = result.history[0], result.history[-1]
        print(f"convergence: gen {first[0]} {first[1]:.2f} -> gen {last[0]} {last[1]:.2f}")
    for name, stats in result.operator_stats.items():
        print(f"  {name}: pulls={stats['pulls']} mean_reward={stats['mean_reward']:.4f}")


def build_parser() -> argparse.ArgumentParser:
    defaults = EvolutionConfig()
    parser = argparse.ArgumentParser(description="Genetic algorithm for the TSP with UCB1 operator selection")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Evolve a tour for one instance")
    run_parser.add_argument("--instance", required=True, help="Plain coordinate file or TSPLIB .tsp")
    run_parser.add_argument("--mode", choices=MODES, default=defaults.mode,
                            help="'fixed' (fixed rates) or 'ucb1' (adaptive operator selection)")
    run_parser.add_argument("--ucb-c", type=float, default=defaults.ucb_c, help="UCB1 exploration constant")
    run_parser.add_argument("--generations", type=int, default=defaults.generations)
    run_parser.add_argument("--population-size", type=int, default=defaults.population_size)
    run_parser.add_argument("--elite-ratio", type=float, default=defaults.elite_ratio,
                            help="Fraction of the population kept as elite (0.1 = 10%%)")
    run_parser.add_argument("--mutation-rate", type=float, default=defaults.mutation_rate,
                            help="Swap mutation rate (fixed mode)")
    run_parser.add_argument("--crossover-rate", type=float, default=defaults.crossover_rate)
    run_parser.add_argument("--two-opt-rate", type=float, default=defaults.two_opt_rate)
    run_parser.add_argument("--k-neighbors", type=int, default=defaults.k_neighbors,
                            help="Neighbours for the sparse distance cache (0 = dense matrix)")
    run_parser.add_argument("--seed", type=int, default=None)
    run_parser.add_argument("--log-interval", type=int, default=defaults.log_interval)
    run_parser.add_argument("--output-dir", default=str(RESULTS_DIR))
    run_parser.set_defaults(func=run)

    show_parser = subparsers.add_parser("show", help="Inspect a saved result")
    show_parser.add_argument("result")
    show_parser.set_defaults(func=show)
    return parser


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s", stream=sys.stdout)
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
