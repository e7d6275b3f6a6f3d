import random

import numpy as np

from tsp_aos.data import is_valid_tsp_solution
from tsp_aos.distances import build_distance_oracle
from tsp_aos.evolutionary import EvolutionConfig, GeneticOptimizer


def main():
    rng = np.random.default_rng(7)
    n = 60
    x = rng.uniform(0, 100, n)
    y = rng.uniform(0, 100, n)
    oracle = build_distance_oracle(x, y, k=10)

    for mode in ("fixed", "ucb1"):
        cfg = EvolutionConfig(
            mode=mode,
            population_size=30,
            generations=40,
            two_opt_rate=0.3,
            random_seed=7,
            log_interval=10,
        )
        optimizer = GeneticOptimizer(cfg, oracle, n, rng=random.Random(cfg.random_seed))
        result = optimizer.evolve()
        valid = is_valid_tsp_solution(result.tour, n)
        print(f"{mode}: best={result.length:.2f} valid={valid} runtime={result.runtime:.2f}s")
        for name, stats in result.operator_stats.items():
            print(f"  {name}: pulls={stats['pulls']} mean_reward={stats['mean_reward']:.3f}")


if __name__ == "__main__":
    main()
