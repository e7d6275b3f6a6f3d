import copy
import logging
import random
import time
from dataclasses import dataclass
from typing import List, Optional

from .distances import DistanceOracle
from .selection import UCB1Selector
from .solvers.base import History, SolveResult
from .solvers.individual import Individual
from .solvers.operators import ALL_OPERATORS, apply_mutations, apply_operator, ordered_crossover


logger = logging.getLogger(__name__)

MODES = ("fixed", "ucb1")


@dataclass
class EvolutionConfig:
    mode: str = "ucb1"
    ucb_c: float = 2.0
    population_size: int = 100
    elite_ratio: float = 0.1
    generations: int = 1000
    mutation_rate: float = 0.01
    crossover_rate: float = 0.8
    two_opt_rate: float = 0.1
    k_neighbors: int = 20
    random_seed: Optional[int] = None
    log_interval: int = 100

    @property
    def elite_count(self) -> int:
        return round(self.population_size * self.elite_ratio)


class GeneticOptimizer:
    """
    Generational GA over TSP routes.

    Each generation the population is sorted, the best ``elite_count``
    individuals are carried over as deep copies, and the rest is refilled by
    either fixed-rate crossover/mutation or UCB1-selected operators.
    """

    def __init__(
        self,
        config: EvolutionConfig,
        oracle: DistanceOracle,
        n_cities: int,
        rng: random.Random = None,
    ):
        if config.mode not in MODES:
            raise ValueError(f"Unknown mode {config.mode!r}; expected one of {MODES}")
        if config.population_size <= 0 or config.generations < 0:
            raise ValueError("population_size must be positive and generations non-negative")
        self.cfg = config
        self.oracle = oracle
        self.n_cities = n_cities
        self.rng = rng or random.Random(config.random_seed)
        self.population: List[Individual] = []
        self.history: History = []
        self.selector: Optional[UCB1Selector] = None
        if config.mode == "ucb1":
            self.selector = UCB1Selector(ALL_OPERATORS, exploration_constant=config.ucb_c)
            logger.info("optimizer created with UCB1 (c=%s)", config.ucb_c)

    def initialize_population(self) -> None:
        self.population = [
            Individual.random(self.n_cities, self.oracle, self.rng) for _ in range(self.cfg.population_size)
        ]

    def sort_population(self) -> None:
        self.population.sort(key=lambda ind: ind.fitness)

    def select_elite(self) -> List[Individual]:
        """Best ``elite_count`` individuals of an already sorted population."""
        return self.population[: self.cfg.elite_count]

    def _record(self, generation: int) -> None:
        best = self.population[0].fitness
        self.history.append((generation, best))
        if self.cfg.log_interval and generation % self.cfg.log_interval == 0:
            logger.info("generation %d/%d | best distance: %.2f", generation, self.cfg.generations, best)

    def _child_fixed(self, elites: List[Individual]) -> Individual:
        parent_a, parent_b = self.rng.sample(elites, 2)
        if self.rng.random() < self.cfg.crossover_rate:
            child = ordered_crossover(parent_a, parent_b, self.oracle, self.rng)
            apply_mutations(
                child,
                self.oracle,
                self.rng,
                swap_rate=self.cfg.mutation_rate,
                two_opt_rate=self.cfg.two_opt_rate,
            )
            return child
        return (parent_a if self.rng.random() < 0.5 else parent_b).clone()

    def _child_ucb1(self, elites: List[Individual]) -> Individual:
        op = self.selector.select()
        parent_a, parent_b = self.rng.sample(elites, 2)
        child, reward = apply_operator(op, parent_a, parent_b, self.oracle, self.rng)
        self.selector.update(op, reward)
        return child

    def step(self, generation: int) -> None:
        self.sort_population()
        self._record(generation)
        elites = self.select_elite()
        new_pop: List[Individual] = copy.deepcopy(elites)
        make_child = self._child_ucb1 if self.selector is not None else self._child_fixed
        while len(new_pop) < self.cfg.population_size:
            new_pop.append(make_child(elites))
        self.population = new_pop

    def best(self) -> Individual:
        self.sort_population()
        return self.population[0]

    def evolve(self) -> SolveResult:
        if not self.population:
            self.initialize_population()
        start = time.perf_counter()
        label = "UCB1" if self.selector is not None else "fixed rates"
        logger.info("starting evolution with %s", label)
        for generation in range(1, self.cfg.generations + 1):
            self.step(generation)
        best = self.best()
        runtime = time.perf_counter() - start
        return SolveResult(
            tour=list(best.route),
            length=best.fitness,
            history=list(self.history),
            runtime=runtime,
            solver_name=f"ga-{self.cfg.mode}",
            operator_stats=self.selector.stats() if self.selector is not None else {},
        )
