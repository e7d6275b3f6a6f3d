import random
from enum import Enum
from typing import List, Tuple

from ..distances import DistanceOracle
from .base import Tour, tour_length
from .individual import Individual


TWO_OPT_EPS = 1e-9
SWAP_FRACTION = 0.005


class Operator(str, Enum):
    CROSSOVER = "crossover"
    SWAP_MUTATION = "swap_mutation"
    INVERSION_MUTATION = "inversion_mutation"
    TWO_OPT = "two_opt"


ALL_OPERATORS: List[Operator] = list(Operator)


def order_crossover_routes(route_a: Tour, route_b: Tour, cut1: int, cut2: int) -> Tour:
    """
    OX1 on raw routes with inclusive 0-based cuts ``cut1 <= cut2``.

    The segment ``route_a[cut1:cut2 + 1]`` keeps its positions; the other
    positions are filled left to right with the remaining cities in the order
    they appear in ``route_b``.
    """
    n = len(route_a)
    child = [0] * n
    child[cut1 : cut2 + 1] = route_a[cut1 : cut2 + 1]
    used = set(child[cut1 : cut2 + 1])
    # route_b is a permutation, so the scan never needs to restart.
    b_pos = 0
    for pos in range(n):
        if cut1 <= pos <= cut2:
            continue
        while route_b[b_pos] in used:
            b_pos += 1
        child[pos] = route_b[b_pos]
        b_pos += 1
    return child


def ordered_crossover(
    parent_a: Individual, parent_b: Individual, oracle: DistanceOracle, rng: random.Random
) -> Individual:
    n = len(parent_a.route)
    if n < 2:
        return parent_a.clone()
    cut1, cut2 = sorted(rng.sample(range(n), 2))
    route = order_crossover_routes(parent_a.route, parent_b.route, cut1, cut2)
    return Individual(route=route, fitness=tour_length(oracle, route), tabu_moves=list(parent_a.tabu_moves))


def num_swaps(route_length: int) -> int:
    return max(1, round(route_length * SWAP_FRACTION))


def swap_mutation(individual: Individual, oracle: DistanceOracle, rng: random.Random) -> bool:
    route = individual.route
    n = len(route)
    k = num_swaps(n)
    if n < 2 * k:
        return False
    positions = rng.sample(range(n), 2 * k)
    swapped = False
    for i in range(0, len(positions), 2):
        p1, p2 = positions[i], positions[i + 1]
        if abs(p1 - p2) <= 1 or individual.is_tabu(p1, p2):
            continue
        route[p1], route[p2] = route[p2], route[p1]
        individual.record_tabu(p1, p2)
        swapped = True
    if swapped:
        individual.evaluate(oracle)
    return swapped


def two_opt(individual: Individual, oracle: DistanceOracle) -> bool:
    """
    One first-improvement 2-opt sweep, in place.

    Every improving reversal is applied as soon as it is found and the cached
    fitness is moved by the exact edge delta. Returns True if anything changed.
    """
    route = individual.route
    n = len(route)
    dist = oracle.distance
    improved = False
    for i in range(n - 2):
        for j in range(i + 2, n):
            j_next = (j + 1) % n
            a, b = route[i], route[i + 1]
            c, d = route[j], route[j_next]
            current = dist(a, b) + dist(c, d)
            candidate = dist(a, c) + dist(b, d)
            if candidate < current - TWO_OPT_EPS:
                route[i + 1 : j + 1] = route[i + 1 : j + 1][::-1]
                individual.fitness += candidate - current
                improved = True
    return improved


def inversion_mutation(
    individual: Individual, oracle: DistanceOracle, rng: random.Random, rate: float = 0.01
) -> bool:
    n = len(individual.route)
    if n < 2 or rng.random() >= rate:
        return False
    start, end = sorted(rng.sample(range(n), 2))
    individual.route[start : end + 1] = individual.route[start : end + 1][::-1]
    individual.evaluate(oracle)
    two_opt(individual, oracle)
    return True


def apply_mutations(
    individual: Individual,
    oracle: DistanceOracle,
    rng: random.Random,
    swap_rate: float = 0.01,
    two_opt_rate: float = 0.1,
) -> bool:
    applied = False
    if rng.random() < swap_rate:
        applied |= swap_mutation(individual, oracle, rng)
    if rng.random() < two_opt_rate:
        applied |= two_opt(individual, oracle)
    return applied


def crossover_reward(parent_a: Individual, parent_b: Individual, child: Individual) -> float:
    return (parent_a.fitness + parent_b.fitness) / 2 - child.fitness


def mutation_reward(parent: Individual, mutated: Individual) -> float:
    return parent.fitness - mutated.fitness


def apply_operator(
    op: Operator,
    parent_a: Individual,
    parent_b: Individual,
    oracle: DistanceOracle,
    rng: random.Random,
) -> Tuple[Individual, float]:
    """Apply ``op`` to private copies of the parents; return (child, reward)."""
    if op is Operator.CROSSOVER:
        child = ordered_crossover(parent_a, parent_b, oracle, rng)
        return child, crossover_reward(parent_a, parent_b, child)
    child = parent_a.clone()
    if op is Operator.SWAP_MUTATION:
        swap_mutation(child, oracle, rng)
    elif op is Operator.INVERSION_MUTATION:
        inversion_mutation(child, oracle, rng, rate=1.0)
    elif op is Operator.TWO_OPT:
        two_opt(child, oracle)
    else:
        raise ValueError(f"Unknown operator: {op!r}")
    return child, mutation_reward(parent_a, child)
