import copy
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Tuple

from ..distances import DistanceOracle
from .base import Tour, tour_length


MAX_TABU_SIZE = 1000


def random_route(num_cities: int, rng: random.Random) -> Tour:
    route = list(range(1, num_cities + 1))
    rng.shuffle(route)
    return route


def _tabu_deque(moves=()) -> Deque[Tuple[int, int]]:
    return deque(moves, maxlen=MAX_TABU_SIZE)


@dataclass
class Individual:
    route: Tour
    fitness: float
    tabu_moves: Deque[Tuple[int, int]] = field(default_factory=_tabu_deque)

    def __post_init__(self):
        if not isinstance(self.tabu_moves, deque) or self.tabu_moves.maxlen != MAX_TABU_SIZE:
            self.tabu_moves = _tabu_deque(self.tabu_moves)

    @staticmethod
    def random(num_cities: int, oracle: DistanceOracle, rng: random.Random) -> "Individual":
        route = random_route(num_cities, rng)
        return Individual(route=route, fitness=tour_length(oracle, route))

    @staticmethod
    def from_route(route: Tour, oracle: DistanceOracle) -> "Individual":
        route = list(route)
        return Individual(route=route, fitness=tour_length(oracle, route))

    def evaluate(self, oracle: DistanceOracle) -> float:
        self.fitness = tour_length(oracle, self.route)
        return self.fitness

    def is_tabu(self, pos1: int, pos2: int) -> bool:
        return (min(pos1, pos2), max(pos1, pos2)) in self.tabu_moves

    def record_tabu(self, pos1: int, pos2: int) -> None:
        # deque(maxlen) drops the oldest move once full.
        self.tabu_moves.append((min(pos1, pos2), max(pos1, pos2)))

    def clone(self) -> "Individual":
        return copy.deepcopy(self)

    def __len__(self) -> int:
        return len(self.route)
