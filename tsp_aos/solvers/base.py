import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..distances import DistanceOracle


Tour = List[int]
History = List[Tuple[int, float]]


def tour_length(oracle: DistanceOracle, tour: Sequence[int]) -> float:
    dist = 0.0
    n = len(tour)
    for i in range(n - 1):
        dist += oracle.distance(tour[i], tour[i + 1])
    if n:
        dist += oracle.distance(tour[n - 1], tour[0])
    return float(dist)


@dataclass
class SolveResult:
    tour: Tour
    length: float
    history: History = field(default_factory=list)
    runtime: float = 0.0
    solver_name: str = "ga"
    optimum: Optional[float] = None
    operator_stats: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def gap(self) -> float:
        if self.optimum is None or math.isclose(self.optimum, 0.0):
            return float("inf")
        return (self.length - self.optimum) / self.optimum
