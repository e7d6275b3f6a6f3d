from .base import History, SolveResult, Tour, tour_length
from .individual import MAX_TABU_SIZE, Individual, random_route
from .operators import (
    ALL_OPERATORS,
    Operator,
    apply_mutations,
    apply_operator,
    inversion_mutation,
    order_crossover_routes,
    ordered_crossover,
    swap_mutation,
    two_opt,
)

__all__ = [
    "History",
    "SolveResult",
    "Tour",
    "tour_length",
    "MAX_TABU_SIZE",
    "Individual",
    "random_route",
    "ALL_OPERATORS",
    "Operator",
    "apply_mutations",
    "apply_operator",
    "inversion_mutation",
    "order_crossover_routes",
    "ordered_crossover",
    "swap_mutation",
    "two_opt",
]
