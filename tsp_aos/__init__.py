"""
Genetic algorithm for the TSP with adaptive (UCB1) operator selection.
"""

__all__ = [
    "cli",
    "data",
    "distances",
    "evolutionary",
    "selection",
]
