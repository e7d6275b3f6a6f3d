"""
Distance oracles answering city-pair lookups for the evolutionary engine.

Cities are identified by 1-based ids; coordinates are stored 0-based.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import networkx as nx
import numpy as np
import torch


class DistanceOracle(ABC):
    name: str = "base"

    @abstractmethod
    def distance(self, city_a: int, city_b: int) -> float:
        raise NotImplementedError


class DenseDistanceOracle(DistanceOracle):
    name = "dense"

    def __init__(self, matrix: np.ndarray):
        self.matrix = np.asarray(matrix, dtype=np.float64)
        # Plain nested lists index much faster than numpy scalars in the 2-opt sweep.
        self._rows = self.matrix.tolist()

    def distance(self, city_a: int, city_b: int) -> float:
        return self._rows[city_a - 1][city_b - 1]


class SparseDistanceOracle(DistanceOracle):
    """
    k-nearest-neighbour cache stored as a weighted networkx graph.
    Pairs without a cached (positive) weight are computed exactly on demand.
    """

    name = "sparse"

    def __init__(self, graph: nx.Graph, x: Sequence[float], y: Sequence[float]):
        self.graph = graph
        self.x = [float(v) for v in x]
        self.y = [float(v) for v in y]

    def exact(self, city_a: int, city_b: int) -> float:
        return math.hypot(self.x[city_a - 1] - self.x[city_b - 1], self.y[city_a - 1] - self.y[city_b - 1])

    def distance(self, city_a: int, city_b: int) -> float:
        data = self.graph.get_edge_data(city_a, city_b)
        cached = data["weight"] if data else 0.0
        return cached if cached > 0 else self.exact(city_a, city_b)


KNN_CHUNK_ROWS = 1024


def _coords(x: Sequence[float], y: Sequence[float], device: Optional[torch.device]) -> torch.Tensor:
    return torch.tensor(np.column_stack([x, y]), dtype=torch.float64, device=device)


def _cdist(a: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
    # The matmul shortcut loses precision on near-identical points.
    return torch.cdist(a, b, compute_mode="donot_use_mm_for_euclid_dist")


def _knn_graph(coords: torch.Tensor, k: int, chunk_rows: int = KNN_CHUNK_ROWS) -> nx.Graph:
    """Only a ``chunk_rows x n`` block of distances is held at a time."""
    n = coords.shape[0]
    graph = nx.Graph()
    graph.add_nodes_from(range(1, n + 1))
    k_eff = min(k + 1, n)
    for start in range(0, n, chunk_rows):
        block = _cdist(coords[start : start + chunk_rows], coords)
        values, indices = torch.topk(block, k_eff, dim=1, largest=False)
        for offset, (nbrs, ws) in enumerate(zip(indices.cpu().tolist(), values.cpu().tolist())):
            row = start + offset
            for col, w in zip(nbrs, ws):
                if col != row:
                    graph.add_edge(row + 1, col + 1, weight=float(w))
    return graph


def build_distance_oracle(
    x: Sequence[float],
    y: Sequence[float],
    k: int = 0,
    device: Optional[torch.device] = None,
    chunk_rows: int = KNN_CHUNK_ROWS,
) -> DistanceOracle:
    """
    Build a dense all-pairs oracle (k == 0) or a sparse k-nearest-neighbour
    oracle with exact fallback (k > 0). The sparse build never materialises
    the full distance matrix.
    """
    if k < 0:
        raise ValueError(f"k must be >= 0, got {k}")
    if len(x) != len(y):
        raise ValueError("x and y coordinate sequences differ in length")
    coords = _coords(x, y, device)
    if k == 0:
        return DenseDistanceOracle(_cdist(coords, coords).cpu().numpy())
    return SparseDistanceOracle(_knn_graph(coords, k, chunk_rows), x, y)
