from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
import tsplib95


class InstanceFormatError(ValueError):
    """Raised when an instance file cannot be parsed."""


@dataclass
class Instance:
    name: str
    path: Path
    n: int
    x: np.ndarray
    y: np.ndarray
    optimum: Optional[float] = None


def read_tsp_file(path) -> Tuple[int, np.ndarray, np.ndarray]:
    """
    Read the plain coordinate format: a city count on the first line, then one
    ``<index> <x> <y>`` line per city. Index ``i`` lands at ``x[i - 1]``.
    """
    path = Path(path)
    with path.open("r") as f:
        lines = [line.strip() for line in f]
    lines = [line for line in lines if line]
    if not lines:
        raise InstanceFormatError(f"{path}: empty file")
    try:
        num_cities = int(lines[0])
    except ValueError:
        raise InstanceFormatError(f"{path}: header {lines[0]!r} is not an integer city count") from None
    if num_cities < 0:
        raise InstanceFormatError(f"{path}: negative city count {num_cities}")
    x = np.zeros(num_cities, dtype=np.float64)
    y = np.zeros(num_cities, dtype=np.float64)
    for lineno, line in enumerate(lines[1:], start=2):
        parts = line.split()
        if len(parts) != 3:
            raise InstanceFormatError(f"{path}:{lineno}: expected '<index> <x> <y>', got {line!r}")
        try:
            idx = int(float(parts[0]))
            cx, cy = float(parts[1]), float(parts[2])
        except ValueError:
            raise InstanceFormatError(f"{path}:{lineno}: non-numeric field in {line!r}") from None
        if not 1 <= idx <= num_cities:
            raise InstanceFormatError(f"{path}:{lineno}: city index {idx} outside [1, {num_cities}]")
        x[idx - 1] = cx
        y[idx - 1] = cy
    return num_cities, x, y


def _solution_candidates(path: Path) -> Iterable[Path]:
    yield path.with_suffix(".opt.tour")
    for ext in (".opt.tour", ".opt", ".tour"):
        yield path.parent / "solutions" / f"{path.stem}{ext}"


def _load_optimum(problem, path: Path) -> Optional[float]:
    for candidate in _solution_candidates(path):
        if not candidate.exists():
            continue
        tour_file = tsplib95.parse(candidate.read_text())
        if not tour_file.tours:
            continue
        nodes = list(tour_file.tours[0])
        dist = 0.0
        for i in range(len(nodes)):
            a = nodes[i]
            b = nodes[(i + 1) % len(nodes)]
            dist += problem.get_weight(a, b)
        return float(dist)
    return None


def load_tsplib_instance(path) -> Instance:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Instance file not found: {path}")
    problem = tsplib95.load(path)
    coords = problem.node_coords
    if not coords:
        raise InstanceFormatError(f"{path}: TSPLIB instance has no NODE_COORD_SECTION")
    n = len(coords)
    if sorted(coords) != list(range(1, n + 1)):
        raise InstanceFormatError(f"{path}: node ids must be exactly 1..{n}")
    x = np.array([coords[i][0] for i in range(1, n + 1)], dtype=np.float64)
    y = np.array([coords[i][1] for i in range(1, n + 1)], dtype=np.float64)
    optimum = _load_optimum(problem, path)
    return Instance(name=problem.name or path.stem, path=path, n=n, x=x, y=y, optimum=optimum)


def load_instance(path) -> Instance:
    path = Path(path)
    if path.suffix.lower() == ".tsp":
        return load_tsplib_instance(path)
    n, x, y = read_tsp_file(path)
    return Instance(name=path.stem, path=path, n=n, x=x, y=y)


def is_valid_tsp_solution(route: Sequence[int], num_cities: int) -> bool:
    # An empty tour is never a solution, even for zero cities.
    if num_cities <= 0:
        return False
    return len(route) == num_cities and set(route) == set(range(1, num_cities + 1))
