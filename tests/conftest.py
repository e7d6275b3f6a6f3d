import random

import numpy as np
import pytest

from tsp_aos.distances import build_distance_oracle


SQUARE_X = [0.0, 1.0, 1.0, 0.0]
SQUARE_Y = [0.0, 0.0, 1.0, 1.0]


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def square_oracle():
    """Unit square; the optimal tour 1-2-3-4 has length 4."""
    return build_distance_oracle(SQUARE_X, SQUARE_Y, k=0)


@pytest.fixture
def random_points():
    gen = np.random.default_rng(42)
    n = 25
    return n, gen.uniform(0, 100, n), gen.uniform(0, 100, n)


@pytest.fixture
def random_oracle(random_points):
    _, x, y = random_points
    return build_distance_oracle(x, y, k=0)
