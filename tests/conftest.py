import itertools
import math

import numpy as np
import pytest

from tsp_bnb.cost import CostModel, Mode
from tsp_bnb.data import Node


@pytest.fixture
def square_nodes():
    return [Node(0.0, 0.0), Node(1.0, 0.0), Node(1.0, 1.0), Node(0.0, 1.0)]


@pytest.fixture
def easy_model():
    return CostModel(Mode.EASY)


def best_completion(matrix: np.ndarray, path) -> float:
    """Cheapest closed tour that starts with ``path`` (exhaustive)."""
    n = matrix.shape[0]
    if not path:
        return min(best_completion(matrix, (s,)) for s in range(n))
    prefix = sum(matrix[a, b] for a, b in zip(path, path[1:]))
    if len(path) == n + 1:
        return float(prefix)
    rest = [c for c in range(n) if c not in path]
    best = math.inf
    for perm in itertools.permutations(rest):
        tour = list(path) + list(perm) + [path[0]]
        cost = prefix + sum(matrix[a, b] for a, b in zip(tour[len(path) - 1 :], tour[len(path) :]))
        best = min(best, cost)
    return float(best)
