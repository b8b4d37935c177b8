import itertools
import math
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
import torch

from .solvers.base import Solver, Tour


# 9! permutations once city 0 is fixed.
MAX_BRUTE_FORCE_NODES = 10


@dataclass
class Evaluation:
    cost: float
    runtime: float
    gap: float
    solver_name: str
    optimal: bool
    count: str


def _tour_costs_torch(dist: torch.Tensor, tours: torch.Tensor) -> torch.Tensor:
    a = tours
    b = tours.roll(-1, dims=1)
    return dist[a, b].sum(dim=1)


def brute_force_optimum(matrix: np.ndarray) -> Tuple[float, Optional[Tour]]:
    """Exact optimum by enumerating every tour that starts at city 0."""
    n = matrix.shape[0]
    if n < 2:
        raise ValueError(f"need at least 2 nodes, got {n}")
    if n > MAX_BRUTE_FORCE_NODES:
        raise ValueError(f"brute force limited to {MAX_BRUTE_FORCE_NODES} nodes, got {n}")
    dist = torch.tensor(np.asarray(matrix, dtype=np.float64))
    rest = torch.tensor(list(itertools.permutations(range(1, n))), dtype=torch.long).reshape(-1, n - 1)
    tours = torch.cat([torch.zeros((rest.shape[0], 1), dtype=torch.long), rest], dim=1)
    costs = _tour_costs_torch(dist, tours)
    best = int(torch.argmin(costs).item())
    cost = costs[best].item()
    if math.isinf(cost):
        return math.inf, None
    return cost, tours[best].tolist()


def evaluate_solver(
    solver: Solver,
    problem,
    time_limit: Optional[float] = None,
    optimum: Optional[float] = None,
) -> Evaluation:
    start = time.perf_counter()
    result = solver.solve(problem, time_limit)
    runtime = time.perf_counter() - start
    if optimum is None or math.isinf(optimum) or math.isclose(optimum, 0.0):
        gap = float("inf")
    else:
        gap = (result.cost - optimum) / optimum
    return Evaluation(
        cost=result.cost,
        runtime=runtime,
        gap=gap,
        solver_name=solver.name,
        optimal=result.optimal,
        count=result.count,
    )


def aggregate(evaluations: List[Evaluation]) -> Dict[str, float]:
    if not evaluations:
        return {"cost": float("inf"), "gap": float("inf"), "runtime": float("inf")}
    cost = sum(e.cost for e in evaluations) / len(evaluations)
    finite = [e.gap for e in evaluations if e.gap != float("inf")]
    gap = sum(finite) / max(1, len(finite))
    runtime = sum(e.runtime for e in evaluations) / len(evaluations)
    return {"cost": cost, "gap": gap, "runtime": runtime}
