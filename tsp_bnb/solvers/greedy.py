import logging
import math
import time
from typing import Optional, Tuple

import numpy as np

from .base import InfeasibleProblemError, SolveResult, Solver, Tour, tour_cost
from .state import SearchState


logger = logging.getLogger(__name__)


def nearest_neighbor_tour(matrix: np.ndarray, start: int) -> Optional[Tuple[float, Tour]]:
    """Walk to the cheapest unvisited city; ``None`` if the walk dead-ends."""
    n = matrix.shape[0]
    tour = [start]
    unvisited = set(range(n))
    unvisited.remove(start)
    current = start
    while unvisited:
        nxt = min(unvisited, key=lambda city: (matrix[current, city], city))
        if math.isinf(matrix[current, nxt]):
            return None
        tour.append(nxt)
        unvisited.remove(nxt)
        current = nxt
    cost = tour_cost(matrix, tour)
    if math.isinf(cost):
        return None
    return cost, tour


def greedy_completion(state: SearchState) -> Optional[SearchState]:
    """Follow the child with the smallest lower bound until the tour closes."""
    while not state.is_complete:
        cheapest = None
        for to_city in range(state.size):
            if not state.can_visit(to_city):
                continue
            branch = state.visit(to_city)
            if cheapest is None or branch.lower_bound < cheapest.lower_bound:
                cheapest = branch
        if cheapest is None:
            return None
        state = cheapest
    return state


class GreedySolver(Solver):
    name = "greedy"

    def __init__(self, all_starts: Optional[bool] = None):
        # None: every start only when edges may be missing.
        self.all_starts = all_starts

    def solve(self, problem, time_limit: Optional[float] = None) -> SolveResult:
        start_time = time.perf_counter()
        matrix = problem.matrix()
        n = matrix.shape[0]
        if n < 2:
            raise ValueError("need at least 2 nodes")
        all_starts = self.all_starts
        if all_starts is None:
            all_starts = bool(np.isinf(matrix[~np.eye(n, dtype=bool)]).any())
        best = None
        tried = 0
        for start in range(n) if all_starts else [0]:
            tried += 1
            found = nearest_neighbor_tour(matrix, start)
            if found is None:
                continue
            if best is None or found[0] < best[0]:
                best = found
        if best is None:
            raise InfeasibleProblemError(f"no greedy tour found from {tried} start(s)")
        cost, tour = best
        logger.debug("greedy tour cost=%s from %d start(s)", cost, tried)
        return SolveResult(
            tour=tour,
            cost=cost,
            solver_name=self.name,
            reason="complete",
            elapsed=time.perf_counter() - start_time,
            nodes=[problem.nodes[i] for i in tour],
        )
