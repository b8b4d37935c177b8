import heapq
import itertools
import logging
import math
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence

import networkx as nx
import numpy as np

from .base import (
    InfeasibleProblemError,
    SearchStats,
    SolveResult,
    Solver,
    Tour,
)
from .greedy import greedy_completion, nearest_neighbor_tour
from .state import DEPTH_SCALE, SearchState


logger = logging.getLogger(__name__)

EXHAUSTED = "exhausted"
TIMEOUT = "timeout"


@dataclass
class SearchConfig:
    time_limit: Optional[float] = 60.0
    depth_scale: float = DEPTH_SCALE
    start_city: int = 0
    check_connectivity: bool = True


def finite_graph(matrix: np.ndarray) -> nx.DiGraph:
    """Directed graph of the usable (finite-cost) edges."""
    graph = nx.DiGraph()
    n = matrix.shape[0]
    graph.add_nodes_from(range(n))
    for a in range(n):
        for b in range(n):
            if a != b and not math.isinf(matrix[a, b]):
                graph.add_edge(a, b, weight=float(matrix[a, b]))
    return graph


def _rotate(path: Sequence[int], start: int) -> Tour:
    # Complete paths repeat the start city at the end.
    cycle = list(path[:-1])
    i = cycle.index(start)
    return cycle[i:] + cycle[:i]


class BranchAndBoundEngine:
    """
    Best-first branch and bound over reduced-matrix search states.

    The queue is ordered by ``SearchState.heuristic()``; a counter breaks
    ties so that ordering never falls through to the states themselves.
    """

    def __init__(
        self,
        matrix: np.ndarray,
        config: Optional[SearchConfig] = None,
        on_update: Optional[Callable[[float, Tour], None]] = None,
    ):
        self.matrix = np.asarray(matrix, dtype=np.float64)
        self.cfg = config or SearchConfig()
        self.on_update = on_update
        self.stats = SearchStats()
        self.best_cost = math.inf
        self.best_tour: Optional[Tour] = None
        n = self.matrix.shape[0]
        if n < 2:
            raise ValueError(f"need at least 2 nodes, got {n}")
        if not 0 <= self.cfg.start_city < n:
            raise ValueError(f"start city {self.cfg.start_city} out of range")

    @property
    def size(self) -> int:
        return self.matrix.shape[0]

    def _accept(self, cost: float, path: Sequence[int]) -> None:
        self.best_cost = cost
        self.best_tour = _rotate(path, self.cfg.start_city)
        logger.debug("incumbent cost=%s", self.best_cost)
        if self.on_update is not None:
            self.on_update(self.best_cost, list(self.best_tour))

    def initial_incumbent(self, root: SearchState) -> None:
        starts = [self.cfg.start_city] + [c for c in range(self.size) if c != self.cfg.start_city]
        for start in starts:
            state = greedy_completion(root.visit(start))
            if state is not None:
                self._accept(state.lower_bound, state.path)
                return
            logger.debug("greedy completion failed from city %d", start)
        for start in starts:
            found = nearest_neighbor_tour(self.matrix, start)
            if found is not None:
                cost, tour = found
                self._accept(cost, tour + [tour[0]])
                return
        logger.warning("no greedy tour found; searching until the first complete tour")

    def run(self) -> SolveResult:
        start_time = time.perf_counter()
        if self.cfg.check_connectivity and not nx.is_strongly_connected(finite_graph(self.matrix)):
            raise InfeasibleProblemError("usable edges do not connect every pair of nodes")

        root = SearchState.root(self.matrix, depth_scale=self.cfg.depth_scale)
        self.initial_incumbent(root)
        seed = root.visit(self.cfg.start_city)

        counter = itertools.count()
        queue: List = [(seed.heuristic(), next(counter), seed)]
        reason = EXHAUSTED
        stats = self.stats
        n = self.size
        while queue:
            stats.peak_queue = max(stats.peak_queue, len(queue))
            _, _, state = heapq.heappop(queue)
            stats.expanded += 1
            for to_city in range(n):
                if not state.can_visit(to_city):
                    continue
                branch = state.visit(to_city)
                if branch.lower_bound >= self.best_cost:
                    stats.pruned += 1
                    continue
                if branch.is_complete:
                    assert np.isinf(branch.matrix).all(), "cost matrix is not all infinity"
                    stats.updates += 1
                    self._accept(branch.lower_bound, branch.path)
                    continue
                stats.stored += 1
                heapq.heappush(queue, (branch.heuristic(), next(counter), branch))
            # The deadline only applies once there is a tour to report.
            if (
                self.best_tour is not None
                and self.cfg.time_limit is not None
                and time.perf_counter() - start_time > self.cfg.time_limit
            ):
                reason = TIMEOUT
                break

        elapsed = time.perf_counter() - start_time
        logger.info(
            "search %s after %.2fs: cost=%s stored=%d pruned=%d peak=%d updates=%d",
            reason,
            elapsed,
            self.best_cost,
            stats.stored,
            stats.pruned,
            stats.peak_queue,
            stats.updates,
        )
        if self.best_tour is None:
            raise InfeasibleProblemError("no feasible tour exists")
        return SolveResult(
            tour=list(self.best_tour),
            cost=self.best_cost,
            solver_name=BranchAndBoundSolver.name,
            optimal=reason == EXHAUSTED,
            reason=reason,
            elapsed=elapsed,
            stats=stats,
        )


def search(
    nodes: Sequence,
    cost_model,
    deadline: Optional[float] = None,
    config: Optional[SearchConfig] = None,
    on_update: Optional[Callable[[float, Tour], None]] = None,
) -> SolveResult:
    """
    Run branch and bound over ``nodes`` priced by ``cost_model``.

    ``deadline`` is the time budget in seconds; ``None`` searches to
    exhaustion. The reported tour lists each node once, starting at the
    first node.
    """
    if len(nodes) < 2:
        raise ValueError(f"need at least 2 nodes, got {len(nodes)}")
    cfg = replace(config or SearchConfig(), time_limit=deadline)
    engine = BranchAndBoundEngine(cost_model.matrix(nodes), cfg, on_update=on_update)
    result = engine.run()
    result.nodes = [nodes[i] for i in result.tour]
    return result


class BranchAndBoundSolver(Solver):
    name = "branch_and_bound"

    def __init__(self, config: Optional[SearchConfig] = None, on_update=None):
        self.cfg = config or SearchConfig()
        self.on_update = on_update

    def solve(self, problem, time_limit: Optional[float] = None) -> SolveResult:
        deadline = self.cfg.time_limit if time_limit is None else time_limit
        return search(problem.nodes, problem.cost_model, deadline, config=self.cfg, on_update=self.on_update)
