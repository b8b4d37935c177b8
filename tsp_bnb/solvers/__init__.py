from .base import (
    EdgeRemovalError,
    InfeasibleProblemError,
    SearchStats,
    Solver,
    SolveResult,
    Tour,
    TspError,
    tour_cost,
)
from .state import DEPTH_SCALE, SearchState
from .greedy import GreedySolver, greedy_completion, nearest_neighbor_tour
from .branch_and_bound import BranchAndBoundEngine, BranchAndBoundSolver, SearchConfig, finite_graph, search

SOLVERS = {
    "bnb": BranchAndBoundSolver,
    "greedy": GreedySolver,
}

__all__ = [
    "Solver",
    "SolveResult",
    "SearchStats",
    "Tour",
    "tour_cost",
    "TspError",
    "InfeasibleProblemError",
    "EdgeRemovalError",
    "DEPTH_SCALE",
    "SearchState",
    "GreedySolver",
    "greedy_completion",
    "nearest_neighbor_tour",
    "BranchAndBoundEngine",
    "BranchAndBoundSolver",
    "SearchConfig",
    "finite_graph",
    "search",
    "SOLVERS",
]
