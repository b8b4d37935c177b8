import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Sequence

import numpy as np


Tour = List[int]


class TspError(Exception):
    pass


class InfeasibleProblemError(TspError):
    """No Hamiltonian cycle with finite cost exists."""


class EdgeRemovalError(TspError):
    """Edge removal could not reach the requested count within its attempt budget."""


def tour_cost(matrix: np.ndarray, tour: Sequence[int]) -> float:
    """Cost of the closed tour, including the edge from the last city back to the first."""
    cost = 0.0
    n = len(tour)
    for i in range(n):
        a = tour[i]
        b = tour[(i + 1) % n]
        cost += matrix[a][b]
    return float(cost)


@dataclass
class SearchStats:
    stored: int = 0
    pruned: int = 0
    peak_queue: int = 0
    updates: int = 0
    expanded: int = 0

    def to_dict(self):
        return asdict(self)


@dataclass
class SolveResult:
    tour: Tour
    cost: float
    solver_name: str
    optimal: bool = False
    reason: str = "complete"
    elapsed: float = 0.0
    stats: SearchStats = field(default_factory=SearchStats)
    nodes: Optional[list] = None

    @property
    def feasible(self) -> bool:
        return bool(self.tour) and not math.isinf(self.cost)

    @property
    def count(self) -> str:
        s = self.stats
        return f"{s.peak_queue}/{s.updates}/{s.stored}/{s.pruned}"

    def to_dict(self):
        return {
            "solver": self.solver_name,
            "tour": list(self.tour),
            "cost": self.cost,
            "optimal": self.optimal,
            "reason": self.reason,
            "elapsed": self.elapsed,
            "stats": self.stats.to_dict(),
        }


class Solver(ABC):
    name: str = "base"

    @abstractmethod
    def solve(self, problem, time_limit: Optional[float] = None) -> SolveResult:
        raise NotImplementedError
