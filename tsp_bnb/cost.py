import logging
import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Set

import numpy as np

from .solvers.base import EdgeRemovalError


logger = logging.getLogger(__name__)

# Rounds continuous elevation into integer-like costs.
SCALE_FACTOR = 1000


class Mode(Enum):
    """
    Difficulty modes:
    - EASY: distances are symmetric
    - NORMAL: distances are asymmetric
    - HARD: asymmetric distances; some directed edges are blocked
    """

    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"

    @classmethod
    def parse(cls, name) -> "Mode":
        if isinstance(name, Mode):
            return name
        for mode in cls:
            if mode.value == str(name).strip().lower():
                return mode
        return DEFAULT_MODE


DEFAULT_MODE = Mode.NORMAL


@dataclass(frozen=True)
class DirectedEdge:
    source: object
    target: object


class EdgeRemover:
    def __init__(self, mode: Mode, nodes: Sequence, removed: Optional[Set[DirectedEdge]] = None, reference_cycle=None):
        self.mode = mode
        self.nodes = list(nodes)
        self._removed: Set[DirectedEdge] = set(removed or ())
        self.reference_cycle: List = list(reference_cycle or [])

    @staticmethod
    def max_removable(node_count: int) -> int:
        # n^2 - n (self-loops) - n (one full cycle) = n(n-2)
        return max(0, node_count * (node_count - 2))

    @classmethod
    def build(
        cls,
        mode: Mode,
        nodes: Sequence,
        rng: random.Random,
        count: int = 0,
        max_attempts: Optional[int] = None,
    ) -> "EdgeRemover":
        mode = Mode.parse(mode)
        if mode is not Mode.HARD or len(nodes) < 2:
            return cls(mode, nodes)
        n = len(nodes)
        count = min(max(0, count), cls.max_removable(n))
        reference = reference_cycle(nodes, rng)
        reference_edges = cycle_edges(reference)
        if count == cls.max_removable(n):
            removed = {
                DirectedEdge(a, b)
                for a in nodes
                for b in nodes
                if a is not b and DirectedEdge(a, b) not in reference_edges
            }
            return cls(mode, nodes, removed, reference)
        if max_attempts is None:
            max_attempts = 100 * n * n + 1000
        removed: Set[DirectedEdge] = set()
        attempts = 0
        while len(removed) < count:
            if attempts >= max_attempts:
                raise EdgeRemovalError(
                    f"removed {len(removed)}/{count} edges after {attempts} attempts"
                )
            attempts += 1
            a = nodes[rng.randrange(n)]
            b = nodes[rng.randrange(n)]
            edge = DirectedEdge(a, b)
            if a is b or edge in reference_edges or edge in removed:
                continue
            removed.add(edge)
        logger.debug("removed %d directed edges in %d attempts", len(removed), attempts)
        return cls(mode, nodes, removed, reference)

    def is_removed(self, source, target) -> bool:
        return DirectedEdge(source, target) in self._removed

    @property
    def removed_count(self) -> int:
        return len(self._removed)


def reference_cycle(nodes: Sequence, rng: random.Random) -> List:
    order = list(nodes)
    # Fisher-Yates, consuming the shared rng.
    for i in range(len(order) - 1, 0, -1):
        j = rng.randrange(i + 1)
        order[i], order[j] = order[j], order[i]
    return order


def cycle_edges(cycle: Sequence) -> Set[DirectedEdge]:
    n = len(cycle)
    return {DirectedEdge(cycle[i], cycle[(i + 1) % n]) for i in range(n)}


class CostModel:
    def __init__(self, mode: Mode, remover: Optional[EdgeRemover] = None):
        self.mode = Mode.parse(mode)
        self.remover = remover

    def cost(self, source, target) -> float:
        magnitude = math.hypot(source.x - target.x, source.y - target.y)
        if self.mode is not Mode.EASY:
            magnitude += target.elevation - source.elevation
        if magnitude < 0.0:
            magnitude = 0.0
        magnitude *= SCALE_FACTOR
        if self.remover is not None and self.remover.is_removed(source, target):
            return math.inf
        return float(round(magnitude))

    def matrix(self, nodes: Sequence) -> np.ndarray:
        n = len(nodes)
        mat = np.full((n, n), np.inf, dtype=np.float64)
        for i, a in enumerate(nodes):
            for j, b in enumerate(nodes):
                if i != j:
                    mat[i, j] = self.cost(a, b)
        return mat


def build_cost_model(
    nodes: Sequence,
    mode,
    rng: random.Random,
    remove_count: int = 0,
    max_attempts: Optional[int] = None,
) -> CostModel:
    mode = Mode.parse(mode)
    remover = EdgeRemover.build(mode, nodes, rng, count=remove_count, max_attempts=max_attempts)
    return CostModel(mode, remover)
