import hashlib
import random
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import networkx as nx
import numpy as np
import tsplib95

from .cost import CostModel, Mode, build_cost_model
from .solvers import finite_graph


# Elevation range that makes distances asymmetric.
MAX_ELEVATION = 0.10
# Hard mode only.
FRACTION_OF_PATHS_TO_REMOVE = 0.20


@dataclass(frozen=True, eq=False)
class Node:
    """A point in the unit square; compared by identity."""

    x: float
    y: float
    elevation: float = 0.0


@dataclass
class ProblemConfig:
    size: int = 25
    seed: int = 1
    mode: str = "normal"
    fraction_removed: float = FRACTION_OF_PATHS_TO_REMOVE

    def remove_count(self) -> int:
        return int(self.size * self.fraction_removed)


@dataclass
class Problem:
    name: str
    nodes: List[Node]
    mode: Mode
    seed: int
    cost_model: CostModel
    config: Optional[ProblemConfig] = None
    source: Optional[Path] = None
    _matrix: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def size(self) -> int:
        return len(self.nodes)

    def matrix(self) -> np.ndarray:
        if self._matrix is None:
            self._matrix = self.cost_model.matrix(self.nodes)
        return self._matrix.copy()

    def graph(self) -> nx.DiGraph:
        """Directed graph of the usable (finite-cost) edges."""
        graph = finite_graph(self.matrix())
        for i, node in enumerate(self.nodes):
            graph.nodes[i].update(x=node.x, y=node.y, elevation=node.elevation)
        return graph

    def to_state(self) -> Dict:
        state = {
            "name": self.name,
            "seed": self.seed,
            "mode": self.mode.value,
            "size": self.size,
            "config": asdict(self.config) if self.config else None,
            "removed_edges": self.cost_model.remover.removed_count if self.cost_model.remover else 0,
            "nodes": [asdict(n) for n in self.nodes],
        }
        if self.source is not None:
            state["source"] = str(self.source)
            state["hash"] = hash_file(self.source)
        return state


def hash_file(path: Path, chunk_size: int = 65536) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        while True:
            data = f.read(chunk_size)
            if not data:
                break
            h.update(data)
    return h.hexdigest()


def _random_nodes(size: int, mode: Mode, rng: random.Random) -> List[Node]:
    if mode is Mode.EASY:
        return [Node(rng.random(), rng.random()) for _ in range(size)]
    return [Node(rng.random(), rng.random(), rng.random() * MAX_ELEVATION) for _ in range(size)]


def generate_problem(
    size: int,
    mode="normal",
    seed: int = 1,
    fraction_removed: float = FRACTION_OF_PATHS_TO_REMOVE,
) -> Problem:
    if size < 1:
        raise ValueError(f"problem size must be positive, got {size}")
    mode = Mode.parse(mode)
    cfg = ProblemConfig(size=size, seed=seed, mode=mode.value, fraction_removed=fraction_removed)
    rng = random.Random(seed)
    nodes = _random_nodes(size, mode, rng)
    cost_model = build_cost_model(nodes, mode, rng, remove_count=cfg.remove_count())
    return Problem(
        name=f"random-{size}-{mode.value}-{seed}",
        nodes=nodes,
        mode=mode,
        seed=seed,
        cost_model=cost_model,
        config=cfg,
    )


def load_problem(
    path: Path,
    mode="easy",
    seed: int = 1,
    fraction_removed: float = FRACTION_OF_PATHS_TO_REMOVE,
) -> Problem:
    """Read node coordinates from a TSPLIB file, scaled into the unit square."""
    path = Path(path)
    tsp = tsplib95.load(path)
    coords = tsp.node_coords or tsp.display_data
    if not coords:
        raise ValueError(f"{path} has no node coordinates")
    xy = np.array([coords[k][:2] for k in sorted(coords)], dtype=np.float64)
    lo = xy.min(axis=0)
    span = float((xy.max(axis=0) - lo).max()) or 1.0
    xy = (xy - lo) / span
    mode = Mode.parse(mode)
    rng = random.Random(seed)
    if mode is Mode.EASY:
        nodes = [Node(float(x), float(y)) for x, y in xy]
    else:
        nodes = [Node(float(x), float(y), rng.random() * MAX_ELEVATION) for x, y in xy]
    cfg = ProblemConfig(size=len(nodes), seed=seed, mode=mode.value, fraction_removed=fraction_removed)
    cost_model = build_cost_model(nodes, mode, rng, remove_count=cfg.remove_count())
    return Problem(
        name=tsp.name or path.stem,
        nodes=nodes,
        mode=mode,
        seed=seed,
        cost_model=cost_model,
        config=cfg,
        source=path,
    )


def problem_from_state(state: Dict) -> Problem:
    """Rebuild a problem from ``Problem.to_state()`` output."""
    cfg = ProblemConfig(**state["config"])
    if state.get("source"):
        path = Path(state["source"])
        if "hash" in state and hash_file(path) != state["hash"]:
            raise ValueError(f"{path} changed since the state was saved")
        return load_problem(path, mode=cfg.mode, seed=cfg.seed, fraction_removed=cfg.fraction_removed)
    return generate_problem(cfg.size, mode=cfg.mode, seed=cfg.seed, fraction_removed=cfg.fraction_removed)
