from typing import Tuple

import numpy as np


# Chosen so one extra level of depth outweighs a typical lower-bound increase
# (edge costs are scaled by 1000 on the unit square).
DEPTH_SCALE = 3000.0

NO_CITY = -1


class SearchState:
    """
    A node of the branch-and-bound tree.

    Each state owns its reduced cost matrix; ``matrix[a, b]`` is the
    remaining cost of going from city ``a`` to city ``b``. The lower bound
    never exceeds the cost of any tour that completes ``path``.
    """

    __slots__ = ("matrix", "lower_bound", "path", "current", "depth_scale")

    def __init__(
        self,
        matrix: np.ndarray,
        lower_bound: float = 0.0,
        path: Tuple[int, ...] = (),
        current: int = NO_CITY,
        depth_scale: float = DEPTH_SCALE,
    ):
        self.matrix = matrix
        self.lower_bound = lower_bound
        self.path = path
        self.current = current
        self.depth_scale = depth_scale

    @classmethod
    def root(cls, matrix, depth_scale: float = DEPTH_SCALE) -> "SearchState":
        mat = np.array(matrix, dtype=np.float64, copy=True)
        if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
            raise ValueError(f"cost matrix must be square, got shape {mat.shape}")
        np.fill_diagonal(mat, np.inf)
        state = cls(mat, depth_scale=depth_scale)
        state.reduce()
        return state

    @property
    def size(self) -> int:
        return self.matrix.shape[0]

    @property
    def depth(self) -> int:
        return len(self.path)

    @property
    def start(self) -> int:
        return self.path[0] if self.path else NO_CITY

    @property
    def near_complete(self) -> bool:
        return self.depth == self.size

    @property
    def is_complete(self) -> bool:
        return self.depth == self.size + 1

    def heuristic(self) -> float:
        # Prefer lower bounds and higher depths.
        return self.lower_bound - self.depth_scale * self.depth

    def can_visit(self, to_city: int) -> bool:
        if to_city == self.current:
            return False
        if self.current == NO_CITY:
            return True
        if np.isinf(self.matrix[self.current, to_city]):
            return False
        # The start city closes the cycle and is only allowed last.
        if not self.near_complete and self.path[0] == to_city:
            return False
        return True

    def visit(self, to_city: int) -> "SearchState":
        from_city = self.current
        assert 0 <= to_city < self.size, f"city {to_city} out of range"
        assert from_city == NO_CITY or not np.isinf(self.matrix[from_city, to_city]), "navigating to illegal city"
        if self.near_complete:
            assert self.path[0] == to_city, "only the start city may close the tour"
        else:
            assert to_city not in self.path, "path contains illegal duplicate"

        child = SearchState(
            self.matrix.copy(),
            self.lower_bound,
            self.path + (to_city,),
            to_city,
            self.depth_scale,
        )
        if from_city == NO_CITY:
            return child

        mat = child.matrix
        child.lower_bound += float(mat[from_city, to_city])
        if self.size > 2:
            # No 2-cycles, except when the whole tour is one.
            mat[to_city, from_city] = np.inf
        mat[:, to_city] = np.inf
        mat[from_city, :] = np.inf
        child.reduce()
        return child

    def reduce(self) -> None:
        """Subtract each row's and then each column's minimum, adding them to the bound."""
        mat = self.matrix
        row_min = mat.min(axis=1)
        rows = np.isfinite(row_min) & (row_min > 0)
        if rows.any():
            mat[rows] -= row_min[rows][:, None]
            self.lower_bound += float(row_min[rows].sum())
        col_min = mat.min(axis=0)
        cols = np.isfinite(col_min) & (col_min > 0)
        if cols.any():
            mat[:, cols] -= col_min[cols]
            self.lower_bound += float(col_min[cols].sum())

    def __repr__(self) -> str:
        return f"SearchState(path={list(self.path)}, lower_bound={self.lower_bound})"
