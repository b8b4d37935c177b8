import math
import random

import pytest

from tsp_bnb.cost import (
    SCALE_FACTOR,
    CostModel,
    DirectedEdge,
    EdgeRemover,
    Mode,
    build_cost_model,
    cycle_edges,
)
from tsp_bnb.data import Node
from tsp_bnb.solvers import EdgeRemovalError


def _nodes(n, seed=0):
    rng = random.Random(seed)
    return [Node(rng.random(), rng.random(), rng.random() * 0.1) for _ in range(n)]


def test_mode_parse_is_case_insensitive_with_normal_default():
    assert Mode.parse("Hard") is Mode.HARD
    assert Mode.parse("EASY") is Mode.EASY
    assert Mode.parse(Mode.HARD) is Mode.HARD
    assert Mode.parse("impossible") is Mode.NORMAL


def test_easy_mode_is_symmetric():
    nodes = _nodes(6)
    model = CostModel(Mode.EASY)
    for a in nodes:
        for b in nodes:
            if a is not b:
                assert model.cost(a, b) == model.cost(b, a)


def test_elevation_makes_cost_asymmetric_and_floors_at_zero():
    low = Node(0.0, 0.0, 0.0)
    high = Node(0.0, 0.01, 0.1)
    model = CostModel(Mode.NORMAL)
    assert model.cost(low, high) == 110.0
    assert model.cost(high, low) == 0.0


def test_cost_is_scaled_and_rounded():
    model = CostModel(Mode.EASY)
    assert model.cost(Node(0.0, 0.0), Node(1.0, 1.0)) == round(math.sqrt(2) * SCALE_FACTOR)


def test_removed_edge_costs_infinity_one_way_only():
    a, b = Node(0.0, 0.0), Node(1.0, 0.0)
    remover = EdgeRemover(Mode.HARD, [a, b], removed={DirectedEdge(a, b)})
    model = CostModel(Mode.HARD, remover)
    assert math.isinf(model.cost(a, b))
    assert model.cost(b, a) == 1000.0


def test_directed_edge_is_order_sensitive():
    a, b = Node(0.0, 0.0), Node(0.0, 0.0)
    assert DirectedEdge(a, b) == DirectedEdge(a, b)
    assert DirectedEdge(a, b) != DirectedEdge(b, a)
    assert len({DirectedEdge(a, b), DirectedEdge(b, a)}) == 2


def test_matrix_has_infinite_diagonal(square_nodes, easy_model):
    mat = easy_model.matrix(square_nodes)
    assert mat.shape == (4, 4)
    assert all(math.isinf(mat[i, i]) for i in range(4))
    assert mat[0, 1] == 1000.0


@pytest.mark.parametrize("mode", [Mode.EASY, Mode.NORMAL])
def test_only_hard_mode_removes_edges(mode):
    remover = EdgeRemover.build(mode, _nodes(6), random.Random(1), count=10)
    assert remover.removed_count == 0


def test_removal_count_is_clamped():
    nodes = _nodes(5)
    remover = EdgeRemover.build(Mode.HARD, nodes, random.Random(3), count=10_000)
    assert remover.removed_count == EdgeRemover.max_removable(5) == 15


@pytest.mark.parametrize("seed", range(5))
def test_reference_cycle_is_never_removed(seed):
    nodes = _nodes(7, seed)
    remover = EdgeRemover.build(Mode.HARD, nodes, random.Random(seed), count=20)
    assert remover.removed_count == 20
    assert sorted(map(id, remover.reference_cycle)) == sorted(map(id, nodes))
    for edge in cycle_edges(remover.reference_cycle):
        assert not remover.is_removed(edge.source, edge.target)


def test_maximum_removal_leaves_only_reference_cycle():
    nodes = _nodes(6)
    remover = EdgeRemover.build(Mode.HARD, nodes, random.Random(2), count=EdgeRemover.max_removable(6))
    kept = {
        DirectedEdge(a, b)
        for a in nodes
        for b in nodes
        if a is not b and not remover.is_removed(a, b)
    }
    assert kept == cycle_edges(remover.reference_cycle)


def test_removal_gives_up_after_attempt_budget():
    with pytest.raises(EdgeRemovalError):
        EdgeRemover.build(Mode.HARD, _nodes(6), random.Random(0), count=10, max_attempts=3)


def test_build_cost_model_is_deterministic_for_a_seed():
    nodes = _nodes(8)
    m1 = build_cost_model(nodes, "hard", random.Random(42), remove_count=12).matrix(nodes)
    m2 = build_cost_model(nodes, "hard", random.Random(42), remove_count=12).matrix(nodes)
    assert (m1 == m2).all()
