import json

import numpy as np

from tsp_bnb.cli import main
from tsp_bnb.data import generate_problem, problem_from_state
from tsp_bnb.solvers import tour_cost


def test_solve_writes_result(tmp_path, capsys):
    out = tmp_path / "result.json"
    code = main(["solve", "--size", "7", "--seed", "3", "--mode", "hard", "--time", "10", "--output", str(out)])
    assert code == 0
    payload = json.loads(out.read_text())
    assert payload["problem"]["size"] == 7
    assert sorted(payload["result"]["tour"]) == list(range(7))
    assert payload["result"]["optimal"] is True
    assert payload["config"]["time_limit"] == 10.0
    assert "optimal" in capsys.readouterr().out


def test_solve_with_greedy():
    assert main(["solve", "--size", "6", "--solver", "greedy", "--mode", "easy"]) == 0


def test_inspect(capsys):
    assert main(["inspect", "--size", "5", "--mode", "hard", "--seed", "2"]) == 0
    out = capsys.readouterr().out
    assert "size=5 mode=hard" in out
    assert "removed_edges=1" in out


def test_saved_problem_rebuilds_the_run(tmp_path):
    out = tmp_path / "result.json"
    args = ["solve", "--size", "8", "--seed", "4", "--mode", "hard", "--fraction-removed", "3.0", "--time", "10"]
    assert main(args + ["--output", str(out)]) == 0
    payload = json.loads(out.read_text())
    assert payload["problem"]["config"]["fraction_removed"] == 3.0
    rebuilt = problem_from_state(payload["problem"])
    original = generate_problem(8, mode="hard", seed=4, fraction_removed=3.0)
    assert np.array_equal(rebuilt.matrix(), original.matrix())
    assert tour_cost(rebuilt.matrix(), payload["result"]["tour"]) == payload["result"]["cost"]


def test_invalid_problems_exit_with_error(capsys):
    assert main(["solve", "--size", "0"]) == 1
    assert main(["solve", "--size", "1", "--mode", "easy"]) == 1
    assert main(["inspect", "--size", "0"]) == 1
    assert "failed" in capsys.readouterr().out
