import argparse
import concurrent.futures
import json
import logging
import sys
import time
from dataclasses import asdict
from pathlib import Path

from tsp_bnb.data import FRACTION_OF_PATHS_TO_REMOVE, generate_problem, load_problem
from tsp_bnb.solvers import SOLVERS, BranchAndBoundSolver, SearchConfig, TspError


def log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def _load(args):
    if args.tsplib:
        log(f"loading {args.tsplib}")
        return load_problem(Path(args.tsplib), mode=args.mode, seed=args.seed, fraction_removed=args.fraction_removed)
    return generate_problem(args.size, mode=args.mode, seed=args.seed, fraction_removed=args.fraction_removed)


def _build_solver(args, best: dict):
    def on_update(cost, tour):
        best["cost"] = cost

    if args.solver == "bnb":
        cfg = SearchConfig(time_limit=args.time)
        return BranchAndBoundSolver(cfg, on_update=on_update), cfg
    return SOLVERS[args.solver](), None


def solve(args) -> int:
    try:
        problem = _load(args)
    except (TspError, ValueError) as exc:
        log(f"failed: {exc}")
        return 1
    log(f"problem {problem.name}: {problem.size} nodes, mode={problem.mode.value}")
    best = {"cost": None}
    solver, cfg = _build_solver(args, best)
    # Search runs in a worker so progress can be reported while it goes.
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as ex:
        future = ex.submit(solver.solve, problem, args.time)
        while True:
            try:
                result = future.result(timeout=args.progress_interval)
                break
            except concurrent.futures.TimeoutError:
                log(f"searching... best so far: {best['cost']}")
            except (TspError, ValueError) as exc:
                log(f"failed: {exc}")
                return 1
    log(f"cost={result.cost:.0f} time={result.elapsed:.2f}s count={result.count} reason={result.reason}")
    log("optimal" if result.optimal else "best found (not proven optimal)")
    print(" ".join(str(i) for i in result.tour))
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "problem": problem.to_state(),
            "result": result.to_dict(),
            "config": asdict(cfg) if cfg else None,
        }
        out.write_text(json.dumps(payload, indent=2))
        log(f"wrote {out}")
    return 0


def inspect(args) -> int:
    try:
        problem = _load(args)
    except (TspError, ValueError) as exc:
        log(f"failed: {exc}")
        return 1
    state = problem.to_state()
    print(f"name={state['name']} size={state['size']} mode={state['mode']} seed={state['seed']}")
    print(f"removed_edges={state['removed_edges']} usable_edges={problem.graph().number_of_edges()}")
    for i, node in enumerate(problem.nodes):
        print(f"{i:4d} x={node.x:.4f} y={node.y:.4f} elevation={node.elevation:.4f}")
    return 0


def _add_problem_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--size", type=int, default=25)
    parser.add_argument("--seed", type=int, default=1)
    parser.add_argument("--mode", default="normal", help="easy, normal or hard")
    parser.add_argument("--fraction-removed", type=float, default=FRACTION_OF_PATHS_TO_REMOVE)
    parser.add_argument("--tsplib", default=None, help="read node coordinates from a TSPLIB .tsp file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Branch-and-bound TSP solver")
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    solve_parser = subparsers.add_parser("solve", help="Solve a generated or TSPLIB problem")
    _add_problem_args(solve_parser)
    solve_parser.add_argument("--time", type=float, default=60.0, help="time limit in seconds")
    solve_parser.add_argument("--solver", choices=sorted(SOLVERS), default="bnb")
    solve_parser.add_argument("--progress-interval", type=float, default=5.0)
    solve_parser.add_argument("--output", default=None, help="write the result as JSON")
    solve_parser.set_defaults(func=solve)

    inspect_parser = subparsers.add_parser("inspect", help="Show the node set of a problem")
    _add_problem_args(inspect_parser)
    inspect_parser.set_defaults(func=inspect)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
