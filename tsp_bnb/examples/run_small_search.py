from tsp_bnb.data import generate_problem
from tsp_bnb.evaluation import brute_force_optimum, evaluate_solver
from tsp_bnb.solvers import BranchAndBoundSolver, GreedySolver


def main():
    for mode in ("easy", "normal", "hard"):
        problem = generate_problem(8, mode=mode, seed=7)
        optimum, _ = brute_force_optimum(problem.matrix())
        for solver in (GreedySolver(), BranchAndBoundSolver()):
            ev = evaluate_solver(solver, problem, time_limit=10.0, optimum=optimum)
            print(f"{mode:6s} {ev.solver_name:16s} cost={ev.cost:.0f} optimum={optimum:.0f} gap={ev.gap:.3f}")


if __name__ == "__main__":
    main()
