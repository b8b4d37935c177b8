"""
Branch-and-bound search for minimum-cost tours over asymmetric, optionally
incomplete node sets.
"""

__all__ = [
    "cost",
    "data",
    "evaluation",
    "solvers",
]
