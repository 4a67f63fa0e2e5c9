# pdptw-dispatch/pdptw/solvers.py
"""
Registry of the centralized allocation and routing engines.

Hosts pick an engine by name; every engine implements the Solver protocol
so that they can be swapped without touching the calling code.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol

from .cheapest_insertion import CheapestInsertionSolver
from .late_acceptance import LateAcceptanceSolver
from .models import GlobalState, Schedule


class Solver(Protocol):
    """Anything that turns a snapshot into one route per vehicle."""

    def solve(self, state: GlobalState, seed: Optional[int] = None) -> Schedule:
        ...


SOLVERS: Dict[str, Callable[..., Solver]] = {
    CheapestInsertionSolver.name: CheapestInsertionSolver,
    LateAcceptanceSolver.name: LateAcceptanceSolver,
}


def create_solver(name: str, **kwargs: Any) -> Solver:
    """
    Instantiate a registered engine.

    Args:
        name: Registry key, e.g. "cheapest_insertion" or "late_acceptance"
        **kwargs: Passed to the engine's constructor

    Raises:
        ValueError: If no engine is registered under name
    """
    try:
        factory = SOLVERS[name]
    except KeyError:
        raise ValueError(f"Unknown solver {name!r}, choose from {sorted(SOLVERS)}") from None
    return factory(**kwargs)
