# pdptw-dispatch/pdptw/cheapest_insertion.py
"""
Centralized cheapest insertion solver.

Greedy incremental re-optimization: every request that is not yet part of
any committed route is spliced into the fleet's schedule at the position
with the lowest marginal cost (absolute cost of the new route minus the
current cost of that vehicle's route).

Key Design Principles:
1. Committed work is never touched: a vehicle's committed destination stays
   its first stop, routes only grow
2. Costs are decomposed per vehicle, so only one route is re-evaluated
   per candidate
3. Ties go to the first candidate found (vehicle order, then gap order)
"""

from __future__ import annotations

import logging
import math
from typing import Iterator, Optional, Tuple

from .exceptions import InfeasibleInsertion
from .insertions import insertions_iterator
from .models import GlobalState, Request, Route, Schedule
from .objective import ObjectiveFunction

logger = logging.getLogger(__name__)


def start_index_for(state: GlobalState, vehicle_index: int) -> int:
    """First gap that may be modified: 1 when the vehicle has a committed destination."""
    return 1 if state.vehicles[vehicle_index].has_destination else 0


def cheapest_route_insertion(
    objective: ObjectiveFunction,
    state: GlobalState,
    vehicle_index: int,
    route: Route,
    request: Request,
    current_cost: Optional[float] = None
) -> Optional[Tuple[float, Route, float]]:
    """
    Find the cheapest way to splice a request into one vehicle's route.

    Args:
        objective: Cost function for a single route
        state: Snapshot the vehicle belongs to
        vehicle_index: Index of the vehicle in state.vehicles
        route: The vehicle's current route
        request: The request to insert (pickup and delivery)
        current_cost: Cost of the current route (computed when omitted)

    Returns:
        (marginal_cost, new_route, absolute_cost), or None when no candidate
        has a finite cost
    """
    if current_cost is None:
        current_cost = objective.route_cost(state, vehicle_index, route)

    best: Optional[Tuple[float, Route, float]] = None
    start = min(start_index_for(state, vehicle_index), len(route))
    for candidate in insertions_iterator(route, request, start, 2):
        absolute = objective.route_cost(state, vehicle_index, candidate)
        marginal = absolute - current_cost
        if not math.isfinite(marginal):
            continue
        if best is None or marginal < best[0]:
            best = (marginal, candidate, absolute)
    return best


class CheapestInsertionSolver:
    """
    Greedy cheapest insertion over the whole fleet.

    The solver is deterministic; the seed argument of solve() exists only
    so that it can be used interchangeably with stochastic engines.

    Attributes:
        objective: The objective function used to cost every route
    """

    name = "cheapest_insertion"

    def __init__(self, objective: Optional[ObjectiveFunction] = None) -> None:
        self.objective = objective if objective is not None else ObjectiveFunction()

    def insertion_steps(self, state: GlobalState) -> Iterator[Schedule]:
        """
        Insert the unassigned requests one at a time.

        Yields a copy of the full schedule after every committed insertion,
        so a caller that stops iterating early still holds a valid partial
        schedule.

        Raises:
            InfeasibleInsertion: If a request cannot be inserted anywhere.
                The schedules yielded before stay untouched.
        """
        schedule: Schedule = [v.committed_route() for v in state.vehicles]
        costs = self.objective.decomposed_cost(state, schedule)

        for request in state.unassigned_requests():
            cheapest: Optional[Tuple[float, Route, float]] = None
            cheapest_index = -1

            for i in range(len(state.vehicles)):
                found = cheapest_route_insertion(
                    self.objective, state, i, schedule[i], request, costs[i]
                )
                if found is not None and (cheapest is None or found[0] < cheapest[0]):
                    cheapest = found
                    cheapest_index = i

            if cheapest is None:
                raise InfeasibleInsertion(
                    f"No feasible insertion of {request} in any of the "
                    f"{len(state.vehicles)} routes",
                    request=request,
                )

            marginal, route, absolute = cheapest
            schedule = schedule[:cheapest_index] + [route] + schedule[cheapest_index + 1:]
            costs = costs[:cheapest_index] + [absolute] + costs[cheapest_index + 1:]
            logger.debug(
                f"Inserted {request} into vehicle {state.vehicles[cheapest_index].vehicle_id} "
                f"(marginal cost {marginal:.3f})"
            )
            yield list(schedule)

    def solve(self, state: GlobalState, seed: Optional[int] = None) -> Schedule:
        """
        Returns one route per vehicle (fleet order) containing every request.

        Args:
            state: The snapshot to solve
            seed: Ignored
        """
        logger.debug(f"Cheapest insertion on {state}")
        schedule: Schedule = [v.committed_route() for v in state.vehicles]
        for schedule in self.insertion_steps(state):
            pass
        return schedule

    def __repr__(self) -> str:
        return f"CheapestInsertionSolver({self.objective!r})"
