# pdptw-dispatch/pdptw/late_acceptance.py
"""
Late acceptance hill climbing for the multi-vehicle PDPTW.

A solution is represented by one global permutation of all stop indices
(depot sentinels at both ends) plus a vehicle assignment per index. A
vehicle's route is the depot, its own subsequence of the permutation, and
the depot again.

Procedure (LATE ACCEPTANCE):
1. Fixed stops (cargo deliveries, committed destinations) keep their
   vehicle; all other requests get a random vehicle, pickup and delivery
   always on the same one
2. The permutation is sorted by due date, repaired so every pickup comes
   before its delivery, and committed destinations are moved to the front
3. Each iteration applies one random move: reassign a request to another
   vehicle, or shift one stop forward/backward inside its precedence window
4. A candidate is accepted when it is no worse than the objective recorded
   L iterations ago; the best solution ever seen is returned
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from . import config
from .arrays import ArraysProblem, SolutionObject, compute_route_tardiness, to_arrays
from .exceptions import InternalConsistencyError
from .models import GlobalState, Schedule
from .objective import ObjectiveFunction

logger = logging.getLogger(__name__)

# (new permutation, new assignment, vehicles whose route changed)
_Move = Tuple[List[int], List[int], Tuple[int, ...]]


@dataclass
class LateAcceptanceResult:
    """
    Outcome of one late acceptance run.

    Attributes:
        solutions: Best route per vehicle
        vehicle_assignment: Vehicle per stop index (-1 for the sentinels)
        permutation: Global visiting order of the best solution
        objective_value: Total objective of the best solution
        initial_objective_value: Total objective of the initial solution
        iterations: Number of iterations actually performed
    """
    solutions: List[SolutionObject]
    vehicle_assignment: List[int]
    permutation: List[int]
    objective_value: float
    initial_objective_value: float
    iterations: int


class _Instance:
    """Lookup tables derived once per problem."""

    def __init__(self, problem: ArraysProblem) -> None:
        n = problem.num_stops
        self.problem = problem
        self.n = n
        self.v = problem.num_vehicles

        self.pickup_to_delivery = [-1] * n
        self.delivery_to_pickup = [-1] * n
        for pickup, delivery in problem.service_pairs:
            self.pickup_to_delivery[pickup] = delivery
            self.delivery_to_pickup[delivery] = pickup

        self.fixed_vehicle = [-1] * n
        for vehicle, delivery in problem.inventories:
            self.fixed_vehicle[delivery] = vehicle
        for vehicle, destination in enumerate(problem.current_destinations):
            if destination != 0:
                self.fixed_vehicle[destination] = vehicle

        # Stops the reassignment move may pick: not fixed, and not the
        # delivery of a fixed pickup.
        self.movable = [
            i for i in range(1, n - 1)
            if self.fixed_vehicle[i] == -1
            and not (self.delivery_to_pickup[i] != -1
                     and self.fixed_vehicle[self.delivery_to_pickup[i]] != -1)
        ]


class LateAcceptanceSolver:
    """
    Stochastic local search over assignment and visiting order.

    Attributes:
        objective: Supplies the tardiness and travel time weights
        history_length: Length L of the late acceptance list
        max_iterations: Iteration budget of one run
        shift_threshold: Permutation length at or below which only
            reassignment moves are used
        rng: Random source used by solve() when no seed is given
    """

    name = "late_acceptance"

    def __init__(
        self,
        objective: Optional[ObjectiveFunction] = None,
        history_length: int = config.LATE_ACCEPTANCE_HISTORY_LENGTH,
        max_iterations: int = config.LATE_ACCEPTANCE_MAX_ITERATIONS,
        shift_threshold: int = config.PERMUTATION_SHIFT_THRESHOLD,
        rng: Optional[random.Random] = None
    ) -> None:
        if history_length < 1:
            raise ValueError(f"history_length must be positive, it is {history_length}")
        if max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, it is {max_iterations}")
        self.objective = objective if objective is not None else ObjectiveFunction()
        self.history_length = history_length
        self.max_iterations = max_iterations
        self.shift_threshold = shift_threshold
        self.rng = rng

    # =========================================================================
    # OBJECT-LEVEL ENTRY POINT
    # =========================================================================

    def solve(self, state: GlobalState, seed: Optional[int] = None) -> Schedule:
        """
        Returns one route per vehicle (fleet order) containing every request.

        Args:
            state: The snapshot to solve; the fleet must share one speed
            seed: Seed of the run. Without it, the rng given at construction
                is used.

        Raises:
            ValueError: If neither a seed nor an rng is available
        """
        if seed is not None:
            rng = random.Random(seed)
        elif self.rng is not None:
            rng = self.rng
        else:
            raise ValueError("LateAcceptanceSolver needs a seed or an explicit random.Random")

        mapping = to_arrays(state)
        result = self.solve_arrays(mapping.problem, rng)
        return mapping.decode(result.solutions)

    # =========================================================================
    # INDEX-LEVEL SEARCH
    # =========================================================================

    def solve_arrays(self, problem: ArraysProblem, rng: random.Random) -> LateAcceptanceResult:
        """
        Run late acceptance hill climbing on an encoded problem.

        Raises:
            ValueError: If the problem has no vehicles
            InternalConsistencyError: If a negative objective is computed
        """
        if problem.num_vehicles == 0:
            raise ValueError("Cannot route requests without vehicles")

        inst = _Instance(problem)
        assignment = self._random_feasible_assignment(inst, rng)
        permutation = self._initial_permutation(inst, rng)
        solution = self._construct(inst, permutation, assignment)
        initial_objective = self._total(solution)

        logger.debug(
            f"Late acceptance start: {inst.n - 2} stops, {inst.v} vehicles, "
            f"initial objective {initial_objective:.3f}"
        )

        history = [initial_objective] * self.history_length

        current_perm, current_assignment = permutation, assignment
        current_solution, current_objective = solution, initial_objective

        best_perm, best_assignment = list(permutation), list(assignment)
        best_solution = [s.copy() for s in solution]
        best_objective = initial_objective

        iterations = 0
        for it in range(self.max_iterations if inst.n > 2 else 0):
            move = self._random_move(inst, current_perm, current_assignment, rng)
            if move is None:
                logger.debug("No move can change the solution, stopping early")
                break
            new_perm, new_assignment, affected = move

            new_solution = list(current_solution)
            for vehicle in affected:
                new_solution[vehicle] = self._construct_single_vehicle(inst, new_perm, new_assignment, vehicle)
            new_objective = self._total(new_solution)
            if new_objective < 0:
                raise InternalConsistencyError(f"Negative objective {new_objective} at iteration {it}")

            slot = it % self.history_length
            if new_objective <= history[slot]:
                current_perm, current_assignment = new_perm, new_assignment
                current_solution, current_objective = new_solution, new_objective

                if new_objective < best_objective:
                    best_perm, best_assignment = list(new_perm), list(new_assignment)
                    best_solution = [s.copy() for s in new_solution]
                    best_objective = new_objective
                    logger.debug(f"[{it}] New best objective {best_objective:.3f}")

            history[slot] = current_objective
            iterations = it + 1

            if iterations % config.LOG_EVERY_N_ITERATIONS == 0:
                logger.debug(f"[{iterations}] current {current_objective:.3f} best {best_objective:.3f}")

        return LateAcceptanceResult(
            solutions=best_solution,
            vehicle_assignment=best_assignment,
            permutation=best_perm,
            objective_value=best_objective,
            initial_objective_value=initial_objective,
            iterations=iterations,
        )

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def _random_feasible_assignment(self, inst: _Instance, rng: random.Random) -> List[int]:
        n = inst.n
        assignment = [-1] * n

        # committed destinations (and the matching delivery) stay on their vehicle
        for vehicle, destination in enumerate(inst.problem.current_destinations):
            if destination != 0:
                assignment[destination] = vehicle
                delivery = inst.pickup_to_delivery[destination]
                if delivery != -1:
                    assignment[delivery] = vehicle

        for i in range(1, n - 1):
            if assignment[i] != -1:
                continue
            if inst.fixed_vehicle[i] != -1:
                assignment[i] = inst.fixed_vehicle[i]
            else:
                assignment[i] = rng.randrange(inst.v)
                delivery = inst.pickup_to_delivery[i]
                if delivery != -1:
                    assignment[delivery] = assignment[i]
        return assignment

    def _initial_permutation(self, inst: _Instance, rng: random.Random) -> List[int]:
        n = inst.n
        due_dates = inst.problem.due_dates
        permutation = [0] + sorted(range(1, n - 1), key=lambda i: due_dates[i]) + [n - 1]

        for pickup, delivery in inst.problem.service_pairs:
            pickup_loc = permutation.index(pickup)
            delivery_loc = permutation.index(delivery)
            if pickup_loc > delivery_loc:
                position = 1 + rng.randrange(delivery_loc)
                del permutation[pickup_loc]
                permutation.insert(position, pickup)

        _put_destinations_first(permutation, inst.problem.current_destinations)
        return permutation

    # -------------------------------------------------------------------------
    # Moves
    # -------------------------------------------------------------------------

    def _random_move(
        self,
        inst: _Instance,
        permutation: List[int],
        assignment: List[int],
        rng: random.Random
    ) -> Optional[_Move]:
        """Draw one neighbor; None when neither move type is possible."""
        reassign = len(permutation) <= self.shift_threshold or rng.random() < 0.5
        if reassign and inst.movable:
            return self._reassignment_move(inst, permutation, assignment, rng)

        move = self._shift_move(inst, permutation, assignment, rng)
        if move is None and inst.movable:
            return self._reassignment_move(inst, permutation, assignment, rng)
        return move

    def _reassignment_move(
        self,
        inst: _Instance,
        permutation: List[int],
        assignment: List[int],
        rng: random.Random
    ) -> _Move:
        stop = rng.choice(inst.movable)
        vehicle = rng.randrange(inst.v)
        original_vehicle = assignment[stop]

        new_assignment = list(assignment)
        new_assignment[stop] = vehicle
        for partner in (inst.delivery_to_pickup[stop], inst.pickup_to_delivery[stop]):
            if partner != -1:
                new_assignment[partner] = vehicle

        affected = (original_vehicle,) if original_vehicle == vehicle else (original_vehicle, vehicle)
        return list(permutation), new_assignment, affected

    def _shift_move(
        self,
        inst: _Instance,
        permutation: List[int],
        assignment: List[int],
        rng: random.Random
    ) -> Optional[_Move]:
        n = inst.n
        location = [0] * n
        for position, stop in enumerate(permutation):
            location[stop] = position

        def forward_window(i: int) -> Tuple[int, int]:
            delivery = inst.pickup_to_delivery[permutation[i]]
            bound = min(location[delivery] if delivery != -1 else n, n - 1)
            return i + 1, bound

        def backward_window(i: int) -> Tuple[int, int]:
            pickup = inst.delivery_to_pickup[permutation[i]]
            return max(1, (location[pickup] if pickup != -1 else 0) + 1), i

        forward = ([i for i in range(1, n - 2) if _width(forward_window(i)) > 0], forward_window)
        backward = ([i for i in range(2, n - 1) if _width(backward_window(i)) > 0], backward_window)
        directions = [forward, backward] if rng.random() < 0.5 else [backward, forward]

        for candidates, window in directions:
            if not candidates:
                continue
            i = rng.choice(candidates)
            low, high = window(i)
            j = low + rng.randrange(high - low)

            new_perm = list(permutation)
            stop = new_perm.pop(i)
            new_perm.insert(j, stop)
            _put_destinations_first(new_perm, inst.problem.current_destinations)
            return new_perm, list(assignment), (assignment[stop],)
        return None

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def _construct(self, inst: _Instance, permutation: Sequence[int], assignment: Sequence[int]) -> List[SolutionObject]:
        return [
            self._construct_single_vehicle(inst, permutation, assignment, vehicle)
            for vehicle in range(inst.v)
        ]

    def _construct_single_vehicle(
        self,
        inst: _Instance,
        permutation: Sequence[int],
        assignment: Sequence[int],
        vehicle: int
    ) -> SolutionObject:
        """
        Simulate one vehicle along its subsequence of the permutation.

        The first hop departs from the vehicle's position, not before its
        remaining service time has elapsed.
        """
        problem = inst.problem
        n = inst.n
        route = [0] + [i for i in permutation if 0 < i < n - 1 and assignment[i] == vehicle] + [n - 1]

        arrival_times = [0.0] * len(route)
        previous = max(problem.release_dates[0], problem.remaining_service_times[vehicle])
        arrival_times[0] = previous
        total_travel = 0.0
        for i in range(1, len(route)):
            stop = route[i]
            if i == 1:
                travel_time = problem.vehicle_travel_times[vehicle][stop]
            else:
                travel_time = problem.travel_time[route[i - 1]][stop]
            arrival_times[i] = max(previous + travel_time, problem.release_dates[stop])
            total_travel += travel_time
            previous = arrival_times[i] + problem.service_times[stop]

        tardiness = compute_route_tardiness(route, arrival_times, problem.due_dates)
        value = (self.objective.tardiness_weight * tardiness
                 + self.objective.travel_time_weight * total_travel)
        if math.isnan(value) or value < 0:
            raise InternalConsistencyError(f"Invalid objective {value} for vehicle {vehicle} route {route}")
        return SolutionObject(route, arrival_times, value)

    @staticmethod
    def _total(solution: Sequence[SolutionObject]) -> float:
        return sum(s.objective_value for s in solution)

    def __repr__(self) -> str:
        return (f"LateAcceptanceSolver(L={self.history_length}, "
                f"max_iterations={self.max_iterations})")


def _width(window: Tuple[int, int]) -> int:
    return window[1] - window[0]


def _put_destinations_first(permutation: List[int], destinations: Sequence[int]) -> None:
    """Move every committed destination to the front, right after the start sentinel."""
    for destination in destinations:
        if destination != 0:
            permutation.remove(destination)
            permutation.insert(1, destination)
