# pdptw-dispatch/pdptw/arrays.py
"""
Index (array) encoding of a snapshot for the metaheuristic engines.

Every stop gets an index: 0 is the depot start sentinel, n-1 is the depot
end sentinel, and each available request contributes its pickup index
followed by its delivery index, followed by one delivery index per request
in cargo. All times are relative to the snapshot time.

A route in this encoding is a list of indices that starts with 0 and ends
with n-1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from . import travel
from .models import GlobalState, Location, Request, Route, Schedule


@dataclass
class ArraysProblem:
    """
    Indexed snapshot.

    Attributes:
        travel_time: travel_time[i][j] from stop i to stop j (n x n)
        release_dates: Earliest service start per stop
        due_dates: Latest service start without tardiness per stop
        service_pairs: (pickup index, delivery index) per available request
        service_times: Service duration per stop
        vehicle_travel_times: vehicle_travel_times[k][j] from vehicle k's
            position to stop j (v x n)
        inventories: (vehicle, delivery index) per request in cargo
        remaining_service_times: Time each vehicle needs to finish its
            current service
        current_destinations: Committed first stop per vehicle; 0 means the
            vehicle has no committed destination
    """
    travel_time: List[List[float]]
    release_dates: List[float]
    due_dates: List[float]
    service_pairs: List[Tuple[int, int]]
    service_times: List[float]
    vehicle_travel_times: List[List[float]]
    inventories: List[Tuple[int, int]]
    remaining_service_times: List[float]
    current_destinations: List[int]

    def __post_init__(self) -> None:
        n = len(self.release_dates)
        if n < 2:
            raise ValueError("A problem needs at least the two depot sentinels")
        if len(self.due_dates) != n or len(self.service_times) != n or len(self.travel_time) != n:
            raise ValueError(f"All per-stop arrays must have length {n}")
        for row in list(self.travel_time) + list(self.vehicle_travel_times):
            if len(row) != n:
                raise ValueError(f"Travel time rows must have length {n}")
            if any(t < 0 for t in row):
                raise ValueError("Travel times must be non-negative")
        v = len(self.vehicle_travel_times)
        if len(self.remaining_service_times) != v or len(self.current_destinations) != v:
            raise ValueError(f"All per-vehicle arrays must have length {v}")
        for pickup, delivery in self.service_pairs:
            if not (0 < pickup < n - 1 and 0 < delivery < n - 1):
                raise ValueError(f"Service pair ({pickup}, {delivery}) refers to a depot sentinel")

    @property
    def num_stops(self) -> int:
        return len(self.release_dates)

    @property
    def num_vehicles(self) -> int:
        return len(self.vehicle_travel_times)


@dataclass
class SolutionObject:
    """
    One vehicle's route in the index encoding.

    Attributes:
        route: Stop indices, starting with 0 and ending with n-1
        arrival_times: Service start time at every index of route
        objective_value: Weighted tardiness + travel time of this route
    """
    route: List[int]
    arrival_times: List[float]
    objective_value: float

    def copy(self) -> SolutionObject:
        return SolutionObject(list(self.route), list(self.arrival_times), self.objective_value)


def compute_route_tardiness(
    route: Sequence[int],
    arrival_times: Sequence[float],
    due_dates: Sequence[float]
) -> float:
    """
    Total tardiness of a route: the sum of max(0, arrival - due date) over
    every stop after the start sentinel.
    """
    tardiness = 0.0
    for i in range(1, len(route)):
        lateness = arrival_times[i] - due_dates[route[i]]
        if lateness > 0:
            tardiness += lateness
    return tardiness


class ArraysMapping:
    """
    Translates index routes back into Request routes.

    Attributes:
        problem: The encoded problem
        vehicle_ids: Vehicle identifiers in fleet order
    """

    def __init__(self, problem: ArraysProblem, requests: Sequence[Request], vehicle_ids: Sequence[str]) -> None:
        self.problem = problem
        self.vehicle_ids = list(vehicle_ids)
        # index -> request, sentinels excluded
        self._requests: Dict[int, Request] = {i + 1: r for i, r in enumerate(requests)}

    def request_at(self, index: int) -> Request:
        return self._requests[index]

    def decode_route(self, route: Sequence[int]) -> Route:
        """Drop the sentinels and map every index to its request."""
        return tuple(self._requests[i] for i in route if i in self._requests)

    def decode(self, solutions: Sequence[SolutionObject]) -> Schedule:
        return [self.decode_route(s.route) for s in solutions]


def to_arrays(state: GlobalState) -> ArraysMapping:
    """
    Encode a snapshot.

    Args:
        state: The snapshot; without a host travel time table all vehicles
            must share one speed

    Returns:
        ArraysMapping holding the ArraysProblem and the decoding table

    Raises:
        ValueError: If the fleet is empty, or not homogeneous in speed while
            travel times are derived from the coordinates
    """
    if not state.vehicles:
        raise ValueError("Cannot encode a snapshot without vehicles")
    speeds = {v.speed for v in state.vehicles}
    if state.travel_times is None and len(speeds) != 1:
        raise ValueError(f"The index encoding requires one fleet speed, got {sorted(speeds)}")
    speed = min(speeds)

    # index order: depot, (pickup, delivery) per available request, delivery per cargo request, depot
    stops: List[Tuple[Request, bool]] = []
    for request in state.available:
        stops.append((request, True))
        stops.append((request, False))
    for vehicle in state.vehicles:
        for request in vehicle.contents:
            stops.append((request, False))

    locations: List[Location] = [state.depot]
    locations.extend(r.location(is_pickup) for r, is_pickup in stops)
    locations.append(state.depot)

    release_dates = [0.0]
    due_dates = [math.inf]
    service_times = [0.0]
    for request, is_pickup in stops:
        window = request.window(is_pickup)
        release_dates.append(max(0.0, window.begin - state.time))
        due_dates.append(window.end - state.time)
        service_times.append(request.duration(is_pickup))
    release_dates.append(0.0)
    due_dates.append(math.inf)
    service_times.append(0.0)

    index_of: Dict[Tuple[Request, bool], int] = {stop: i + 1 for i, stop in enumerate(stops)}
    service_pairs = [(index_of[(r, True)], index_of[(r, False)]) for r in state.available]

    inventories: List[Tuple[int, int]] = []
    current_destinations: List[int] = []
    for k, vehicle in enumerate(state.vehicles):
        for request in vehicle.contents:
            inventories.append((k, index_of[(request, False)]))
        if vehicle.destination is None:
            current_destinations.append(0)
        else:
            # GlobalState guarantees the destination is available or in this cargo
            key = (vehicle.destination, vehicle.destination not in vehicle.contents)
            current_destinations.append(index_of[key])

    table = state.travel_times
    travel_time = travel.build_travel_time_matrix(locations, speed, table)
    vehicle_travel_times = [
        [travel.get_travel_time(vehicle.position, loc, vehicle.speed, table) for loc in locations]
        for vehicle in state.vehicles
    ]

    problem = ArraysProblem(
        travel_time=travel_time,
        release_dates=release_dates,
        due_dates=due_dates,
        service_pairs=service_pairs,
        service_times=service_times,
        vehicle_travel_times=vehicle_travel_times,
        inventories=inventories,
        remaining_service_times=[v.remaining_service_time for v in state.vehicles],
        current_destinations=current_destinations,
    )
    return ArraysMapping(problem, [r for r, _ in stops], [v.vehicle_id for v in state.vehicles])
