# pdptw-dispatch/pdptw/objective.py
"""
Objective function shared by every allocation and routing engine.

The cost of a schedule is decomposed per vehicle:

    cost(vehicle) = TARDINESS_WEIGHT * tardiness + TRAVEL_TIME_WEIGHT * travel_time

Key Design Principles:
1. Lower cost = better schedule = better bid
2. Each vehicle is evaluated independently; the global objective is the sum
3. Waiting for a window to open is free, arriving after it closes is not
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from . import config, travel
from .exceptions import InternalConsistencyError
from .models import GlobalState, Route, iter_stops


@dataclass(frozen=True)
class RouteStats:
    """
    Result of simulating one vehicle along a route.

    Attributes:
        travel_time: Total driving time, including the return to the depot
        tardiness: Sum over all stops of the time past the window end
        arrival_times: Service start time at every stop of the route
        return_time: Arrival time back at the depot
    """
    travel_time: float
    tardiness: float
    arrival_times: Tuple[float, ...]
    return_time: float

    @property
    def num_stops(self) -> int:
        return len(self.arrival_times)


def compute_route_stats(state: GlobalState, vehicle_index: int, route: Route) -> RouteStats:
    """
    Simulate a vehicle of the snapshot along a route.

    The vehicle is free once its remaining service time has elapsed. At
    every stop it arrives at max(departure + travel, window begin), and it
    leaves after the service duration. Finally it drives back to the depot.

    Args:
        state: The snapshot the vehicle belongs to
        vehicle_index: Index of the vehicle in state.vehicles
        route: The route to evaluate (see models for the occurrence rules)

    Returns:
        RouteStats for this vehicle and route
    """
    vehicle = state.vehicles[vehicle_index]

    current_time = state.time + vehicle.remaining_service_time
    position = vehicle.position
    total_travel = 0.0
    total_tardiness = 0.0
    arrivals: List[float] = []

    for request, is_pickup in iter_stops(route, vehicle.contents):
        location = request.location(is_pickup)
        travel_time = travel.get_travel_time(position, location, vehicle.speed, state.travel_times)
        total_travel += travel_time

        window = request.window(is_pickup)
        arrival = max(current_time + travel_time, window.begin)
        total_tardiness += window.tardiness(arrival)
        arrivals.append(arrival)

        current_time = arrival + request.duration(is_pickup)
        position = location

    back_to_depot = travel.get_travel_time(position, state.depot, vehicle.speed, state.travel_times)
    total_travel += back_to_depot

    return RouteStats(
        travel_time=total_travel,
        tardiness=total_tardiness,
        arrival_times=tuple(arrivals),
        return_time=current_time + back_to_depot,
    )


class ObjectiveFunction:
    """
    Weighted tardiness + travel time objective.

    Attributes:
        tardiness_weight: Weight of the total tardiness
        travel_time_weight: Weight of the total travel time
    """

    def __init__(
        self,
        tardiness_weight: float = config.TARDINESS_WEIGHT,
        travel_time_weight: float = config.TRAVEL_TIME_WEIGHT
    ) -> None:
        if tardiness_weight < 0 or travel_time_weight < 0:
            raise ValueError("Objective weights must be non-negative")
        self.tardiness_weight = tardiness_weight
        self.travel_time_weight = travel_time_weight

    def compute_cost(self, stats: RouteStats) -> float:
        """
        Cost of a single simulated route.

        Raises:
            InternalConsistencyError: If the cost is negative or NaN
        """
        cost = (self.tardiness_weight * stats.tardiness
                + self.travel_time_weight * stats.travel_time)
        if math.isnan(cost) or cost < 0:
            raise InternalConsistencyError(f"Invalid route cost {cost} computed from {stats}")
        return cost

    def route_cost(self, state: GlobalState, vehicle_index: int, route: Route) -> float:
        """Absolute cost of one vehicle driving the given route."""
        return self.compute_cost(compute_route_stats(state, vehicle_index, route))

    def decomposed_cost(self, state: GlobalState, schedule: Sequence[Route]) -> List[float]:
        """Per-vehicle costs of a schedule (one route per vehicle, in fleet order)."""
        if len(schedule) != len(state.vehicles):
            raise ValueError(
                f"Schedule has {len(schedule)} routes but the snapshot has {len(state.vehicles)} vehicles"
            )
        return [self.route_cost(state, i, route) for i, route in enumerate(schedule)]

    def schedule_cost(self, state: GlobalState, schedule: Sequence[Route]) -> float:
        """Global objective: the sum of the decomposed costs."""
        return sum(self.decomposed_cost(state, schedule))

    def __repr__(self) -> str:
        return (f"ObjectiveFunction(tardiness_weight={self.tardiness_weight}, "
                f"travel_time_weight={self.travel_time_weight})")
