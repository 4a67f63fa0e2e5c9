# pdptw-dispatch/tests/test_objective.py
"""Tests for route simulation and the weighted objective."""

from __future__ import annotations

import math

import pytest

from pdptw.exceptions import InternalConsistencyError
from pdptw.models import GlobalState, VehicleState
from pdptw.objective import ObjectiveFunction, RouteStats, compute_route_stats
from pdptw.travel import TravelTimeTable

from conftest import make_request


def single_vehicle_state(*requests, **vehicle_kwargs) -> GlobalState:
    vehicle = VehicleState("V", position=(0.0, 0.0), **vehicle_kwargs)
    return GlobalState(available=requests, vehicles=(vehicle,), time=0.0, depot=(0.0, 0.0))


def test_empty_route_costs_nothing_at_the_depot():
    state = single_vehicle_state()
    stats = compute_route_stats(state, 0, ())
    assert stats.travel_time == 0
    assert stats.tardiness == 0
    assert stats.num_stops == 0


def test_arrival_recurrence_with_waiting_and_service():
    # pickup at 3 opens at 10, service 2, delivery at 6 due at 12
    request = make_request(
        "A", pickup=(3, 0), delivery=(6, 0),
        pickup_window=(10, 20), delivery_window=(0, 12),
        pickup_duration=2,
    )
    state = single_vehicle_state(request)
    stats = compute_route_stats(state, 0, (request, request))

    assert stats.arrival_times == (10.0, 15.0)
    assert stats.tardiness == pytest.approx(3.0)
    assert stats.travel_time == pytest.approx(3 + 3 + 6)
    assert stats.return_time == pytest.approx(21.0)


def test_remaining_service_time_delays_departure():
    request = make_request("A", pickup=(1, 0), delivery=(2, 0))
    state = single_vehicle_state(request, remaining_service_time=4)
    stats = compute_route_stats(state, 0, (request, request))
    assert stats.arrival_times == (5.0, 6.0)


def test_cargo_request_only_delivered():
    request = make_request("A", pickup=(100, 0), delivery=(2, 0))
    vehicle = VehicleState("V", position=(0.0, 0.0), contents=(request,))
    state = GlobalState(available=(), vehicles=(vehicle,))
    stats = compute_route_stats(state, 0, (request,))
    assert stats.travel_time == pytest.approx(4.0)


def test_weighted_cost():
    stats = RouteStats(travel_time=10.0, tardiness=2.0, arrival_times=(), return_time=10.0)
    assert ObjectiveFunction().compute_cost(stats) == pytest.approx(12.0)
    assert ObjectiveFunction(tardiness_weight=5, travel_time_weight=0.5).compute_cost(stats) == pytest.approx(15.0)


def test_invalid_costs_are_internal_errors():
    objective = ObjectiveFunction()
    with pytest.raises(InternalConsistencyError):
        objective.compute_cost(RouteStats(-1.0, 0.0, (), 0.0))
    with pytest.raises(InternalConsistencyError):
        objective.compute_cost(RouteStats(math.nan, 0.0, (), 0.0))


def test_negative_weights_rejected():
    with pytest.raises(ValueError):
        ObjectiveFunction(tardiness_weight=-1)


def test_decomposed_cost_is_per_vehicle(two_vehicle_state):
    a, b, _ = two_vehicle_state.available
    objective = ObjectiveFunction()
    schedule = [(a, a), (b, b)]
    costs = objective.decomposed_cost(two_vehicle_state, schedule)
    assert costs == [
        objective.route_cost(two_vehicle_state, 0, (a, a)),
        objective.route_cost(two_vehicle_state, 1, (b, b)),
    ]
    assert objective.schedule_cost(two_vehicle_state, schedule) == pytest.approx(sum(costs))
    with pytest.raises(ValueError):
        objective.decomposed_cost(two_vehicle_state, [(a, a)])


def test_host_table_drives_route_stats():
    request = make_request("A", pickup=(3, 0), delivery=(6, 0))
    table = TravelTimeTable(
        [(0.0, 0.0), (3, 0), (6, 0)],
        [[0, 4, 9], [4, 0, 1], [9, 1, 0]],
    )
    vehicle = VehicleState("V", position=(0.0, 0.0), speed=100.0)
    state = GlobalState(available=(request,), vehicles=(vehicle,), travel_times=table)

    stats = compute_route_stats(state, 0, (request, request))

    assert stats.arrival_times == (4.0, 5.0)
    assert stats.travel_time == 4 + 1 + 9
