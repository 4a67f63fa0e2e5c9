# pdptw-dispatch/tests/test_arrays.py
"""Tests for the index encoding of a snapshot."""

from __future__ import annotations

import math

import pytest

from pdptw.arrays import ArraysProblem, SolutionObject, compute_route_tardiness, to_arrays
from pdptw.models import GlobalState, VehicleState
from pdptw.travel import TravelTimeTable

from conftest import make_request


@pytest.fixture
def mixed_state():
    a = make_request("A", pickup=(1, 0), delivery=(2, 0), pickup_window=(20, 50), pickup_duration=3)
    b = make_request("B", pickup=(0, 3), delivery=(0, 4), delivery_window=(0, 40))
    c = make_request("C", pickup=(9, 9), delivery=(0, 1), delivery_window=(5, 15))
    vehicles = (
        VehicleState("V0", position=(0.0, 0.0), contents=(c,), destination=a, remaining_service_time=2),
        VehicleState("V1", position=(3.0, 4.0)),
    )
    return GlobalState(available=(a, b), vehicles=vehicles, time=10.0, depot=(0.0, 0.0))


def test_index_layout(mixed_state):
    problem = to_arrays(mixed_state).problem

    # depot, A pickup, A delivery, B pickup, B delivery, C delivery, depot
    assert problem.num_stops == 7
    assert problem.num_vehicles == 2
    assert problem.service_pairs == [(1, 2), (3, 4)]
    assert problem.inventories == [(0, 5)]
    assert problem.current_destinations == [1, 0]
    assert problem.remaining_service_times == [2, 0.0]


def test_times_are_relative_to_snapshot(mixed_state):
    problem = to_arrays(mixed_state).problem

    assert problem.release_dates[1] == 10.0
    assert problem.due_dates[1] == 40.0
    assert problem.release_dates[5] == 0.0
    assert problem.due_dates[5] == 5.0
    assert math.isinf(problem.due_dates[0]) and math.isinf(problem.due_dates[6])
    assert problem.service_times[1] == 3


def test_travel_times(mixed_state):
    problem = to_arrays(mixed_state).problem

    assert problem.travel_time[0][3] == pytest.approx(3.0)
    assert problem.travel_time[3][4] == pytest.approx(1.0)
    assert problem.vehicle_travel_times[1][0] == pytest.approx(5.0)
    assert problem.vehicle_travel_times[1][6] == pytest.approx(5.0)


def test_decode_route(mixed_state):
    a, b = mixed_state.available
    mapping = to_arrays(mixed_state)
    assert mapping.decode_route([0, 3, 1, 2, 4, 6]) == (b, a, a, b)
    assert mapping.vehicle_ids == ["V0", "V1"]
    solutions = [SolutionObject([0, 1, 2, 5, 6], [], 0.0), SolutionObject([0, 6], [], 0.0)]
    assert mapping.decode(solutions) == [(a, a, mixed_state.vehicles[0].contents[0]), ()]


def test_mixed_fleet_speed_rejected(three_requests):
    vehicles = (VehicleState("V0", (0, 0), speed=1.0), VehicleState("V1", (0, 0), speed=2.0))
    with pytest.raises(ValueError):
        to_arrays(GlobalState(available=three_requests, vehicles=vehicles))


def test_empty_fleet_rejected(three_requests):
    with pytest.raises(ValueError):
        to_arrays(GlobalState(available=three_requests, vehicles=()))


def test_host_table_replaces_the_metric_and_allows_mixed_speeds():
    request = make_request("A", pickup=(1, 0), delivery=(2, 0))
    table = TravelTimeTable(
        [(0, 0), (1, 0), (2, 0), (5, 5)],
        [
            [0, 10, 20, 30],
            [11, 0, 12, 13],
            [21, 22, 0, 23],
            [31, 32, 33, 0],
        ],
    )
    vehicles = (VehicleState("V0", (0, 0), speed=1.0), VehicleState("V1", (5, 5), speed=4.0))
    state = GlobalState(available=(request,), vehicles=vehicles, travel_times=table)

    problem = to_arrays(state).problem

    # depot, A pickup, A delivery, depot
    assert problem.travel_time[0][1] == 10
    assert problem.travel_time[1][2] == 12
    assert problem.travel_time[2][3] == 21
    assert problem.vehicle_travel_times == [[0, 10, 20, 0], [31, 32, 33, 31]]


def test_table_must_cover_the_snapshot():
    request = make_request("A", pickup=(1, 0), delivery=(2, 0))
    table = TravelTimeTable([(0, 0), (1, 0)], [[0, 1], [1, 0]])
    with pytest.raises(ValueError, match="does not cover"):
        GlobalState(available=(request,), vehicles=(VehicleState("V0", (0, 0)),), travel_times=table)


def test_problem_validation():
    with pytest.raises(ValueError):
        ArraysProblem(
            travel_time=[[0, -1], [1, 0]],
            release_dates=[0, 0],
            due_dates=[math.inf, math.inf],
            service_pairs=[],
            service_times=[0, 0],
            vehicle_travel_times=[[0, 0]],
            inventories=[],
            remaining_service_times=[0],
            current_destinations=[0],
        )


def test_route_tardiness():
    assert compute_route_tardiness([0, 1, 2], [0, 5, 12], [math.inf, 4, 20]) == pytest.approx(1.0)


def test_solution_copy_is_deep():
    original = SolutionObject([0, 1, 2], [0.0, 1.0, 2.0], 3.0)
    clone = original.copy()
    clone.route.append(9)
    clone.arrival_times[0] = 7.0
    assert original.route == [0, 1, 2]
    assert original.arrival_times == [0.0, 1.0, 2.0]
    assert clone.objective_value == 3.0
