# pdptw-dispatch/tests/test_travel.py
"""Tests for travel times from the local metric and from host tables."""

from __future__ import annotations

import math

import pytest

from pdptw import config, travel
from pdptw.travel import TravelTimeTable


@pytest.fixture
def table():
    return TravelTimeTable(
        [(0, 0), (3, 4), (0, 4)],
        [[0, 7, 9], [6, 0, 2], [8, 3, 0]],
    )


def test_euclidean_travel_time_scales_with_speed():
    assert travel.get_travel_time((0, 0), (3, 4), 1.0) == pytest.approx(5.0)
    assert travel.get_travel_time((0, 0), (3, 4), 2.0) == pytest.approx(2.5)
    assert travel.get_travel_time((1, 1), (1, 1), 2.0) == 0.0
    assert math.isinf(travel.get_travel_time((0, 0), (1, 0), 0))


def test_haversine_metric(monkeypatch):
    monkeypatch.setattr(config, "DISTANCE_METRIC", "haversine")
    a, b = (25.2854, 51.5310), (25.2900, 51.5350)
    assert travel.haversine_distance(a, b) == pytest.approx(0.651, abs=1e-3)
    assert travel.get_travel_time(a, b, 2.0) == pytest.approx(travel.haversine_distance(a, b) / 2.0)


def test_unknown_metric_raises(monkeypatch):
    monkeypatch.setattr(config, "DISTANCE_METRIC", "manhattan")
    with pytest.raises(ValueError):
        travel.local_distance((0, 0), (1, 1))


def test_table_times_ignore_speed(table):
    assert travel.get_travel_time((0, 0), (3, 4), 1.0, table) == 7.0
    assert travel.get_travel_time((0, 0), (3, 4), 10.0, table) == 7.0
    assert travel.get_travel_time((3, 4), (0, 0), 10.0, table) == 6.0
    assert travel.get_travel_time((3, 4), (3, 4), 10.0, table) == 0.0


def test_table_rejects_unknown_location(table):
    assert (0, 4) in table
    assert (5, 5) not in table
    with pytest.raises(ValueError, match="not in the travel time table"):
        travel.get_travel_time((0, 0), (5, 5), 1.0, table)


def test_table_validation():
    with pytest.raises(ValueError):
        TravelTimeTable([(0, 0), (1, 1)], [[0, 1]])
    with pytest.raises(ValueError):
        TravelTimeTable([(0, 0), (1, 1)], [[0, -1], [1, 0]])
    with pytest.raises(ValueError):
        TravelTimeTable([(0, 0), (0, 0)], [[0, 1], [1, 0]])


def test_local_travel_time_matrix():
    matrix = travel.build_travel_time_matrix([(0, 0), (3, 4), (0, 4)], 1.0)
    assert matrix[0][1] == pytest.approx(5.0)
    assert matrix[1][2] == pytest.approx(3.0)
    assert all(matrix[i][i] == 0 for i in range(3))


def test_matrix_from_table_has_one_unit(table):
    locations = [(0, 0), (3, 4), (0, 4)]
    assert travel.build_travel_time_matrix(locations, 5.0, table) == [
        [0.0, 7.0, 9.0],
        [6.0, 0.0, 2.0],
        [8.0, 3.0, 0.0],
    ]
