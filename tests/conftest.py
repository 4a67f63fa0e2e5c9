# pdptw-dispatch/tests/conftest.py
"""Shared fixtures: small planar snapshots and a controllable parcel-state source."""

from __future__ import annotations

import math
from typing import Callable, Dict

import pytest

from pdptw import config
from pdptw.models import GlobalState, ParcelState, Request, TimeWindow, VehicleState


def make_request(
    request_id: str,
    pickup=(1.0, 0.0),
    delivery=(2.0, 0.0),
    pickup_window=(0.0, math.inf),
    delivery_window=(0.0, math.inf),
    pickup_duration: float = 0.0,
    delivery_duration: float = 0.0,
) -> Request:
    return Request(
        request_id=request_id,
        pickup_location=pickup,
        delivery_location=delivery,
        pickup_window=TimeWindow(*pickup_window),
        delivery_window=TimeWindow(*delivery_window),
        pickup_duration=pickup_duration,
        delivery_duration=delivery_duration,
    )


@pytest.fixture(autouse=True)
def local_travel_times(monkeypatch):
    """Every test runs on planar euclidean distances unless it says otherwise."""
    monkeypatch.setattr(config, "DISTANCE_METRIC", "euclidean")


@pytest.fixture
def three_requests():
    return (
        make_request("A", pickup=(1, 0), delivery=(3, 0), delivery_window=(0, 30)),
        make_request("B", pickup=(0, 2), delivery=(0, 5), delivery_window=(0, 10)),
        make_request("C", pickup=(-2, 0), delivery=(-4, 1), delivery_window=(0, 20)),
    )


@pytest.fixture
def two_vehicle_state(three_requests) -> GlobalState:
    vehicles = (
        VehicleState("V0", position=(0.0, 0.0)),
        VehicleState("V1", position=(1.0, 1.0)),
    )
    return GlobalState(available=three_requests, vehicles=vehicles, time=0.0, depot=(0.0, 0.0))


class ParcelStates:
    """Stands in for the host's view of the request lifecycle."""

    def __init__(self, default: ParcelState = ParcelState.AVAILABLE) -> None:
        self.default = default
        self.states: Dict[Request, ParcelState] = {}

    def __call__(self, request: Request) -> ParcelState:
        return self.states.get(request, self.default)


@pytest.fixture
def parcel_states() -> ParcelStates:
    return ParcelStates()


@pytest.fixture
def events():
    """Collects every ChangeEvent passed to it."""
    received = []

    def listener(event) -> None:
        received.append(event)

    listener.received = received
    return listener
