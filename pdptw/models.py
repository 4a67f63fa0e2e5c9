# pdptw-dispatch/pdptw/models.py
"""
Core domain models for the PDPTW allocation and routing core.

This module defines the point-in-time snapshot handed over by the host:
- TimeWindow: A [begin, end] interval (release date and due date of a stop)
- Request: A transportation task with a pickup leg and a delivery leg
- VehicleState: A vehicle's position, cargo and committed plan
- GlobalState: The full snapshot consumed by every engine

Routes are tuples of Request occurrences. A request that still has to be
picked up occurs twice (first occurrence = pickup, second = delivery); a
request that is already in cargo occurs once (its delivery).
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from . import config

if TYPE_CHECKING:
    from .travel import TravelTimeTable

Location = Tuple[float, float]
Route = Tuple["Request", ...]
Schedule = List[Route]


class ParcelState(Enum):
    """Externally observed lifecycle of a request, as reported by the host."""
    ANNOUNCED = "ANNOUNCED"        # Known, pickup window not yet open
    AVAILABLE = "AVAILABLE"        # Waiting at its pickup location
    PICKING_UP = "PICKING_UP"      # A vehicle is servicing the pickup
    IN_CARGO = "IN_CARGO"          # Loaded in a vehicle
    DELIVERING = "DELIVERING"      # A vehicle is servicing the delivery
    DELIVERED = "DELIVERED"        # Done, retired by the host

    def is_claimable(self) -> bool:
        """Only requests still waiting for a pickup can be claimed or unclaimed."""
        return self in (ParcelState.AVAILABLE, ParcelState.ANNOUNCED)


@dataclass(frozen=True)
class TimeWindow:
    """
    A closed time interval.

    Attributes:
        begin: Earliest service start (release date)
        end: Latest service start without tardiness (due date)
    """
    begin: float = 0.0
    end: float = math.inf

    def __post_init__(self) -> None:
        if self.end < self.begin:
            raise ValueError(f"Time window end ({self.end}) precedes its begin ({self.begin})")

    def is_in(self, t: float) -> bool:
        return self.begin <= t <= self.end

    def is_before_end(self, t: float) -> bool:
        return t <= self.end

    def tardiness(self, t: float) -> float:
        """Returns how far t lies after the end of the window (0 if not late)."""
        return max(0.0, t - self.end)


@dataclass(frozen=True)
class Request:
    """
    A pickup-and-delivery request.

    Attributes:
        request_id: Unique identifier
        pickup_location: Where the request is collected
        delivery_location: Where the request is dropped off
        pickup_window: Release/due date of the pickup
        delivery_window: Release/due date of the delivery
        pickup_duration: Service time spent at the pickup
        delivery_duration: Service time spent at the delivery
        announce_time: When the host made the request known
    """
    request_id: str
    pickup_location: Location
    delivery_location: Location
    pickup_window: TimeWindow = field(default_factory=TimeWindow)
    delivery_window: TimeWindow = field(default_factory=TimeWindow)
    pickup_duration: float = 0.0
    delivery_duration: float = 0.0
    announce_time: float = 0.0

    def __post_init__(self) -> None:
        if self.pickup_duration < 0 or self.delivery_duration < 0:
            raise ValueError(f"Service durations of {self.request_id} must be non-negative")

    def location(self, is_pickup: bool) -> Location:
        return self.pickup_location if is_pickup else self.delivery_location

    def window(self, is_pickup: bool) -> TimeWindow:
        return self.pickup_window if is_pickup else self.delivery_window

    def duration(self, is_pickup: bool) -> float:
        return self.pickup_duration if is_pickup else self.delivery_duration

    def __repr__(self) -> str:
        return f"Request({self.request_id})"


def iter_stops(route: Route, contents: Tuple[Request, ...] = ()) -> Iterator[Tuple[Request, bool]]:
    """
    Walk a route and tell pickups from deliveries.

    Yields:
        (request, is_pickup) for every occurrence in the route
    """
    in_cargo = set(contents)
    seen = set()
    for request in route:
        is_pickup = request not in in_cargo and request not in seen
        seen.add(request)
        yield request, is_pickup


def validate_route(route: Route, contents: Tuple[Request, ...] = ()) -> None:
    """
    Check the occurrence rules of a route.

    Raises:
        ValueError: If a cargo request does not occur exactly once, or any
            other request does not occur exactly twice
    """
    counts = Counter(route)
    for request in contents:
        if counts.get(request, 0) != 1:
            raise ValueError(
                f"{request} is in cargo and must occur exactly once in the route, "
                f"found {counts.get(request, 0)}"
            )
    in_cargo = set(contents)
    for request, count in counts.items():
        if request not in in_cargo and count != 2:
            raise ValueError(
                f"{request} must occur exactly twice in the route (pickup, delivery), found {count}"
            )


@dataclass(frozen=True)
class VehicleState:
    """
    Snapshot of one vehicle.

    Attributes:
        vehicle_id: Unique identifier
        position: Current position (or the position it is heading to)
        speed: Distance units per time unit
        contents: Requests currently in cargo; only their delivery remains
        remaining_service_time: Time left on a stop being serviced right now
        destination: Committed next stop. None means the vehicle is free to
            divert, so every stop of its route may be re-planned.
        route: Committed route. None means no route was committed yet; the
            committed route is then derived from destination and contents.
    """
    vehicle_id: str
    position: Location
    speed: float = config.DEFAULT_VEHICLE_SPEED
    contents: Tuple[Request, ...] = ()
    remaining_service_time: float = 0.0
    destination: Optional[Request] = None
    route: Optional[Route] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "contents", tuple(self.contents))
        if self.route is not None:
            object.__setattr__(self, "route", tuple(self.route))

        if self.speed <= 0:
            raise ValueError(f"Vehicle {self.vehicle_id} must have a positive speed, got {self.speed}")
        if self.remaining_service_time < 0:
            raise ValueError(f"Vehicle {self.vehicle_id} has negative remaining service time")

        if self.route is not None:
            validate_route(self.route, self.contents)
            if self.destination is not None and (not self.route or self.route[0] != self.destination):
                raise ValueError(
                    f"Committed route of vehicle {self.vehicle_id} must start with "
                    f"its destination {self.destination}"
                )

    def committed_route(self) -> Route:
        """
        Returns the route the vehicle is currently committed to.

        When no route is set, the destination comes first (pickup and
        delivery, or only the delivery if it is in cargo), followed by the
        deliveries of the remaining cargo in cargo order.
        """
        if self.route is not None:
            return self.route

        stops: List[Request] = []
        if self.destination is not None:
            stops.append(self.destination)
            if self.destination not in self.contents:
                stops.append(self.destination)
        for request in self.contents:
            if request != self.destination:
                stops.append(request)
        return tuple(stops)

    @property
    def has_destination(self) -> bool:
        return self.destination is not None

    def __repr__(self) -> str:
        return f"VehicleState({self.vehicle_id}, cargo={len(self.contents)})"


@dataclass(frozen=True)
class GlobalState:
    """
    Point-in-time snapshot handed to the engines.

    Attributes:
        available: Requests not yet picked up, in a deterministic order
        vehicles: The fleet
        time: Current simulated time
        depot: Start/end sentinel location shared by all vehicles
        travel_times: Host-supplied travel times. None means travel times
            are derived from the coordinates and the vehicle speeds.
    """
    available: Tuple[Request, ...]
    vehicles: Tuple[VehicleState, ...]
    time: float = 0.0
    depot: Location = (0.0, 0.0)
    travel_times: Optional[TravelTimeTable] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "available", tuple(self.available))
        object.__setattr__(self, "vehicles", tuple(self.vehicles))

        if self.travel_times is not None:
            missing = [loc for loc in self.locations() if loc not in self.travel_times]
            if missing:
                raise ValueError(f"Travel time table does not cover locations {missing}")

        if len(set(self.available)) != len(self.available):
            raise ValueError("Available requests must be unique")
        available = set(self.available)
        committed = {}
        for vehicle in self.vehicles:
            loaded = available.intersection(vehicle.contents)
            if loaded:
                raise ValueError(
                    f"Requests {sorted(r.request_id for r in loaded)} are both available "
                    f"and in the cargo of vehicle {vehicle.vehicle_id}"
                )

            destination = vehicle.destination
            if destination is None:
                continue
            if destination not in available and destination not in vehicle.contents:
                raise ValueError(
                    f"Destination {destination} of vehicle {vehicle.vehicle_id} "
                    f"is neither available nor in its cargo"
                )
            if destination in committed:
                raise ValueError(
                    f"{destination} is the destination of both vehicle "
                    f"{committed[destination]} and vehicle {vehicle.vehicle_id}"
                )
            committed[destination] = vehicle.vehicle_id

    def locations(self) -> List[Location]:
        """Every location a route of this snapshot can visit or start from."""
        found = [self.depot]
        for request in self.available:
            found.extend((request.pickup_location, request.delivery_location))
        for vehicle in self.vehicles:
            found.append(vehicle.position)
            found.extend(r.delivery_location for r in vehicle.contents)
        return found

    def with_single_vehicle(self, index: int) -> GlobalState:
        """Returns a copy of this snapshot containing only the vehicle at index."""
        return replace(self, vehicles=(self.vehicles[index],))

    def unassigned_requests(self) -> Tuple[Request, ...]:
        """Available requests, in snapshot order, that occur in no committed route."""
        planned = set()
        for vehicle in self.vehicles:
            planned.update(vehicle.committed_route())
        return tuple(r for r in self.available if r not in planned)

    def __repr__(self) -> str:
        return (f"GlobalState(t={self.time}, available={len(self.available)}, "
                f"vehicles={len(self.vehicles)})")
