# pdptw-dispatch/pdptw/travel.py
"""
Travel time utilities for the PDPTW core.

Travel times come from one of two sources:
- TravelTimeTable: durations supplied by the host for a fixed set of
  locations (e.g. precomputed from a road network). Used as-is, the
  vehicle speed does not apply.
- The local metric: distance between the coordinates (planar or
  great-circle) divided by the vehicle speed.

Every engine derives its travel times from get_travel_time() or
build_travel_time_matrix(), so both sources always yield the same unit.
"""

from __future__ import annotations

import math
import logging
from typing import Dict, List, Optional, Sequence

from . import config
from .models import Location

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def euclidean_distance(a: Location, b: Location) -> float:
    """Straight-line distance between two planar points."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def haversine_distance(a: Location, b: Location) -> float:
    """
    Great-circle distance between two (lat, lng) points.

    Returns:
        Distance in kilometers

    Example:
        >>> round(haversine_distance((25.2854, 51.5310), (25.2900, 51.5350)), 3)
        0.651
    """
    lat1, lng1, lat2, lng2 = map(math.radians, (a[0], a[1], b[0], b[1]))
    h = (math.sin((lat2 - lat1) / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def local_distance(a: Location, b: Location) -> float:
    """
    Distance between two locations using the configured local metric.

    Raises:
        ValueError: If config.DISTANCE_METRIC is not a known metric
    """
    if config.DISTANCE_METRIC == "euclidean":
        return euclidean_distance(a, b)
    if config.DISTANCE_METRIC == "haversine":
        return haversine_distance(a, b)
    raise ValueError(f"Unknown distance metric: {config.DISTANCE_METRIC!r}")


class TravelTimeTable:
    """
    Host-supplied travel times between a fixed set of locations.

    Attributes:
        locations: The locations covered by the table, in matrix order
    """

    def __init__(self, locations: Sequence[Location], times: Sequence[Sequence[float]]) -> None:
        n = len(locations)
        if len(times) != n or any(len(row) != n for row in times):
            raise ValueError(f"Travel time table must be {n} x {n}")
        if any(t < 0 or math.isnan(t) for row in times for t in row):
            raise ValueError("Travel times must be non-negative")

        self.locations = [tuple(loc) for loc in locations]
        self._index: Dict[Location, int] = {}
        for i, loc in enumerate(self.locations):
            if loc in self._index:
                raise ValueError(f"Location {loc} occurs twice in the travel time table")
            self._index[loc] = i
        self._times = [[float(t) for t in row] for row in times]

    def __contains__(self, location: Location) -> bool:
        return tuple(location) in self._index

    def lookup(self, a: Location, b: Location) -> float:
        """
        Raises:
            ValueError: If either location is not covered by the table
        """
        try:
            return self._times[self._index[tuple(a)]][self._index[tuple(b)]]
        except KeyError as e:
            raise ValueError(f"Location {e.args[0]} is not in the travel time table") from None

    def __len__(self) -> int:
        return len(self.locations)

    def __repr__(self) -> str:
        return f"TravelTimeTable({len(self)} locations)"


def get_travel_time(a: Location, b: Location, speed: float, table: Optional[TravelTimeTable] = None) -> float:
    """
    Get the travel time between two locations.

    Args:
        a: Origin
        b: Destination
        speed: Distance units per time unit; only used by the local metric
        table: Host-supplied travel times, taking precedence when given

    Returns:
        Travel time, never negative
    """
    if a == b:
        return 0.0
    if table is not None:
        return table.lookup(a, b)
    if speed <= 0:
        return math.inf
    return local_distance(a, b) / speed


def build_travel_time_matrix(
    locations: Sequence[Location],
    speed: float,
    table: Optional[TravelTimeTable] = None
) -> List[List[float]]:
    """
    Precompute all pairwise travel times for a set of locations.

    Returns:
        matrix[i][j] = travel time from locations[i] to locations[j]
    """
    source = "host table" if table is not None else config.DISTANCE_METRIC
    logger.debug(f"Building {len(locations)}x{len(locations)} travel time matrix from {source}")
    return [[get_travel_time(a, b, speed, table) for b in locations] for a in locations]
