# pdptw-dispatch/pdptw/config.py
"""
Configuration parameters for the PDPTW allocation and routing core.

This module centralizes all tunable parameters, making it easy to:
- Adjust the objective weights shared by every engine
- Trade solution quality for speed in the local search
- Configure the auction tie-break tolerance
- Choose how travel times are derived from locations

Every engine takes its parameters as constructor arguments that default
to the values below, so a host can override them per instance.
"""

from typing import Final

# =============================================================================
# OBJECTIVE WEIGHTS
# =============================================================================
# The shared objective is a weighted sum of tardiness and travel time,
# evaluated per vehicle and summed (decomposed cost).

TARDINESS_WEIGHT: Final[float] = 1.0
"""Weight of the total tardiness (time units late, summed over all stops)."""

TRAVEL_TIME_WEIGHT: Final[float] = 1.0
"""Weight of the total travel time, including the return to the depot."""

# =============================================================================
# INSERTION SEARCH
# =============================================================================

INSERTION_DEPTH: Final[int] = 2
"""
Number of copies of a request spliced into a route.
2 inserts a pickup and its delivery; 1 inserts a delivery only.
"""

# =============================================================================
# LATE ACCEPTANCE HILL CLIMBING
# =============================================================================

LATE_ACCEPTANCE_HISTORY_LENGTH: int = 2000
"""
Length L of the circular buffer of past objective values.
A candidate is accepted when it is not worse than the value from L
iterations ago. Longer = more tolerance for temporary regressions.
"""

LATE_ACCEPTANCE_MAX_ITERATIONS: int = 200000
"""Fixed iteration budget. The best-ever solution is returned afterwards."""

PERMUTATION_SHIFT_THRESHOLD: Final[int] = 4
"""
Permutation length (depot sentinels included) at or below which only
reassignment moves are used, since the shift window degenerates.
"""

LOG_EVERY_N_ITERATIONS: int = 10000
"""Iteration interval of the DEBUG progress summary."""

# =============================================================================
# AUCTION
# =============================================================================

AUCTION_TOLERANCE: Final[float] = 1e-4
"""
Bids within this distance of the lowest bid count as ties.
One of the tied bidders is then picked uniformly at random.
"""

# =============================================================================
# TRAVEL TIMES
# =============================================================================

DEFAULT_VEHICLE_SPEED: float = 1.0
"""Distance units per time unit for vehicles that do not set a speed."""

DISTANCE_METRIC: str = "euclidean"
"""
Local distance metric used when the snapshot carries no travel time table.
Travel time = local distance / vehicle speed.
- "euclidean": planar coordinates (x, y)
- "haversine": GPS coordinates (lat, lng), result in kilometers
"""
