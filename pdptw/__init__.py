# pdptw-dispatch/pdptw/__init__.py

from .models import (
    TimeWindow,
    Request,
    VehicleState,
    GlobalState,
    ParcelState,
    Route,
    Schedule,
)
from .exceptions import (
    DispatchError,
    InvalidClaim,
    InvalidRelease,
    InfeasibleInsertion,
    NoBidders,
    InternalConsistencyError,
)
from .travel import TravelTimeTable
from .insertions import insertions_iterator, count_insertions
from .objective import ObjectiveFunction, RouteStats, compute_route_stats
from .arrays import ArraysProblem, ArraysMapping, SolutionObject, to_arrays
from .cheapest_insertion import CheapestInsertionSolver
from .late_acceptance import LateAcceptanceSolver, LateAcceptanceResult
from .solvers import Solver, SOLVERS, create_solver
from .bidding import (
    Bidder,
    ClaimDiscipline,
    BidStrategy,
    RandomBidStrategy,
    FixedBidStrategy,
    InsertionCostBidStrategy,
    ChangeEvent,
    CommunicatorEventType,
)
from .auction import AuctionCoordinator, AuctionResult
from .config import TARDINESS_WEIGHT, TRAVEL_TIME_WEIGHT, AUCTION_TOLERANCE

__version__ = "1.0.0"

__all__ = [
    # Models
    "TimeWindow",
    "Request",
    "VehicleState",
    "GlobalState",
    "ParcelState",
    "Route",
    "Schedule",
    # Errors
    "DispatchError",
    "InvalidClaim",
    "InvalidRelease",
    "InfeasibleInsertion",
    "NoBidders",
    "InternalConsistencyError",
    # Routing
    "TravelTimeTable",
    "insertions_iterator",
    "count_insertions",
    "ObjectiveFunction",
    "RouteStats",
    "compute_route_stats",
    "ArraysProblem",
    "ArraysMapping",
    "SolutionObject",
    "to_arrays",
    # Engines
    "CheapestInsertionSolver",
    "LateAcceptanceSolver",
    "LateAcceptanceResult",
    "Solver",
    "SOLVERS",
    "create_solver",
    # Auction
    "Bidder",
    "ClaimDiscipline",
    "BidStrategy",
    "RandomBidStrategy",
    "FixedBidStrategy",
    "InsertionCostBidStrategy",
    "ChangeEvent",
    "CommunicatorEventType",
    "AuctionCoordinator",
    "AuctionResult",
    # Config
    "TARDINESS_WEIGHT",
    "TRAVEL_TIME_WEIGHT",
    "AUCTION_TOLERANCE",
]
