# pdptw-dispatch/pdptw/bidding.py
"""
Decentralized bidders for the auction-based allocation.

A Bidder is the per-vehicle agent of the auction. It combines:
- ClaimDiscipline: the assigned/claimed request sets and their
  preconditions (a vehicle commits to at most one next request)
- BidStrategy: how the agent prices a request (random, fixed, or the
  marginal insertion cost into its vehicle's route)

Every change of the assigned set is announced to the registered change
listeners, which typically trigger a replan of the vehicle's route.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Collection, Dict, FrozenSet, List, Optional, Protocol

from .cheapest_insertion import cheapest_route_insertion
from .exceptions import InvalidClaim, InvalidRelease
from .models import GlobalState, ParcelState, Request
from .objective import ObjectiveFunction

logger = logging.getLogger(__name__)


class CommunicatorEventType(Enum):
    """Events a bidder emits."""
    CHANGE = "CHANGE"   # The assigned set grew or shrank


@dataclass(frozen=True)
class ChangeEvent:
    event_type: CommunicatorEventType
    issuer: Any


ChangeListener = Callable[[ChangeEvent], None]


# =============================================================================
# BID STRATEGIES
# =============================================================================

class BidStrategy(Protocol):
    """
    Prices a request for one agent. Lower bids win.

    Implementations must be free of side effects: the auction skips bidding
    entirely when only one bidder is registered.
    """

    def bid(self, request: Request, time: float, parcels: Collection[Request]) -> float:
        ...


class RandomBidStrategy:
    """Bids a uniform random value in [0, 1)."""

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def bid(self, request: Request, time: float, parcels: Collection[Request]) -> float:
        return self.rng.random()


class FixedBidStrategy:
    """Always bids the same value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def bid(self, request: Request, time: float, parcels: Collection[Request]) -> float:
        return self.value


class InsertionCostBidStrategy:
    """
    Bids the marginal cost of the cheapest insertion of the request into
    the vehicle's committed route.

    The snapshot attribute may be replaced by the host whenever a fresher
    snapshot is available.

    Attributes:
        snapshot: The snapshot the vehicle belongs to
        vehicle_index: Index of the bidding vehicle in snapshot.vehicles
        objective: Cost function of a route
    """

    def __init__(
        self,
        snapshot: GlobalState,
        vehicle_index: int,
        objective: Optional[ObjectiveFunction] = None
    ) -> None:
        if not 0 <= vehicle_index < len(snapshot.vehicles):
            raise ValueError(f"No vehicle at index {vehicle_index} in {snapshot}")
        self.snapshot = snapshot
        self.vehicle_index = vehicle_index
        self.objective = objective if objective is not None else ObjectiveFunction()

    def bid(self, request: Request, time: float, parcels: Collection[Request]) -> float:
        """Returns inf when the request cannot be inserted."""
        route = self.snapshot.vehicles[self.vehicle_index].committed_route()
        found = cheapest_route_insertion(
            self.objective, self.snapshot, self.vehicle_index, route, request
        )
        return math.inf if found is None else found[0]


# =============================================================================
# CLAIM DISCIPLINE
# =============================================================================

class ClaimDiscipline:
    """
    Assigned and claimed requests of one agent.

    Invariants: claimed is a subset of assigned and holds at most one
    request. Every precondition is checked before any state changes.

    Attributes:
        parcel_state: Host callback reporting the current ParcelState of a request
        issuer: Object reported as the issuer of change events
    """

    def __init__(self, parcel_state: Callable[[Request], ParcelState], issuer: Any = None) -> None:
        self.parcel_state = parcel_state
        self.issuer = issuer if issuer is not None else self
        # dicts keep arrival order for readable logs
        self._assigned: Dict[Request, None] = {}
        self._claimed: Dict[Request, None] = {}
        self._listeners: List[ChangeListener] = []

    @property
    def parcels(self) -> FrozenSet[Request]:
        return frozenset(self._assigned)

    @property
    def claimed_parcels(self) -> FrozenSet[Request]:
        return frozenset(self._claimed)

    def add_change_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        """Raises ValueError if the listener was never added."""
        self._listeners.remove(listener)

    def _notify(self) -> None:
        event = ChangeEvent(CommunicatorEventType.CHANGE, self.issuer)
        for listener in list(self._listeners):
            listener(event)

    def receive(self, request: Request) -> None:
        logger.info(f"{self.issuer} receiveParcel {request}")
        self._assigned[request] = None
        self._notify()

    def release(self, request: Request) -> None:
        """
        Give an assigned request back, e.g. to re-auction it.

        Raises:
            InvalidRelease: Checked in this order: the request is not
                assigned, it is claimed (unclaim it first)
        """
        logger.info(f"{self.issuer} releaseParcel {request}")
        if request not in self._assigned:
            raise InvalidRelease(
                f"Can not release {request} which is not in assigned parcels: {list(self._assigned)}"
            )
        if request in self._claimed:
            raise InvalidRelease(f"Can not release {request} because it is claimed.")
        del self._assigned[request]
        self._notify()

    def claim(self, request: Request) -> None:
        """
        Reserve an assigned request as the agent's next objective.

        Raises:
            InvalidClaim: Checked in this order: the request is already
                claimed, it is not assigned, it is no longer AVAILABLE or
                ANNOUNCED, another request is claimed
        """
        logger.info(f"claim {request}")
        if request in self._claimed:
            raise InvalidClaim(f"Can not claim {request} because it is already claimed.")
        if request not in self._assigned:
            raise InvalidClaim(
                f"Can not claim {request} which is not in assigned parcels: {list(self._assigned)}."
            )
        state = self.parcel_state(request)
        if not state.is_claimable():
            raise InvalidClaim(f"Can not claim {request} in state {state.value}.")
        if self._claimed:
            raise InvalidClaim(f"Claimed parcels must be empty, is {list(self._claimed)}.")

        self._claimed[request] = None
        logger.info(f" > assigned parcels {list(self._assigned)}")
        logger.info(f" > claimed parcels {list(self._claimed)}")

    def unclaim(self, request: Request) -> None:
        """
        Give up the claim on a request that has not been picked up yet.

        Raises:
            InvalidClaim: Checked in this order: the request is not claimed,
                it is no longer AVAILABLE or ANNOUNCED
        """
        logger.info(f"unclaim {request}")
        if request not in self._claimed:
            raise InvalidClaim(f"Can not unclaim {request} because it is not claimed.")
        state = self.parcel_state(request)
        if not state.is_claimable():
            raise InvalidClaim(f"Can not unclaim {request} in state {state.value}.")
        del self._claimed[request]

    def done(self) -> None:
        """
        The claimed request has been serviced: drop it from both sets.

        Emits a CHANGE event when the assigned set shrank.
        """
        logger.info(f"done {list(self._claimed)}")
        if not self._claimed:
            return
        for request in self._claimed:
            del self._assigned[request]
        self._claimed.clear()
        self._notify()


# =============================================================================
# BIDDER
# =============================================================================

class Bidder:
    """
    Per-vehicle auction agent.

    Attributes:
        strategy: Prices requests
        name: Identifier used in logs
    """

    def __init__(
        self,
        strategy: BidStrategy,
        parcel_state: Callable[[Request], ParcelState],
        name: Optional[str] = None
    ) -> None:
        self.strategy = strategy
        self.name = name if name is not None else format(id(self), "x")
        self._discipline = ClaimDiscipline(parcel_state, issuer=self)

    @property
    def parcels(self) -> FrozenSet[Request]:
        """Requests currently assigned to this bidder."""
        return self._discipline.parcels

    @property
    def claimed_parcels(self) -> FrozenSet[Request]:
        return self._discipline.claimed_parcels

    def add_change_listener(self, listener: ChangeListener) -> None:
        """Register a callback invoked with a ChangeEvent on every assigned-set change."""
        self._discipline.add_change_listener(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        self._discipline.remove_change_listener(listener)

    def get_bid_for(self, request: Request, time: float) -> float:
        """Price of taking the request at the given time. No side effects."""
        return self.strategy.bid(request, time, self.parcels)

    def receive_parcel(self, request: Request) -> None:
        self._discipline.receive(request)

    def release_parcel(self, request: Request) -> None:
        """Raises InvalidRelease if the request is not assigned to this bidder or is claimed."""
        self._discipline.release(request)

    def claim(self, request: Request) -> None:
        self._discipline.claim(request)

    def unclaim(self, request: Request) -> None:
        self._discipline.unclaim(request)

    def done(self) -> None:
        self._discipline.done()

    def __repr__(self) -> str:
        return f"Bidder({self.name})"
