# pdptw-dispatch/pdptw/auction.py
"""
Sealed-bid minimum-cost auction over the registered bidders.

The coordinator is the "auctioneer": when a request becomes available it
asks every bidder for a price, awards the request to the lowest bidder and
delivers it through Bidder.receive_parcel(). It never touches the bidders'
state in any other way.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from . import config
from .bidding import Bidder
from .exceptions import NoBidders
from .models import Request

logger = logging.getLogger(__name__)


@dataclass
class AuctionResult:
    """
    Record of one auction.

    Attributes:
        request: The auctioned request
        time: Time of the auction
        bids: (bidder, bid) in registration order; empty when the request
            was handed to a single bidder without bidding
        winners: Bidders within the tolerance of the lowest bid
        winner: Bidder that received the request
    """
    request: Request
    time: float
    winner: Bidder
    bids: List[Tuple[Bidder, float]] = field(default_factory=list)
    winners: List[Bidder] = field(default_factory=list)

    @property
    def best_bid(self) -> Optional[float]:
        """Lowest bid, or None if no bids were collected."""
        return min(value for _, value in self.bids) if self.bids else None


class AuctionCoordinator:
    """
    Allocates requests to bidders by auction.

    Attributes:
        rng: Breaks ties between equally good bids
        tolerance: Bids at most this far above the lowest bid count as ties
        last_result: Outcome of the most recent auction (None before the first)
    """

    def __init__(self, rng: random.Random, tolerance: float = config.AUCTION_TOLERANCE) -> None:
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, it is {tolerance}")
        self.rng = rng
        self.tolerance = tolerance
        self.last_result: Optional[AuctionResult] = None
        self._bidders: List[Bidder] = []

    @property
    def bidders(self) -> Tuple[Bidder, ...]:
        return tuple(self._bidders)

    def register(self, bidder: Bidder) -> None:
        """Add a bidder; registering the same bidder twice has no effect."""
        if bidder not in self._bidders:
            self._bidders.append(bidder)

    def unregister(self, bidder: Bidder) -> None:
        """Raises ValueError if the bidder is not registered."""
        self._bidders.remove(bidder)

    def receive_parcel(self, request: Request, time: float) -> Bidder:
        """
        Auction a newly available request.

        With a single registered bidder the request is delivered directly,
        without asking for a bid.

        Returns:
            The bidder that received the request

        Raises:
            NoBidders: If no bidder is registered
        """
        if not self._bidders:
            raise NoBidders(f"There are no bidders to auction {request}")

        if len(self._bidders) == 1:
            winner = self._bidders[0]
            result = AuctionResult(request=request, time=time, winner=winner, winners=[winner])
        else:
            bids: List[Tuple[Bidder, float]] = []
            for bidder in self._bidders:
                value = bidder.get_bid_for(request, time)
                logger.debug(f"{bidder} bids {value:.4f} for {request}")
                bids.append((bidder, value))

            best_value = min(value for _, value in bids)
            winners = [
                b for b, value in bids
                if value == best_value or value - best_value <= self.tolerance
            ]
            winner = winners[0] if len(winners) == 1 else self.rng.choice(winners)
            result = AuctionResult(request=request, time=time, winner=winner, bids=bids, winners=winners)
            logger.info(
                f"Auction for {request} at t={time}: {winner} wins with {best_value:.4f} "
                f"({len(winners)} tied of {len(bids)})"
            )

        self.last_result = result
        winner.receive_parcel(request)
        return winner
