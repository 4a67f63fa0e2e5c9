# pdptw-dispatch/pdptw/exceptions.py
"""
Exception hierarchy for the allocation and routing core.

All failures are raised synchronously where they are detected; retrying
is left to the host scheduler.
"""

from __future__ import annotations

from typing import Any, Optional


class DispatchError(Exception):
    """Base class for all errors raised by this package."""


class InvalidClaim(DispatchError, ValueError):
    """A claim or unclaim precondition was violated. State is left untouched."""


class InvalidRelease(DispatchError, ValueError):
    """Release of a request that is not in the bidder's assigned set."""


class InfeasibleInsertion(DispatchError):
    """No feasible placement exists for a request in any route."""

    def __init__(self, message: str, request: Optional[Any] = None) -> None:
        super().__init__(message)
        self.request = request


class NoBidders(DispatchError, RuntimeError):
    """An auction was started while no bidder is registered."""


class InternalConsistencyError(DispatchError, AssertionError):
    """A computation produced an impossible value, e.g. a negative objective."""
