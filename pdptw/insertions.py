# pdptw-dispatch/pdptw/insertions.py
"""
Insertion search: every way to splice a request into an existing route.

A request that is not yet picked up is spliced in twice (pickup, then
delivery); the second copy is always placed after the first, so every
candidate respects precedence. Positions before start_index are never
touched, which protects a vehicle's committed destination.
"""

from __future__ import annotations

from math import comb
from typing import Iterator, Sequence, Tuple, TypeVar

from . import config

T = TypeVar("T")


def insertions_iterator(
    route: Sequence[T],
    item: T,
    start_index: int = 0,
    depth: int = config.INSERTION_DEPTH
) -> Iterator[Tuple[T, ...]]:
    """
    Lazily enumerate all routes obtained by inserting `depth` copies of item.

    Candidates are produced in lexicographic order of the insertion gaps:
    the first copy goes to gap i (start_index <= i <= len(route)), the next
    copy to a gap at or after i, and so on. The input route is not modified.

    Args:
        route: The route to insert into
        item: The request to insert
        start_index: First gap that may receive an insertion
        depth: Number of copies to insert (2 = pickup + delivery)

    Returns:
        A finite, single-use iterator of new route tuples

    Raises:
        ValueError: If start_index is outside [0, len(route)] or depth < 1
    """
    base = tuple(route)
    if not 0 <= start_index <= len(base):
        raise ValueError(
            f"start_index must be in [0, {len(base)}], it is {start_index}"
        )
    if depth < 1:
        raise ValueError(f"depth must be positive, it is {depth}")
    return _insert(base, item, start_index, depth)


def _insert(route: Tuple[T, ...], item: T, start: int, remaining: int) -> Iterator[Tuple[T, ...]]:
    for position in range(start, len(route) + 1):
        candidate = route[:position] + (item,) + route[position:]
        if remaining == 1:
            yield candidate
        else:
            yield from _insert(candidate, item, position + 1, remaining - 1)


def count_insertions(route_length: int, start_index: int = 0, depth: int = config.INSERTION_DEPTH) -> int:
    """
    Number of candidates insertions_iterator() yields.

    Example:
        >>> count_insertions(2, 0, 2)  # 3 gaps, pickup <= delivery gap
        6
    """
    gaps = route_length - start_index + 1
    return comb(gaps + depth - 1, depth)
