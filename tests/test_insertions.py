# pdptw-dispatch/tests/test_insertions.py
"""Tests for the insertion search."""

from __future__ import annotations

import pytest

from pdptw.insertions import count_insertions, insertions_iterator


def test_all_pickup_delivery_placements_in_order():
    result = list(insertions_iterator(("a", "b"), "x", 0, 2))
    assert result == [
        ("x", "x", "a", "b"),
        ("x", "a", "x", "b"),
        ("x", "a", "b", "x"),
        ("a", "x", "x", "b"),
        ("a", "x", "b", "x"),
        ("a", "b", "x", "x"),
    ]
    assert len(result) == count_insertions(2, 0, 2)


def test_start_index_protects_prefix():
    route = ("d", "d", "a", "a")
    for candidate in insertions_iterator(route, "x", 1, 2):
        assert candidate[0] == "d"
        assert [s for s in candidate if s != "x"] == list(route)
        assert candidate.count("x") == 2
    assert len(list(insertions_iterator(route, "x", 1, 2))) == count_insertions(4, 1, 2)


def test_empty_route():
    assert list(insertions_iterator((), "x", 0, 2)) == [("x", "x")]
    assert list(insertions_iterator((), "x", 0, 1)) == [("x",)]


def test_input_route_untouched_and_iterator_single_use():
    route = ["a"]
    iterator = insertions_iterator(route, "x", 0, 2)
    assert len(list(iterator)) == 3
    assert list(iterator) == []
    assert route == ["a"]


def test_invalid_arguments():
    with pytest.raises(ValueError):
        insertions_iterator(("a",), "x", 2, 2)
    with pytest.raises(ValueError):
        insertions_iterator(("a",), "x", -1, 2)
    with pytest.raises(ValueError):
        insertions_iterator(("a",), "x", 0, 0)
