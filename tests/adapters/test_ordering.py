"""Tests for fractional ordering keys."""

from __future__ import annotations

import pytest

from taskvault.adapters.sqlite.ordering import FIRST_KEY, compute_key, fits, renumbered


@pytest.mark.parametrize(
    "before, after, tail, expected",
    [
        (2.0, 1.0, None, 1.5),
        (1.0, None, None, 0.0),
        (None, 3.0, None, 4.0),
        (None, None, 7.0, 8.0),
        (None, None, None, FIRST_KEY),
    ],
)
def test_compute_key(before, after, tail, expected):
    assert compute_key(before, after, tail) == expected


def test_fits_between():
    assert fits(1.5, 2.0, 1.0, 1e-9)
    assert not fits(1.5, 1.5 + 1e-12, 1.5 - 1e-12, 1e-9)


def test_fits_rejects_key_equal_to_neighbour():
    # Two adjacent floats have no representable midpoint
    low = 1.0
    high = 1.0000000000000002
    key = compute_key(high, low)
    assert not fits(key, high, low, 0.0)


def test_fits_single_neighbour():
    assert fits(0.0, 1.0, None, 1e-9)
    assert not fits(1.0, 1.0, None, 1e-9)
    assert fits(4.0, None, 3.0, 1e-9)


def test_renumbered():
    assert renumbered(3) == [1.0, 2.0, 3.0]
    assert renumbered(0) == []
