"""Unit tests for day allocation."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from compass.planning.days import allocate_days, default_num_days
from tests.unit.helpers import make_poi


def _pois(n: int):
    return [make_poi(f"p{i}") for i in range(n)]


@pytest.mark.parametrize(
    ("n", "num_days", "sizes"),
    [
        (7, 3, [3, 3, 1]),
        (5, 3, [2, 2, 1]),
        (4, 3, [2, 2]),
        (3, 5, [1, 1, 1]),
        (6, 1, [6]),
    ],
)
def test_chunk_sizes(n: int, num_days: int, sizes: list[int]) -> None:
    """Test ceil-sized chunks with empty trailing days dropped."""
    assert [len(day) for day in allocate_days(_pois(n), num_days)] == sizes


def test_no_pois_gives_no_days() -> None:
    assert allocate_days([], 3) == []


def test_zero_days_is_rejected() -> None:
    with pytest.raises(ValueError):
        allocate_days(_pois(2), 0)


@given(st.integers(min_value=0, max_value=60), st.integers(min_value=1, max_value=14))
def test_allocation_preserves_order_and_count(n: int, num_days: int) -> None:
    """Test that concatenated days reproduce the input exactly."""
    pois = _pois(n)
    days = allocate_days(pois, num_days)
    assert [p for day in days for p in day] == pois
    assert all(days)
    assert len(days) <= num_days


@pytest.mark.parametrize(
    ("n", "expected"), [(0, 1), (1, 1), (5, 1), (6, 2), (11, 3)]
)
def test_default_num_days(n: int, expected: int) -> None:
    assert default_num_days(n) == expected
