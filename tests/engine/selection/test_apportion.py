"""
Unit tests for integer apportionment helpers.
"""

from interview_toolkit.engine.selection import allocate_with_capacity, largest_remainder


class TestLargestRemainder:
    """Tests for largest_remainder."""

    def test_when_equal_weights_then_leftover_by_order(self):
        assert largest_remainder(10, {"a": 1, "b": 1, "c": 1}, ["a", "b", "c"]) == {
            "a": 4, "b": 3, "c": 3,
        }

    def test_when_order_reversed_then_tie_goes_to_first_in_order(self):
        assert largest_remainder(10, {"a": 1, "b": 1, "c": 1}, ["c", "b", "a"]) == {
            "a": 3, "b": 3, "c": 4,
        }

    def test_when_shares_exact_then_no_rounding_drift(self):
        assert largest_remainder(100, {"a": 0.29, "b": 0.71}, ["a", "b"]) == {"a": 29, "b": 71}

    def test_when_total_zero_then_all_zero(self):
        assert largest_remainder(0, {"a": 1}, ["a"]) == {"a": 0}


class TestAllocateWithCapacity:
    """Tests for allocate_with_capacity."""

    def test_when_capacity_short_then_overflow_moves(self):
        assert allocate_with_capacity(6, {"a": 1, "b": 1}, {"a": 1, "b": 9}, ["a", "b"]) == {
            "a": 1, "b": 5,
        }

    def test_when_total_exceeds_capacity_then_everything_taken(self):
        assert allocate_with_capacity(20, {"a": 1, "b": 3}, {"a": 2, "b": 4}, ["a", "b"]) == {
            "a": 2, "b": 4,
        }

    def test_when_capacity_zero_then_key_skipped(self):
        assert allocate_with_capacity(3, {"a": 1, "b": 1}, {"a": 0, "b": 5}, ["a", "b"]) == {
            "a": 0, "b": 3,
        }
