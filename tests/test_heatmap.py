"""
Tests for heat-map aggregation.
"""

import itertools
import logging

import pendulum
import pytest

from when2jam.domain.exceptions import BoundsViolation
from when2jam.domain.heatmap import (
    HeatmapCalculator,
    build_heatmap,
    free_at,
    intensity,
    valid_responses,
)
from when2jam.domain.models import DateRange, Response, SlotGrid


ALICE = Response(event_id="e1", user_name="Alice", availability=(1, 0, 0, 0, 1, 1, 0, 0, 0, 0, 0, 0))
BOB = Response(event_id="e1", user_name="Bob", availability=(1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0))


def _calculator() -> HeatmapCalculator:
    # Monday to Wednesday, 08:00-10:00, 30 minute slots
    return HeatmapCalculator(
        grid=SlotGrid(start_hour=8, end_hour=10, slots_per_hour=2),
        date_range=DateRange(start=pendulum.date(2024, 11, 25), end=pendulum.date(2024, 11, 27)),
    )


class TestBuildHeatmap:
    """Tests for folding responses into counts."""

    def test_two_responses(self):
        """Monday to Wednesday example with two responders."""
        calculator = _calculator()

        assert calculator.total_slots == 12
        assert calculator.build([ALICE, BOB]) == (2, 1, 0, 0, 1, 1, 0, 0, 0, 0, 0, 0)

    def test_no_responses(self):
        assert build_heatmap([], 4) == (0, 0, 0, 0)

    def test_order_independent(self):
        """Any permutation of the responses yields the same heat-map."""
        carol = Response(event_id="e1", user_name="Carol", availability=(0,) * 11 + (1,))
        responses = [ALICE, BOB, carol]
        expected = build_heatmap(responses, 12)

        for permutation in itertools.permutations(responses):
            assert build_heatmap(permutation, 12) == expected

    def test_mismatched_length_is_skipped(self, caplog):
        """Stale vectors from another grid are left out and logged."""
        stale = Response(event_id="e1", user_name="Stale", availability=(1,) * 13)

        with caplog.at_level(logging.WARNING):
            heatmap = build_heatmap([ALICE, stale], 12)

        assert heatmap == ALICE.availability
        assert "Stale" in caplog.text

    def test_invalid_values_are_skipped(self):
        """Vectors holding anything but 0/1 are not counted."""
        weird = Response(event_id="e1", user_name="Weird", availability=(2,) * 12)
        assert build_heatmap([weird, BOB], 12) == BOB.availability

    def test_valid_responses_keeps_order(self):
        stale = Response(event_id="e1", user_name="Stale", availability=(1,))
        assert valid_responses([BOB, stale, ALICE], 12) == [BOB, ALICE]


class TestFreeAt:
    """Tests for per-slot membership."""

    def test_names_in_supplied_order(self):
        """Names keep fetch order, not alphabetical order."""
        assert free_at([ALICE, BOB], 0) == ["Alice", "Bob"]
        assert free_at([BOB, ALICE], 0) == ["Bob", "Alice"]

    def test_nobody_free(self):
        assert free_at([ALICE, BOB], 2) == []

    def test_unsaved_edit_of_current_user(self):
        """A new user painting locally shows up as "(You)"."""
        mine = (0, 0, 1) + (0,) * 9

        assert free_at([ALICE, BOB], 2, "Carol", mine) == ["Carol (You)"]

    def test_saved_user_not_listed_twice(self):
        """A user whose saved response is already listed is not repeated."""
        mine = ALICE.availability

        assert free_at([ALICE, BOB], 0, "Alice", mine) == ["Alice", "Bob"]

    def test_blank_current_user_is_ignored(self):
        mine = (1,) * 12
        assert free_at([BOB], 2, "   ", mine) == []

    def test_current_user_busy(self):
        mine = (0,) * 12
        assert free_at([ALICE], 0, "Carol", mine) == ["Alice"]

    def test_calculator_skips_stale_responses(self):
        """Stale vectors never show up in membership either."""
        stale = Response(event_id="e1", user_name="Stale", availability=(1,) * 20)

        assert _calculator().free_at([stale, ALICE], 0) == ["Alice"]

    def test_stale_responses_skipped_with_total_slots(self):
        """Given the grid size, membership drops stale vectors just like the fold."""
        stale = Response(event_id="e1", user_name="Stale", availability=(1,) * 20)

        assert free_at([stale, ALICE], 0, total_slots=12) == ["Alice"]
        assert free_at([stale, ALICE], 0, total_slots=12) == _calculator().free_at([stale, ALICE], 0)

    def test_stale_responses_skipped_with_local_vector(self):
        """Without total_slots the local vector's length sets the grid size."""
        stale = Response(event_id="e1", user_name="Stale", availability=(1,) * 20)

        assert free_at([stale, BOB], 0, "Carol", (0,) * 12) == ["Bob"]

    def test_out_of_bounds_with_total_slots(self):
        with pytest.raises(BoundsViolation):
            free_at([ALICE], -1, total_slots=12)

    def test_calculator_out_of_bounds(self):
        with pytest.raises(BoundsViolation):
            _calculator().free_at([ALICE], 12)


class TestIntensity:
    """Tests for heat intensity scaling."""

    def test_no_responses(self):
        """Division by zero is guarded."""
        assert intensity(0, 0) == 0

    def test_everyone_free(self):
        assert intensity(2, 2) == 1

    def test_within_unit_interval(self):
        for total in range(1, 6):
            for count in range(total + 1):
                assert 0 <= intensity(count, total) <= 1

    def test_calculator_intensities(self):
        levels = _calculator().intensities([ALICE, BOB])

        assert levels[0] == 1
        assert levels[1] == 0.5
        assert levels[2] == 0


class TestBestSlots:
    """Tests for ranking slots by availability."""

    def test_highest_count_first_then_index(self):
        assert _calculator().best_slots([ALICE, BOB], limit=3) == [(0, 2), (1, 1), (4, 1)]

    def test_empty_when_nobody_free(self):
        assert _calculator().best_slots([]) == []
