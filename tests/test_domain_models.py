"""
Tests for domain models.
"""

import pendulum
import pytest

from when2jam.domain.exceptions import BoundsViolation, ConfigurationFault
from when2jam.domain.models import DateRange, SlotGrid, SlotLabel, parse_calendar_date


MONDAY = pendulum.date(2024, 11, 25)
WEDNESDAY = pendulum.date(2024, 11, 27)


class TestDateRange:
    """Tests for DateRange model."""

    def test_days_inclusive(self):
        """Both ends of the range count."""
        assert DateRange(start=MONDAY, end=WEDNESDAY).days_inclusive() == 3
        assert DateRange(start=MONDAY, end=MONDAY).days_inclusive() == 1

    def test_days_inclusive_across_month_end(self):
        """Spans crossing a month boundary are counted in calendar days."""
        date_range = DateRange(start=pendulum.date(2024, 11, 29), end=pendulum.date(2024, 12, 2))
        assert date_range.days_inclusive() == 4

    def test_invalid_range_raises_error(self):
        """A start after the end is a configuration fault."""
        with pytest.raises(ConfigurationFault, match="must not be after"):
            DateRange(start=WEDNESDAY, end=MONDAY)

    def test_configuration_fault_is_value_error(self):
        """Callers catching ValueError still see invalid ranges."""
        with pytest.raises(ValueError):
            DateRange(start=WEDNESDAY, end=MONDAY)

    def test_date_at(self):
        """Day offsets are counted from the start date."""
        date_range = DateRange(start=MONDAY, end=WEDNESDAY)
        assert date_range.date_at(0) == MONDAY
        assert date_range.date_at(2) == WEDNESDAY

    def test_ensure_within(self):
        """Seven days are allowed, eight are not."""
        week = DateRange(start=MONDAY, end=MONDAY.add(days=6))
        assert week.ensure_within(7) is week

        with pytest.raises(ConfigurationFault, match="spans 8 days"):
            DateRange(start=MONDAY, end=MONDAY.add(days=7)).ensure_within(7)


class TestSlotGrid:
    """Tests for SlotGrid indexing."""

    def test_slots_per_day(self):
        """Hours times slots per hour."""
        assert SlotGrid(start_hour=8, end_hour=22, slots_per_hour=2).slots_per_day == 28
        assert SlotGrid(start_hour=8, end_hour=10, slots_per_hour=4).slots_per_day == 8

    def test_total_slots(self):
        """Total slots scale with the number of days."""
        grid = SlotGrid(start_hour=8, end_hour=10, slots_per_hour=2)
        assert grid.total_slots(DateRange(start=MONDAY, end=WEDNESDAY)) == 12

    def test_total_slots_positive_for_every_valid_span(self):
        """Every range up to a week yields the documented positive count."""
        grid = SlotGrid()
        for span in range(7):
            date_range = DateRange(start=MONDAY, end=MONDAY.add(days=span))
            total = grid.total_slots(date_range)
            assert total == (span + 1) * (22 - 8) * 2
            assert total > 0

    @pytest.mark.parametrize(
        "start_hour,end_hour,slots_per_hour",
        [
            (10, 10, 2),
            (12, 8, 2),
            (8, 22, 0),
            (8, 22, -1),
            (8, 22, 7),
            (8, 25, 2),
            (-1, 10, 2),
        ],
    )
    def test_invalid_grid_raises_error(self, start_hour, end_hour, slots_per_hour):
        """Invalid parameters are rejected before anything is allocated."""
        with pytest.raises(ConfigurationFault):
            SlotGrid(start_hour=start_hour, end_hour=end_hour, slots_per_hour=slots_per_hour)

    def test_slot_label(self):
        """Index decomposes into day offset and wall-clock time."""
        grid = SlotGrid(start_hour=8, end_hour=10, slots_per_hour=2)
        date_range = DateRange(start=MONDAY, end=WEDNESDAY)

        assert grid.slot_label(0, date_range) == SlotLabel(date=MONDAY, hour=8, minute=0)
        assert grid.slot_label(3, date_range) == SlotLabel(date=MONDAY, hour=9, minute=30)
        assert grid.slot_label(5, date_range) == SlotLabel(date=MONDAY.add(days=1), hour=8, minute=30)
        assert grid.slot_label(11, date_range) == SlotLabel(date=WEDNESDAY, hour=9, minute=30)

    def test_slot_label_quarter_hours(self):
        """Minutes follow the slot length."""
        grid = SlotGrid(start_hour=8, end_hour=9, slots_per_hour=4)
        date_range = DateRange(start=MONDAY, end=MONDAY)

        minutes = [grid.slot_label(i, date_range).minute for i in range(4)]
        assert minutes == [0, 15, 30, 45]

    def test_slot_label_is_stable(self):
        """Identical inputs give identical labels."""
        grid = SlotGrid()
        date_range = DateRange(start=MONDAY, end=WEDNESDAY)
        assert grid.slot_label(42, date_range) == grid.slot_label(42, date_range)

    def test_slot_label_out_of_bounds(self):
        """Indexes outside the grid are programming errors."""
        grid = SlotGrid(start_hour=8, end_hour=10, slots_per_hour=2)
        date_range = DateRange(start=MONDAY, end=WEDNESDAY)

        with pytest.raises(BoundsViolation):
            grid.slot_label(12, date_range)
        with pytest.raises(BoundsViolation):
            grid.slot_label(-1, date_range)

    def test_split_and_rebuild_index(self):
        """Decomposing and recomposing an index returns it unchanged."""
        grid = SlotGrid(start_hour=8, end_hour=22, slots_per_hour=2)
        date_range = DateRange(start=MONDAY, end=MONDAY.add(days=6))

        for index in range(grid.total_slots(date_range)):
            day_index, time_index = grid.split_index(index)
            assert grid.slot_index(day_index, time_index) == index

    def test_slot_index_rejects_bad_time_index(self):
        """Time indexes must lie within one day."""
        grid = SlotGrid(start_hour=8, end_hour=10, slots_per_hour=2)
        with pytest.raises(BoundsViolation):
            grid.slot_index(0, 4)

    def test_row_label(self):
        """Only whole hours carry a row label."""
        grid = SlotGrid(start_hour=11, end_hour=14, slots_per_hour=2)

        assert grid.row_label(0) == "11 AM"
        assert grid.row_label(1) == ""
        assert grid.row_label(2) == "12 PM"
        assert grid.row_label(4) == "1 PM"


class TestSlotLabel:
    """Tests for slot label formatting."""

    def test_format_display(self):
        """Weekday, 12-hour time and AM/PM."""
        assert SlotLabel(date=MONDAY, hour=8, minute=30).format_display() == "Mon 8:30 AM"
        assert SlotLabel(date=MONDAY, hour=12, minute=0).format_display() == "Mon 12:00 PM"
        assert SlotLabel(date=WEDNESDAY, hour=21, minute=30).format_display() == "Wed 9:30 PM"
        assert SlotLabel(date=MONDAY, hour=0, minute=0).format_display() == "Mon 12:00 AM"


class TestParseCalendarDate:
    """Tests for store date parsing."""

    def test_plain_date(self):
        assert parse_calendar_date("2024-11-25") == MONDAY

    def test_iso_datetime_keeps_date_part(self):
        """Datetimes written by other clients keep only their calendar date."""
        assert parse_calendar_date("2024-11-25T00:00:00.000Z") == MONDAY
        assert parse_calendar_date("2024-11-27T18:30:00+00:00") == WEDNESDAY

    def test_iso_datetime_in_local_timezone(self):
        """A local midnight stored as UTC maps back to the local day."""
        assert parse_calendar_date("2024-11-24T23:00:00.000Z", "Europe/Berlin") == MONDAY
        assert parse_calendar_date("2024-11-25T05:00:00.000Z", "America/Chicago") == pendulum.date(2024, 11, 24)

    def test_plain_date_ignores_timezone(self):
        assert parse_calendar_date("2024-11-25", "Pacific/Auckland") == MONDAY

    def test_invalid_date(self):
        with pytest.raises(ValueError):
            parse_calendar_date("not a date")
