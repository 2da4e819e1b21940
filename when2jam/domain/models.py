"""
Domain models for date ranges, slot grids and stored responses.
"""

from dataclasses import dataclass
from typing import Tuple

import pendulum
from pendulum import Date

from .exceptions import BoundsViolation, ConfigurationFault

AvailabilityVector = Tuple[int, ...]


@dataclass(frozen=True)
class DateRange:
    """
    Represents an immutable, inclusive range of calendar dates.

    Invariant: start must not be after end.
    """
    start: Date
    end: Date

    def __post_init__(self):
        if self.start > self.end:
            raise ConfigurationFault(
                f"Start date {self.start} must not be after end date {self.end}"
            )

    def days_inclusive(self) -> int:
        """Return the number of calendar days covered, both ends included."""
        return self.start.diff(self.end).in_days() + 1

    def date_at(self, day_index: int) -> Date:
        """Return the calendar date ``day_index`` days after the start."""
        return self.start.add(days=day_index)

    def ensure_within(self, max_days: int) -> "DateRange":
        """
        Reject ranges spanning more than ``max_days`` days.

        Raises:
            ConfigurationFault: If the range is too long
        """
        if self.days_inclusive() > max_days:
            raise ConfigurationFault(
                f"Date range {self} spans {self.days_inclusive()} days, "
                f"the maximum is {max_days}"
            )
        return self

    def __str__(self) -> str:
        return f"{self.start.format('MM/DD/YYYY')} - {self.end.format('MM/DD/YYYY')}"


@dataclass(frozen=True)
class SlotLabel:
    """Calendar position of a single slot."""
    date: Date
    hour: int
    minute: int

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday H:MM AM/PM (e.g. "Mon 8:30 AM")
        """
        weekday = self.date.format("ddd", locale="en")
        ampm = "PM" if self.hour >= 12 else "AM"
        display_hour = self.hour % 12 or 12
        return f"{weekday} {display_hour}:{self.minute:02d} {ampm}"


@dataclass(frozen=True)
class SlotGrid:
    """
    Discretization of each day into equally sized slots.

    Hours form the half-open interval [start_hour, end_hour). Every grid
    computation takes the grid explicitly so events with different grids
    can coexist.
    """
    start_hour: int = 8
    end_hour: int = 22
    slots_per_hour: int = 2

    def __post_init__(self):
        if self.slots_per_hour <= 0:
            raise ConfigurationFault(
                f"slots_per_hour must be positive, got {self.slots_per_hour}"
            )
        if 60 % self.slots_per_hour != 0:
            raise ConfigurationFault(
                f"slots_per_hour must divide 60, got {self.slots_per_hour}"
            )
        if not 0 <= self.start_hour < 24 or not 0 < self.end_hour <= 24:
            raise ConfigurationFault(
                f"Hours must lie within a day, got {self.start_hour}-{self.end_hour}"
            )
        if self.end_hour <= self.start_hour:
            raise ConfigurationFault(
                f"end_hour {self.end_hour} must be later than start_hour {self.start_hour}"
            )

    @property
    def slot_minutes(self) -> int:
        return 60 // self.slots_per_hour

    @property
    def slots_per_day(self) -> int:
        return (self.end_hour - self.start_hour) * self.slots_per_hour

    def total_slots(self, date_range: DateRange) -> int:
        """Return the number of slots covering every day of the range."""
        return date_range.days_inclusive() * self.slots_per_day

    def split_index(self, index: int) -> Tuple[int, int]:
        """Decompose a linear slot index into (day_index, time_index)."""
        return divmod(index, self.slots_per_day)

    def slot_index(self, day_index: int, time_index: int) -> int:
        """Inverse of ``split_index``."""
        if not 0 <= time_index < self.slots_per_day:
            raise BoundsViolation(
                f"Time index {time_index} outside [0, {self.slots_per_day})"
            )
        return day_index * self.slots_per_day + time_index

    def slot_label(self, index: int, date_range: DateRange) -> SlotLabel:
        """
        Map a slot index to its date and wall-clock start time.

        Uses only the stored range, never the current date.

        Raises:
            BoundsViolation: If index is outside the grid for this range
        """
        total = self.total_slots(date_range)
        if not 0 <= index < total:
            raise BoundsViolation(f"Slot index {index} outside [0, {total})")

        day_index, time_index = self.split_index(index)
        hour = self.start_hour + time_index // self.slots_per_hour
        minute = (time_index % self.slots_per_hour) * self.slot_minutes

        return SlotLabel(date=date_range.date_at(day_index), hour=hour, minute=minute)

    def row_label(self, time_index: int) -> str:
        """Row header for a time index: "8 AM" on the hour, blank otherwise."""
        if time_index % self.slots_per_hour:
            return ""
        hour = self.start_hour + time_index // self.slots_per_hour
        return f"{hour % 12 or 12} {'PM' if hour >= 12 else 'AM'}"


@dataclass(frozen=True)
class Event:
    """
    A scheduling event as stored remotely.

    ``grid`` is only set when the store kept the grid the event was
    created with; otherwise the configured grid applies.
    """
    id: str
    name: str
    date_range: DateRange
    grid: SlotGrid | None = None

    def grid_or(self, default: SlotGrid) -> SlotGrid:
        return self.grid or default


@dataclass(frozen=True)
class Response:
    """One user's submitted availability for an event."""
    event_id: str
    user_name: str
    availability: AvailabilityVector


def parse_calendar_date(value: str, tz: str | None = None) -> Date:
    """
    Parse a date or ISO datetime string and keep only its calendar date.

    A datetime is first moved into ``tz`` when given, so a local midnight
    stored as UTC (e.g. "2024-11-24T23:00:00.000Z" for Europe/Berlin) maps
    back to the local day. Plain dates are never shifted.

    Raises:
        ValueError: If the string is not a date
    """
    parsed = pendulum.parse(value, exact=True)

    # DateTime subclasses Date, so check it first
    if isinstance(parsed, pendulum.DateTime):
        if tz is not None:
            parsed = parsed.in_timezone(tz)
        return parsed.date()
    if isinstance(parsed, Date):
        return parsed

    raise ValueError(f"Could not parse date: {value}")
