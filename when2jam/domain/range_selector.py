"""
Two-click date range selection with a maximum span.
"""

from pendulum import Date

from .models import DateRange


class RangeSelector:
    """
    Tracks a start/end date pair picked by successive day clicks.

    The first click sets the start, the second closes the range. A second
    click before the start moves the start instead, and one that would
    span ``max_days`` days or more restarts the selection at that day.
    Once the event exists the selector is locked and ignores clicks.
    """

    def __init__(self, max_days: int, start: Date | None = None, end: Date | None = None):
        self.max_days = max_days
        self.start = start
        self.end = end
        self.locked = False

    @classmethod
    def starting(cls, today: Date, max_days: int, default_span_days: int = 3) -> "RangeSelector":
        """Selector preset to ``default_span_days`` days beginning today."""
        span = max(1, min(default_span_days, max_days))
        return cls(max_days=max_days, start=today, end=today.add(days=span - 1))

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def date_range(self) -> DateRange | None:
        """The selected range, or None while only the start is picked."""
        if not self.is_complete:
            return None
        return DateRange(start=self.start, end=self.end)

    def lock(self, date_range: DateRange) -> None:
        self.start = date_range.start
        self.end = date_range.end
        self.locked = True

    def click(self, day: Date) -> bool:
        """
        Apply a click on ``day``.

        Returns:
            True if this click completed a range
        """
        if self.locked:
            return False

        if self.start is None or self.end is not None:
            self.start, self.end = day, None
            return False

        if day < self.start:
            self.start = day
            return False

        if self.start.diff(day).in_days() >= self.max_days:
            self.start, self.end = day, None
            return False

        self.end = day
        return True
