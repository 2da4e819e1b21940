"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityGrid, begin_paint, blank_vector, continue_paint, paint
from .heatmap import HeatmapCalculator, build_heatmap, free_at, intensity
from .models import DateRange, Event, Response, SlotGrid, SlotLabel
from .range_selector import RangeSelector

__all__ = [
    "AvailabilityGrid",
    "DateRange",
    "Event",
    "HeatmapCalculator",
    "RangeSelector",
    "Response",
    "SlotGrid",
    "SlotLabel",
    "begin_paint",
    "blank_vector",
    "build_heatmap",
    "continue_paint",
    "free_at",
    "intensity",
    "paint",
]
