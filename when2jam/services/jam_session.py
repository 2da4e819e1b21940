"""
Application service for one user's session on an event.

The service coordinates loading events and responses through a store
adapter and delegates grid indexing, painting and aggregation to the
domain layer. The store dependency is a simple protocol so the hosted
backend can be swapped for the in-memory store in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Tuple
from urllib.parse import urlencode

from pendulum import Date

from ..config import AppConfig
from ..domain.availability import AvailabilityGrid
from ..domain.exceptions import DataShapeMismatch, InputError
from ..domain.heatmap import HeatmapCalculator, intensity
from ..domain.models import DateRange, Event, Response, SlotGrid, SlotLabel
from ..domain.range_selector import RangeSelector

logger = logging.getLogger(__name__)


class StoreClientProtocol(Protocol):
    """Protocol describing the store behaviour needed by the session."""

    async def get_event(self, event_id: str) -> Event:
        """Return the event or raise EventNotFoundError."""

    async def create_event(self, name: str, date_range: DateRange, grid: SlotGrid) -> Event:
        """Insert a new event and return it."""

    async def list_responses(self, event_id: str) -> List[Response]:
        """Return every response of the event in fetch order."""

    async def upsert_response(self, response: Response) -> None:
        """Insert or replace the response for (event_id, user_name)."""


@dataclass(frozen=True)
class SlotDetails:
    """What the info panel shows for a selected slot."""
    index: int
    label: SlotLabel
    free: List[str]
    count: int
    intensity: float


class JamSession:
    """
    Orchestrates one user's view of an event: range picking, painting,
    saving and the group heat-map.
    """

    def __init__(self, store: StoreClientProtocol, config: AppConfig, user_name: str = "") -> None:
        self._store = store
        self._config = config
        self._default_grid = config.grid.to_slot_grid()
        self._fetch_generation = 0

        self.user_name = user_name
        self.event_name = ""
        self.event: Event | None = None
        self.grid: SlotGrid = self._default_grid
        self.selector = RangeSelector(max_days=config.grid.max_days)
        self.responses: List[Response] = []
        self.my_grid = AvailabilityGrid(0)

    # -- range and grid ------------------------------------------------

    @property
    def date_range(self) -> DateRange | None:
        if self.event is not None:
            return self.event.date_range
        return self.selector.date_range

    @property
    def total_slots(self) -> int:
        return len(self.my_grid)

    @property
    def calculator(self) -> HeatmapCalculator:
        date_range = self.date_range
        if date_range is None:
            raise InputError("Pick an end date first.")
        return HeatmapCalculator(self.grid, date_range)

    def _reset_grid(self) -> None:
        date_range = self.date_range
        size = self.grid.total_slots(date_range) if date_range is not None else 0
        self.my_grid = AvailabilityGrid(size)

    def new_draft(self, today: Date, name: str = "") -> None:
        """Start a new, unsaved event preset to the default span from today."""
        self.event = None
        self.event_name = name
        self.responses = []
        self.grid = self._default_grid
        self.selector = RangeSelector.starting(
            today,
            max_days=self._config.grid.max_days,
            default_span_days=self._config.default_span_days,
        )
        self._reset_grid()

    def set_range(self, date_range: DateRange) -> None:
        """
        Pick a whole range at once for a draft.

        Raises:
            InputError: If the event already exists
            ConfigurationFault: If the range spans too many days
        """
        if self.event is not None:
            raise InputError("The dates of an existing event cannot be changed.")
        date_range.ensure_within(self._config.grid.max_days)
        self.selector = RangeSelector(
            max_days=self._config.grid.max_days,
            start=date_range.start,
            end=date_range.end,
        )
        self._reset_grid()

    def select_day(self, day: Date) -> bool:
        """
        Click a day in the date picker.

        Returns:
            True if the click completed a range (the local grid is then reset)
        """
        completed = self.selector.click(day)
        if completed:
            self._reset_grid()
        return completed

    # -- loading -------------------------------------------------------

    async def load_event(self, event_id: str) -> Event:
        """Fetch an event, size the local grid for it and fetch its responses."""
        event = await self._store.get_event(event_id)
        logger.debug("Loaded event %s spanning %s", event.id, event.date_range)

        self.event = event
        self.event_name = event.name
        self.grid = event.grid_or(self._default_grid)
        self.selector.lock(event.date_range)
        self.responses = []
        self._reset_grid()

        await self.refresh_responses()
        return event

    async def refresh_responses(self) -> bool:
        """
        Refetch every response of the current event.

        A fetch that was superseded by a newer one while in flight is
        discarded.

        Returns:
            True if the fetched responses were applied
        """
        if self.event is None:
            return False

        self._fetch_generation += 1
        generation = self._fetch_generation
        event_id = self.event.id

        responses = await self._store.list_responses(event_id)

        if generation != self._fetch_generation or self.event is None or self.event.id != event_id:
            logger.debug("Ignoring superseded response fetch for event %s", event_id)
            return False

        self.responses = list(responses)
        logger.debug("Fetched %d responses for event %s", len(self.responses), event_id)
        return True

    def load_saved_availability(self) -> bool:
        """
        Continue from the current user's stored vector, if there is a valid one.
        """
        user_name = self.user_name.strip()
        for response in self.responses:
            if response.user_name != user_name:
                continue
            try:
                self.my_grid.load(response.availability)
            except DataShapeMismatch as e:
                logger.warning("Not resuming saved availability of %r: %s", user_name, e)
                return False
            return True
        return False

    # -- painting --------------------------------------------------------

    def press(self, index: int) -> int:
        return self.my_grid.press(index)

    def hover(self, index: int) -> bool:
        return self.my_grid.hover(index)

    def release(self) -> None:
        self.my_grid.release()

    # -- saving ----------------------------------------------------------

    async def save(self) -> Event:
        """
        Save the local vector, creating the event first when needed.

        Raises:
            InputError: If no user name is set or the range is incomplete
        """
        user_name = self.user_name.strip()
        if not user_name:
            raise InputError("Enter your name first!")

        if self.event is None:
            date_range = self.date_range
            if date_range is None:
                raise InputError("Pick an end date first.")
            date_range.ensure_within(self._config.grid.max_days)

            name = self.event_name.strip() or self._config.default_event_name
            self.event = await self._store.create_event(name, date_range, self.grid)
            self.event_name = self.event.name
            self.selector.lock(date_range)
            logger.info("Created event %s (%s)", self.event.id, self.event.name)

        await self._store.upsert_response(
            Response(
                event_id=self.event.id,
                user_name=user_name,
                availability=self.my_grid.snapshot(),
            )
        )
        logger.info("Saved availability of %r for event %s", user_name, self.event.id)

        await self.refresh_responses()
        return self.event

    # -- group view ------------------------------------------------------

    @property
    def heatmap(self) -> Tuple[int, ...]:
        return self.calculator.build(self.responses)

    @property
    def valid_response_count(self) -> int:
        return len(self.calculator.valid_responses(self.responses))

    def intensity_at(self, index: int) -> float:
        calculator = self.calculator
        calculator.label(index)
        return intensity(calculator.build(self.responses)[index], self.valid_response_count)

    def details(self, index: int) -> SlotDetails:
        """Label, free names and heat of one slot."""
        calculator = self.calculator
        label = calculator.label(index)
        count = calculator.build(self.responses)[index]
        return SlotDetails(
            index=index,
            label=label,
            free=calculator.free_at(
                self.responses,
                index,
                self.user_name,
                self.my_grid.snapshot(),
            ),
            count=count,
            intensity=intensity(count, self.valid_response_count),
        )

    def share_link(self, base_url: str | None = None) -> str:
        """
        Link other people can open to respond to this event.

        Raises:
            InputError: If the event has not been saved yet
        """
        if self.event is None:
            raise InputError("Save the event before sharing it.")
        base = base_url or self._config.share_base_url
        return f"{base}?{urlencode({'id': self.event.id})}"
