"""
In-memory store for running without the hosted backend.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Tuple

from ..domain.exceptions import EventNotFoundError, StoreError
from ..domain.models import DateRange, Event, Response, SlotGrid, parse_calendar_date

logger = logging.getLogger(__name__)


class InMemoryStore:
    """
    Store that keeps events and responses in dictionaries.

    Responses keep the order of their first submission; a resubmission
    replaces the vector in place. With ``data_file`` set the contents are
    loaded from and written back to a JSON file, so separate CLI runs share
    the same data.
    """

    def __init__(self, data_file: Path | None = None):
        """
        Initialize the store.

        Args:
            data_file: Optional JSON file to load from and persist to
        """
        self.data_file = data_file
        self.events: Dict[str, Event] = {}
        self.responses: Dict[Tuple[str, str], Response] = {}
        self._load_data()

    def _load_data(self) -> None:
        """Load events and responses from the JSON file if it exists."""
        if self.data_file is None or not self.data_file.exists():
            return

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Could not read mock store {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise StoreError(f"Mock store {self.data_file} must contain a mapping at the root level.")

        for row in data.get("events", []):
            try:
                grid = None
                if "grid" in row:
                    grid = SlotGrid(**row["grid"])
                event = Event(
                    id=row["id"],
                    name=row["name"],
                    date_range=DateRange(
                        start=parse_calendar_date(row["start_date"]),
                        end=parse_calendar_date(row["end_date"]),
                    ),
                    grid=grid,
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid event in %s: %s", self.data_file, e)
                continue
            self.events[event.id] = event

        for row in data.get("responses", []):
            try:
                response = Response(
                    event_id=row["event_id"],
                    user_name=row["user_name"],
                    availability=tuple(int(value) for value in row["availability"]),
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid response in %s: %s", self.data_file, e)
                continue
            self.responses[(response.event_id, response.user_name)] = response

    def _save_data(self) -> None:
        if self.data_file is None:
            return

        data = {
            "events": [self._event_to_row(event) for event in self.events.values()],
            "responses": [
                {
                    "event_id": response.event_id,
                    "user_name": response.user_name,
                    "availability": list(response.availability),
                }
                for response in self.responses.values()
            ],
        }

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.data_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as exc:
            raise StoreError(f"Could not write mock store {self.data_file}: {exc}") from exc

    @staticmethod
    def _event_to_row(event: Event) -> dict:
        row = {
            "id": event.id,
            "name": event.name,
            "start_date": event.date_range.start.to_date_string(),
            "end_date": event.date_range.end.to_date_string(),
        }
        if event.grid is not None:
            row["grid"] = {
                "start_hour": event.grid.start_hour,
                "end_hour": event.grid.end_hour,
                "slots_per_hour": event.grid.slots_per_hour,
            }
        return row

    async def get_event(self, event_id: str) -> Event:
        try:
            return self.events[event_id]
        except KeyError:
            raise EventNotFoundError(f"Event not found: {event_id}") from None

    async def create_event(self, name: str, date_range: DateRange, grid: SlotGrid) -> Event:
        event = Event(id=str(uuid.uuid4()), name=name, date_range=date_range, grid=grid)
        self.events[event.id] = event
        self._save_data()
        return event

    async def list_responses(self, event_id: str) -> List[Response]:
        return [
            response
            for (response_event_id, _), response in self.responses.items()
            if response_event_id == event_id
        ]

    async def upsert_response(self, response: Response) -> None:
        if response.event_id not in self.events:
            raise EventNotFoundError(f"Event not found: {response.event_id}")
        self.responses[(response.event_id, response.user_name)] = response
        self._save_data()
