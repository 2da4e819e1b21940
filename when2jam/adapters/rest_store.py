"""
REST client for the hosted data store holding events and responses.

Talks to a PostgREST-style endpoint (``/rest/v1/<table>``) as exposed by
hosted Postgres backends.
"""

import asyncio
import logging
from typing import Any, Dict, List

import requests

from ..domain.exceptions import EventNotFoundError, StoreError
from ..domain.models import DateRange, Event, Response, SlotGrid, parse_calendar_date

logger = logging.getLogger(__name__)


class RestStoreClient:
    """
    Client for the events/responses tables of the hosted store.

    Requests are blocking, so each call runs in a worker thread to keep
    the event loop free.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        events_table: str = "events",
        responses_table: str = "responses",
        timeout: float = 10.0,
        persist_grid: bool = False,
        timezone: str = "UTC",
    ):
        """
        Initialize the store client.

        Args:
            base_url: Project URL of the hosted store
            api_key: Public API key sent as both apikey and bearer token
            events_table: Name of the events table
            responses_table: Name of the responses table
            timeout: Per-request timeout in seconds
            persist_grid: Also write the slot grid columns on event creation
            timezone: Zone whose calendar day a stored datetime falls on
        """
        self.base_url = base_url.rstrip("/")
        self.events_table = events_table
        self.responses_table = responses_table
        self.timeout = timeout
        self.persist_grid = persist_grid
        self.timezone = timezone
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_config(cls, store_config, timezone: str = "UTC") -> "RestStoreClient":
        store_config.require_remote()
        return cls(
            base_url=store_config.url,
            api_key=store_config.api_key,
            events_table=store_config.events_table,
            responses_table=store_config.responses_table,
            timeout=store_config.timeout_seconds,
            persist_grid=store_config.persist_grid,
            timezone=timezone,
        )

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(self, method: str, table: str, **kwargs) -> Any:
        url = self._table_url(table)
        headers = {**self.headers, **kwargs.pop("headers", {})}

        try:
            response = requests.request(
                method,
                url,
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise StoreError(f"{method} {table} failed: {e}") from e

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"{method} {table} returned invalid JSON: {e}") from e

    # -- events --------------------------------------------------------

    def get_event_sync(self, event_id: str) -> Event:
        """
        Fetch a single event.

        Raises:
            EventNotFoundError: If no event has this id
            StoreError: If the request fails or the row is malformed
        """
        rows = self._request(
            "GET",
            self.events_table,
            params={"id": f"eq.{event_id}", "select": "*"},
        )
        if not rows:
            raise EventNotFoundError(f"Event not found: {event_id}")

        try:
            return self._parse_event(rows[0])
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed event row for {event_id}: {e}") from e

    def create_event_sync(self, name: str, date_range: DateRange, grid: SlotGrid) -> Event:
        """Insert an event and return it as stored."""
        payload: Dict[str, Any] = {
            "name": name,
            "start_date": date_range.start.to_date_string(),
            "end_date": date_range.end.to_date_string(),
        }
        if self.persist_grid:
            payload.update(
                start_hour=grid.start_hour,
                end_hour=grid.end_hour,
                slots_per_hour=grid.slots_per_hour,
            )

        rows = self._request(
            "POST",
            self.events_table,
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise StoreError("Event insert returned no row")

        try:
            event = self._parse_event(rows[0])
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed event row after insert: {e}") from e

        logger.debug("Created event %s (%s)", event.id, event.name)
        return event

    # -- responses -----------------------------------------------------

    def list_responses_sync(self, event_id: str) -> List[Response]:
        """Fetch all responses of an event; malformed rows are skipped."""
        rows = self._request(
            "GET",
            self.responses_table,
            params={"event_id": f"eq.{event_id}", "select": "event_id,user_name,availability"},
        )
        return self._parse_responses(rows or [], event_id)

    def upsert_response_sync(self, response: Response) -> None:
        """Insert or wholly replace the response for (event_id, user_name)."""
        self._request(
            "POST",
            self.responses_table,
            params={"on_conflict": "event_id,user_name"},
            json={
                "event_id": response.event_id,
                "user_name": response.user_name,
                "availability": list(response.availability),
            },
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )
        logger.debug("Upserted availability of %r for event %s", response.user_name, response.event_id)

    # -- async facade ----------------------------------------------------

    async def get_event(self, event_id: str) -> Event:
        return await asyncio.to_thread(self.get_event_sync, event_id)

    async def create_event(self, name: str, date_range: DateRange, grid: SlotGrid) -> Event:
        return await asyncio.to_thread(self.create_event_sync, name, date_range, grid)

    async def list_responses(self, event_id: str) -> List[Response]:
        return await asyncio.to_thread(self.list_responses_sync, event_id)

    async def upsert_response(self, response: Response) -> None:
        await asyncio.to_thread(self.upsert_response_sync, response)

    # -- parsing ---------------------------------------------------------

    def _parse_event(self, row: Dict[str, Any]) -> Event:
        """
        Parse an events row into our domain model.

        Row format:
        {
            "id": "...",
            "name": "Band practice",
            "start_date": "2024-11-25" or "2024-11-25T00:00:00.000Z",
            "end_date": "...",
            "start_hour": 8, "end_hour": 22, "slots_per_hour": 2   (optional)
        }
        """
        date_range = DateRange(
            start=parse_calendar_date(row["start_date"], self.timezone),
            end=parse_calendar_date(row["end_date"], self.timezone),
        )

        grid = None
        grid_fields = (row.get("start_hour"), row.get("end_hour"), row.get("slots_per_hour"))
        if all(value is not None for value in grid_fields):
            start_hour, end_hour, slots_per_hour = (int(value) for value in grid_fields)
            grid = SlotGrid(start_hour=start_hour, end_hour=end_hour, slots_per_hour=slots_per_hour)

        return Event(
            id=str(row["id"]),
            name=row.get("name") or "",
            date_range=date_range,
            grid=grid,
        )

    @staticmethod
    def _parse_responses(rows: List[Dict[str, Any]], event_id: str) -> List[Response]:
        responses: List[Response] = []

        for row in rows:
            try:
                availability = row["availability"]
                if not isinstance(availability, list):
                    raise TypeError("availability is not a list")
                responses.append(
                    Response(
                        event_id=str(row.get("event_id", event_id)),
                        user_name=str(row["user_name"]),
                        availability=tuple(int(value) for value in availability),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed response row for event %s: %s", event_id, e)
                continue

        return responses
