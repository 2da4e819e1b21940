"""
Aggregation of submitted responses into a group heat-map.

Pure domain logic without any external dependencies (no API calls, no I/O).
The heat-map is refolded from scratch whenever the response set changes;
groups are small (tens of responses) so incremental maintenance is not
worth its bookkeeping.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

from .availability import FREE
from .exceptions import BoundsViolation, DataShapeMismatch
from .models import AvailabilityVector, DateRange, Response, SlotGrid, SlotLabel

logger = logging.getLogger(__name__)

YOU_SUFFIX = " (You)"


def check_vector(vector: Sequence[int], total_slots: int) -> None:
    """
    Ensure a stored vector fits the current grid.

    Raises:
        DataShapeMismatch: On a length mismatch or a value other than 0/1
    """
    if len(vector) != total_slots:
        raise DataShapeMismatch(
            f"Vector has {len(vector)} slots, expected {total_slots}"
        )
    if any(value not in (0, 1) for value in vector):
        raise DataShapeMismatch("Vector contains values other than 0 and 1")


def valid_responses(responses: Iterable[Response], total_slots: int) -> List[Response]:
    """Keep responses whose vectors fit the grid, preserving order."""
    valid: List[Response] = []

    for response in responses:
        try:
            check_vector(response.availability, total_slots)
        except DataShapeMismatch as e:
            logger.warning(
                "Skipping availability of %r for event %s: %s",
                response.user_name,
                response.event_id,
                e,
            )
            continue
        valid.append(response)

    return valid


def build_heatmap(responses: Iterable[Response], total_slots: int) -> Tuple[int, ...]:
    """
    Count, per slot, how many valid responses mark it free.

    Responses that do not fit the grid are skipped, never fatal.
    """
    counts = [0] * total_slots

    for response in valid_responses(responses, total_slots):
        for index, value in enumerate(response.availability):
            if value == FREE:
                counts[index] += 1

    return tuple(counts)


def free_at(
    responses: Iterable[Response],
    index: int,
    current_user_name: str = "",
    current_user_vector: Sequence[int] | None = None,
    total_slots: int | None = None,
) -> List[str]:
    """
    Names of everyone free at ``index``, in the order responses were supplied.

    The current user's unsaved edit counts too: if their local vector marks
    the slot free and no listed response carries their name, they are
    appended as "<name> (You)".

    The grid size is ``total_slots``, or else the length of the local vector.
    When it is known, responses that do not fit it are skipped like in
    ``build_heatmap`` and ``index`` must lie inside it.

    Raises:
        BoundsViolation: If index is outside the known grid size
    """
    if total_slots is None and current_user_vector is not None:
        total_slots = len(current_user_vector)

    if total_slots is not None:
        if not 0 <= index < total_slots:
            raise BoundsViolation(f"Slot index {index} outside [0, {total_slots})")
        responses = valid_responses(responses, total_slots)

    names: List[str] = []

    for response in responses:
        vector = response.availability
        if 0 <= index < len(vector) and vector[index] == FREE:
            names.append(response.user_name)

    user_name = current_user_name.strip()
    if current_user_vector is not None and user_name:
        if len(current_user_vector) != total_slots:
            raise DataShapeMismatch(
                f"Local vector has {len(current_user_vector)} slots, expected {total_slots}"
            )
        if current_user_vector[index] == FREE and user_name not in names:
            names.append(f"{user_name}{YOU_SUFFIX}")

    return names


def intensity(count: int, total_responses: int) -> float:
    """Share of responders free in a slot; 0.0 when nobody responded yet."""
    return count / max(total_responses, 1)


class HeatmapCalculator:
    """
    Binds a slot grid and date range to the aggregation operations.
    """

    def __init__(self, grid: SlotGrid, date_range: DateRange):
        self.grid = grid
        self.date_range = date_range

    @property
    def total_slots(self) -> int:
        return self.grid.total_slots(self.date_range)

    def label(self, index: int) -> SlotLabel:
        return self.grid.slot_label(index, self.date_range)

    def valid_responses(self, responses: Iterable[Response]) -> List[Response]:
        return valid_responses(responses, self.total_slots)

    def build(self, responses: Iterable[Response]) -> Tuple[int, ...]:
        return build_heatmap(responses, self.total_slots)

    def free_at(
        self,
        responses: Iterable[Response],
        index: int,
        current_user_name: str = "",
        current_user_vector: AvailabilityVector | None = None,
    ) -> List[str]:
        return free_at(
            responses,
            index,
            current_user_name,
            current_user_vector,
            total_slots=self.total_slots,
        )

    def intensities(self, responses: Iterable[Response]) -> Tuple[float, ...]:
        """Heat-map scaled to [0, 1] by the number of valid responses."""
        valid = self.valid_responses(responses)
        heatmap = build_heatmap(valid, self.total_slots)
        return tuple(intensity(count, len(valid)) for count in heatmap)

    def best_slots(self, responses: Iterable[Response], limit: int = 5) -> List[Tuple[int, int]]:
        """
        Slots with the most people free.

        Returns:
            Up to ``limit`` (index, count) pairs, highest count first, ties in
            index order. Slots nobody is free in are left out.
        """
        heatmap = self.build(responses)
        ranked = sorted(
            ((index, count) for index, count in enumerate(heatmap) if count > 0),
            key=lambda item: (-item[1], item[0]),
        )
        return ranked[:limit]
