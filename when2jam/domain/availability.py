"""
Editing of a single user's availability vector.

Painting follows the anchor rule: a drag takes its mode from the inverted
value of the cell where it started, and applies that mode to every cell it
visits regardless of the cell's own prior value.
"""

from typing import List, Sequence, Tuple

from .exceptions import BoundsViolation, DataShapeMismatch
from .models import AvailabilityVector

FREE = 1
BUSY = 0


def blank_vector(size: int) -> AvailabilityVector:
    """Return an all-busy vector of the given length."""
    return (BUSY,) * size


def _check_index(vector: Sequence[int], index: int) -> None:
    if not 0 <= index < len(vector):
        raise BoundsViolation(f"Slot index {index} outside [0, {len(vector)})")


def _check_value(value: int) -> None:
    if value not in (BUSY, FREE):
        raise ValueError(f"Slot value must be 0 or 1, got {value}")


def paint(vector: Sequence[int], index: int, value: int) -> AvailabilityVector:
    """
    Return a copy of ``vector`` with ``vector[index] = value``.

    Raises:
        BoundsViolation: If index is outside the vector
    """
    _check_index(vector, index)
    _check_value(value)
    cells = list(vector)
    cells[index] = value
    return tuple(cells)


def begin_paint(vector: Sequence[int], index: int) -> Tuple[int, AvailabilityVector]:
    """
    Start a drag at the anchor ``index``.

    Returns:
        (mode, new_vector) where mode is the anchor's inverted value
    """
    _check_index(vector, index)
    mode = FREE if vector[index] == BUSY else BUSY
    return mode, paint(vector, index, mode)


def continue_paint(vector: Sequence[int], index: int, mode: int) -> AvailabilityVector:
    """Apply the drag's mode to ``index``."""
    return paint(vector, index, mode)


class AvailabilityGrid:
    """
    Owned, mutable availability buffer for the current user.

    Paint operations mutate the buffer in place; readers get an immutable
    snapshot via ``snapshot()``.
    """

    def __init__(self, size: int):
        self._cells: List[int] = [BUSY] * size
        self._dragging = False
        self._mode = FREE

    def __len__(self) -> int:
        return len(self._cells)

    def __getitem__(self, index: int) -> int:
        _check_index(self._cells, index)
        return self._cells[index]

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    @property
    def mode(self) -> int:
        """Mode of the current (or last) drag."""
        return self._mode

    def press(self, index: int) -> int:
        """Begin a drag at ``index`` and return the chosen mode."""
        _check_index(self._cells, index)
        self._mode = FREE if self._cells[index] == BUSY else BUSY
        self._cells[index] = self._mode
        self._dragging = True
        return self._mode

    def hover(self, index: int) -> bool:
        """
        Continue the current drag onto ``index``.

        Returns:
            True if the cell was painted, False when no drag is active
        """
        _check_index(self._cells, index)
        if not self._dragging:
            return False
        self._cells[index] = self._mode
        return True

    def release(self) -> None:
        self._dragging = False

    def drag(self, start: int, stop: int) -> int:
        """
        Paint a whole drag from ``start`` to ``stop`` (inclusive, either direction).

        Returns:
            The mode the drag applied

        Raises:
            BoundsViolation: If either end lies outside the grid; nothing is painted
        """
        _check_index(self._cells, start)
        _check_index(self._cells, stop)
        mode = self.press(start)
        step = 1 if stop >= start else -1
        for index in range(start + step, stop + step, step):
            self.hover(index)
        self.release()
        return mode

    def load(self, vector: Sequence[int]) -> None:
        """
        Replace the buffer with a stored vector.

        Raises:
            DataShapeMismatch: If the vector does not fit this grid
        """
        if len(vector) != len(self._cells):
            raise DataShapeMismatch(
                f"Vector has {len(vector)} slots, grid has {len(self._cells)}"
            )
        if any(value not in (BUSY, FREE) for value in vector):
            raise DataShapeMismatch("Vector contains values other than 0 and 1")
        self._cells = list(vector)
        self._dragging = False

    def snapshot(self) -> AvailabilityVector:
        return tuple(self._cells)
