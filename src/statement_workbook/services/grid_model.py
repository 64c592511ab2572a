"""Mutable sparse grid backing the active sheet."""

from __future__ import annotations

from collections.abc import Iterable

from statement_workbook.services.dirty_tracker import DirtyTracker
from statement_workbook.utils.exceptions import CellAddressError
from statement_workbook.workbook_document import CellValue, GridRows


class GridModel:
    """Jagged row-major grid of cells for exactly one sheet.

    Rows may have different lengths and the model never pads them unless a
    write forces growth. Row 0 is the header row for display purposes only;
    here it is an ordinary editable row.

    Negative indices are rejected with ``CellAddressError`` by both
    ``read_cell`` and ``write_cell``. Any non-negative address is valid:
    reads outside the bounds return ``""`` and writes grow the grid.
    """

    def __init__(
        self,
        rows: Iterable[Iterable[CellValue]] | None = None,
        tracker: DirtyTracker | None = None,
    ) -> None:
        self._rows: GridRows = [list(row) for row in rows or []]
        self._tracker = tracker or DirtyTracker()

    @classmethod
    def from_values(
        cls,
        values: Iterable[Iterable[object]],
        tracker: DirtyTracker | None = None,
    ) -> GridModel:
        """Build a grid from values as read from a container.

        None is an empty cell; strings are literal text.
        """
        return cls(
            [[CellValue.from_native(v) for v in row] for row in values],
            tracker=tracker,
        )

    @property
    def tracker(self) -> DirtyTracker:
        return self._tracker

    def row_count(self) -> int:
        return len(self._rows)

    def column_count(self) -> int:
        """Length of the longest row."""
        return max((len(row) for row in self._rows), default=0)

    def row_length(self, row: int) -> int:
        if 0 <= row < len(self._rows):
            return len(self._rows[row])
        return 0

    def cell(self, row: int, column: int) -> CellValue:
        """Return the typed value at (row, column), EMPTY outside the bounds."""
        _check_address(row, column)
        if row >= len(self._rows):
            return CellValue.empty()
        cells = self._rows[row]
        if column >= len(cells):
            return CellValue.empty()
        return cells[column]

    def read_cell(self, row: int, column: int) -> str:
        """Return the text at (row, column), ``""`` outside the bounds."""
        return self.cell(row, column).as_text()

    def write_cell(self, row: int, column: int, value: str | None) -> None:
        """Set the text at (row, column), growing rows and columns as needed.

        Cells created by growth are empty. Always marks the grid dirty.
        """
        _check_address(row, column)
        while len(self._rows) <= row:
            self._rows.append([])
        cells = self._rows[row]
        while len(cells) <= column:
            cells.append(CellValue.empty())
        cells[column] = CellValue.of_text("" if value is None else str(value))
        self._tracker.mark_dirty()

    def rows(self) -> GridRows:
        """Snapshot of the rows; mutating it does not affect the grid."""
        return [list(row) for row in self._rows]

    def text_rows(self) -> list[list[str]]:
        return [[cell.as_text() for cell in row] for row in self._rows]


def _check_address(row: int, column: int) -> None:
    if row < 0 or column < 0:
        raise CellAddressError(row, column)
