"""Row-bounded presentation of the active grid.

The cap only applies here. The grid model accepts writes to any row and
those rows are exported; the view simply does not render them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from statement_workbook.config import settings
from statement_workbook.services.grid_model import GridModel

TRUNCATION_NOTICE = (
    "Display limited to the first {limit} rows for performance reasons "
    "({total} rows in sheet)."
)


@dataclass
class GridView:
    """What the presentation layer renders for one sheet.

    Attributes:
        headers: Labels from row 0, ``Col <n>`` where the header cell is empty.
        rows: Body rows (grid rows 1 to limit - 1), padded to ``column_count``.
        row_offset: Grid index of the first body row.
        column_count: Widest row across the whole grid.
        total_rows: Row count of the underlying grid.
        truncated: Whether rows beyond the limit were left out.
        notice: User-facing message when ``truncated`` is set.
    """

    headers: list[str]
    rows: list[list[str]]
    column_count: int
    total_rows: int
    max_rows: int
    row_offset: int = 1
    truncated: bool = False
    notice: str | None = None
    column_labels: list[str] = field(default_factory=list)

    @property
    def displayed_rows(self) -> int:
        return min(self.total_rows, self.max_rows)

    def to_dataframe(self) -> pd.DataFrame:
        """Body rows as a DataFrame indexed by grid row number."""
        index = range(self.row_offset, self.row_offset + len(self.rows))
        return pd.DataFrame(self.rows, columns=self.headers, index=index)


def column_label(index: int) -> str:
    """Spreadsheet-style column letters: 0 -> A, 25 -> Z, 26 -> AA."""
    name = ""
    while index >= 0:
        name = chr(index % 26 + 65) + name
        index = index // 26 - 1
    return name


def build_grid_view(grid: GridModel, max_rows: int | None = None) -> GridView:
    """Render at most ``max_rows`` grid rows, row 0 serving as header.

    Args:
        grid: The active grid.
        max_rows: Row cap including the header row; defaults to the
            configured display limit.
    """
    limit = max_rows if max_rows is not None else settings.display_row_limit
    limit = max(limit, 1)
    total = grid.row_count()
    columns = grid.column_count()

    headers = [
        grid.read_cell(0, c) or f"Col {c + 1}" for c in range(columns)
    ]
    body = [
        [grid.read_cell(r, c) for c in range(columns)]
        for r in range(1, min(total, limit))
    ]

    truncated = total > limit
    return GridView(
        headers=headers,
        rows=body,
        column_count=columns,
        total_rows=total,
        max_rows=limit,
        truncated=truncated,
        notice=TRUNCATION_NOTICE.format(limit=limit, total=total)
        if truncated
        else None,
        column_labels=[column_label(c) for c in range(columns)],
    )
