"""Decode spreadsheet containers into an in-memory workbook and grid."""

from __future__ import annotations

from io import BytesIO
from typing import Any

import openpyxl
import xlrd
from openpyxl.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from statement_workbook.services.format_detector import FormatDetector
from statement_workbook.utils.exceptions import DecodeError, ErrorCode
from statement_workbook.utils.logging import get_logger, timed_operation
from statement_workbook.workbook_document import (
    CellValue,
    ContainerVariant,
    DecodedWorkbook,
    GridRows,
    Workbook,
)

logger = get_logger(__name__)


class WorkbookDecoder:
    """Turn raw container bytes into a Workbook plus the first sheet's grid.

    Package-based files are read with openpyxl, twice: once keeping formulas
    (the copy re-serialized on export) and once with cached values (used to
    derive grids). Legacy binary files are read with xlrd and lifted into a
    single openpyxl workbook so export only has one representation to handle.
    """

    def __init__(self, detector: FormatDetector | None = None) -> None:
        self._detector = detector or FormatDetector()

    def decode(self, data: bytes, filename: str | None = None) -> DecodedWorkbook:
        """Decode ``data`` and materialize the grid of its first sheet.

        Args:
            data: Raw container bytes. Never modified.
            filename: Original filename, used for messages and logging.

        Returns:
            DecodedWorkbook with the workbook, initial sheet name and rows.

        Raises:
            DecodeError: If the buffer is not a supported container or holds
                no worksheet.
        """
        with timed_operation(logger, "workbook_decode") as metrics:
            metrics.bytes_processed = len(data)
            workbook = self.load_workbook(data, filename)
            initial_sheet = workbook.sheet_names[0]
            rows = derive_grid(workbook, initial_sheet)
            metrics.sheets_processed = len(workbook.sheet_names)
            metrics.rows_processed = len(rows)

        logger.info(
            "Workbook decoded",
            filename=filename,
            variant=workbook.variant.value,
            sheets=len(workbook.sheet_names),
            initial_sheet=initial_sheet,
        )
        return DecodedWorkbook(
            workbook=workbook,
            initial_sheet=initial_sheet,
            rows=rows,
        )

    def load_workbook(self, data: bytes, filename: str | None = None) -> Workbook:
        """Decode ``data`` into a Workbook without deriving any grid."""
        info = self._detector.detect_from_content(data, filename)
        if info.variant == ContainerVariant.PACKAGE:
            workbook = self._load_package(data, filename)
        else:
            workbook = self._load_legacy(data, filename)

        if not workbook.sheet_names:
            raise DecodeError(
                "Workbook contains no sheets",
                error_code=ErrorCode.EMPTY_WORKBOOK,
                filename=filename,
            )
        return workbook

    def get_sheet_names(self, data: bytes, filename: str | None = None) -> list[str]:
        """List the worksheet names of a container in document order."""
        return list(self.load_workbook(data, filename).sheet_names)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _load_package(self, data: bytes, filename: str | None) -> Workbook:
        try:
            storage = openpyxl.load_workbook(BytesIO(data), data_only=False)
            values = openpyxl.load_workbook(BytesIO(data), data_only=True)
        except Exception as e:
            logger.warning(
                "Package container could not be read",
                filename=filename,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DecodeError(
                f"Could not read spreadsheet: {e}",
                error_code=ErrorCode.MALFORMED_CONTAINER,
                filename=filename,
                details={"error_type": type(e).__name__},
            ) from e

        # Chartsheets have no cells; they stay in storage and are re-emitted.
        return Workbook(
            sheet_names=[ws.title for ws in storage.worksheets],
            storage=storage,
            values=values,
            variant=ContainerVariant.PACKAGE,
        )

    def _load_legacy(self, data: bytes, filename: str | None) -> Workbook:
        try:
            book = xlrd.open_workbook(file_contents=data)
            storage = self._lift_legacy_book(book)
        except Exception as e:
            logger.warning(
                "Legacy container could not be read",
                filename=filename,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DecodeError(
                f"Could not read spreadsheet: {e}",
                error_code=ErrorCode.MALFORMED_CONTAINER,
                filename=filename,
                details={"error_type": type(e).__name__},
            ) from e

        return Workbook(
            sheet_names=list(storage.sheetnames),
            storage=storage,
            values=storage,
            variant=ContainerVariant.LEGACY,
        )

    @staticmethod
    def _lift_legacy_book(book: xlrd.book.Book) -> openpyxl.Workbook:
        """Copy every xlrd sheet's values into a fresh openpyxl workbook."""
        target = openpyxl.Workbook()
        target.remove(target.active)
        for sheet in book.sheets():
            ws = target.create_sheet(title=sheet.name)
            for r in range(sheet.nrows):
                for c in range(sheet.ncols):
                    value = _legacy_cell_value(sheet.cell(r, c), book.datemode)
                    if value is None:
                        continue
                    cell = ws.cell(row=r + 1, column=c + 1, value=value)
                    if isinstance(value, str) and value.startswith("="):
                        # Legacy text is never a formula.
                        cell.data_type = "s"
        return target


def _legacy_cell_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#ERR!")
    return cell.value


def derive_grid(workbook: Workbook, sheet_name: str) -> GridRows:
    """Materialize the rows of ``sheet_name`` as a jagged grid.

    Grid (r, c) is worksheet cell (r + 1, c + 1). Every row is data,
    including the first. Trailing empty cells of a row and trailing empty
    rows of the sheet are not materialized.

    Raises:
        KeyError: If the workbook has no worksheet named ``sheet_name``.
    """
    sheet: Worksheet = workbook.storage[sheet_name]
    computed: Worksheet = workbook.values[sheet_name]
    max_row = sheet.max_row
    max_col = sheet.max_column

    rows: GridRows = []
    cell_rows = sheet.iter_rows(min_row=1, max_row=max_row, max_col=max_col)
    value_rows = computed.iter_rows(
        min_row=1, max_row=max_row, max_col=max_col, values_only=True
    )
    for row_cells, computed_values in zip(cell_rows, value_rows, strict=True):
        row = [
            _grid_cell(cell, computed_value)
            for cell, computed_value in zip(row_cells, computed_values, strict=True)
        ]
        while row and row[-1].is_empty:
            row.pop()
        rows.append(row)

    while rows and not rows[-1]:
        rows.pop()
    return rows


def _grid_cell(cell: Cell, computed_value: Any) -> CellValue:
    """Prefer the cached value; surface the formula text when none exists.

    A surfaced formula is editable text, so it is written back as a formula.
    """
    if cell.data_type == "f" and computed_value is None:
        formula = getattr(cell.value, "text", cell.value)
        if formula is None:
            return CellValue.empty()
        return CellValue.of_text(str(formula))
    if computed_value is None:
        return CellValue.from_native(cell.value)
    return CellValue.from_native(computed_value)
