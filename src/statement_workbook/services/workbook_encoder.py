"""Write the active grid back into its workbook and serialize it."""

from __future__ import annotations

from io import BytesIO
from pathlib import PurePath

import openpyxl
from openpyxl.worksheet.worksheet import Worksheet

from statement_workbook.config import settings
from statement_workbook.services.grid_model import GridModel
from statement_workbook.utils.exceptions import EncodeError, ErrorCode
from statement_workbook.utils.logging import get_logger, timed_operation
from statement_workbook.workbook_document import (
    EncodedWorkbook,
    GridRows,
    Workbook,
)

logger = get_logger(__name__)

DEFAULT_SOURCE_FILENAME = "workbook.xlsx"


def export_filename(source_filename: str | None, suffix: str) -> str:
    """Derive ``<stem><suffix><ext>`` from the uploaded file's name.

    >>> export_filename("releve_janvier.xlsx", "_modified")
    'releve_janvier_modified.xlsx'
    """
    name = PurePath(source_filename or DEFAULT_SOURCE_FILENAME).name
    path = PurePath(name)
    if path.suffix:
        return f"{path.stem}{suffix}{path.suffix}"
    return f"{name}{suffix}"


class WorkbookEncoder:
    """Replace one sheet of a workbook with a grid and emit ``.xlsx`` bytes.

    The replaced sheet keeps its name and position and contains exactly the
    grid's cells, so the sheet shrinks or grows to match. Empty cells are not
    materialized, except one blank cell that holds the row extent when the
    grid ends in empty rows. Text read from the container stays text even
    when it starts with ``=``. Every other sheet is written from the stored
    representation untouched.
    """

    def __init__(self, export_suffix: str | None = None) -> None:
        self._export_suffix = export_suffix or settings.export_suffix

    def encode(
        self,
        workbook: Workbook | None,
        active_sheet: str | None,
        grid: GridModel | None,
        source_filename: str | None,
    ) -> EncodedWorkbook:
        """Merge ``grid`` into ``workbook`` under ``active_sheet`` and serialize.

        Raises:
            EncodeError: If there is no workbook, grid or valid active sheet,
                or if serialization fails. The workbook is left as it was.
        """
        if workbook is None or grid is None or not active_sheet:
            raise EncodeError(
                "No active sheet to export",
                error_code=ErrorCode.NO_ACTIVE_SHEET,
            )
        if (
            not workbook.has_sheet(active_sheet)
            or active_sheet not in workbook.storage.sheetnames
        ):
            raise EncodeError(
                f"Active sheet '{active_sheet}' is not part of the workbook",
                error_code=ErrorCode.NO_ACTIVE_SHEET,
                details={"sheet_name": active_sheet},
            )

        rows = grid.rows()
        with timed_operation(logger, "workbook_encode") as metrics:
            previous = workbook.storage[active_sheet]
            index = workbook.storage.index(previous)
            replacement = self._replace_sheet(workbook.storage, active_sheet, rows)

            buffer = BytesIO()
            try:
                workbook.storage.save(buffer)
            except Exception as e:
                workbook.storage.remove(replacement)
                # openpyxl has no public API to re-insert an existing sheet.
                workbook.storage._add_sheet(previous, index)
                logger.error(
                    "Workbook serialization failed",
                    sheet=active_sheet,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise EncodeError(
                    f"Could not write workbook: {e}",
                    error_code=ErrorCode.ENCODING_FAILED,
                    details={"error_type": type(e).__name__},
                ) from e

            if workbook.values is not workbook.storage:
                self._replace_sheet(workbook.values, active_sheet, rows)

            content = buffer.getvalue()
            metrics.sheets_processed = len(workbook.sheet_names)
            metrics.rows_processed = len(rows)
            metrics.bytes_processed = len(content)

        filename = export_filename(source_filename, self._export_suffix)
        logger.info(
            "Workbook encoded",
            sheet=active_sheet,
            rows=len(rows),
            filename=filename,
        )
        return EncodedWorkbook(
            content=content,
            filename=filename,
            sheet_name=active_sheet,
            row_count=len(rows),
        )

    def _replace_sheet(
        self, book: openpyxl.Workbook, name: str, rows: GridRows
    ) -> Worksheet:
        """Swap the worksheet ``name`` for a new one holding ``rows``."""
        previous = book[name]
        index = book.index(previous)
        replacement = book.create_sheet(index=index)
        try:
            self._fill(replacement, rows)
        except Exception as e:
            book.remove(replacement)
            logger.error(
                "Grid could not be written to worksheet",
                sheet=name,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise EncodeError(
                f"Could not write sheet '{name}': {e}",
                error_code=ErrorCode.ENCODING_FAILED,
                details={"sheet_name": name, "error_type": type(e).__name__},
            ) from e

        book.remove(previous)
        replacement.title = name
        return replacement

    @staticmethod
    def _fill(sheet: Worksheet, rows: GridRows) -> None:
        for r, row in enumerate(rows, start=1):
            for c, cell in enumerate(row, start=1):
                if cell.is_empty:
                    continue
                target = sheet.cell(row=r, column=c, value=cell.to_native())
                if cell.is_literal_text:
                    # openpyxl reads any "=..." string as a formula.
                    target.data_type = "s"

        if rows and all(cell.is_empty for cell in rows[-1]):
            # A blank cell keeps trailing empty rows in the sheet extent.
            sheet.cell(row=len(rows), column=1, value="")
