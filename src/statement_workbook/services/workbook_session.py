"""Controller owning the open workbook, its active grid and dirty state.

A ``WorkbookSession`` holds everything one review needs: the decoded
workbook, the name of the active sheet, the editable grid for that sheet,
the dirty tracker and the uploaded filename. Every failing operation leaves
the previous state untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from statement_workbook.output.file_transfer import FileTransfer
from statement_workbook.output.grid_view import GridView, build_grid_view
from statement_workbook.services.dirty_tracker import DirtyTracker
from statement_workbook.services.grid_model import GridModel
from statement_workbook.services.workbook_decoder import WorkbookDecoder, derive_grid
from statement_workbook.services.workbook_encoder import WorkbookEncoder
from statement_workbook.utils.exceptions import (
    NoDocumentError,
    UnknownSheetError,
    WorkbookFileNotFoundError,
)
from statement_workbook.utils.logging import LogContext, get_logger
from statement_workbook.workbook_document import EncodedWorkbook, Workbook

logger = get_logger(__name__)


@dataclass
class SessionState:
    """Read-only summary of a session for the presentation layer."""

    loaded: bool
    filename: str | None
    sheet_names: list[str]
    active_sheet: str | None
    dirty: bool
    row_count: int
    column_count: int


class WorkbookSession:
    """Single-document editing session.

    Switching sheets discards unsaved edits of the sheet being left; only
    the active sheet is ever written back, and only on export.
    """

    def __init__(
        self,
        decoder: WorkbookDecoder | None = None,
        encoder: WorkbookEncoder | None = None,
    ) -> None:
        self._decoder = decoder or WorkbookDecoder()
        self._encoder = encoder or WorkbookEncoder()
        self._tracker = DirtyTracker()
        self._workbook: Workbook | None = None
        self._active_sheet: str | None = None
        self._grid: GridModel | None = None
        self._source_filename: str | None = None

    # ------------------------------------------------------------------ #
    # State accessors
    # ------------------------------------------------------------------ #

    @property
    def is_loaded(self) -> bool:
        return self._workbook is not None

    @property
    def is_dirty(self) -> bool:
        return self._tracker.is_dirty

    @property
    def sheet_names(self) -> list[str]:
        if self._workbook is None:
            return []
        return list(self._workbook.sheet_names)

    @property
    def active_sheet(self) -> str | None:
        return self._active_sheet

    @property
    def source_filename(self) -> str | None:
        return self._source_filename

    @property
    def workbook(self) -> Workbook | None:
        return self._workbook

    @property
    def grid(self) -> GridModel:
        """The active grid.

        Raises:
            NoDocumentError: If no workbook is loaded.
        """
        if self._grid is None:
            raise NoDocumentError("access the grid")
        return self._grid

    def state(self) -> SessionState:
        return SessionState(
            loaded=self.is_loaded,
            filename=self._source_filename,
            sheet_names=self.sheet_names,
            active_sheet=self._active_sheet,
            dirty=self.is_dirty,
            row_count=self._grid.row_count() if self._grid else 0,
            column_count=self._grid.column_count() if self._grid else 0,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def load(self, data: bytes, filename: str | None = None) -> SessionState:
        """Decode ``data`` and make its first sheet active.

        Raises:
            DecodeError: If the buffer cannot be decoded. The previously
                loaded document, if any, stays open unchanged.
        """
        with LogContext(document_id=filename):
            decoded = self._decoder.decode(data, filename)

            self._workbook = decoded.workbook
            self._active_sheet = decoded.initial_sheet
            self._grid = GridModel(decoded.rows, tracker=self._tracker)
            self._source_filename = filename
            self._tracker.mark_clean()

            logger.info(
                "Workbook opened",
                sheets=len(decoded.workbook.sheet_names),
                active_sheet=decoded.initial_sheet,
            )
        return self.state()

    def load_path(self, path: str | Path) -> SessionState:
        """Read a workbook from disk and load it."""
        file_path = Path(path)
        if not file_path.exists():
            raise WorkbookFileNotFoundError(str(file_path))
        return self.load(file_path.read_bytes(), file_path.name)

    def clear(self) -> None:
        """Close the document, discarding every unsaved edit."""
        if self._workbook is not None:
            logger.info(
                "Workbook closed",
                filename=self._source_filename,
                discarded_changes=self.is_dirty,
            )
        self._workbook = None
        self._active_sheet = None
        self._grid = None
        self._source_filename = None
        self._tracker.mark_clean()

    # ------------------------------------------------------------------ #
    # Navigation and editing
    # ------------------------------------------------------------------ #

    def select_sheet(self, name: str) -> SessionState:
        """Make ``name`` the active sheet, rebuilding the grid from storage.

        Unsaved edits of the current sheet are discarded.

        Raises:
            NoDocumentError: If no workbook is loaded.
            UnknownSheetError: If ``name`` is not a sheet of the workbook;
                the active sheet and grid are unchanged.
        """
        workbook = self._require_workbook("select a sheet")
        if not workbook.has_sheet(name):
            logger.warning(
                "Unknown sheet requested",
                sheet=name,
                active_sheet=self._active_sheet,
            )
            raise UnknownSheetError(name, available=list(workbook.sheet_names))

        if self.is_dirty:
            logger.warning(
                "Discarding unsaved edits on sheet switch",
                left_sheet=self._active_sheet,
                new_sheet=name,
            )

        rows = derive_grid(workbook, name)
        self._grid = GridModel(rows, tracker=self._tracker)
        self._active_sheet = name
        self._tracker.mark_clean()
        logger.info("Sheet selected", sheet=name, rows=len(rows))
        return self.state()

    def read_cell(self, row: int, column: int) -> str:
        return self.grid.read_cell(row, column)

    def write_cell(self, row: int, column: int, value: str | None) -> None:
        self.grid.write_cell(row, column, value)

    def view(self, max_rows: int | None = None) -> GridView:
        """Bounded presentation of the active grid."""
        return build_grid_view(self.grid, max_rows=max_rows)

    # ------------------------------------------------------------------ #
    # Export
    # ------------------------------------------------------------------ #

    def export(self, file_transfer: FileTransfer | None = None) -> EncodedWorkbook:
        """Write the active grid back into the workbook and serialize it.

        On success the dirty flag is cleared and the bytes are handed to
        ``file_transfer`` when one is given.

        Raises:
            EncodeError: If there is no valid active sheet or writing fails;
                the dirty flag is unchanged and nothing is transferred.
        """
        with LogContext(document_id=self._source_filename):
            encoded = self._encoder.encode(
                self._workbook,
                self._active_sheet,
                self._grid,
                self._source_filename,
            )
            self._tracker.mark_clean()
            if file_transfer is not None:
                file_transfer.send(encoded.content, encoded.filename)
        return encoded

    def _require_workbook(self, operation: str) -> Workbook:
        if self._workbook is None:
            raise NoDocumentError(operation)
        return self._workbook
