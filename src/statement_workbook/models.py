"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

from statement_workbook.output.grid_view import GridView
from statement_workbook.services.workbook_session import SessionState
from statement_workbook.utils.exceptions import ErrorCode


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class WorkbookStateResponse(BaseModel):
    """Summary of the open workbook and its active sheet."""

    loaded: bool = Field(..., description="Whether a workbook is open")
    filename: str | None = Field(
        default=None, description="Name of the uploaded workbook"
    )
    sheet_names: list[str] = Field(
        default_factory=list, description="Sheets in document order"
    )
    active_sheet: str | None = Field(
        default=None, description="Sheet currently backing the grid"
    )
    has_unsaved_changes: bool = Field(
        default=False, description="Whether the active grid has unsaved edits"
    )
    row_count: int = Field(default=0, description="Rows in the active grid")
    column_count: int = Field(default=0, description="Widest row of the grid")

    @classmethod
    def from_state(cls, state: SessionState) -> "WorkbookStateResponse":
        return cls(
            loaded=state.loaded,
            filename=state.filename,
            sheet_names=state.sheet_names,
            active_sheet=state.active_sheet,
            has_unsaved_changes=state.dirty,
            row_count=state.row_count,
            column_count=state.column_count,
        )


class GridViewResponse(BaseModel):
    """Bounded rendering of the active grid."""

    sheet: str = Field(..., description="Active sheet name")
    headers: list[str] = Field(..., description="Header labels from row 0")
    column_labels: list[str] = Field(
        default_factory=list, description="Spreadsheet column letters"
    )
    rows: list[list[str]] = Field(..., description="Body rows starting at row 1")
    row_offset: int = Field(default=1, description="Grid index of the first row")
    total_rows: int = Field(..., description="Rows in the underlying grid")
    column_count: int = Field(..., description="Widest row of the grid")
    truncated: bool = Field(..., description="Whether rows were left out")
    notice: str | None = Field(
        default=None, description="Message shown when rows were left out"
    )
    has_unsaved_changes: bool = Field(
        default=False, description="Whether the active grid has unsaved edits"
    )

    @classmethod
    def from_view(
        cls, sheet: str, view: GridView, dirty: bool
    ) -> "GridViewResponse":
        return cls(
            sheet=sheet,
            headers=view.headers,
            column_labels=view.column_labels,
            rows=view.rows,
            row_offset=view.row_offset,
            total_rows=view.total_rows,
            column_count=view.column_count,
            truncated=view.truncated,
            notice=view.notice,
            has_unsaved_changes=dirty,
        )


class CellUpdateRequest(BaseModel):
    """New text for one cell."""

    value: str | None = Field(
        default=None, description="Cell text; null or empty clears the cell"
    )


class CellResponse(BaseModel):
    """Value of one cell of the active grid."""

    row: int
    column: int
    value: str
    has_unsaved_changes: bool


class SheetSelectRequest(BaseModel):
    """Sheet to make active."""

    sheet_name: str = Field(..., description="Name of the sheet to select")


class ErrorDetail(BaseModel):
    """Error detail model for API error responses.

    This model provides structured error responses with:
    - Human-readable error message
    - Machine-readable error code
    - Optional additional details for debugging
    - Optional request ID for correlation
    """

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1003')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        detail: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ErrorDetail":
        """Create an ErrorDetail from an ErrorCode enum value.

        Args:
            error_code: The error code enum.
            detail: Human-readable error message.
            details: Optional additional details.
            request_id: Optional request ID.

        Returns:
            ErrorDetail instance.
        """
        return cls(
            detail=detail,
            error_code=error_code.value,
            details=details,
            request_id=request_id,
        )
