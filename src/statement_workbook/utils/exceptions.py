"""Centralized exception classes for the statement workbook editor.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details so that every
failure of the grid engine can be surfaced as a user-visible message.

Exception Hierarchy:
    WorkbookError (base)
    ├── FileError
    │   ├── WorkbookFileNotFoundError
    │   ├── FileTooLargeError
    │   └── DecodeError
    ├── SheetError
    │   └── UnknownSheetError
    ├── GridError
    │   └── CellAddressError
    ├── EncodeError
    ├── NoDocumentError
    ├── ValidationError
    └── ExtractionServiceError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: File/container errors
    - E2xxx: Sheet and grid errors
    - E3xxx: Export/session errors
    - E4xxx: Request validation errors
    - E5xxx: External service errors
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_NOT_FOUND = "E1001"
    FILE_TOO_LARGE = "E1002"
    UNSUPPORTED_FORMAT = "E1003"
    MALFORMED_CONTAINER = "E1004"
    FILE_READ_ERROR = "E1005"
    FILE_WRITE_ERROR = "E1006"
    EMPTY_WORKBOOK = "E1007"

    # Sheet and grid errors (E2xxx)
    UNKNOWN_SHEET = "E2001"
    INVALID_CELL_ADDRESS = "E2002"

    # Export/session errors (E3xxx)
    NO_ACTIVE_SHEET = "E3001"
    ENCODING_FAILED = "E3002"
    NO_DOCUMENT_LOADED = "E3003"

    # Validation errors (E4xxx)
    VALIDATION_FAILED = "E4001"

    # External service errors (E5xxx)
    EXTRACTION_API_ERROR = "E5001"
    EXTERNAL_SERVICE_UNAVAILABLE = "E5004"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class HTTPStatusMixin:
    """Mixin that provides HTTP status code for exceptions.

    Subclasses set the `http_status` class attribute.
    """

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception.

        Returns:
            HTTP status code appropriate for this error.
        """
        return self.http_status


class WorkbookError(Exception, HTTPStatusMixin):
    """Base exception for all statement workbook errors.

    It provides:
    - Unique error codes for programmatic handling
    - HTTP status code mapping for API responses
    - Structured error details for logging and debugging

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for API responses.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# File Errors (E1xxx)
# =============================================================================


class FileError(WorkbookError):
    """Base class for file-related errors."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_READ_ERROR,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file information.

        Args:
            message: Error message.
            error_code: Error code.
            filename: Name of the problematic file.
            details: Additional details.
        """
        details = details or {}
        if filename:
            details["filename"] = filename
        super().__init__(message, error_code, details)
        self.filename = filename


class WorkbookFileNotFoundError(FileError):
    """Raised when a workbook file on disk does not exist."""

    http_status: int = 404

    def __init__(self, filename: str) -> None:
        """Initialize with the missing path.

        Args:
            filename: Path that was not found.
        """
        super().__init__(
            message=f"Workbook file not found: {filename}",
            error_code=ErrorCode.FILE_NOT_FOUND,
            filename=filename,
        )


class FileTooLargeError(FileError):
    """Raised when an uploaded file exceeds the size limit."""

    http_status: int = 413

    def __init__(
        self,
        file_size: int,
        max_size: int,
        filename: str | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Actual file size in bytes.
            max_size: Maximum allowed size in bytes.
            filename: Name of the file.
        """
        super().__init__(
            message=(
                f"File size ({file_size} bytes) exceeds maximum allowed "
                f"size ({max_size} bytes)"
            ),
            error_code=ErrorCode.FILE_TOO_LARGE,
            filename=filename,
            details={"file_size": file_size, "max_size": max_size},
        )
        self.file_size = file_size
        self.max_size = max_size


class DecodeError(FileError):
    """Raised when a buffer is not a readable spreadsheet container.

    Covers unsupported signatures, corrupt packages and workbooks
    without any sheet.
    """

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.MALFORMED_CONTAINER,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            filename=filename,
            details=details,
        )


# =============================================================================
# Sheet and Grid Errors (E2xxx)
# =============================================================================


class SheetError(WorkbookError):
    """Base class for sheet navigation errors."""

    http_status: int = 400


class UnknownSheetError(SheetError):
    """Raised when navigating to a sheet the workbook does not contain."""

    http_status: int = 404

    def __init__(self, sheet_name: str, available: list[str] | None = None) -> None:
        """Initialize with the requested sheet name.

        Args:
            sheet_name: The sheet that was requested.
            available: Sheet names known to the workbook.
        """
        details: dict[str, Any] = {"sheet_name": sheet_name}
        if available is not None:
            details["available_sheets"] = available
        super().__init__(
            message=f"Sheet '{sheet_name}' not found in workbook",
            error_code=ErrorCode.UNKNOWN_SHEET,
            details=details,
        )
        self.sheet_name = sheet_name


class GridError(WorkbookError):
    """Base class for grid addressing errors."""

    http_status: int = 400


class CellAddressError(GridError, ValueError):
    """Raised for negative row or column indices."""

    def __init__(self, row: int, column: int) -> None:
        """Initialize with the rejected address.

        Args:
            row: Requested row index.
            column: Requested column index.
        """
        super().__init__(
            message=f"Invalid cell address ({row}, {column}): indices must be >= 0",
            error_code=ErrorCode.INVALID_CELL_ADDRESS,
            details={"row": row, "column": column},
        )
        self.row = row
        self.column = column


# =============================================================================
# Export / Session Errors (E3xxx)
# =============================================================================


class EncodeError(WorkbookError):
    """Raised when the workbook cannot be written back to bytes."""

    http_status: int = 409

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NO_ACTIVE_SHEET,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)
        if error_code == ErrorCode.ENCODING_FAILED:
            self.http_status = 500


class NoDocumentError(WorkbookError):
    """Raised when an operation needs a loaded workbook and none is open."""

    http_status: int = 409

    def __init__(self, operation: str) -> None:
        """Initialize with the attempted operation.

        Args:
            operation: Name of the operation that needed a document.
        """
        super().__init__(
            message=f"No workbook is loaded; cannot {operation}",
            error_code=ErrorCode.NO_DOCUMENT_LOADED,
            details={"operation": operation},
        )
        self.operation = operation


# =============================================================================
# Validation Errors (E4xxx)
# =============================================================================


class ValidationError(WorkbookError):
    """Raised for invalid request input."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending field.

        Args:
            message: Error message.
            field: Name of the invalid field.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, ErrorCode.VALIDATION_FAILED, details)
        self.field = field


# =============================================================================
# External Service Errors (E5xxx)
# =============================================================================


class ExtractionServiceError(WorkbookError):
    """Raised when the remote extraction service fails or is unreachable."""

    http_status: int = 502

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXTRACTION_API_ERROR,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with upstream status information.

        Args:
            message: Error message.
            error_code: Error code.
            status_code: HTTP status returned by the service, if any.
            details: Additional details.
        """
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code, details)
        self.status_code = status_code
