"""Utilities package for the statement workbook editor.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from statement_workbook.utils.exceptions import (
    CellAddressError,
    DecodeError,
    EncodeError,
    ErrorCode,
    ExtractionServiceError,
    FileError,
    HTTPStatusMixin,
    NoDocumentError,
    UnknownSheetError,
    ValidationError,
    WorkbookError,
)
from statement_workbook.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "CellAddressError",
    "DecodeError",
    "EncodeError",
    "ErrorCode",
    "ExtractionServiceError",
    "FileError",
    "HTTPStatusMixin",
    "NoDocumentError",
    "UnknownSheetError",
    "ValidationError",
    "WorkbookError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
