"""Presentation helpers: bounded grid views and file transfer."""

from statement_workbook.output.file_transfer import (
    DirectoryFileTransfer,
    FileTransfer,
    InMemoryFileTransfer,
)
from statement_workbook.output.grid_view import GridView, build_grid_view

__all__ = [
    "DirectoryFileTransfer",
    "FileTransfer",
    "GridView",
    "InMemoryFileTransfer",
    "build_grid_view",
]
