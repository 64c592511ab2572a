"""Services for the statement workbook editor."""

from statement_workbook.services.dirty_tracker import DirtyTracker
from statement_workbook.services.format_detector import FormatDetector
from statement_workbook.services.grid_model import GridModel
from statement_workbook.services.workbook_decoder import WorkbookDecoder, derive_grid
from statement_workbook.services.workbook_encoder import WorkbookEncoder

__all__ = [
    "DirtyTracker",
    "FormatDetector",
    "GridModel",
    "WorkbookDecoder",
    "WorkbookEncoder",
    "derive_grid",
]
