"""Unsaved-edit tracking for the active grid."""

from statement_workbook.utils.logging import get_logger

logger = get_logger(__name__)


class DirtyTracker:
    """Single boolean recording whether the active grid has unsaved edits.

    It only flips to True through ``mark_dirty`` (a cell write) and back to
    False through ``mark_clean`` (load, sheet switch, successful export).
    """

    def __init__(self) -> None:
        self._dirty = False

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        if not self._dirty:
            logger.debug("Grid has unsaved changes")
        self._dirty = True

    def mark_clean(self) -> None:
        self._dirty = False
