"""Dataclasses representing a decoded spreadsheet workbook."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum

import openpyxl

NativeValue = str | int | float | bool | datetime | date | time | timedelta | None

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class CellKind(str, Enum):
    """Closed set of cell value kinds held by the grid."""

    TEXT = "text"
    NUMBER = "number"
    EMPTY = "empty"


class ContainerVariant(str, Enum):
    """Spreadsheet container variants the decoder understands."""

    PACKAGE = "xlsx"
    LEGACY = "xls"


@dataclass(frozen=True)
class CellValue:
    """A single grid cell: text, number or empty.

    Booleans and temporal values coming from the container are carried as
    TEXT with their display text; ``native`` keeps the original value so an
    unedited cell is written back with its original type. Strings read from
    the container keep ``native`` too, which marks them as literal text:
    only text typed into the grid may turn into a formula on export.
    """

    kind: CellKind
    text: str = ""
    number: int | float | None = None
    native: NativeValue = field(default=None, compare=False)

    @classmethod
    def empty(cls) -> CellValue:
        return cls(kind=CellKind.EMPTY)

    @classmethod
    def of_text(cls, text: str) -> CellValue:
        if text == "":
            return cls.empty()
        return cls(kind=CellKind.TEXT, text=text)

    @classmethod
    def of_number(cls, number: int | float) -> CellValue:
        return cls(kind=CellKind.NUMBER, text=_number_text(number), number=number)

    @classmethod
    def from_native(cls, value: object) -> CellValue:
        """Classify a value read from a container into the closed variant."""
        if value is None:
            return cls.empty()
        if isinstance(value, bool):
            return cls(
                kind=CellKind.TEXT, text="TRUE" if value else "FALSE", native=value
            )
        if isinstance(value, (int, float)):
            return cls.of_number(value)
        if isinstance(value, str):
            if value == "":
                return cls.empty()
            return cls(kind=CellKind.TEXT, text=value, native=value)
        if isinstance(value, (datetime, date, time)):
            return cls(kind=CellKind.TEXT, text=value.isoformat(), native=value)
        if isinstance(value, timedelta):
            return cls(kind=CellKind.TEXT, text=str(value), native=value)
        return cls.from_native(str(value))

    @property
    def is_empty(self) -> bool:
        return self.kind == CellKind.EMPTY

    @property
    def is_literal_text(self) -> bool:
        """Text that came from the container rather than from an edit."""
        return self.kind == CellKind.TEXT and isinstance(self.native, str)

    def as_text(self) -> str:
        """Render the cell for the editable grid."""
        return self.text

    def to_native(self) -> NativeValue:
        """Value to write back into the container."""
        if self.kind == CellKind.EMPTY:
            return None
        if self.kind == CellKind.NUMBER:
            return self.number
        if self.native is not None:
            return self.native
        return self.text


def _number_text(number: int | float) -> str:
    if isinstance(number, float) and number.is_integer():
        return str(int(number))
    return str(number)


GridRows = list[list[CellValue]]


@dataclass
class Workbook:
    """A decoded container: ordered sheet names plus opaque storage.

    ``storage`` keeps formulas and everything else openpyxl understood and is
    the object re-serialized on export. ``values`` holds cached computed
    values and is only used to derive grids; for legacy containers both are
    the same object.
    """

    sheet_names: list[str]
    storage: openpyxl.Workbook
    values: openpyxl.Workbook
    variant: ContainerVariant

    def has_sheet(self, name: str) -> bool:
        return name in self.sheet_names


@dataclass
class DecodedWorkbook:
    """Result of decoding a buffer: the workbook and its initial grid."""

    workbook: Workbook
    initial_sheet: str
    rows: GridRows


@dataclass
class EncodedWorkbook:
    """Serialized package-based container ready for transfer."""

    content: bytes
    filename: str
    sheet_name: str
    row_count: int
    media_type: str = XLSX_MEDIA_TYPE
