"""Tests for the workbook decoder."""

import zipfile
from datetime import datetime
from io import BytesIO
from typing import Any

import openpyxl
import pytest
import xlrd
from xlrd.sheet import Cell as XlrdCell

from statement_workbook.services.format_detector import FormatDetector
from statement_workbook.services.grid_model import GridModel
from statement_workbook.services.workbook_decoder import WorkbookDecoder, derive_grid
from statement_workbook.services.workbook_encoder import WorkbookEncoder
from statement_workbook.utils.exceptions import DecodeError, ErrorCode
from statement_workbook.workbook_document import (
    CellKind,
    CellValue,
    ContainerVariant,
    Workbook,
)

LEGACY_BYTES = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 504


class FakeLegacySheet:
    """Minimal stand-in for an xlrd sheet."""

    def __init__(self, name: str, cells: list[list[XlrdCell]]) -> None:
        self.name = name
        self._cells = cells
        self.nrows = len(cells)
        self.ncols = max((len(row) for row in cells), default=0)

    def cell(self, rowx: int, colx: int) -> XlrdCell:
        row = self._cells[rowx]
        if colx < len(row):
            return row[colx]
        return XlrdCell(xlrd.XL_CELL_EMPTY, "")


class FakeLegacyBook:
    datemode = 0

    def __init__(self, sheets: list[FakeLegacySheet]) -> None:
        self._sheets = sheets

    def sheets(self) -> list[FakeLegacySheet]:
        return self._sheets


@pytest.fixture
def legacy_mime(monkeypatch: pytest.MonkeyPatch) -> None:
    """Report OLE2 buffers as Excel regardless of the installed magic db."""
    monkeypatch.setattr(
        FormatDetector,
        "_detect_mime_from_content",
        lambda self, content: "application/vnd.ms-excel",
    )


@pytest.fixture
def legacy_book(
    monkeypatch: pytest.MonkeyPatch, legacy_mime: None
) -> FakeLegacyBook:
    book = FakeLegacyBook(
        [
            FakeLegacySheet(
                "Releve",
                [
                    [
                        XlrdCell(xlrd.XL_CELL_TEXT, "Date"),
                        XlrdCell(xlrd.XL_CELL_TEXT, "Montant"),
                        XlrdCell(xlrd.XL_CELL_TEXT, "Pointe"),
                    ],
                    [
                        XlrdCell(xlrd.XL_CELL_DATE, 45000.0),
                        XlrdCell(xlrd.XL_CELL_NUMBER, 12.0),
                        XlrdCell(xlrd.XL_CELL_BOOLEAN, 1),
                    ],
                    [
                        XlrdCell(xlrd.XL_CELL_TEXT, "=not a formula"),
                        XlrdCell(xlrd.XL_CELL_BLANK, ""),
                        XlrdCell(xlrd.XL_CELL_ERROR, 0x07),
                    ],
                ],
            ),
            FakeLegacySheet("Vide", []),
        ]
    )

    def open_workbook(**kwargs: Any) -> FakeLegacyBook:
        return book

    monkeypatch.setattr(xlrd, "open_workbook", open_workbook)
    return book


def texts(rows: list[list[CellValue]]) -> list[list[str]]:
    return [[cell.as_text() for cell in row] for row in rows]


class TestDecodePackage:
    """Tests for .xlsx decoding."""

    def test_sheet_names_in_document_order(self, two_sheet_xlsx: bytes) -> None:
        decoded = WorkbookDecoder().decode(two_sheet_xlsx, "releve.xlsx")
        assert decoded.workbook.sheet_names == ["Jan", "Feb"]
        assert decoded.workbook.variant == ContainerVariant.PACKAGE

    def test_first_sheet_is_initial(self, two_sheet_xlsx: bytes) -> None:
        decoded = WorkbookDecoder().decode(two_sheet_xlsx)
        assert decoded.initial_sheet == "Jan"
        assert texts(decoded.rows) == [
            ["Date", "Libelle", "Montant"],
            ["2024-01-02", "Virement salaire", "1200"],
            ["2024-01-05", "Carte supermarche", "-45.5"],
        ]

    def test_numbers_keep_their_kind(self, two_sheet_xlsx: bytes) -> None:
        decoded = WorkbookDecoder().decode(two_sheet_xlsx)
        amount = decoded.rows[1][2]
        assert amount.kind == CellKind.NUMBER
        assert amount.number == 1200

    def test_input_is_not_modified(self, two_sheet_xlsx: bytes) -> None:
        original = bytes(two_sheet_xlsx)
        WorkbookDecoder().decode(two_sheet_xlsx)
        assert two_sheet_xlsx == original

    def test_jagged_rows_are_not_padded(self, make_xlsx: Any) -> None:
        data = make_xlsx({"S": [["a"], [None, None, "c"], [], ["d", None]]})
        decoded = WorkbookDecoder().decode(data)
        assert texts(decoded.rows) == [["a"], ["", "", "c"], [], ["d"]]
        assert decoded.rows[1][0].is_empty

    def test_empty_sheet_has_no_rows(self, make_xlsx: Any) -> None:
        decoded = WorkbookDecoder().decode(make_xlsx({"Empty": []}))
        assert decoded.rows == []

    def test_addressing_starts_at_a1(self) -> None:
        """Leading empty rows and columns are kept as empty cells."""
        wb = openpyxl.Workbook()
        wb.active.title = "S"
        wb.active["C3"] = "x"
        buffer = BytesIO()
        wb.save(buffer)

        decoded = WorkbookDecoder().decode(buffer.getvalue())
        assert texts(decoded.rows) == [[], [], ["", "", "x"]]

    def test_formula_without_cached_value_shows_formula(self) -> None:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "S"
        ws.append(["Montant", 10, 20])
        ws["D1"] = "=SUM(B1:C1)"
        buffer = BytesIO()
        wb.save(buffer)

        decoded = WorkbookDecoder().decode(buffer.getvalue())
        assert decoded.rows[0][3].as_text() == "=SUM(B1:C1)"

    def test_booleans_and_dates(self, make_xlsx: Any) -> None:
        data = make_xlsx({"S": [[True, datetime(2024, 1, 2)]]})
        decoded = WorkbookDecoder().decode(data)
        flag, when = decoded.rows[0]
        assert flag.as_text() == "TRUE"
        assert flag.to_native() is True
        assert when.as_text() == "2024-01-02T00:00:00"

    def test_get_sheet_names(self, two_sheet_xlsx: bytes) -> None:
        assert WorkbookDecoder().get_sheet_names(two_sheet_xlsx) == ["Jan", "Feb"]


class TestDecodeErrors:
    """Tests for undecodable input."""

    def test_ten_random_bytes(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            WorkbookDecoder().decode(b"\x13\x37garbage!", "releve.xlsx")
        assert exc_info.value.error_code == ErrorCode.UNSUPPORTED_FORMAT

    def test_empty_buffer(self) -> None:
        with pytest.raises(DecodeError):
            WorkbookDecoder().decode(b"")

    def test_zip_that_is_not_a_workbook(self) -> None:
        buffer = BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("hello.txt", "not a spreadsheet")

        with pytest.raises(DecodeError) as exc_info:
            WorkbookDecoder().decode(buffer.getvalue(), "hello.xlsx")
        assert exc_info.value.error_code == ErrorCode.MALFORMED_CONTAINER
        assert exc_info.value.http_status == 400

    def test_truncated_package(self, two_sheet_xlsx: bytes) -> None:
        with pytest.raises(DecodeError):
            WorkbookDecoder().decode(two_sheet_xlsx[:200])

    def test_corrupt_legacy_container(self, legacy_mime: None) -> None:
        with pytest.raises(DecodeError) as exc_info:
            WorkbookDecoder().decode(LEGACY_BYTES, "old.xls")
        assert exc_info.value.error_code == ErrorCode.MALFORMED_CONTAINER

    def test_workbook_without_sheets(
        self, monkeypatch: pytest.MonkeyPatch, two_sheet_xlsx: bytes
    ) -> None:
        storage = openpyxl.Workbook()
        empty = Workbook(
            sheet_names=[],
            storage=storage,
            values=storage,
            variant=ContainerVariant.PACKAGE,
        )
        monkeypatch.setattr(
            WorkbookDecoder, "_load_package", lambda self, data, filename: empty
        )

        with pytest.raises(DecodeError) as exc_info:
            WorkbookDecoder().decode(two_sheet_xlsx)
        assert exc_info.value.error_code == ErrorCode.EMPTY_WORKBOOK


class TestDecodeLegacy:
    """Tests for .xls decoding through xlrd."""

    def test_sheets_are_lifted(self, legacy_book: FakeLegacyBook) -> None:
        decoded = WorkbookDecoder().decode(LEGACY_BYTES, "old.xls")
        assert decoded.workbook.variant == ContainerVariant.LEGACY
        assert decoded.workbook.sheet_names == ["Releve", "Vide"]
        assert decoded.workbook.values is decoded.workbook.storage

    def test_cell_types(self, legacy_book: FakeLegacyBook) -> None:
        decoded = WorkbookDecoder().decode(LEGACY_BYTES, "old.xls")
        assert texts(decoded.rows) == [
            ["Date", "Montant", "Pointe"],
            ["2023-03-15T00:00:00", "12", "TRUE"],
            ["=not a formula", "", "#DIV/0!"],
        ]

    def test_equals_text_is_not_a_formula(self, legacy_book: FakeLegacyBook) -> None:
        decoded = WorkbookDecoder().decode(LEGACY_BYTES, "old.xls")
        assert decoded.workbook.storage["Releve"]["A3"].data_type == "s"

    def test_equals_text_survives_export(self, legacy_book: FakeLegacyBook) -> None:
        decoded = WorkbookDecoder().decode(LEGACY_BYTES, "old.xls")
        grid = GridModel(decoded.rows)
        grid.write_cell(1, 1, "13")

        encoded = WorkbookEncoder().encode(
            decoded.workbook, "Releve", grid, "old.xls"
        )

        cell = openpyxl.load_workbook(BytesIO(encoded.content))["Releve"]["A3"]
        assert cell.data_type == "s"
        assert cell.value == "=not a formula"

    def test_empty_legacy_sheet(self, legacy_book: FakeLegacyBook) -> None:
        workbook = WorkbookDecoder().load_workbook(LEGACY_BYTES)
        assert derive_grid(workbook, "Vide") == []


class TestDeriveGrid:
    def test_other_sheet(self, two_sheet_xlsx: bytes) -> None:
        workbook = WorkbookDecoder().load_workbook(two_sheet_xlsx)
        assert texts(derive_grid(workbook, "Feb")) == [
            ["Date", "Libelle", "Montant"],
            ["2024-02-01", "Loyer", "-800"],
        ]

    def test_unknown_sheet_raises_key_error(self, two_sheet_xlsx: bytes) -> None:
        workbook = WorkbookDecoder().load_workbook(two_sheet_xlsx)
        with pytest.raises(KeyError):
            derive_grid(workbook, "Mar")
