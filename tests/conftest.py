from __future__ import annotations

from collections.abc import Callable
from io import BytesIO

import pytest
from openpyxl import Workbook

from statement_workbook.services.workbook_session import WorkbookSession

SheetRows = list[list[object]]
BuildWorkbook = Callable[[dict[str, SheetRows]], bytes]


def build_xlsx(sheets: dict[str, SheetRows]) -> bytes:
    """Serialize ``{sheet name: rows}`` as an .xlsx package."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_xlsx() -> BuildWorkbook:
    return build_xlsx


@pytest.fixture
def two_sheet_xlsx() -> bytes:
    """Statement workbook with a January and a February sheet."""
    return build_xlsx(
        {
            "Jan": [
                ["Date", "Libelle", "Montant"],
                ["2024-01-02", "Virement salaire", 1200],
                ["2024-01-05", "Carte supermarche", -45.5],
            ],
            "Feb": [
                ["Date", "Libelle", "Montant"],
                ["2024-02-01", "Loyer", -800],
            ],
        }
    )


@pytest.fixture
def three_by_three_xlsx() -> bytes:
    return build_xlsx(
        {
            "Releve": [
                ["Date", "Libelle", "Montant"],
                ["2024-03-01", "Frais", "12"],
                ["2024-03-02", "Remboursement", "30"],
            ]
        }
    )


@pytest.fixture
def session() -> WorkbookSession:
    return WorkbookSession()
