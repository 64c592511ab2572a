"""Tests for the bounded grid view."""

from unittest.mock import patch

import pytest

from statement_workbook.output.grid_view import (
    GridView,
    build_grid_view,
    column_label,
)
from statement_workbook.services.grid_model import GridModel


def numbered_grid(rows: int) -> GridModel:
    values: list[list[object]] = [["Date", "Montant"]]
    values.extend([[f"2024-01-{i:02d}", i] for i in range(1, rows)])
    return GridModel.from_values(values)


class TestBuildGridView:
    """Tests for rendering the active grid."""

    def test_header_and_body(self) -> None:
        grid = GridModel.from_values(
            [["Date", "Libelle", "Montant"], ["2024-01-02", "Virement", 1200]]
        )

        view = build_grid_view(grid)

        assert view.headers == ["Date", "Libelle", "Montant"]
        assert view.rows == [["2024-01-02", "Virement", "1200"]]
        assert view.row_offset == 1
        assert view.column_count == 3
        assert view.column_labels == ["A", "B", "C"]
        assert not view.truncated
        assert view.notice is None

    def test_missing_header_cells_get_placeholders(self) -> None:
        grid = GridModel.from_values([["Date", None], ["a", "b", "c", "d"]])

        view = build_grid_view(grid)

        assert view.headers == ["Date", "Col 2", "Col 3", "Col 4"]

    def test_short_rows_are_padded(self) -> None:
        grid = GridModel.from_values([["a", "b", "c"], ["x"], []])

        view = build_grid_view(grid)

        assert view.rows == [["x", "", ""], ["", "", ""]]

    def test_padding_does_not_touch_grid(self) -> None:
        grid = GridModel.from_values([["a", "b", "c"], ["x"]])
        build_grid_view(grid)
        assert grid.row_length(1) == 1
        assert not grid.tracker.is_dirty

    def test_truncated_at_limit(self) -> None:
        """At most ``limit`` grid rows are shown, the header included."""
        view = build_grid_view(numbered_grid(250), max_rows=100)

        assert view.truncated
        assert len(view.rows) == 99
        assert view.rows[-1][0] == "2024-01-99"
        assert view.total_rows == 250
        assert view.displayed_rows == 100
        assert view.notice is not None
        assert "first 100 rows" in view.notice
        assert "250" in view.notice

    def test_exact_limit_is_not_truncated(self) -> None:
        view = build_grid_view(numbered_grid(100), max_rows=100)
        assert not view.truncated
        assert len(view.rows) == 99

    def test_default_limit_from_settings(self) -> None:
        with patch("statement_workbook.output.grid_view.settings") as mock_settings:
            mock_settings.display_row_limit = 5
            view = build_grid_view(numbered_grid(20))

        assert view.max_rows == 5
        assert len(view.rows) == 4
        assert view.truncated

    def test_empty_grid(self) -> None:
        view = build_grid_view(GridModel())
        assert view.headers == []
        assert view.rows == []
        assert view.total_rows == 0
        assert not view.truncated

    def test_header_only(self) -> None:
        view = build_grid_view(GridModel.from_values([["Date"]]))
        assert view.headers == ["Date"]
        assert view.rows == []


class TestGridViewDataFrame:
    def test_index_is_grid_row(self) -> None:
        view = build_grid_view(numbered_grid(4))

        frame = view.to_dataframe()

        assert list(frame.columns) == ["Date", "Montant"]
        assert list(frame.index) == [1, 2, 3]
        assert frame.loc[2, "Montant"] == "2"

    def test_empty_view(self) -> None:
        view = GridView(
            headers=[], rows=[], column_count=0, total_rows=0, max_rows=100
        )
        assert view.to_dataframe().empty


class TestColumnLabel:
    @pytest.mark.parametrize(
        ("index", "label"),
        [
            (0, "A"),
            (1, "B"),
            (25, "Z"),
            (26, "AA"),
            (27, "AB"),
            (701, "ZZ"),
            (702, "AAA"),
        ],
    )
    def test_labels(self, index: int, label: str) -> None:
        assert column_label(index) == label
