"""Tests for the centralized exception classes."""

import pytest

from statement_workbook.utils.exceptions import (
    CellAddressError,
    DecodeError,
    EncodeError,
    ErrorCode,
    ExtractionServiceError,
    FileError,
    FileTooLargeError,
    GridError,
    NoDocumentError,
    SheetError,
    UnknownSheetError,
    ValidationError,
    WorkbookError,
    WorkbookFileNotFoundError,
)


class TestErrorCode:
    """Tests for the ErrorCode enumeration."""

    def test_error_codes_are_unique(self) -> None:
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))

    def test_error_code_format(self) -> None:
        """Error codes follow the Exxxx format."""
        for code in ErrorCode:
            assert code.value.startswith("E")
            assert len(code.value) == 5
            assert code.value[1:].isdigit()

    @pytest.mark.parametrize(
        ("prefix", "codes"),
        [
            (
                "E1",
                [
                    ErrorCode.FILE_NOT_FOUND,
                    ErrorCode.UNSUPPORTED_FORMAT,
                    ErrorCode.MALFORMED_CONTAINER,
                    ErrorCode.EMPTY_WORKBOOK,
                ],
            ),
            ("E2", [ErrorCode.UNKNOWN_SHEET, ErrorCode.INVALID_CELL_ADDRESS]),
            (
                "E3",
                [
                    ErrorCode.NO_ACTIVE_SHEET,
                    ErrorCode.ENCODING_FAILED,
                    ErrorCode.NO_DOCUMENT_LOADED,
                ],
            ),
        ],
    )
    def test_categories(self, prefix: str, codes: list[ErrorCode]) -> None:
        for code in codes:
            assert code.value.startswith(prefix)

    def test_single_internal_code(self) -> None:
        internal = [code for code in ErrorCode if code.value.startswith("E9")]
        assert internal == [ErrorCode.INTERNAL_ERROR]


class TestWorkbookError:
    """Tests for the base exception."""

    def test_defaults(self) -> None:
        error = WorkbookError("Something broke")
        assert error.message == "Something broke"
        assert error.error_code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}
        assert error.get_http_status() == 500

    def test_str_includes_code(self) -> None:
        error = WorkbookError("Oops", ErrorCode.ENCODING_FAILED)
        assert str(error) == "[E3002] Oops"

    def test_to_dict(self) -> None:
        error = WorkbookError("Oops", details={"sheet": "Jan"})
        assert error.to_dict() == {
            "error_code": "E9001",
            "message": "Oops",
            "details": {"sheet": "Jan"},
        }

    def test_to_dict_without_details(self) -> None:
        assert "details" not in WorkbookError("Oops").to_dict()


class TestFileErrors:
    def test_file_not_found(self) -> None:
        error = WorkbookFileNotFoundError("/data/releve.xlsx")
        assert error.error_code == ErrorCode.FILE_NOT_FOUND
        assert error.details["filename"] == "/data/releve.xlsx"
        assert error.http_status == 404

    def test_file_too_large(self) -> None:
        error = FileTooLargeError(file_size=20, max_size=10, filename="big.xlsx")
        assert error.error_code == ErrorCode.FILE_TOO_LARGE
        assert error.details == {
            "file_size": 20,
            "max_size": 10,
            "filename": "big.xlsx",
        }
        assert error.http_status == 413

    def test_decode_error_defaults_to_malformed(self) -> None:
        error = DecodeError("Could not read spreadsheet", filename="bad.xlsx")
        assert error.error_code == ErrorCode.MALFORMED_CONTAINER
        assert error.filename == "bad.xlsx"
        assert error.http_status == 400


class TestSheetAndGridErrors:
    def test_unknown_sheet(self) -> None:
        error = UnknownSheetError("Mar", available=["Jan", "Feb"])
        assert error.sheet_name == "Mar"
        assert "'Mar'" in error.message
        assert error.details == {
            "sheet_name": "Mar",
            "available_sheets": ["Jan", "Feb"],
        }
        assert error.http_status == 404

    def test_cell_address(self) -> None:
        error = CellAddressError(-1, 2)
        assert error.details == {"row": -1, "column": 2}
        assert error.error_code == ErrorCode.INVALID_CELL_ADDRESS
        assert isinstance(error, ValueError)
        assert error.http_status == 400


class TestSessionErrors:
    def test_encode_error_statuses(self) -> None:
        assert EncodeError("No active sheet").http_status == 409
        failed = EncodeError("disk full", error_code=ErrorCode.ENCODING_FAILED)
        assert failed.http_status == 500

    def test_encoding_failure_status_is_per_instance(self) -> None:
        EncodeError("disk full", error_code=ErrorCode.ENCODING_FAILED)
        assert EncodeError.http_status == 409

    def test_no_document(self) -> None:
        error = NoDocumentError("export")
        assert error.operation == "export"
        assert error.error_code == ErrorCode.NO_DOCUMENT_LOADED
        assert error.http_status == 409

    def test_validation_error(self) -> None:
        error = ValidationError("Missing value", field="bank_code")
        assert error.details == {"field": "bank_code"}
        assert error.error_code == ErrorCode.VALIDATION_FAILED

    def test_extraction_service_error(self) -> None:
        error = ExtractionServiceError("Extraction failed", status_code=503)
        assert error.status_code == 503
        assert error.details == {"status_code": 503}
        assert error.http_status == 502


class TestExceptionInheritance:
    def test_hierarchy(self) -> None:
        assert issubclass(WorkbookFileNotFoundError, FileError)
        assert issubclass(FileTooLargeError, FileError)
        assert issubclass(DecodeError, FileError)
        assert issubclass(UnknownSheetError, SheetError)
        assert issubclass(CellAddressError, GridError)
        for cls in (
            FileError,
            SheetError,
            GridError,
            EncodeError,
            NoDocumentError,
            ValidationError,
            ExtractionServiceError,
        ):
            assert issubclass(cls, WorkbookError)

    def test_catchable_as_base(self) -> None:
        with pytest.raises(WorkbookError):
            raise UnknownSheetError("Mar")
