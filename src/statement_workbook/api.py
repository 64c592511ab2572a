"""FastAPI application serving the statement workbook editor."""

import uuid
from datetime import UTC, datetime
from typing import Annotated, Any
from urllib.parse import quote

import pydantic
from fastapi import (
    FastAPI,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from statement_workbook.config import settings, validate_settings_on_startup
from statement_workbook.models import (
    CellResponse,
    CellUpdateRequest,
    ErrorDetail,
    GridViewResponse,
    HealthResponse,
    SheetSelectRequest,
    WorkbookStateResponse,
)
from statement_workbook.output.file_transfer import InMemoryFileTransfer
from statement_workbook.services.extraction_client import (
    ExtractionClient,
    ExtractionParameters,
)
from statement_workbook.services.workbook_session import WorkbookSession
from statement_workbook.utils.exceptions import (
    ErrorCode,
    FileTooLargeError,
    ValidationError,
    WorkbookError,
)
from statement_workbook.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)

VERSION = "0.1.0"


def _attachment(content: bytes, filename: str, media_type: str) -> Response:
    ascii_name = filename.encode("ascii", "ignore").decode().replace('"', "")
    disposition = (
        f'attachment; filename="{ascii_name or "workbook.xlsx"}"; '
        f"filename*=UTF-8''{quote(filename)}"
    )
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": disposition},
    )


def _check_upload(filename: str | None, size: int, field: str) -> str:
    if not filename:
        raise ValidationError(message="A file must be provided", field=field)
    if size > settings.max_file_size_bytes:
        logger.warning(
            "File too large",
            file_size=size,
            max_size=settings.max_file_size_bytes,
        )
        raise FileTooLargeError(
            file_size=size,
            max_size=settings.max_file_size_bytes,
            filename=filename,
        )
    return filename


def create_app(
    session: WorkbookSession | None = None,
    extraction_client: ExtractionClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        session: Editing session to serve; a fresh one by default.
        extraction_client: Client for the extraction service.
    """
    app = FastAPI(
        title="Statement Workbook Editor API",
        description=(
            "Review and repair spreadsheets generated from bank statements: "
            "open a workbook, edit the active sheet and download the result."
        ),
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.session = session or WorkbookSession()
    app.state.extraction_client = extraction_client or ExtractionClient()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    validate_settings_on_startup(settings)

    def get_session(request: Request) -> WorkbookSession:
        current: WorkbookSession = request.app.state.session
        return current

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Assign a request ID, expose it in logs and response headers."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(WorkbookError)
    async def workbook_exception_handler(
        request: Request, exc: WorkbookError
    ) -> JSONResponse:
        """Turn workbook errors into structured responses with error codes."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.error(
            f"Workbook error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all handler that hides internals unless in debug mode."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail(
                detail=detail,
                error_code=ErrorCode.INTERNAL_ERROR.value,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": VERSION,
        }

    # ------------------------------------------------------------------ #
    # Workbook lifecycle
    # ------------------------------------------------------------------ #

    @app.post(
        "/workbook",
        response_model=WorkbookStateResponse,
        tags=["Workbook"],
        responses={
            400: {"model": ErrorDetail, "description": "Unreadable workbook"},
            413: {"model": ErrorDetail, "description": "File too large"},
        },
    )
    async def upload_workbook(
        request: Request,
        file: Annotated[UploadFile, File(description="Workbook (.xlsx or .xls)")],
    ) -> WorkbookStateResponse:
        """Open a workbook, replacing the current one on success.

        When decoding fails the previously open workbook stays open.
        """
        content = await file.read()
        filename = _check_upload(file.filename, len(content), "file")
        state = get_session(request).load(content, filename)
        return WorkbookStateResponse.from_state(state)

    @app.get("/workbook", response_model=WorkbookStateResponse, tags=["Workbook"])
    async def get_workbook(request: Request) -> WorkbookStateResponse:
        return WorkbookStateResponse.from_state(get_session(request).state())

    @app.delete("/workbook", response_model=WorkbookStateResponse, tags=["Workbook"])
    async def close_workbook(request: Request) -> WorkbookStateResponse:
        """Close the workbook, discarding unsaved edits."""
        current = get_session(request)
        current.clear()
        return WorkbookStateResponse.from_state(current.state())

    @app.post(
        "/workbook/sheets/select",
        response_model=WorkbookStateResponse,
        tags=["Workbook"],
        responses={404: {"model": ErrorDetail, "description": "Unknown sheet"}},
    )
    async def select_sheet(
        request: Request, body: SheetSelectRequest
    ) -> WorkbookStateResponse:
        """Switch the active sheet. Unsaved edits of the current sheet are lost."""
        state = get_session(request).select_sheet(body.sheet_name)
        return WorkbookStateResponse.from_state(state)

    # ------------------------------------------------------------------ #
    # Grid
    # ------------------------------------------------------------------ #

    @app.get("/workbook/grid", response_model=GridViewResponse, tags=["Grid"])
    async def get_grid(
        request: Request,
        limit: Annotated[int | None, Query(ge=1)] = None,
    ) -> GridViewResponse:
        """Rows of the active sheet, capped at the display limit."""
        current = get_session(request)
        view = current.view(max_rows=limit)
        return GridViewResponse.from_view(
            current.active_sheet or "", view, current.is_dirty
        )

    @app.get(
        "/workbook/cells/{row}/{column}",
        response_model=CellResponse,
        tags=["Grid"],
    )
    async def read_cell(request: Request, row: int, column: int) -> CellResponse:
        current = get_session(request)
        return CellResponse(
            row=row,
            column=column,
            value=current.read_cell(row, column),
            has_unsaved_changes=current.is_dirty,
        )

    @app.put(
        "/workbook/cells/{row}/{column}",
        response_model=CellResponse,
        tags=["Grid"],
    )
    async def write_cell(
        request: Request, row: int, column: int, body: CellUpdateRequest
    ) -> CellResponse:
        """Set one cell of the active grid, growing it when needed."""
        current = get_session(request)
        current.write_cell(row, column, body.value)
        return CellResponse(
            row=row,
            column=column,
            value=current.read_cell(row, column),
            has_unsaved_changes=current.is_dirty,
        )

    # ------------------------------------------------------------------ #
    # Export
    # ------------------------------------------------------------------ #

    @app.post(
        "/workbook/export",
        tags=["Workbook"],
        responses={
            200: {"description": "Workbook download"},
            409: {"model": ErrorDetail, "description": "No active sheet"},
        },
    )
    async def export_workbook(request: Request) -> Response:
        """Write the active sheet back and download the workbook as .xlsx."""
        transfer = InMemoryFileTransfer()
        encoded = get_session(request).export(transfer)
        download = transfer.transfers[-1]
        return _attachment(download.content, download.filename, encoded.media_type)

    # ------------------------------------------------------------------ #
    # Extraction service
    # ------------------------------------------------------------------ #

    @app.post(
        "/extractions",
        tags=["Extraction"],
        responses={
            200: {"description": "Generated workbook or editor state"},
            400: {"model": ErrorDetail, "description": "Missing parameters"},
            502: {"model": ErrorDetail, "description": "Extraction failed"},
        },
    )
    async def extract_statement(
        request: Request,
        file: Annotated[UploadFile, File(description="Bank statement PDF")],
        document_number: Annotated[str, Form()] = "",
        bank_code: Annotated[str, Form()] = "",
        account_number: Annotated[str, Form()] = "",
        open_in_editor: Annotated[bool, Query()] = False,
    ) -> Any:
        """Forward a statement to the extraction service.

        Returns the generated workbook as a download, or opens it in the
        editor and returns the workbook state when ``open_in_editor`` is set.
        """
        try:
            params = ExtractionParameters(
                document_number=document_number,
                bank_code=bank_code,
                account_number=account_number,
            )
        except pydantic.ValidationError as e:
            fields = [str(err["loc"][0]) for err in e.errors()]
            raise ValidationError(
                message=f"Missing extraction parameters: {', '.join(fields)}",
                field=fields[0] if fields else None,
                details={"fields": fields},
            ) from e

        content = await file.read()
        filename = _check_upload(file.filename, len(content), "file")
        client: ExtractionClient = request.app.state.extraction_client
        artifact = await client.extract(filename, content, params)

        if open_in_editor:
            state = get_session(request).load(artifact.content, artifact.filename)
            return WorkbookStateResponse.from_state(state)
        return _attachment(artifact.content, artifact.filename, artifact.media_type)

    logger.info("FastAPI application created successfully")
    return app


app = create_app()
