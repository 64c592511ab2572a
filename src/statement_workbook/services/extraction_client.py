"""Client for the remote bank-statement extraction service.

The service accepts one statement document plus three identifiers and
answers with a generated spreadsheet. The editor never calls it on its own;
artifacts it returns can be opened like any uploaded workbook.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from pathlib import PurePath
from urllib.parse import unquote

import httpx
from pydantic import BaseModel, Field, field_validator

from statement_workbook.config import settings
from statement_workbook.utils.exceptions import ErrorCode, ExtractionServiceError
from statement_workbook.utils.logging import get_logger
from statement_workbook.workbook_document import XLSX_MEDIA_TYPE

logger = get_logger(__name__)

_FILENAME_STAR_RE = re.compile(r"filename\*\s*=\s*(?:[\w-]+'[\w-]*')?([^;]+)", re.I)
_FILENAME_RE = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.I)


class ExtractionParameters(BaseModel):
    """Identifiers sent alongside the statement document."""

    document_number: str = Field(..., description="Statement reference number")
    bank_code: str = Field(..., description="Bank routing code")
    account_number: str = Field(..., description="Account number")

    @field_validator("document_number", "bank_code", "account_number")
    @classmethod
    def validate_required(cls, v: str) -> str:
        """Trim and require a non-blank value."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("value is required")
        return stripped


@dataclass
class ExtractionArtifact:
    """Spreadsheet produced by the extraction service."""

    content: bytes
    filename: str
    media_type: str = XLSX_MEDIA_TYPE


def filename_from_content_disposition(header: str | None) -> str | None:
    """Extract the filename from a Content-Disposition header, if any."""
    if not header:
        return None
    match = _FILENAME_STAR_RE.search(header)
    if match:
        return PurePath(unquote(match.group(1).strip().strip('"'))).name
    match = _FILENAME_RE.search(header)
    if match:
        return PurePath(match.group(1).strip()).name
    return None


class ExtractionClient:
    """Async HTTP client posting statements to the extraction service."""

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Extraction endpoint; defaults to the configured URL.
            token: Bearer token; defaults to the configured token.
            timeout_seconds: Request timeout; defaults to configuration.
            transport: Optional transport, mainly for tests.
        """
        self._url = url or settings.extraction_api_url
        self._token = (
            token if token is not None else settings.get_extraction_api_token()
        )
        self._timeout = timeout_seconds or settings.extraction_timeout_seconds
        self._transport = transport

    async def extract(
        self,
        filename: str,
        content: bytes,
        params: ExtractionParameters,
    ) -> ExtractionArtifact:
        """Submit ``content`` and return the generated spreadsheet.

        Raises:
            ExtractionServiceError: If the service is unreachable or answers
                with an error status.
        """
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        files = {"file": (filename, content, "application/pdf")}
        start = time.time()

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._url,
                    files=files,
                    data=params.model_dump(),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.log_api_call(
                service="extraction",
                operation="extract",
                duration_seconds=time.time() - start,
                success=False,
                error_message=str(e),
            )
            raise ExtractionServiceError(
                f"Extraction service unreachable: {e}",
                error_code=ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
            ) from e

        duration = time.time() - start
        if response.is_error:
            detail = _error_detail(response)
            logger.log_api_call(
                service="extraction",
                operation="extract",
                duration_seconds=duration,
                success=False,
                status_code=response.status_code,
                error_message=detail,
            )
            raise ExtractionServiceError(
                f"Extraction failed: {detail}",
                status_code=response.status_code,
            )

        logger.log_api_call(
            service="extraction",
            operation="extract",
            duration_seconds=duration,
            status_code=response.status_code,
        )
        suggested = filename_from_content_disposition(
            response.headers.get("content-disposition")
        )
        return ExtractionArtifact(
            content=response.content,
            filename=suggested or f"{PurePath(filename).stem}.xlsx",
            media_type=response.headers.get("content-type", XLSX_MEDIA_TYPE),
        )


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return str(payload)
