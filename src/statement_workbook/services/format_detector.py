"""Spreadsheet container detection.

Classifies a byte buffer as a package-based (ZIP) or legacy binary (OLE2)
spreadsheet from the MIME type libmagic reports for its content. The
filename extension is only consulted when content detection yields
nothing, and otherwise used to report mismatches.
"""

from dataclasses import dataclass
from pathlib import Path

import magic

from statement_workbook.utils.exceptions import DecodeError, ErrorCode
from statement_workbook.utils.logging import get_logger
from statement_workbook.workbook_document import ContainerVariant

logger = get_logger(__name__)

__all__ = [
    "ContainerInfo",
    "FormatDetector",
    "EXTENSION_TO_VARIANT",
    "MIME_TO_VARIANT",
]

EXTENSION_TO_VARIANT: dict[str, ContainerVariant] = {
    ".xlsx": ContainerVariant.PACKAGE,
    ".xlsm": ContainerVariant.PACKAGE,
    ".xltx": ContainerVariant.PACKAGE,
    ".xltm": ContainerVariant.PACKAGE,
    ".xls": ContainerVariant.LEGACY,
    ".xlt": ContainerVariant.LEGACY,
}

# libmagic names OOXML packages by content type when it recognizes the
# parts, and falls back to plain zip otherwise. OLE2 files are reported by
# the application that wrote them, or as a generic compound document.
MIME_TO_VARIANT: dict[str, ContainerVariant] = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": (
        ContainerVariant.PACKAGE
    ),
    "application/vnd.openxmlformats-officedocument.spreadsheetml.template": (
        ContainerVariant.PACKAGE
    ),
    "application/vnd.ms-excel.sheet.macroenabled.12": ContainerVariant.PACKAGE,
    "application/vnd.ms-excel.template.macroenabled.12": ContainerVariant.PACKAGE,
    "application/zip": ContainerVariant.PACKAGE,
    "application/x-zip-compressed": ContainerVariant.PACKAGE,
    "application/vnd.ms-excel": ContainerVariant.LEGACY,
    "application/vnd.ms-office": ContainerVariant.LEGACY,
    "application/x-ole-storage": ContainerVariant.LEGACY,
    "application/cdfv2": ContainerVariant.LEGACY,
    "application/cdfv2-corrupt": ContainerVariant.LEGACY,
    "application/cdfv2-unknown": ContainerVariant.LEGACY,
}


@dataclass
class ContainerInfo:
    """Result of container detection."""

    variant: ContainerVariant
    mime_type: str | None = None
    extension: str | None = None
    detected_from_content: bool = True
    extension_mismatch: bool = False


class FormatDetector:
    """Detects which spreadsheet container variant a buffer holds.

    Content is authoritative: an extension cannot make unsupported content
    acceptable. It only decides when libmagic reports nothing, and produces
    a warning when it disagrees with the content.
    """

    def __init__(self) -> None:
        self._magic = magic.Magic(mime=True)

    def detect_from_content(
        self,
        content: bytes,
        filename: str | None = None,
    ) -> ContainerInfo:
        """Detect the container variant of ``content``.

        Args:
            content: Raw file bytes.
            filename: Optional original filename.

        Returns:
            ContainerInfo describing the variant.

        Raises:
            DecodeError: If the content is not a supported container.
        """
        extension = None
        if filename:
            ext = Path(filename).suffix.lower()
            extension = ext if ext else None
        expected = EXTENSION_TO_VARIANT.get(extension) if extension else None

        detected_mime = self._detect_mime_from_content(content)
        variant = MIME_TO_VARIANT.get(detected_mime) if detected_mime else None

        if variant is None:
            if detected_mime is None and expected is not None:
                return ContainerInfo(
                    variant=expected,
                    extension=extension,
                    detected_from_content=False,
                )
            raise DecodeError(
                "Unsupported spreadsheet format: expected an .xlsx or .xls file",
                error_code=ErrorCode.UNSUPPORTED_FORMAT,
                filename=filename,
                details={"size": len(content), "detected_mime": detected_mime},
            )

        mismatch = expected is not None and expected != variant
        if mismatch:
            logger.warning(
                "File extension does not match detected MIME type",
                extension=extension,
                detected_mime=detected_mime,
            )

        return ContainerInfo(
            variant=variant,
            mime_type=detected_mime,
            extension=extension,
            extension_mismatch=mismatch,
        )

    def _detect_mime_from_content(self, content: bytes) -> str | None:
        """Ask libmagic for the MIME type, None when it cannot tell."""
        if not content:
            return None

        try:
            detected = self._magic.from_buffer(content)
        except Exception as e:
            logger.warning(
                "Magic detection failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        return detected.split(";", 1)[0].strip().lower() or None

    @staticmethod
    def get_supported_extensions() -> list[str]:
        """Get list of supported file extensions."""
        return sorted(EXTENSION_TO_VARIANT.keys())
