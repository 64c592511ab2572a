"""File transfer collaborators receiving exported workbooks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from statement_workbook.utils.exceptions import ErrorCode, FileError
from statement_workbook.utils.logging import get_logger

logger = get_logger(__name__)


class FileTransfer(Protocol):
    """Hands generated bytes to the client under a filename.

    Delivery is fire-and-forget: nothing is reported back to the caller.
    """

    def send(self, content: bytes, filename: str) -> None: ...


@dataclass
class TransferredFile:
    content: bytes
    filename: str


class InMemoryFileTransfer:
    """Keeps transferred files so a web response can stream the latest one."""

    def __init__(self) -> None:
        self.transfers: list[TransferredFile] = []

    @property
    def last(self) -> TransferredFile | None:
        return self.transfers[-1] if self.transfers else None

    def send(self, content: bytes, filename: str) -> None:
        self.transfers.append(TransferredFile(content=content, filename=filename))
        logger.debug("File queued for download", filename=filename, size=len(content))


class DirectoryFileTransfer:
    """Writes transferred files into a directory, replacing same-named files."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def send(self, content: bytes, filename: str) -> None:
        target = self._directory / Path(filename).name
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise FileError(
                f"Could not save {filename}: {e}",
                error_code=ErrorCode.FILE_WRITE_ERROR,
                filename=str(target),
            ) from e
        logger.info("File saved", path=str(target), size=len(content))
